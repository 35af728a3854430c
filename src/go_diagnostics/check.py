import asyncio
import logging
import os
import tempfile
from collections.abc import Callable

from .config import Settings
from .cover import get_coverage
from .diagnostic import DiagnosticsParser
from .paths import PathTranslator, project_root
from .run_output import CheckReport, ToolInvocation, ToolOutcome
from .runner import CancellationToken, Runner
from .status import StatusLog, status_log


async def run_tool(
    runner: Runner,
    invocation: ToolInvocation,
    to_local: Callable[[str], str] = lambda path: path,
    token: CancellationToken | None = None,
    status: StatusLog = status_log,
) -> ToolOutcome:
    result = await runner.run(invocation.command, invocation.args, invocation.cwd, token=token)

    if result.tool_missing:
        return ToolOutcome(invocation, tool_missing=True)
    if result.cancelled:
        return ToolOutcome(invocation, error=f"{invocation.display_name} was cancelled")
    if result.error is not None:
        return ToolOutcome(invocation, error=f"{invocation.display_name}: {result.error}")

    # A nonzero exit is how these tools report problems; parse regardless
    output = result.stderr if invocation.use_stderr else result.stdout
    parser = DiagnosticsParser(
        cwd=invocation.cwd,
        severity=invocation.severity,
        to_local=to_local,
    )
    diagnostics = parser.parse(output)
    for diagnostic in diagnostics:
        status.append_line(f"{diagnostic.file}:{diagnostic.line}: {diagnostic.message}")
    status.append_line("")
    return ToolOutcome(invocation, diagnostics=diagnostics)


def build_invocations(
    filename: str,
    settings: Settings,
    translator: PathTranslator,
) -> list[ToolInvocation]:
    """Plan the build, lint and vet runs enabled in ``settings``."""
    exec_filename = translator.to_exec(filename)
    cwd = os.path.dirname(exec_filename)
    invocations = []

    if settings.build_on_save:
        tmppath = os.path.normpath(os.path.join(tempfile.gettempdir(), "go-code-check"))
        if exec_filename.lower().endswith("_test.go"):
            args = ["test", "-copybinary", "-o", tmppath, "-c"]
        else:
            args = ["build", "-o", tmppath]
        args += ["-tags", settings.build_tags, *settings.build_flags, "."]
        invocations.append(
            ToolInvocation(command="go", args=args, cwd=cwd, severity="error", use_stderr=True)
        )

    if settings.lint_on_save:
        args = list(settings.lint_flags)
        if settings.lint_tool == "golint":
            args.append(exec_filename)
        invocations.append(
            ToolInvocation(
                command=settings.lint_tool,
                args=args,
                cwd=cwd,
                severity="warning",
                use_stderr=False,
                tool_name=settings.lint_tool,
            )
        )

    if settings.vet_on_save:
        invocations.append(
            ToolInvocation(
                command="go",
                args=["vet", *settings.vet_flags, "."],
                cwd=cwd,
                severity="warning",
                use_stderr=True,
            )
        )

    return invocations


async def check(
    filename: str,
    settings: Settings,
    runner: Runner,
    translator: PathTranslator | None = None,
    token: CancellationToken | None = None,
    status: StatusLog = status_log,
) -> CheckReport:
    """Run every enabled check on ``filename`` and collect the results.

    Checks run concurrently. A check whose tool is missing or whose run
    fails contributes nothing but never hides results of the others.
    """
    status.clear()
    filename = os.path.abspath(filename)
    if translator is None:
        translator = PathTranslator(project_root(filename))

    runs = [
        run_tool(runner, invocation, translator.to_local, token, status)
        for invocation in build_invocations(filename, settings, translator)
    ]
    if settings.cover_on_save:
        coverage_run = get_coverage(filename, settings, runner, translator, token)
        (blocks, cover_outcome), *outcomes = await asyncio.gather(coverage_run, *runs)
        outcomes.append(cover_outcome)
    else:
        blocks = []
        outcomes = await asyncio.gather(*runs)

    report = CheckReport(coverage=blocks)
    for outcome in outcomes:
        if outcome.tool_missing:
            report.missing_tools.append(outcome.invocation.display_name)
        elif outcome.error is not None:
            report.failures.append(outcome.error)
        report.diagnostics.extend(outcome.diagnostics)

    logging.info(
        f"Checked {filename}: {len(report.diagnostics)} diagnostics, "
        f"{len(report.missing_tools)} missing tools, {len(report.failures)} failures"
    )
    return report
