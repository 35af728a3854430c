import logging
import os
import re
import tempfile

from .config import Settings
from .paths import PathTranslator
from .run_output import CoverageBlock, ToolInvocation, ToolOutcome
from .runner import CancellationToken, Runner

PROFILE_LINE_PATTERN = re.compile(
    r"^(?P<file>.+):(?P<start_line>\d+)\.(?P<start_column>\d+),"
    r"(?P<end_line>\d+)\.(?P<end_column>\d+) "
    r"(?P<statements>\d+) (?P<count>\d+)$"
)


def parse_profile(content: str) -> list[CoverageBlock]:
    """Parse a ``go test -coverprofile`` file.

    The first line declares the mode (``mode: set``); every following line
    describes one block as ``file:startLine.startCol,endLine.endCol stmts count``.
    """
    blocks = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("mode:"):
            continue

        if match := PROFILE_LINE_PATTERN.match(line):
            blocks.append(
                CoverageBlock(
                    file=match.group("file"),
                    start_line=int(match.group("start_line")),
                    start_column=int(match.group("start_column")),
                    end_line=int(match.group("end_line")),
                    end_column=int(match.group("end_column")),
                    statements=int(match.group("statements")),
                    count=int(match.group("count")),
                )
            )
    return blocks


def coverage_invocation(
    filename: str,
    settings: Settings,
    translator: PathTranslator,
    profile: str,
) -> ToolInvocation:
    cwd = os.path.dirname(translator.to_exec(filename))
    return ToolInvocation(
        command="go",
        args=[
            "test",
            f"-coverprofile={translator.to_exec(profile)}",
            *settings.test_flags,
            ".",
        ],
        cwd=cwd,
        severity="error",
        use_stderr=False,
    )


async def get_coverage(
    filename: str,
    settings: Settings,
    runner: Runner,
    translator: PathTranslator,
    token: CancellationToken | None = None,
) -> tuple[list[CoverageBlock], ToolOutcome]:
    # The profile lives under the project root so both sides of the bind
    # mount can see it.
    fd, profile = tempfile.mkstemp(
        prefix=".go-diagnostics-cover-", suffix=".out", dir=translator.local_root
    )
    os.close(fd)
    try:
        invocation = coverage_invocation(filename, settings, translator, profile)
        result = await runner.run(invocation.command, invocation.args, invocation.cwd, token=token)

        if result.tool_missing:
            return [], ToolOutcome(invocation, tool_missing=True)
        if result.cancelled or result.error is not None:
            error = result.error or "cancelled"
            return [], ToolOutcome(invocation, error=f"coverage: {error}")

        with open(profile) as profile_file:
            blocks = parse_profile(profile_file.read())
    finally:
        os.unlink(profile)

    basename = os.path.basename(filename)
    blocks = [
        block
        for block in blocks
        if block.file == basename or block.file.endswith("/" + basename)
    ]
    logging.debug(f"Coverage for {filename}: {len(blocks)} blocks")
    return blocks, ToolOutcome(invocation)
