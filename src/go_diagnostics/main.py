import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from .check import check as run_checks
from .config import Settings, load_settings
from .diagnostic import DiagnosticsParser
from .imports import list_packages as run_list_packages
from .install import install_current_package
from .paths import project_root
from .runner import ContainerRunner, LocalRunner, Runner
from .status import status_log
from .tools import missing_tool_prompt


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def make_runner(settings: Settings, root: str) -> Runner:
    if settings.use_container:
        return ContainerRunner(image=settings.image, root=root)
    return LocalRunner()


def report_missing_tools(missing_tools: list[str]) -> None:
    for tool in missing_tools:
        click.echo(missing_tool_prompt(tool), err=True)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    help="Path to a go-diagnostics.toml settings file",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    required=False,
)
@click.option(
    "--container/--local",
    "use_container",
    default=None,
    help="Run tools inside the tool container or as local processes",
)
@click.option(
    "--log-file",
    help="Append the status log to this file",
    type=click.Path(dir_okay=False),
    default=None,
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    use_container: bool | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """
    Run Go tools and report their findings as structured diagnostics.
    """
    setup_logging(verbose)
    try:
        settings = load_settings(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e
    if use_container is not None:
        settings.use_container = use_container

    status_log.log_file = Path(log_file) if log_file else None

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument(
    "filename",
    type=click.Path(exists=True, dir_okay=False, readable=True),
)
@click.option(
    "--output",
    "-o",
    help="Output JSON file with collected diagnostics",
    type=click.Path(),
    default=None,
)
@click.pass_context
def check(ctx, filename: str, output: str | None) -> None:
    """
    Build, lint and vet the package containing FILENAME.
    """
    settings: Settings = ctx.obj["settings"]
    runner = make_runner(settings, project_root(filename))

    report = asyncio.run(run_checks(filename, settings, runner))

    report_missing_tools(report.missing_tools)
    for failure in report.failures:
        click.echo(f"Check failed: {failure}", err=True)

    if output:
        output_path = Path(output)
        with output_path.open("w") as json_file:
            json.dump(report.to_json(), json_file, indent=4)
        logging.info(f"Output written to {output_path}")
    else:
        for diagnostic in report.diagnostics:
            click.echo(
                f"{diagnostic.file}:{diagnostic.line}: "
                f"{diagnostic.severity}: {diagnostic.message}"
            )


@cli.command()
@click.option(
    "--cwd",
    help="Directory of the file being edited",
    type=click.Path(exists=True, file_okay=False),
    default=".",
)
@click.pass_context
def list_packages(ctx, cwd: str) -> None:
    """
    List the packages that can be imported from CWD.
    """
    # Package listing always runs locally, like the editor's import picker
    listing = asyncio.run(run_list_packages(LocalRunner(), str(Path(cwd).resolve())))

    report_missing_tools(listing.missing_tools)
    for package in listing.packages:
        click.echo(package)


@cli.command()
@click.argument(
    "filename",
    type=click.Path(exists=True, dir_okay=False, readable=True),
)
@click.pass_context
def install(ctx, filename: str) -> None:
    """
    Install the package containing FILENAME with `go install`.
    """
    settings: Settings = ctx.obj["settings"]
    result = asyncio.run(install_current_package(filename, settings, LocalRunner()))

    click.echo(status_log.text())
    if result is None:
        return
    if result.tool_missing:
        report_missing_tools(["go"])
    if not result.ok:
        ctx.exit(1)


@cli.command()
@click.option(
    "--severity",
    help="Severity given to every parsed diagnostic",
    type=click.Choice(["error", "warning", "info"]),
    default="error",
)
@click.option(
    "--cwd",
    help="Directory relative paths in the output are resolved against",
    type=click.Path(file_okay=False),
    default=".",
)
@click.option(
    "--output",
    "-o",
    default="parsed-diagnostics.json",
    help="Output JSON file with parsed diagnostics",
    type=click.Path(),
)
def parse_output(severity: str, cwd: str, output: str) -> None:
    """
    Parse Go tool output from stdin and generate a JSON file.
    """
    content = sys.stdin.read()

    if not content.strip():
        click.echo("No tool output provided on stdin", err=True)
        return

    parser = DiagnosticsParser(cwd=str(Path(cwd).resolve()), severity=severity)
    diagnostics = parser.parse(content)

    output_path = Path(output)
    with output_path.open("w") as json_file:
        json.dump({"diagnostics": [d.to_json() for d in diagnostics]}, json_file, indent=4)

    logging.info(f"Parsed {len(diagnostics)} diagnostics and wrote to {output_path}")
    click.echo(f"Parsed {len(diagnostics)} diagnostics and wrote to {output_path}")


if __name__ == "__main__":
    cli()
