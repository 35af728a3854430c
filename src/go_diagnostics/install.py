import logging
import os

from .config import Settings
from .paths import current_workspace_from_gopath, find_go_mod, module_cache
from .run_output import ExecResult
from .runner import Runner
from .status import StatusLog, status_log


def install_args(cwd: str, settings: Settings, module_mode: bool) -> list[str]:
    args = ["install", *settings.build_flags]
    if settings.build_tags and "-tags" not in settings.build_flags:
        args += ["-tags", settings.build_tags]

    workspace = current_workspace_from_gopath(settings.gopath, cwd)
    if workspace and not module_mode:
        args.append(os.path.relpath(cwd, workspace))
    else:
        args.append(".")
    return args


async def install_current_package(
    filename: str,
    settings: Settings,
    runner: Runner,
    status: StatusLog = status_log,
) -> ExecResult | None:
    """Run ``go install`` for the package containing ``filename``.

    Returns ``None`` when there is nothing to install.
    """
    if not filename.endswith(".go"):
        logging.warning(f"{filename} is not a Go file, cannot find current package to install")
        return None

    cwd = os.path.dirname(os.path.abspath(filename))
    module_mode = find_go_mod(cwd) is not None

    cache = module_cache(settings.gopath)
    if module_mode and cache and cwd.startswith(cache):
        logging.debug(f"Skipping install of {cwd}: inside the module cache")
        return None

    args = install_args(cwd, settings, module_mode)
    import_path = args[-1]

    status.clear()
    status.append_line(
        f"Installing {'current package' if import_path == '.' else import_path}"
    )

    result = await runner.run("go", args, cwd)
    if result.ok:
        status.append_line("Installation successful")
    else:
        reason = result.stderr or result.error or ("go not found" if result.tool_missing else "")
        status.append_line(f"Installation failed: {reason}")
    return result
