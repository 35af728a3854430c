import asyncio
import logging

from .run_output import PackageListing
from .runner import Runner

VENDOR_SEGMENT = "/vendor/"


def merge_packages(pkgs: list[str], vendor_pkgs: list[str]) -> list[str]:
    """Merge the workspace package list with the project's vendored packages.

    A package reached through a ``vendor/`` directory is replaced by the
    path it shadows when ``govendor`` knows that path. If that path is
    already listed on its own, the vendored entry is dropped instead. The
    first occurrence of a package wins and the result is sorted.
    """
    pkgs = [pkg for pkg in pkgs if pkg]
    if not vendor_pkgs:
        return sorted(set(pkgs))

    known = set(pkgs)
    vendored = set(vendor_pkgs)
    merged: list[str] = []
    seen: set[str] = set()

    for pkg in pkgs:
        candidate = pkg
        vendor_index = pkg.find(VENDOR_SEGMENT)
        if vendor_index > 0:
            relative = pkg[vendor_index + len(VENDOR_SEGMENT) :]
            if relative and relative in vendored:
                if relative in known:
                    continue
                candidate = relative

        if candidate not in seen:
            seen.add(candidate)
            merged.append(candidate)

    return sorted(merged)


def _split_lines(output: str) -> list[str]:
    return [line.strip() for line in output.split("\n") if line.strip()]


async def list_packages(runner: Runner, cwd: str) -> PackageListing:
    """List importable packages for the project at ``cwd``.

    ``gopkgs`` and ``govendor`` run concurrently; a missing tool is reported
    on the listing and its list is treated as empty.
    """
    gopkgs, govendor = await asyncio.gather(
        runner.run("gopkgs", [], cwd),
        runner.run("govendor", ["list", "-no-status", "+v"], cwd),
    )

    listing = PackageListing()
    for name, result in (("gopkgs", gopkgs), ("govendor", govendor)):
        if result.tool_missing:
            listing.missing_tools.append(name)
        elif result.error is not None:
            logging.warning(f"{name} failed: {result.error}")

    pkgs = [] if gopkgs.tool_missing else _split_lines(gopkgs.stdout)
    vendor_pkgs = [] if govendor.tool_missing else _split_lines(govendor.stdout)
    listing.packages = merge_packages(pkgs, vendor_pkgs)
    logging.info(f"Found {len(listing.packages)} packages")
    return listing
