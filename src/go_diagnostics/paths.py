import os
from pathlib import Path

from git import InvalidGitRepositoryError, NoSuchPathError, Repo


class PathTranslator:
    """Map paths between the local filesystem and the execution environment.

    Tools running in the container see the project under ``exec_root``; the
    editor sees it under ``local_root``. With the default bind mount both
    roots are the same and translation is the identity.
    """

    def __init__(self, local_root: str, exec_root: str | None = None) -> None:
        self.local_root = os.path.normpath(local_root)
        self.exec_root = os.path.normpath(exec_root or local_root)

    @staticmethod
    def _swap(path: str, old: str, new: str) -> str:
        path = os.path.normpath(path)
        if path == old:
            return new
        if path.startswith(old.rstrip(os.sep) + os.sep):
            return new.rstrip(os.sep) + os.sep + path[len(old.rstrip(os.sep)) + 1 :]
        return path

    def to_exec(self, path: str) -> str:
        return self._swap(path, self.local_root, self.exec_root)

    def to_local(self, path: str) -> str:
        return self._swap(path, self.exec_root, self.local_root)


def project_root(path: str | Path) -> str:
    """Return the git work tree containing ``path``, or ``path`` itself."""
    path = Path(path)
    directory = path if path.is_dir() else path.parent
    try:
        repo = Repo(directory, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return str(directory.resolve())
    if repo.working_tree_dir is None:
        return str(directory.resolve())
    return str(repo.working_tree_dir)


def current_workspace_from_gopath(gopath: str, cwd: str) -> str | None:
    """Return the ``<gopath entry>/src`` directory that contains ``cwd``."""
    for entry in gopath.split(os.pathsep):
        if not entry:
            continue
        src = os.path.join(os.path.normpath(entry), "src")
        if cwd == src or cwd.startswith(src + os.sep):
            return src
    return None


def module_cache(gopath: str) -> str | None:
    first = next((entry for entry in gopath.split(os.pathsep) if entry), None)
    if first is None:
        return None
    return os.path.join(os.path.normpath(first), "pkg", "mod")


def find_go_mod(path: str | Path) -> Path | None:
    directory = Path(path)
    for candidate in (directory, *directory.parents):
        go_mod = candidate / "go.mod"
        if go_mod.is_file():
            return go_mod
    return None
