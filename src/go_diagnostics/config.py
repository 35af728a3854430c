"""
Configuration constants and settings for go-diagnostics.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

# Image used for the tool container
DEFAULT_IMAGE = "joh-go"

# Environment variable set inside the container to the mounted project root
WORKSPACE_ENV_VAR = "GO_WORKSPACE"

# Default settings file looked up in the current directory
SETTINGS_FILE = "go-diagnostics.toml"


@dataclass
class Settings:
    build_on_save: bool = True
    lint_on_save: bool = True
    vet_on_save: bool = True
    cover_on_save: bool = False
    lint_tool: str = "golint"
    lint_flags: list[str] = field(default_factory=list)
    vet_flags: list[str] = field(default_factory=list)
    build_flags: list[str] = field(default_factory=list)
    build_tags: str = ""
    test_flags: list[str] = field(default_factory=list)
    use_container: bool = False
    image: str = DEFAULT_IMAGE
    gopath: str = field(default_factory=lambda: os.environ.get("GOPATH", ""))

    @classmethod
    def from_toml(cls, data: dict) -> "Settings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        for name, value in data.items():
            if name.endswith("_flags") and not (
                isinstance(value, list) and all(isinstance(flag, str) for flag in value)
            ):
                raise ValueError(f"Setting '{name}' must be a list of strings")
        return cls(**data)


def load_settings(toml_path: str | Path | None = None) -> Settings:
    """Load settings from the ``[go]`` table of a TOML file.

    A missing default file yields default settings; an explicitly given
    path must exist.
    """
    if toml_path is None:
        toml_path = Path(SETTINGS_FILE)
        if not toml_path.exists():
            return Settings()

    with open(toml_path, "rb") as f:
        data = tomllib.load(f)

    return Settings.from_toml(data.get("go", {}))
