import os
import re
from collections.abc import Callable
from dataclasses import dataclass, replace

DIAGNOSTIC_PATTERN = re.compile(
    r"^(?P<prefix>[^:]*: )?"
    r"(?P<path>(?:.:)?[^:]*):(?P<line>\d+)"
    r"(?::(?P<column>\d+)?)?:"
    r"(?:\w+:)? (?P<message>.*)$"
)


@dataclass(frozen=True)
class Diagnostic:
    file: str
    line: int
    message: str
    severity: str
    column: int | None = None

    def to_json(self) -> dict:
        data = {
            "file": self.file,
            "line": self.line,
            "message": self.message,
            "severity": self.severity,
        }
        if self.column is not None:
            data["column"] = self.column
        return data


def _identity(path: str) -> str:
    return path


def parse_line(
    line: str,
    previous: Diagnostic | None,
    *,
    cwd: str,
    severity: str,
    to_local: Callable[[str], str] = _identity,
) -> tuple[Diagnostic | None, Diagnostic | None]:
    """Parse one line of tool output.

    Returns ``(new, previous)``. ``new`` is a freshly matched diagnostic or
    ``None``; ``previous`` is the diagnostic later continuation lines attach
    to. A tab-led line never produces a new diagnostic: it is folded into
    ``previous`` (returned as a replacement record) or dropped.
    """
    if line.startswith("\t"):
        if previous is None:
            return None, None
        return None, replace(previous, message=f"{previous.message}\n{line}")

    match = DIAGNOSTIC_PATTERN.match(line)
    if match is None:
        return None, previous

    path = to_local(os.path.normpath(os.path.join(cwd, match.group("path"))))
    column = match.group("column")
    diagnostic = Diagnostic(
        file=path,
        line=int(match.group("line")),
        message=match.group("message"),
        severity=severity,
        column=int(column) if column else None,
    )
    return diagnostic, diagnostic


class DiagnosticsParser:
    def __init__(
        self,
        cwd: str,
        severity: str,
        to_local: Callable[[str], str] = _identity,
    ) -> None:
        self.cwd = cwd
        self.severity = severity
        self.to_local = to_local

    def parse(self, content: str) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        previous: Diagnostic | None = None
        for line in content.split("\n"):
            new, updated = parse_line(
                line,
                previous,
                cwd=self.cwd,
                severity=self.severity,
                to_local=self.to_local,
            )
            if new is not None:
                diagnostics.append(new)
            elif updated is not previous:
                # Continuation: swap in the extended record
                diagnostics[-1] = updated
            previous = updated
        return diagnostics
