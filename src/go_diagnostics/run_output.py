from dataclasses import dataclass, field

from .diagnostic import Diagnostic


@dataclass
class ExecResult:
    stdout: str = ""
    stderr: str = ""
    return_code: int | None = None
    tool_missing: bool = False
    error: str | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return (
            self.return_code == 0
            and not self.tool_missing
            and self.error is None
            and not self.cancelled
        )


@dataclass
class ToolInvocation:
    command: str
    args: list[str]
    cwd: str
    severity: str
    use_stderr: bool
    tool_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.tool_name or self.command


@dataclass
class ToolOutcome:
    invocation: ToolInvocation
    diagnostics: list[Diagnostic] = field(default_factory=list)
    tool_missing: bool = False
    error: str | None = None


@dataclass
class CoverageBlock:
    file: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    statements: int
    count: int

    @property
    def covered(self) -> bool:
        return self.count > 0


@dataclass
class CheckReport:
    diagnostics: list[Diagnostic] = field(default_factory=list)
    missing_tools: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    coverage: list[CoverageBlock] = field(default_factory=list)

    def to_json(self) -> dict:
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "missing_tools": self.missing_tools,
            "failures": self.failures,
            "coverage": [
                {
                    "file": block.file,
                    "start_line": block.start_line,
                    "end_line": block.end_line,
                    "covered": block.covered,
                }
                for block in self.coverage
            ],
        }


@dataclass
class PackageListing:
    packages: list[str] = field(default_factory=list)
    missing_tools: list[str] = field(default_factory=list)
