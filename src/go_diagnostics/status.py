import logging
from pathlib import Path


class StatusLog:
    """Shared, human-readable log of tool activity.

    Plays the role of the editor's output channel: every runner call and
    every parsed diagnostic leaves a line here.
    """

    def __init__(self, log_file: str | Path | None = None) -> None:
        self.lines: list[str] = []
        self.log_file = Path(log_file) if log_file else None

    def append_line(self, line: str) -> None:
        self.lines.append(line)
        logging.debug(line)
        if self.log_file is not None:
            with self.log_file.open("a") as log_file:
                log_file.write(line + "\n")

    def clear(self) -> None:
        self.lines.clear()

    def text(self) -> str:
        return "\n".join(self.lines)


status_log = StatusLog()
