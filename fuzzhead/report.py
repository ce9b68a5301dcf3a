"""Per-invocation transcript and severity log."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass
class LogEntry:
    """A severity-tagged event recorded during a run."""

    severity: Severity
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


@dataclass
class RunSummary:
    """Entry counts by severity."""

    total: int
    errors: int
    warnings: int
    by_level: dict[str, int]

    def to_dict(self) -> dict:
        return {
            "totalLogs": self.total,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class RunReport:
    """Append-only sink for one invocation.

    Holds two streams: the human-readable transcript returned to the caller,
    and severity-tagged entries that drive the summary. Entries are also
    forwarded to the standard logger. Create one per invocation and pass it
    explicitly; never share it between runs.
    """

    def __init__(self):
        self._lines: list[str] = []
        self._entries: list[LogEntry] = []

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def line(self, text: str) -> None:
        """Append a transcript line."""
        self._lines.append(text)

    def append_to_last(self, suffix: str) -> None:
        """Extend the most recent transcript line (e.g. with a result)."""
        if self._lines:
            self._lines[-1] += suffix
        else:
            self._lines.append(suffix)

    def log(self, severity: Severity, message: str, **data: Any) -> LogEntry:
        entry = LogEntry(severity=severity, message=message, data=data)
        self._entries.append(entry)
        if data:
            logger.log(_LOG_LEVELS[severity], f"{message} {data}")
        else:
            logger.log(_LOG_LEVELS[severity], message)
        return entry

    def info(self, message: str, **data: Any) -> LogEntry:
        return self.log(Severity.INFO, message, **data)

    def warning(self, message: str, **data: Any) -> LogEntry:
        return self.log(Severity.WARNING, message, **data)

    def error(self, message: str, **data: Any) -> LogEntry:
        return self.log(Severity.ERROR, message, **data)

    def transcript(self) -> str:
        """Flatten the transcript into a newline-joined string."""
        return "\n".join(self._lines)

    def summary(self) -> RunSummary:
        by_level: dict[str, int] = {}
        for entry in self._entries:
            by_level[entry.severity.value] = by_level.get(entry.severity.value, 0) + 1
        return RunSummary(
            total=len(self._entries),
            errors=by_level.get(Severity.ERROR.value, 0),
            warnings=by_level.get(Severity.WARNING.value, 0),
            by_level=by_level,
        )
