"""Structured event log for the virtual filesystem.

The disk layer records what happens to the backing store (mounts,
reformatting after a corrupt image, failed saves) and each mutation it
flushes.  The shell's ``log`` command and the REPL's startup banner
read the entries back.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, path).
- **Logger** — an append-only buffer with a minimum level, filtering
  and clearing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries.

    Using IntEnum means levels compare with ``<`` / ``>`` naturally,
    which makes minimum-level filtering trivial.
    """

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @classmethod
    def from_name(cls, name: str) -> LogLevel:
        """Look up a level by name, ignoring case.

        Raises:
            ValueError: If *name* is not a level name.

        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            choices = ", ".join(level.name.lower() for level in cls)
            msg = f"Unknown log level '{name}' (choose from {choices})"
            raise ValueError(msg) from None


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "disk").
        path: The virtual or image path the event concerns, if any.

    """

    level: LogLevel
    message: str
    source: str
    path: str | None = None

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with a minimum level and filtering.

    Entries below ``min_level`` are discarded when logged, so a quiet
    session does not accumulate per-operation DEBUG records.
    """

    def __init__(self, *, min_level: LogLevel = LogLevel.INFO) -> None:
        """Create an empty logger that keeps entries at or above *min_level*."""
        self._entries: list[LogEntry] = []
        self._min_level = min_level

    @property
    def min_level(self) -> LogLevel:
        """Return the lowest level this logger records."""
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return all recorded entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        path: str | None = None,
    ) -> None:
        """Record a new entry unless it falls below the minimum level.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.
            path: Path associated with the event.

        """
        if level < self._min_level:
            return
        self._entries.append(LogEntry(level=level, message=message, source=source, path=path))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def messages(self) -> list[str]:
        """Return every entry formatted as a display line."""
        return [str(entry) for entry in self._entries]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
