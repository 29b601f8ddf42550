"""Progress sink implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from recordmover.domain.ports.progress import ProgressEntry, ProgressLevel

if TYPE_CHECKING:
    from recordmover.domain.ports.progress import ImportPhase, ProgressSink

_LOG_LEVELS = {
    ProgressLevel.INFO: logging.INFO,
    ProgressLevel.WARNING: logging.WARNING,
    ProgressLevel.ERROR: logging.ERROR,
}


@dataclass(slots=True)
class LoggingProgressSink:
    """Forward progress entries to a standard library logger."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("recordmover.import"))

    def record(self, entry: ProgressEntry) -> None:
        self.logger.log(_LOG_LEVELS[entry.level], "Import (%s): %s", entry.phase, entry.message)


@dataclass(slots=True)
class CollectingProgressSink:
    """Keep entries in memory (reporting and tests)."""

    entries: list[ProgressEntry] = field(default_factory=list["ProgressEntry"])

    def record(self, entry: ProgressEntry) -> None:
        self.entries.append(entry)

    def messages(self, *, level: ProgressLevel | None = None) -> list[str]:
        return [entry.message for entry in self.entries if level is None or entry.level is level]

    def for_phase(self, phase: ImportPhase) -> list[ProgressEntry]:
        return [entry for entry in self.entries if entry.phase is phase]


@dataclass(slots=True)
class CompositeProgressSink:
    sinks: tuple[ProgressSink, ...]

    def record(self, entry: ProgressEntry) -> None:
        for sink in self.sinks:
            sink.record(entry)
