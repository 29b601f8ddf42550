"""Port for reporting import progress."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from recordmover.domain.model import RecordRef


class ImportPhase(StrEnum):
    COMMIT = "commit"
    DEFERRED = "deferred"
    DEACTIVATION = "deactivation"


class ProgressLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ProgressEntry:
    """One line of the import progress log."""

    message: str
    phase: ImportPhase
    level: ProgressLevel = ProgressLevel.INFO
    record: RecordRef | None = None


@runtime_checkable
class ProgressSink(Protocol):
    def record(self, entry: ProgressEntry) -> None: ...
