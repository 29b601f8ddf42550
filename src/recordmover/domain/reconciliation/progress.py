"""Per-record-type progress bookkeeping."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from recordmover.domain.model import Record, SchemaCatalog


@dataclass(slots=True)
class EntityProgress:
    """Counters for one record type during one engine invocation."""

    entity_type: str
    display_name: str
    total_count: int = 0
    processed_count: int = 0
    succeeded_phase1: int = 0
    failed_phase1: int = 0
    succeeded_phase2: int = 0
    failed_phase2: int = 0
    succeeded_deactivation: int = 0
    failed_deactivation: int = 0

    @property
    def failed(self) -> int:
        return self.failed_phase1 + self.failed_phase2 + self.failed_deactivation


@dataclass(slots=True)
class ProgressTracker:
    """Lazily creates one :class:`EntityProgress` per record type.

    Totals are taken from the batch handed in at construction so that every
    input record is accounted for, regardless of when its type is first seen.
    """

    catalog: SchemaCatalog
    _totals: Counter[str] = field(default_factory=Counter["str"], repr=False)
    _entries: dict[str, EntityProgress] = field(
        default_factory=dict["str", "EntityProgress"], repr=False
    )

    @classmethod
    def for_batch(cls, catalog: SchemaCatalog, records: Iterable[Record]) -> ProgressTracker:
        tracker = cls(catalog)
        tracker._totals.update(record.entity_type for record in records)
        return tracker

    def get_or_create(self, entity_type: str) -> EntityProgress | None:
        """Return the progress entry for ``entity_type``.

        ``None`` means the type is absent from the catalog and cannot be
        committed.
        """

        progress = self._entries.get(entity_type)
        if progress is not None:
            return progress

        display_name = self.catalog.display_name_for(entity_type)
        if display_name is None:
            return None

        progress = EntityProgress(
            entity_type=entity_type,
            display_name=display_name,
            total_count=self._totals[entity_type],
        )
        self._entries[entity_type] = progress
        return progress

    def get(self, entity_type: str) -> EntityProgress | None:
        return self._entries.get(entity_type)

    @property
    def entities(self) -> tuple[EntityProgress, ...]:
        return tuple(self._entries.values())

    def __iter__(self) -> Iterator[EntityProgress]:
        return iter(self._entries.values())
