"""Working sets of one import run."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Container, Iterable, Iterator
    from uuid import UUID

    from recordmover.domain.model import Record, RecordRef


@dataclass(slots=True)
class ImportBatch:
    """Records still waiting for a decision.

    Annotation records are kept at the front: the commit phase scans from the
    last index to the first, so they are committed after everything else.
    The batch counts the ids the scan has not visited yet.
    """

    records: list[Record] = field(default_factory=list["Record"])
    _unvisited: Counter[UUID] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._unvisited = Counter(record.id for record in self.records)

    @classmethod
    def ordered(cls, records: Iterable[Record], *, annotation_type: str) -> ImportBatch:
        items = list(records)
        annotations = [record for record in items if record.entity_type == annotation_type]
        others = [record for record in items if record.entity_type != annotation_type]
        return cls(annotations + others)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def visit(self, index: int) -> Record:
        """Return the record at ``index`` and drop its id from the pending ids."""

        record = self.records[index]
        remaining = self._unvisited[record.id] - 1
        if remaining > 0:
            self._unvisited[record.id] = remaining
        else:
            del self._unvisited[record.id]
        return record

    @property
    def pending_ids(self) -> Container[UUID]:
        """Ids of the records the scan has not visited yet."""

        return self._unvisited.keys()

    def pop(self, index: int) -> Record:
        return self.records.pop(index)


@dataclass(frozen=True, slots=True)
class IdUnion:
    """Membership test over several id collections without merging them."""

    parts: tuple[Container[UUID], ...]

    def __contains__(self, value: object) -> bool:
        return any(value in part for part in self.parts)


@dataclass(slots=True)
class DeferredRecord:
    """A record postponed to the deferred phase.

    ``whole`` records were never committed; fragments carry only reference
    attributes stripped from an already committed record.
    """

    record: Record
    whole: bool = False


@dataclass(slots=True)
class DeferredSet:
    """Deferred records coalesced by identity.

    Several entries for the same record are merged: attributes are unioned
    (the later entry wins on a name clash) and the entry becomes ``whole`` as
    soon as one contributing entry is whole.
    """

    _entries: dict[RecordRef, DeferredRecord] = field(
        default_factory=dict["RecordRef", "DeferredRecord"], repr=False
    )

    def defer_fragment(self, fragment: Record) -> None:
        self._add(DeferredRecord(fragment, whole=False))

    def defer_whole(self, record: Record) -> None:
        self._add(DeferredRecord(record, whole=True))

    def _add(self, entry: DeferredRecord) -> None:
        existing = self._entries.get(entry.record.ref)
        if existing is None:
            self._entries[entry.record.ref] = DeferredRecord(entry.record.copy(), entry.whole)
            return
        existing.record.merge(entry.record)
        existing.whole = existing.whole or entry.whole

    def __contains__(self, ref: object) -> bool:
        return ref in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DeferredRecord]:
        return iter(self._entries.values())


@dataclass(slots=True)
class DeactivationSet:
    """Records to mark inactive once every other write is done."""

    _refs: dict[RecordRef, None] = field(default_factory=dict["RecordRef", None], repr=False)

    def add(self, ref: RecordRef) -> None:
        self._refs[ref] = None

    def __contains__(self, ref: object) -> bool:
        return ref in self._refs

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[RecordRef]:
        return iter(self._refs)
