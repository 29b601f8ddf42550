"""In-memory record representation.

A record is identified by ``(entity_type, id)`` and carries an ordered attribute
map. Attribute values are a closed union:

- ``Scalar``: primitive value (string, number, boolean, timestamp, option value)
- ``Identifier``: bare UUID that is not typed as a reference
- ``Reference``: typed pointer to another record
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

type ScalarType = str | int | float | bool | Decimal | datetime | None


@dataclass(frozen=True, slots=True)
class Scalar:
    value: ScalarType


@dataclass(frozen=True, slots=True)
class Identifier:
    value: UUID


@dataclass(frozen=True, slots=True)
class Reference:
    target_type: str
    target_id: UUID

    @property
    def target(self) -> RecordRef:
        return RecordRef(self.target_type, self.target_id)


type AttributeValue = Scalar | Identifier | Reference


@dataclass(frozen=True, slots=True)
class RecordRef:
    """Identity of a record: its type and id."""

    entity_type: str
    id: UUID

    def __str__(self) -> str:
        return f"{self.entity_type}/{self.id}"


@dataclass(slots=True)
class Record:
    """One entity instance being migrated."""

    entity_type: str
    id: UUID
    attributes: dict[str, AttributeValue] = field(default_factory=dict["str", "AttributeValue"])

    @property
    def ref(self) -> RecordRef:
        return RecordRef(self.entity_type, self.id)

    def __contains__(self, name: object) -> bool:
        return name in self.attributes

    def __len__(self) -> int:
        return len(self.attributes)

    def get(self, name: str) -> AttributeValue | None:
        return self.attributes.get(name)

    def scalar(self, name: str) -> ScalarType:
        """Return the primitive value of ``name`` or ``None`` when absent/not scalar."""

        value = self.attributes.get(name)
        if isinstance(value, Scalar):
            return value.value
        return None

    def identifier(self, name: str) -> UUID | None:
        value = self.attributes.get(name)
        if isinstance(value, Identifier):
            return value.value
        return None

    def reference(self, name: str) -> Reference | None:
        value = self.attributes.get(name)
        if isinstance(value, Reference):
            return value
        return None

    def references(self) -> Iterator[tuple[str, Reference]]:
        for name, value in self.attributes.items():
            if isinstance(value, Reference):
                yield name, value

    def bare_identifiers(self) -> Iterator[tuple[str, UUID]]:
        for name, value in self.attributes.items():
            if isinstance(value, Identifier):
                yield name, value.value

    def remove(self, *names: str) -> None:
        for name in names:
            self.attributes.pop(name, None)

    def copy(self) -> Record:
        return Record(self.entity_type, self.id, dict(self.attributes))

    def detach(self, names: Iterable[str]) -> Record:
        """Move ``names`` into a new record with the same identity.

        The returned record holds only the detached attributes; they are removed
        from ``self``.
        """

        detached = Record(self.entity_type, self.id)
        for name in list(names):
            if name in self.attributes:
                detached.attributes[name] = self.attributes.pop(name)
        return detached

    def merge(self, other: Record) -> None:
        """Copy every attribute of ``other`` into this record (``other`` wins)."""

        if other.ref != self.ref:
            raise ValueError(f"Cannot merge {other.ref} into {self.ref}")
        self.attributes.update(other.attributes)

    def label(self, name_attribute: str | None = None) -> str:
        """Human-readable label for progress messages."""

        if name_attribute is not None:
            name = self.scalar(name_attribute)
            if name is not None:
                return f"{name} ({self.ref})"
        return str(self.ref)
