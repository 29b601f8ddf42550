"""Read-only schema catalog describing the record types of a store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True, slots=True)
class Relationship:
    """Many-to-many relationship materialised by an intersect record type."""

    name: str
    intersect_type: str
    side1_type: str
    side1_id_attribute: str
    side2_type: str
    side2_id_attribute: str


@dataclass(frozen=True, slots=True)
class AttributeDescriptor:
    name: str
    attribute_type: str = "String"
    targets: tuple[str, ...] = ()

    @property
    def is_lookup(self) -> bool:
        return self.attribute_type in {"Lookup", "Customer", "Owner"}


@dataclass(frozen=True, slots=True)
class EntityTypeDescriptor:
    logical_name: str
    display_name: str | None = None
    schema_name: str | None = None
    is_intersect: bool = False
    many_to_many: tuple[Relationship, ...] = ()
    primary_id_attribute: str | None = None
    primary_name_attribute: str | None = None
    entity_set_name: str | None = None
    attributes: tuple[AttributeDescriptor, ...] = ()

    def attribute(self, name: str) -> AttributeDescriptor | None:
        return next((attr for attr in self.attributes if attr.name == name), None)

    def has_attribute(self, name: str) -> bool:
        return self.attribute(name) is not None


@dataclass(slots=True)
class SchemaCatalog:
    """Lookup structure over a set of entity type descriptors."""

    _descriptors: dict[str, EntityTypeDescriptor] = field(
        default_factory=dict["str", "EntityTypeDescriptor"], repr=False
    )

    @classmethod
    def of(cls, descriptors: Iterable[EntityTypeDescriptor]) -> SchemaCatalog:
        catalog = cls()
        for descriptor in descriptors:
            catalog.add(descriptor)
        return catalog

    def add(self, descriptor: EntityTypeDescriptor) -> None:
        self._descriptors[descriptor.logical_name] = descriptor

    def __contains__(self, logical_name: object) -> bool:
        return logical_name in self._descriptors

    def __iter__(self) -> Iterator[EntityTypeDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, logical_name: str) -> EntityTypeDescriptor | None:
        return self._descriptors.get(logical_name)

    def select(self, logical_names: Iterable[str] | None) -> tuple[EntityTypeDescriptor, ...]:
        """Return the descriptors for ``logical_names`` (all when empty/None)."""

        names = list(logical_names or ())
        if not names:
            return tuple(self._descriptors.values())
        return tuple(
            descriptor for descriptor in self._descriptors.values() if descriptor.logical_name in names
        )

    def relationships(self) -> Iterator[Relationship]:
        for descriptor in self._descriptors.values():
            yield from descriptor.many_to_many

    def relationship_for_intersect(self, intersect_type: str) -> Relationship | None:
        return next(
            (rel for rel in self.relationships() if rel.intersect_type == intersect_type),
            None,
        )

    def display_name_for(self, logical_name: str) -> str | None:
        """Resolve a human-readable name for ``logical_name``.

        Falls back to ``"<side1> / <side2>"`` for intersect types, then to the
        schema name and finally the logical name. Returns ``None`` when the type
        is unknown.
        """

        descriptor = self._descriptors.get(logical_name)
        if descriptor is None:
            return None
        if descriptor.display_name:
            return descriptor.display_name
        if descriptor.is_intersect:
            relationship = self.relationship_for_intersect(logical_name)
            if relationship is not None:
                side1 = self._label(relationship.side1_type)
                side2 = self._label(relationship.side2_type)
                return f"{side1} / {side2}"
        return descriptor.schema_name or descriptor.logical_name

    def _label(self, logical_name: str) -> str:
        descriptor = self._descriptors.get(logical_name)
        if descriptor is None or not descriptor.display_name:
            return logical_name
        return descriptor.display_name
