"""Extraction of a record batch from a source store."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from recordmover.domain.model import (
    Condition,
    ConditionOperator,
    FilterGroup,
    LogicalOperator,
    QueryFilter,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date
    from uuid import UUID

    from recordmover.domain.model import (
        EntityTypeDescriptor,
        Record,
        Relationship,
        SchemaCatalog,
    )
    from recordmover.domain.ports.store import RecordQuery

log = getLogger(__name__)

DEFAULT_BATCH_COUNT = 10


@dataclass(frozen=True, slots=True)
class ExportCriteria:
    """Which records to extract from the source."""

    create_filter: date | None = None
    modify_filter: date | None = None
    website_filter: UUID | None = None
    active_items_only: bool = False
    selected_entities: tuple[str, ...] = ()
    batch_count: int = DEFAULT_BATCH_COUNT
    created_on_attribute: str = "createdon"
    modified_on_attribute: str = "modifiedon"
    website_attribute: str = "adx_websiteid"
    state_attribute: str = "statecode"
    active_state: int = 0
    annotation_type: str = "annotation"
    annotation_parent_attribute: str = "objectid"
    file_parent_types: frozenset[str] = frozenset({"adx_webfile"})

    def __post_init__(self) -> None:
        if self.batch_count < 1:
            raise ValueError("batch_count must be positive")


@dataclass(slots=True)
class ExportResult:
    records: list[Record] = field(default_factory=list["Record"])
    counts: dict[str, int] = field(default_factory=dict["str", int])


def build_entity_query(descriptor: EntityTypeDescriptor, criteria: ExportCriteria) -> QueryFilter:
    """Query for one selected entity type honouring date, website and state filters."""

    date_conditions: list[Condition] = []
    if criteria.create_filter is not None:
        date_conditions.append(
            Condition(
                criteria.created_on_attribute,
                ConditionOperator.ON_OR_AFTER,
                criteria.create_filter,
            )
        )
    if criteria.modify_filter is not None:
        date_conditions.append(
            Condition(
                criteria.modified_on_attribute,
                ConditionOperator.ON_OR_AFTER,
                criteria.modify_filter,
            )
        )

    conditions: list[Condition] = []
    if criteria.website_filter is not None and _has_website_lookup(descriptor, criteria):
        conditions.append(
            Condition(criteria.website_attribute, ConditionOperator.EQUAL, criteria.website_filter)
        )
    if criteria.active_items_only and descriptor.has_attribute(criteria.state_attribute):
        conditions.append(
            Condition(criteria.state_attribute, ConditionOperator.EQUAL, criteria.active_state)
        )

    groups: tuple[FilterGroup, ...] = ()
    if date_conditions:
        groups = (FilterGroup(LogicalOperator.OR, tuple(date_conditions)),)
    return QueryFilter(
        descriptor.logical_name,
        FilterGroup(LogicalOperator.AND, tuple(conditions), groups),
    )


def _has_website_lookup(descriptor: EntityTypeDescriptor, criteria: ExportCriteria) -> bool:
    attribute = descriptor.attribute(criteria.website_attribute)
    return attribute is not None and attribute.is_lookup


def many_to_many_relationships(selected: Sequence[EntityTypeDescriptor]) -> list[Relationship]:
    """Relationships whose both sides are selected, one per intersect type."""

    names = {descriptor.logical_name for descriptor in selected}
    relationships: list[Relationship] = []
    seen: set[str] = set()
    for descriptor in selected:
        for relationship in descriptor.many_to_many:
            other = (
                relationship.side2_type
                if relationship.side1_type == descriptor.logical_name
                else relationship.side1_type
            )
            if other not in names or relationship.intersect_type in seen:
                continue
            seen.add(relationship.intersect_type)
            relationships.append(relationship)
    return relationships


def build_association_query(relationship: Relationship, side1_ids: Sequence[UUID]) -> QueryFilter:
    return QueryFilter.where(
        relationship.intersect_type,
        Condition(relationship.side1_id_attribute, ConditionOperator.IN, tuple(side1_ids)),
    )


@dataclass(slots=True)
class Exporter:
    """Extract the selected record types, their associations and file annotations."""

    source: RecordQuery
    catalog: SchemaCatalog
    criteria: ExportCriteria = field(default_factory=ExportCriteria)

    def export(self) -> ExportResult:
        result = ExportResult()
        selected = self.catalog.select(self.criteria.selected_entities)
        log.info("Retrieving records for %d entity types", len(selected))

        records = self._retrieve_entities(selected, result)
        records.extend(self._retrieve_associations(selected, records, result))

        annotations = self._retrieve_file_annotations(records, result)
        result.records = annotations + records
        return result

    def _retrieve_entities(
        self, selected: Sequence[EntityTypeDescriptor], result: ExportResult
    ) -> list[Record]:
        records: list[Record] = []
        batch_count = self.criteria.batch_count
        for start in range(0, len(selected), batch_count):
            chunk = selected[start : start + batch_count]
            log.info(
                "Begin batched retrieval for entity records: %s",
                ", ".join(f"{d.logical_name}: '{d.display_name or d.logical_name}'" for d in chunk),
            )
            queries = [build_entity_query(descriptor, self.criteria) for descriptor in chunk]
            for descriptor, found in zip(chunk, self.source.query_many(queries), strict=True):
                if not found:
                    continue
                log.info(
                    "Adding records for export - Entity: %s, Count: %d",
                    descriptor.logical_name,
                    len(found),
                )
                result.counts[descriptor.logical_name] = len(found)
                records.extend(found)
        return records

    def _retrieve_associations(
        self,
        selected: Sequence[EntityTypeDescriptor],
        records: Sequence[Record],
        result: ExportResult,
    ) -> list[Record]:
        log.info("Retrieving many to many relationship records")
        queries: list[QueryFilter] = []
        for relationship in many_to_many_relationships(selected):
            ids = [record.id for record in records if record.entity_type == relationship.side1_type]
            if ids:
                queries.append(build_association_query(relationship, ids))
        if not queries:
            return []

        associations: list[Record] = []
        for query, found in zip(queries, self.source.query_many(queries), strict=True):
            if not found:
                continue
            log.info(
                "Adding N:N records for export - Entity: %s, Count: %d",
                query.entity_type,
                len(found),
            )
            result.counts[query.entity_type] = result.counts.get(query.entity_type, 0) + len(found)
            associations.extend(found)
        return associations

    def _retrieve_file_annotations(
        self, records: Sequence[Record], result: ExportResult
    ) -> list[Record]:
        criteria = self.criteria
        parent_ids = tuple(
            record.id for record in records if record.entity_type in criteria.file_parent_types
        )
        if not parent_ids:
            return []

        log.info("Retrieving file annotations for %d records", len(parent_ids))
        annotations = self.source.query(
            QueryFilter.where(
                criteria.annotation_type,
                Condition(criteria.annotation_parent_attribute, ConditionOperator.IN, parent_ids),
            )
        )
        if annotations:
            result.counts[criteria.annotation_type] = len(annotations)
        return annotations
