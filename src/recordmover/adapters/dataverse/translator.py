"""Translate between records and Dataverse Web API payloads.

Reading: lookups arrive as ``_<name>_value`` with a
``@Microsoft.Dynamics.CRM.lookuplogicalname`` annotation naming the target
type; they become :class:`Reference` values under ``<name>``.

Writing: references are sent as ``<navigation>@odata.bind`` pointing at the
target's entity set.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING, Final
from uuid import UUID

from recordmover.domain.model import (
    Condition,
    ConditionOperator,
    Identifier,
    Record,
    Reference,
    Scalar,
)

if TYPE_CHECKING:
    from recordmover.domain.model import (
        AttributeValue,
        ConditionValue,
        EntityTypeDescriptor,
        FilterGroup,
        QueryFilter,
        SchemaCatalog,
    )

log = getLogger(__name__)

LOOKUP_LOGICAL_NAME: Final[str] = "@Microsoft.Dynamics.CRM.lookuplogicalname"
ODATA_BIND: Final[str] = "@odata.bind"
FETCH_PAGE_SIZE: Final[int] = 5000

_DATETIME_TYPES: Final[frozenset[str]] = frozenset({"DateTime"})
_DECIMAL_TYPES: Final[frozenset[str]] = frozenset({"Decimal", "Money"})
_IDENTIFIER_TYPES: Final[frozenset[str]] = frozenset({"Uniqueidentifier"})


def entity_set_name(catalog: SchemaCatalog, logical_name: str) -> str:
    descriptor = catalog.get(logical_name)
    if descriptor is not None and descriptor.entity_set_name:
        return descriptor.entity_set_name
    return f"{logical_name}s"


def record_from_odata(
    entity_type: str,
    payload: Mapping[str, object],
    descriptor: EntityTypeDescriptor | None = None,
) -> Record:
    """Build a record from one entity of a Web API response."""

    id_attribute = _primary_id_attribute(entity_type, descriptor)
    raw_id = payload.get(id_attribute)
    if not isinstance(raw_id, str):
        raise ValueError(f"{entity_type} payload carries no {id_attribute}")

    record = Record(entity_type, UUID(raw_id))
    for key, value in payload.items():
        if "@" in key or value is None:
            continue
        if key.startswith("_") and key.endswith("_value"):
            name = key[1:-6]
            record.attributes[name] = _lookup_value(name, key, value, payload, descriptor)
            continue
        record.attributes[key] = _scalar_value(key, value, id_attribute, descriptor)
    return record


def _primary_id_attribute(entity_type: str, descriptor: EntityTypeDescriptor | None) -> str:
    if descriptor is not None and descriptor.primary_id_attribute:
        return descriptor.primary_id_attribute
    return f"{entity_type}id"


def _lookup_value(
    name: str,
    key: str,
    value: object,
    payload: Mapping[str, object],
    descriptor: EntityTypeDescriptor | None,
) -> AttributeValue:
    target_id = UUID(str(value))
    target_type = payload.get(f"{key}{LOOKUP_LOGICAL_NAME}")
    if not isinstance(target_type, str) and descriptor is not None:
        attribute = descriptor.attribute(name)
        if attribute is not None and len(attribute.targets) == 1:
            target_type = attribute.targets[0]
    if isinstance(target_type, str):
        return Reference(target_type, target_id)
    log.debug("Lookup %s has no target type; keeping the bare id", name)
    return Identifier(target_id)


def _scalar_value(
    name: str,
    value: object,
    id_attribute: str,
    descriptor: EntityTypeDescriptor | None,
) -> AttributeValue:
    attribute = descriptor.attribute(name) if descriptor is not None else None
    attribute_type = attribute.attribute_type if attribute is not None else None

    if isinstance(value, str):
        if name == id_attribute or attribute_type in _IDENTIFIER_TYPES:
            return Identifier(UUID(value))
        if attribute_type in _DATETIME_TYPES:
            return Scalar(datetime.fromisoformat(value))
    if attribute_type in _DECIMAL_TYPES and isinstance(value, int | float | str):
        try:
            return Scalar(Decimal(str(value)))
        except InvalidOperation:
            return Scalar(str(value))
    if isinstance(value, str | int | float | bool):
        return Scalar(value)
    return Scalar(str(value))


def record_to_odata(record: Record, catalog: SchemaCatalog) -> dict[str, object]:
    """Request body that writes every attribute of ``record``."""

    descriptor = catalog.get(record.entity_type)
    body: dict[str, object] = {}
    for name, value in record.attributes.items():
        if isinstance(value, Reference):
            navigation = _navigation_property(name, value, descriptor)
            target_set = entity_set_name(catalog, value.target_type)
            body[f"{navigation}{ODATA_BIND}"] = f"/{target_set}({value.target_id})"
        elif isinstance(value, Identifier):
            body[name] = str(value.value)
        else:
            body[name] = _json_scalar(value.value)
    return body


def _navigation_property(
    name: str, reference: Reference, descriptor: EntityTypeDescriptor | None
) -> str:
    attribute = descriptor.attribute(name) if descriptor is not None else None
    if attribute is not None and len(attribute.targets) > 1:
        return f"{name}_{reference.target_type}"
    return name


def _json_scalar(value: object) -> object:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def build_fetch_xml(query: QueryFilter, *, page: int = 1, count: int = FETCH_PAGE_SIZE) -> str:
    """Render ``query`` as a FetchXML document retrieving all attributes."""

    fetch = ET.Element("fetch", {"version": "1.0", "page": str(page), "count": str(count)})
    entity = ET.SubElement(fetch, "entity", {"name": query.entity_type})
    ET.SubElement(entity, "all-attributes")
    if not query.criteria.is_empty:
        _append_filter(entity, query.criteria)
    return ET.tostring(fetch, encoding="unicode")


def _append_filter(parent: ET.Element, group: FilterGroup) -> None:
    element = ET.SubElement(parent, "filter", {"type": str(group.operator)})
    for condition in group.conditions:
        _append_condition(element, condition)
    for subgroup in group.groups:
        if not subgroup.is_empty:
            _append_filter(element, subgroup)


def _append_condition(parent: ET.Element, condition: Condition) -> None:
    attributes = {"attribute": condition.attribute, "operator": str(condition.operator)}
    if condition.operator is ConditionOperator.IN:
        element = ET.SubElement(parent, "condition", attributes)
        for value in condition.values:
            ET.SubElement(element, "value").text = _fetch_value(value)
        return
    if condition.value is None:
        attributes["operator"] = (
            "null" if condition.operator is ConditionOperator.EQUAL else "not-null"
        )
    else:
        attributes["value"] = _fetch_value(condition.value)
    ET.SubElement(parent, "condition", attributes)


def _fetch_value(value: ConditionValue) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)
