"""Store-neutral query filters.

Stores translate these into their own query language; stores that filter
locally can use :func:`matches`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from .record import Identifier, Reference, Scalar

if TYPE_CHECKING:
    from .record import AttributeValue, Record


class ConditionOperator(StrEnum):
    EQUAL = "eq"
    NOT_EQUAL = "ne"
    IN = "in"
    ON_OR_AFTER = "on-or-after"


class LogicalOperator(StrEnum):
    AND = "and"
    OR = "or"


type ConditionValue = str | int | float | bool | UUID | date | datetime | None


@dataclass(frozen=True, slots=True)
class Condition:
    attribute: str
    operator: ConditionOperator
    value: ConditionValue | tuple[ConditionValue, ...] = None

    def __post_init__(self) -> None:
        if self.operator is ConditionOperator.IN and not isinstance(self.value, tuple):
            raise ValueError("IN conditions require a tuple of values")

    @property
    def values(self) -> tuple[ConditionValue, ...]:
        if isinstance(self.value, tuple):
            return self.value
        return (self.value,)


@dataclass(frozen=True, slots=True)
class FilterGroup:
    operator: LogicalOperator = LogicalOperator.AND
    conditions: tuple[Condition, ...] = ()
    groups: tuple[FilterGroup, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.conditions and all(group.is_empty for group in self.groups)


@dataclass(frozen=True, slots=True)
class QueryFilter:
    """Retrieve every record of ``entity_type`` matching ``criteria``."""

    entity_type: str
    criteria: FilterGroup = field(default_factory=FilterGroup)

    @classmethod
    def where(cls, entity_type: str, *conditions: Condition) -> QueryFilter:
        return cls(entity_type, FilterGroup(conditions=conditions))


def matches(record: Record, query: QueryFilter, *, id_attribute: str | None = None) -> bool:
    """Evaluate ``query`` against an in-memory record.

    ``id_attribute`` names the attribute that aliases the record id (e.g.
    ``annotationid``) so conditions on it compare against ``record.id``.
    """

    if record.entity_type != query.entity_type:
        return False
    return _matches_group(record, query.criteria, id_attribute)


def _matches_group(record: Record, group: FilterGroup, id_attribute: str | None) -> bool:
    results = [_matches_condition(record, cond, id_attribute) for cond in group.conditions]
    results.extend(
        _matches_group(record, sub, id_attribute) for sub in group.groups if not sub.is_empty
    )
    if not results:
        return True
    if group.operator is LogicalOperator.OR:
        return any(results)
    return all(results)


def _matches_condition(record: Record, condition: Condition, id_attribute: str | None) -> bool:
    if id_attribute is not None and condition.attribute == id_attribute:
        actual: object = record.id
    else:
        actual = _comparable(record.get(condition.attribute))

    if condition.operator is ConditionOperator.EQUAL:
        return actual == condition.value
    if condition.operator is ConditionOperator.NOT_EQUAL:
        return actual != condition.value
    if condition.operator is ConditionOperator.IN:
        return actual in condition.values
    if condition.operator is ConditionOperator.ON_OR_AFTER:
        return _on_or_after(actual, condition.value)
    raise ValueError(f"Unsupported operator: {condition.operator}")


def _comparable(value: AttributeValue | None) -> object:
    if value is None:
        return None
    if isinstance(value, Reference):
        return value.target_id
    if isinstance(value, Identifier):
        return value.value
    if isinstance(value, Scalar):
        return value.value
    raise TypeError(f"Unknown attribute value: {value!r}")


def _on_or_after(actual: object, bound: object) -> bool:
    if actual is None or bound is None:
        return False
    if isinstance(actual, str):
        try:
            actual = datetime.fromisoformat(actual)
        except ValueError:
            return False
    if not isinstance(actual, date) or not isinstance(bound, date):
        return False
    return _as_day(actual) >= _as_day(bound)


def _as_day(value: date) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value
