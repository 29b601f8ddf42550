"""Domain model (pure, dependency-light)."""

from __future__ import annotations

from .query import (
    Condition,
    ConditionOperator,
    ConditionValue,
    FilterGroup,
    LogicalOperator,
    QueryFilter,
    matches,
)
from .record import (
    AttributeValue,
    Identifier,
    Record,
    RecordRef,
    Reference,
    Scalar,
    ScalarType,
)
from .schema import AttributeDescriptor, EntityTypeDescriptor, Relationship, SchemaCatalog

__all__ = [
    "AttributeDescriptor",
    "AttributeValue",
    "Condition",
    "ConditionOperator",
    "ConditionValue",
    "EntityTypeDescriptor",
    "FilterGroup",
    "Identifier",
    "LogicalOperator",
    "QueryFilter",
    "Record",
    "RecordRef",
    "Reference",
    "Relationship",
    "Scalar",
    "ScalarType",
    "SchemaCatalog",
    "matches",
]
