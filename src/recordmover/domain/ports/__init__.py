"""Domain port definitions for adapters."""

from __future__ import annotations

from .metadata import SchemaCatalogProvider
from .progress import ImportPhase, ProgressEntry, ProgressLevel, ProgressSink
from .store import (
    AlreadyAssociated,
    Associated,
    AssociationFailed,
    AssociationResult,
    AssociationStatus,
    RecordQuery,
    RemoteStore,
    StoreError,
    UpsertOutcome,
)

__all__ = [
    "AlreadyAssociated",
    "Associated",
    "AssociationFailed",
    "AssociationResult",
    "AssociationStatus",
    "ImportPhase",
    "ProgressEntry",
    "ProgressLevel",
    "ProgressSink",
    "RecordQuery",
    "RemoteStore",
    "SchemaCatalogProvider",
    "StoreError",
    "UpsertOutcome",
]
