"""Ports for talking to a record store (source or target)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from recordmover.domain.model import QueryFilter, Record


class StoreError(RuntimeError):
    """Raised by store adapters when an operation is rejected or fails."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class UpsertOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"


class AssociationStatus(StrEnum):
    ASSOCIATED = "associated"
    ALREADY_ASSOCIATED = "already_associated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Associated:
    status: Literal[AssociationStatus.ASSOCIATED] = AssociationStatus.ASSOCIATED


@dataclass(frozen=True, slots=True)
class AlreadyAssociated:
    status: Literal[AssociationStatus.ALREADY_ASSOCIATED] = AssociationStatus.ALREADY_ASSOCIATED


@dataclass(frozen=True, slots=True)
class AssociationFailed:
    reason: str
    status: Literal[AssociationStatus.FAILED] = AssociationStatus.FAILED


type AssociationResult = Associated | AlreadyAssociated | AssociationFailed


@runtime_checkable
class RecordQuery(Protocol):
    """Read-side capability used by extraction."""

    def query(self, query: QueryFilter) -> list[Record]: ...

    def query_many(self, queries: Sequence[QueryFilter]) -> list[list[Record]]:
        """Run several queries; results are returned in input order."""
        ...


@runtime_checkable
class RemoteStore(Protocol):
    """Write-side capability consumed by the import engine."""

    def upsert(self, record: Record) -> UpsertOutcome: ...

    def update(self, record: Record) -> None: ...

    def associate(
        self,
        entity_type: str,
        entity_id: UUID,
        relationship_name: str,
        related_type: str,
        related_id: UUID,
    ) -> AssociationResult: ...

    def query(self, query: QueryFilter) -> list[Record]: ...

    def delete(self, entity_type: str, entity_id: UUID) -> None: ...
