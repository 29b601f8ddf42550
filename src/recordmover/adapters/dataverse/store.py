"""Synchronous record store facade over the async Dataverse client."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from recordmover.domain.ports.store import (
    AlreadyAssociated,
    Associated,
    StoreError,
    UpsertOutcome,
)

from .client import DataverseClient, DuplicateAssociationError, default_client_factory
from .translator import entity_set_name, record_from_odata, record_to_odata

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Sequence
    from types import TracebackType
    from uuid import UUID

    from recordmover.adapters.http_resilience import ResilientClient
    from recordmover.config.dataverse import DataverseConfig
    from recordmover.config.http_resilience import ResilienceConfig
    from recordmover.domain.model import QueryFilter, Record, SchemaCatalog
    from recordmover.domain.ports.store import AssociationResult

    from .schema import EntityMetadataPayload

log = getLogger(__name__)


class DataverseRecordStore:
    """Dataverse environment used as export source or import target.

    Use as a context manager: the store owns an event loop and an HTTP client
    for its lifetime. The catalog is needed to map logical names to entity
    sets; :meth:`use_catalog` sets it once loaded.
    """

    def __init__(
        self,
        config: DataverseConfig,
        *,
        catalog: SchemaCatalog | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self._client_factory = client_factory
        self._runner: asyncio.Runner | None = None
        self._client: DataverseClient | None = None

    def __enter__(self) -> DataverseRecordStore:
        self._runner = asyncio.Runner()
        self._client = DataverseClient(self.config, self._client_factory(self.config.resilience))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        runner, client = self._runner, self._client
        self._runner = None
        self._client = None
        if runner is not None:
            try:
                if client is not None:
                    runner.run(client.aclose())
            finally:
                runner.close()
        return False

    def use_catalog(self, catalog: SchemaCatalog) -> None:
        self.catalog = catalog

    def upsert(self, record: Record) -> UpsertOutcome:
        client = self._require_client()
        created = self._run(
            client.upsert(
                self._entity_set(record.entity_type),
                record.id,
                record_to_odata(record, self._require_catalog()),
            )
        )
        return UpsertOutcome.CREATED if created else UpsertOutcome.UPDATED

    def update(self, record: Record) -> None:
        client = self._require_client()
        self._run(
            client.update(
                self._entity_set(record.entity_type),
                record.id,
                record_to_odata(record, self._require_catalog()),
            )
        )

    def associate(
        self,
        entity_type: str,
        entity_id: UUID,
        relationship_name: str,
        related_type: str,
        related_id: UUID,
    ) -> AssociationResult:
        client = self._require_client()
        try:
            self._run(
                client.associate(
                    self._entity_set(entity_type),
                    entity_id,
                    relationship_name,
                    self._entity_set(related_type),
                    related_id,
                )
            )
        except DuplicateAssociationError:
            return AlreadyAssociated()
        return Associated()

    def query(self, query: QueryFilter) -> list[Record]:
        return self.query_many([query])[0]

    def query_many(self, queries: Sequence[QueryFilter]) -> list[list[Record]]:
        """Run ``queries`` concurrently; results keep the input order."""

        client = self._require_client()
        catalog = self._require_catalog()

        async def gather() -> list[list[dict[str, object]]]:
            return list(
                await asyncio.gather(
                    *(
                        client.fetch(entity_set_name(catalog, query.entity_type), query)
                        for query in queries
                    )
                )
            )

        results = self._run(gather())
        return [
            [
                record_from_odata(query.entity_type, row, catalog.get(query.entity_type))
                for row in rows
            ]
            for query, rows in zip(queries, results, strict=True)
        ]

    def delete(self, entity_type: str, entity_id: UUID) -> None:
        client = self._require_client()
        self._run(client.delete(self._entity_set(entity_type), entity_id))

    def entity_definitions(self) -> list[EntityMetadataPayload]:
        return self._run(self._require_client().entity_definitions())

    def _entity_set(self, entity_type: str) -> str:
        return entity_set_name(self._require_catalog(), entity_type)

    def _require_client(self) -> DataverseClient:
        if self._client is None:
            raise StoreError("Dataverse store is not open; use it as a context manager")
        return self._client

    def _require_catalog(self) -> SchemaCatalog:
        if self.catalog is None:
            raise StoreError("Dataverse store has no schema catalog loaded")
        return self.catalog

    def _run[T](self, coroutine: Coroutine[object, object, T]) -> T:
        if self._runner is None:
            coroutine.close()
            raise StoreError("Dataverse store is not open; use it as a context manager")
        return self._runner.run(coroutine)
