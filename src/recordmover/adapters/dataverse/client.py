"""Async client for the Dataverse Web API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from recordmover.adapters.http_resilience import ResilientClient
from recordmover.domain.ports.store import StoreError

from .schema import (
    EntityDefinitionsResponse,
    EntityMetadataPayload,
    ErrorResponse,
    RecordCollectionResponse,
)
from .translator import build_fetch_xml

if TYPE_CHECKING:
    from uuid import UUID

    from recordmover.config.dataverse import DataverseConfig
    from recordmover.config.http_resilience import ResilienceConfig
    from recordmover.domain.model import QueryFilter

log = getLogger(__name__)

_ENTITY_DEFINITIONS_QUERY: Final[str] = (
    "EntityDefinitions?$select=LogicalName,SchemaName,DisplayName,IsIntersect,"
    "PrimaryIdAttribute,PrimaryNameAttribute,EntitySetName"
    "&$expand=Attributes($select=LogicalName,AttributeType),"
    "ManyToManyRelationships($select=SchemaName,IntersectEntityName,"
    "Entity1LogicalName,Entity1IntersectAttribute,"
    "Entity2LogicalName,Entity2IntersectAttribute)"
)


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class DuplicateAssociationError(StoreError):
    """The two records are already associated through the relationship."""


class DataverseClient:
    def __init__(self, config: DataverseConfig, client: ResilientClient) -> None:
        self.config = config
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    async def upsert(self, entity_set: str, entity_id: UUID, body: dict[str, object]) -> bool:
        """Create or update a record; return ``True`` when it was created."""

        response = await self._client.patch(
            self._url(f"{entity_set}({entity_id})"),
            json=body,
            headers=self._headers(Prefer="return=representation"),
        )
        _raise_for_error(response, f"Upsert of {entity_set}({entity_id}) failed")
        return response.status_code == httpx.codes.CREATED

    async def update(self, entity_set: str, entity_id: UUID, body: dict[str, object]) -> None:
        response = await self._client.patch(
            self._url(f"{entity_set}({entity_id})"),
            json=body,
            headers=self._headers(**{"If-Match": "*"}),
        )
        _raise_for_error(response, f"Update of {entity_set}({entity_id}) failed")

    async def associate(
        self,
        entity_set: str,
        entity_id: UUID,
        relationship_name: str,
        related_set: str,
        related_id: UUID,
    ) -> None:
        response = await self._client.post(
            self._url(f"{entity_set}({entity_id})/{relationship_name}/$ref"),
            json={"@odata.id": self._url(f"{related_set}({related_id})")},
            headers=self._headers(),
        )
        _raise_for_error(response, f"Association through {relationship_name} failed")

    async def fetch(self, entity_set: str, query: QueryFilter) -> list[dict[str, object]]:
        """Run ``query`` as FetchXML, following pages until the server has no more records."""

        rows: list[dict[str, object]] = []
        page = 1
        while True:
            response = await self._client.get(
                self._url(entity_set),
                params={"fetchXml": build_fetch_xml(query, page=page)},
                headers=self._headers(Prefer='odata.include-annotations="*"'),
            )
            _raise_for_error(response, f"Query of {query.entity_type} failed")
            collection = RecordCollectionResponse.model_validate(response.json())
            rows.extend(collection.value)
            if not collection.more_records:
                return rows
            page += 1

    async def delete(self, entity_set: str, entity_id: UUID) -> None:
        response = await self._client.delete(
            self._url(f"{entity_set}({entity_id})"), headers=self._headers()
        )
        _raise_for_error(response, f"Delete of {entity_set}({entity_id}) failed")

    async def entity_definitions(self) -> list[EntityMetadataPayload]:
        response = await self._client.get(
            self._url(_ENTITY_DEFINITIONS_QUERY), headers=self._headers()
        )
        _raise_for_error(response, "Loading entity definitions failed")
        return EntityDefinitionsResponse.model_validate(response.json()).value

    def _url(self, path: str) -> str:
        return f"{self.config.api_url}{path}"

    def _headers(self, **extra: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "Accept": "application/json",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
            **extra,
        }


def _raise_for_error(response: httpx.Response, context: str) -> None:
    if response.is_success:
        return
    try:
        error = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        raise StoreError(
            f"{context}: HTTP {response.status_code}", code=str(response.status_code)
        ) from None
    log.debug("Dataverse error %s: %s", error.error.code, error.error.message)
    if error.is_duplicate_association:
        raise DuplicateAssociationError(error.error.message, code=error.error.code)
    raise StoreError(f"{context}: {error.error.message}", code=error.error.code)
