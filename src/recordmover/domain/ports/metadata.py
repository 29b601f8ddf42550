"""Ports for loading store schema metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from recordmover.domain.model import SchemaCatalog


@runtime_checkable
class SchemaCatalogProvider(Protocol):
    """Loads the entity type catalog of one store instance."""

    def load_catalog(self) -> SchemaCatalog: ...
