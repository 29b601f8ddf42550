"""Public interface for the Dataverse adapter."""

from __future__ import annotations

from .client import DataverseClient, DuplicateAssociationError
from .metadata import DataverseSchemaProvider, descriptor_from_metadata
from .store import DataverseRecordStore
from .translator import build_fetch_xml, record_from_odata, record_to_odata

__all__ = [
    "DataverseClient",
    "DataverseRecordStore",
    "DataverseSchemaProvider",
    "DuplicateAssociationError",
    "build_fetch_xml",
    "descriptor_from_metadata",
    "record_from_odata",
    "record_to_odata",
]
