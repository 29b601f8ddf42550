"""SQLAlchemy adapter package for recordmover."""

from __future__ import annotations

from .connection import connect
from .metadata import SqlAlchemySchemaProvider
from .store import SqlAlchemyRecordStore
from .tables import create_all_tables, metadata

__all__ = [
    "SqlAlchemyRecordStore",
    "SqlAlchemySchemaProvider",
    "connect",
    "create_all_tables",
    "metadata",
]
