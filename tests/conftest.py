from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from recordmover.adapters.sqlalchemy import create_all_tables
from recordmover.domain.model import SchemaCatalog  # noqa: TC001
from recordmover.domain.reconciliation import CollectingProgressSink
from tests.helpers.catalog import portal_catalog
from tests.helpers.stores import FakeStore

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def catalog() -> SchemaCatalog:
    return portal_catalog()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(id_attributes={"annotation": "annotationid"})


@pytest.fixture
def sink() -> CollectingProgressSink:
    return CollectingProgressSink()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()

