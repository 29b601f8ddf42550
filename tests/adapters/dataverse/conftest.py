"""Shared fixtures for Dataverse adapter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from recordmover.adapters.dataverse import DataverseRecordStore
from recordmover.config.dataverse import DataverseConfig
from recordmover.config.http_resilience import ResilienceConfig
from tests.helpers.catalog import portal_catalog
from tests.helpers.dataverse import API_URL, ENVIRONMENT_URL, FakeDataverse

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def dataverse_config() -> DataverseConfig:
    return DataverseConfig(
        environment_url=ENVIRONMENT_URL,
        access_token="token",  # noqa: S106
        resilience=ResilienceConfig(name="dataverse", base_url=API_URL),
    )


@pytest.fixture
def dataverse() -> FakeDataverse:
    return FakeDataverse()


@pytest.fixture
def dataverse_store(
    dataverse_config: DataverseConfig, dataverse: FakeDataverse
) -> Iterator[DataverseRecordStore]:
    store = DataverseRecordStore(
        dataverse_config, catalog=portal_catalog(), client_factory=dataverse.client_factory
    )
    with store:
        yield store
