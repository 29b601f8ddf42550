from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import pytest

from recordmover.adapters.files import read_records, write_records
from recordmover.adapters.sqlalchemy import SqlAlchemyRecordStore
from recordmover.app import export_records, import_records, open_environment, run_mover
from recordmover.config import ConfigurationError, MissingConfigurationError, MoverSettings
from recordmover.config.settings import WebsiteIdMapping
from recordmover.domain.model import QueryFilter
from recordmover.domain.reconciliation import CollectingProgressSink, FatalInputError
from tests.helpers.catalog import portal_catalog
from tests.helpers.records import association, make_record, ref
from tests.helpers.stores import FakeStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from recordmover.app import Environment, EnvironmentOpener
    from recordmover.config.dataverse import EnvironmentRole
    from recordmover.domain.model import Record, SchemaCatalog


@dataclass
class _StaticProvider:
    catalog: SchemaCatalog

    def load_catalog(self) -> SchemaCatalog:
        return self.catalog


def _opener(
    stores: dict[str, FakeStore],
) -> tuple[EnvironmentOpener, list[tuple[str, EnvironmentRole]]]:
    opened: list[tuple[str, EnvironmentRole]] = []

    @contextmanager
    def open_store(environment: str, role: EnvironmentRole) -> Iterator[Environment]:
        opened.append((environment, role))
        yield stores[environment], _StaticProvider(portal_catalog())

    return open_store, opened


def _source() -> tuple[FakeStore, list[Record]]:
    source = FakeStore(id_attributes={"annotation": "annotationid"})
    website = make_record("adx_website", adx_name="Portal")
    recent = datetime(2024, 5, 2, tzinfo=UTC)
    home = make_record(
        "adx_webpage", adx_name="Home", adx_websiteid=ref(website), createdon=recent
    )
    about = make_record(
        "adx_webpage",
        adx_name="About",
        adx_websiteid=ref(website),
        adx_parentpageid=ref(home),
        createdon=recent,
    )
    old = make_record(
        "adx_webpage",
        adx_name="Old",
        adx_websiteid=ref(website),
        createdon=datetime(2020, 1, 1, tzinfo=UTC),
    )
    source.add(website, home, about, old)
    return source, [website, home, about, old]


def test_export_writes_filtered_records(tmp_path: Path) -> None:
    source, (website, home, about, _old) = _source()
    open_store, opened = _opener({"fake://source": source})
    settings = MoverSettings(
        export_filename=str(tmp_path / "export.json"),
        source_environment="fake://source",
        website_filter=website.id,
        create_filter=date(2024, 1, 1),
    )

    result = export_records(settings, open_store=open_store)

    assert opened == [("fake://source", "source")]
    assert result.counts == {"adx_webpage": 2}
    written = read_records(tmp_path / "export.json")
    assert {record.ref for record in written} == {home.ref, about.ref}


def test_import_commits_file_into_target(tmp_path: Path) -> None:
    website = make_record("adx_website", adx_name="Portal")
    home = make_record("adx_webpage", adx_name="Home", adx_websiteid=ref(website))
    about = make_record(
        "adx_webpage", adx_name="About", adx_websiteid=ref(website), adx_parentpageid=ref(home)
    )
    role = make_record("adx_webrole", adx_name="Admins")
    contact = make_record("contact", fullname="Jo")
    path = write_records(
        [home, about, role, contact, association(role.id, contact.id)], tmp_path / "import.json"
    )
    target = FakeStore()
    target.add(website)
    open_store, opened = _opener({"fake://target": target})
    sink = CollectingProgressSink()
    settings = MoverSettings(import_filename=str(path), target_environment="fake://target")

    result = import_records(settings, open_store=open_store, sink=sink)

    assert opened == [("fake://target", "target")]
    assert result.failed == 0
    assert target.get(about.ref) is not None
    assert len(target.associations) == 1
    assert sink.entries


def test_import_remaps_websites(tmp_path: Path) -> None:
    source_site = make_record("adx_website")
    target_site = make_record("adx_website", adx_name="Portal")
    page = make_record("adx_webpage", adx_name="Home", adx_websiteid=ref(source_site))
    path = write_records([page], tmp_path / "import.json")
    target = FakeStore()
    target.add(target_site)
    open_store, _opened = _opener({"fake://target": target})
    settings = MoverSettings(
        import_filename=str(path),
        target_environment="fake://target",
        website_id_mapping=[WebsiteIdMapping(source_id=source_site.id, target_id=target_site.id)],
    )

    import_records(settings, open_store=open_store, sink=CollectingProgressSink())

    stored = target.get(page.ref)
    assert stored is not None
    assert stored.reference("adx_websiteid") == ref(target_site)


def test_import_of_empty_file_is_fatal(tmp_path: Path) -> None:
    path = write_records([], tmp_path / "empty.json")
    open_store, opened = _opener({"fake://target": FakeStore()})
    settings = MoverSettings(import_filename=str(path), target_environment="fake://target")

    with pytest.raises(FatalInputError):
        import_records(settings, open_store=open_store)

    assert opened == []


def test_run_mover_exports_before_importing(tmp_path: Path) -> None:
    source, (website, _home, _about, _old) = _source()
    target = FakeStore()
    target.add(website)
    open_store, opened = _opener({"fake://source": source, "fake://target": target})
    batch_file = str(tmp_path / "portal.json")
    settings = MoverSettings(
        export_filename=batch_file,
        import_filename=batch_file,
        source_environment="fake://source",
        target_environment="fake://target",
        website_filter=website.id,
        create_filter=date(2024, 1, 1),
    )

    run = run_mover(settings, open_store=open_store, sink=CollectingProgressSink())

    assert [role for _environment, role in opened] == ["source", "target"]
    assert run.exported is not None
    assert run.imported is not None
    assert run.imported.succeeded_phase1 == 2
    assert run.imported.failed == 0
    assert len(target.records) == 3


def test_open_environment_connects_to_database(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'target.db'}"

    with open_environment(uri, "target") as (store, provider):
        assert isinstance(store, SqlAlchemyRecordStore)
        assert len(provider.load_catalog()) == 0
        assert store.query(QueryFilter("contact")) == []


def test_open_environment_rejects_unknown_location() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported target environment"):
        with open_environment("target.db", "target"):
            pass


def test_open_environment_needs_token_for_dataverse(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RECORDMOVER_SOURCE_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError):
        with open_environment("https://source.crm.dynamics.com", "source"):
            pass
