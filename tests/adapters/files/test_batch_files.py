from __future__ import annotations

import json
import zipfile
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from recordmover.adapters.files import BatchFileError, read_records, write_records
from recordmover.adapters.payloads import decode_attributes, encode_attributes
from recordmover.domain.model import Identifier, Record
from tests.helpers.records import association, make_record, ref

if TYPE_CHECKING:
    from pathlib import Path


def _portal_batch() -> list[Record]:
    webfile = make_record("adx_webfile", adx_name="logo.png", statecode=0)
    note = make_record(
        "annotation",
        subject="logo",
        objectid=ref(webfile),
        documentbody="aGVsbG8=",
        filesize=5,
    )
    page = make_record(
        "adx_webpage",
        adx_name="Home",
        adx_ishidden=False,
        adx_displayorder=1.5,
        createdon=datetime(2024, 5, 2, 8, 30, tzinfo=UTC),
        adx_price=Decimal("9.99"),
        adx_relatedid=Identifier(uuid4()),
        adx_summary=None,
    )
    return [note, webfile, page, association(uuid4(), uuid4())]


def test_single_document_keeps_order_and_values(tmp_path: Path) -> None:
    records = _portal_batch()

    written = write_records(records, tmp_path / "export.json")
    loaded = read_records(written)

    assert loaded == records


def test_missing_suffix_becomes_json(tmp_path: Path) -> None:
    written = write_records(_portal_batch(), tmp_path / "export")

    assert written == tmp_path / "export.json"
    assert written.is_file()


def test_document_is_plain_json(tmp_path: Path) -> None:
    page = make_record("adx_webpage", adx_name="Home")

    written = write_records([page], tmp_path / "export.json")
    document = json.loads(written.read_text(encoding="utf-8"))

    (stored,) = document["records"]
    assert stored["entity_type"] == "adx_webpage"
    assert stored["id"] == str(page.id)
    assert stored["attributes"]["adx_name"] == {
        "kind": "scalar",
        "value": "Home",
        "format": None,
    }


def test_folder_structure_groups_by_type(tmp_path: Path) -> None:
    records = _portal_batch()

    written = write_records(records, tmp_path / "export", folder_structure=True)

    assert written.is_dir()
    assert {path.name for path in written.iterdir()} == {
        "annotation",
        "adx_webfile",
        "adx_webpage",
        "adx_webrole_contact",
    }
    assert read_records(written) == records


def test_zip_archive_round_trip(tmp_path: Path) -> None:
    records = _portal_batch()

    written = write_records(records, tmp_path / "export.zip", folder_structure=True)

    with zipfile.ZipFile(written) as archive:
        names = archive.namelist()
    assert f"annotation/000000_{records[0].id}.json" in names
    assert read_records(written) == records


@pytest.mark.parametrize("name", ["absent.json", "absent.zip", "absent"])
def test_missing_input_is_reported(tmp_path: Path, name: str) -> None:
    with pytest.raises(BatchFileError, match="does not exist"):
        read_records(tmp_path / name)


def test_invalid_document_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"records": [{"entity_type": "contact"}]}), encoding="utf-8")

    with pytest.raises(BatchFileError, match="not a valid record batch"):
        read_records(path)


def test_invalid_archive_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "broken.zip"
    path.write_bytes(b"not a zip")

    with pytest.raises(BatchFileError, match="not a valid archive"):
        read_records(path)


def test_attribute_encoding_for_storage() -> None:
    record = _portal_batch()[2]

    encoded = encode_attributes(record)

    assert encoded["createdon"] == {
        "kind": "scalar",
        "value": "2024-05-02T08:30:00+00:00",
        "format": "datetime",
    }
    assert encoded["adx_price"]["format"] == "decimal"  # type: ignore[index]
    assert decode_attributes(json.loads(json.dumps(encoded))) == record.attributes
