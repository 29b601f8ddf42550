from __future__ import annotations

from uuid import uuid4

import pytest

from recordmover.domain.model import Reference
from recordmover.domain.preparation import (
    WebsiteIdMap,
    missing_website_ids,
    prepare_batch,
    remap_website_references,
)
from recordmover.domain.reconciliation import FatalInputError
from tests.helpers.records import make_record, ref
from tests.helpers.stores import FakeStore


def test_batch_without_website_references_is_not_checked(store: FakeStore) -> None:
    records = [make_record("contact", fullname="Jo")]

    prepare_batch(records, store)

    assert store.queries == []


def test_existing_websites_are_left_alone(store: FakeStore) -> None:
    website = make_record("adx_website", adx_name="Portal")
    store.add(website)
    page = make_record("adx_webpage", adx_websiteid=ref(website))
    mapping = WebsiteIdMap(website.id, uuid4())

    prepare_batch([page], store, [mapping])

    assert page.reference("adx_websiteid") == ref(website)


def test_missing_website_is_remapped(store: FakeStore) -> None:
    target_site = make_record("adx_website", adx_name="Portal")
    store.add(target_site)
    source_site_id = uuid4()
    page = make_record("adx_webpage", adx_websiteid=Reference("adx_website", source_site_id))
    webfile = make_record("adx_webfile", adx_websiteid=Reference("adx_website", source_site_id))

    prepare_batch([page, webfile], store, [WebsiteIdMap(source_site_id, target_site.id)])

    assert page.reference("adx_websiteid") == ref(target_site)
    assert webfile.reference("adx_websiteid") == ref(target_site)


def test_unmapped_missing_website_is_fatal(store: FakeStore) -> None:
    missing_id = uuid4()
    page = make_record("adx_webpage", adx_websiteid=Reference("adx_website", missing_id))

    with pytest.raises(FatalInputError) as excinfo:
        prepare_batch([page], store, [WebsiteIdMap(uuid4(), uuid4())])

    assert str(missing_id) in str(excinfo.value)


def test_missing_website_ids(store: FakeStore) -> None:
    known = make_record("adx_website")
    store.add(known)
    unknown_id = uuid4()
    records = [
        make_record("adx_webpage", adx_websiteid=ref(known)),
        make_record("adx_webpage", adx_websiteid=Reference("adx_website", unknown_id)),
    ]

    assert missing_website_ids(records, store) == {unknown_id}


def test_remap_rewrites_every_reference_to_a_mapped_id() -> None:
    source_id, target_id = uuid4(), uuid4()
    records = [
        make_record("adx_webpage", adx_websiteid=Reference("adx_website", source_id)),
        make_record("adx_webpage", adx_parentpageid=Reference("adx_webpage", source_id)),
    ]

    rewritten = remap_website_references(records, [WebsiteIdMap(source_id, target_id)])

    assert rewritten == 2
    assert records[0].reference("adx_websiteid") == Reference("adx_website", target_id)
    assert records[1].reference("adx_parentpageid") == Reference("adx_webpage", target_id)
