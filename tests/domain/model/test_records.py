from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from recordmover.domain.model import (
    Condition,
    ConditionOperator,
    EntityTypeDescriptor,
    FilterGroup,
    Identifier,
    LogicalOperator,
    QueryFilter,
    Reference,
    Scalar,
    SchemaCatalog,
    matches,
)
from tests.helpers.catalog import WEBROLE_CONTACT
from tests.helpers.records import make_record, ref


def test_detach_moves_attributes_to_new_record() -> None:
    parent = make_record("adx_webpage")
    page = make_record("adx_webpage", adx_name="Home", adx_parentpageid=ref(parent))

    fragment = page.detach(["adx_parentpageid", "missing"])

    assert fragment.ref == page.ref
    assert dict(fragment.attributes) == {"adx_parentpageid": ref(parent)}
    assert "adx_parentpageid" not in page
    assert page.scalar("adx_name") == "Home"


def test_merge_rejects_other_identity() -> None:
    with pytest.raises(ValueError, match="Cannot merge"):
        make_record("contact").merge(make_record("contact"))


def test_typed_accessors_ignore_other_kinds() -> None:
    target = uuid4()
    record = make_record(
        "adx_webpage",
        adx_name="Home",
        adx_relatedid=Identifier(target),
        adx_parentpageid=Reference("adx_webpage", target),
    )

    assert record.scalar("adx_relatedid") is None
    assert record.identifier("adx_relatedid") == target
    assert record.identifier("adx_parentpageid") is None
    assert record.reference("adx_name") is None
    assert list(record.bare_identifiers()) == [("adx_relatedid", target)]


def test_label_prefers_name_attribute() -> None:
    record = make_record("contact", fullname="Jo")

    assert record.label("fullname") == f"Jo ({record.ref})"
    assert record.label() == str(record.ref)
    assert record.label("missing") == f"contact/{record.id}"


def test_catalog_select_keeps_catalog_order(catalog: SchemaCatalog) -> None:
    selected = catalog.select(["contact", "adx_webpage", "unknown"])

    assert [descriptor.logical_name for descriptor in selected] == ["adx_webpage", "contact"]
    assert len(catalog.select(None)) == len(catalog)


def test_catalog_finds_relationship_by_intersect(catalog: SchemaCatalog) -> None:
    assert catalog.relationship_for_intersect("adx_webrole_contact") == WEBROLE_CONTACT
    assert catalog.relationship_for_intersect("contact") is None


def test_display_name_falls_back_to_schema_then_logical_name() -> None:
    catalog = SchemaCatalog.of(
        [
            EntityTypeDescriptor("adx_sitemarker", schema_name="adx_SiteMarker"),
            EntityTypeDescriptor("adx_setting"),
        ]
    )

    assert catalog.display_name_for("adx_sitemarker") == "adx_SiteMarker"
    assert catalog.display_name_for("adx_setting") == "adx_setting"
    assert catalog.display_name_for("unknown") is None


def test_matches_on_alias_of_record_id() -> None:
    note = make_record("annotation", subject="logo")
    query = QueryFilter.where(
        "annotation", Condition("annotationid", ConditionOperator.NOT_EQUAL, note.id)
    )

    assert not matches(note, query, id_attribute="annotationid")
    assert matches(note, query)


def test_matches_compares_reference_targets() -> None:
    webfile = make_record("adx_webfile")
    note = make_record("annotation", objectid=ref(webfile))

    in_query = QueryFilter.where(
        "annotation", Condition("objectid", ConditionOperator.IN, (uuid4(), webfile.id))
    )
    other_type = QueryFilter.where(
        "adx_webfile", Condition("objectid", ConditionOperator.EQUAL, webfile.id)
    )

    assert matches(note, in_query)
    assert not matches(note, other_type)


def test_matches_date_groups() -> None:
    page = make_record("adx_webpage", createdon=datetime(2024, 3, 1, 23, 30, tzinfo=UTC))
    query = QueryFilter(
        "adx_webpage",
        FilterGroup(
            groups=(
                FilterGroup(
                    LogicalOperator.OR,
                    (
                        Condition("createdon", ConditionOperator.ON_OR_AFTER, date(2024, 3, 1)),
                        Condition("modifiedon", ConditionOperator.ON_OR_AFTER, date(2024, 3, 1)),
                    ),
                ),
            )
        ),
    )

    assert matches(page, query)
    page.attributes["createdon"] = Scalar("2024-02-28T10:00:00")
    assert not matches(page, query)


def test_in_condition_requires_tuple() -> None:
    with pytest.raises(ValueError, match="tuple"):
        Condition("contactid", ConditionOperator.IN, uuid4())
