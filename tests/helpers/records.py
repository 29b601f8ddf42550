"""Record builders for tests."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from recordmover.domain.model import Identifier, Record, Reference, Scalar

if TYPE_CHECKING:
    from recordmover.domain.model import AttributeValue, ScalarType


def make_record(
    entity_type: str,
    record_id: UUID | None = None,
    /,
    **attributes: ScalarType | AttributeValue,
) -> Record:
    """Build a record; plain values become scalars."""

    values: dict[str, AttributeValue] = {}
    for name, value in attributes.items():
        if isinstance(value, Scalar | Identifier | Reference):
            values[name] = value
        else:
            values[name] = Scalar(value)
    return Record(entity_type, record_id or uuid4(), values)


def ref(record: Record) -> Reference:
    return Reference(record.entity_type, record.id)


def association(
    role_id: UUID, contact_id: UUID, association_id: UUID | None = None
) -> Record:
    own_id = association_id or uuid4()
    return Record(
        "adx_webrole_contact",
        own_id,
        {
            "adx_webrole_contactid": Identifier(own_id),
            "adx_webroleid": Identifier(role_id),
            "contactid": Identifier(contact_id),
        },
    )
