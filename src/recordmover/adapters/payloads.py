"""Pydantic models describing serialized records.

Shared by the file adapter (batch documents on disk) and the SQL adapter
(attribute maps stored as JSON).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from recordmover.domain.model import AttributeValue, Identifier, Record, Reference, Scalar


class PayloadBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ScalarPayload(PayloadBaseModel):
    kind: Literal["scalar"] = "scalar"
    value: bool | int | float | str | None
    format: Literal["datetime", "decimal"] | None = None


class IdentifierPayload(PayloadBaseModel):
    kind: Literal["identifier"] = "identifier"
    value: UUID


class ReferencePayload(PayloadBaseModel):
    kind: Literal["reference"] = "reference"
    target_type: str
    target_id: UUID


AttributePayload = Annotated[
    ScalarPayload | IdentifierPayload | ReferencePayload,
    Field(discriminator="kind"),
]


class RecordPayload(PayloadBaseModel):
    entity_type: str
    id: UUID
    attributes: dict[str, AttributePayload] = Field(default_factory=dict)


class BatchPayload(PayloadBaseModel):
    records: list[RecordPayload] = Field(default_factory=list[RecordPayload])


_ATTRIBUTES_ADAPTER: TypeAdapter[dict[str, AttributePayload]] = TypeAdapter(
    dict[str, AttributePayload]
)


def attribute_to_payload(value: AttributeValue) -> AttributePayload:
    if isinstance(value, Reference):
        return ReferencePayload(target_type=value.target_type, target_id=value.target_id)
    if isinstance(value, Identifier):
        return IdentifierPayload(value=value.value)
    if isinstance(value.value, datetime):
        return ScalarPayload(value=value.value.isoformat(), format="datetime")
    if isinstance(value.value, Decimal):
        return ScalarPayload(value=str(value.value), format="decimal")
    return ScalarPayload(value=value.value)


def attribute_from_payload(payload: AttributePayload) -> AttributeValue:
    if isinstance(payload, ReferencePayload):
        return Reference(payload.target_type, payload.target_id)
    if isinstance(payload, IdentifierPayload):
        return Identifier(payload.value)
    if payload.format == "datetime" and isinstance(payload.value, str):
        return Scalar(datetime.fromisoformat(payload.value))
    if payload.format == "decimal" and payload.value is not None:
        return Scalar(Decimal(str(payload.value)))
    return Scalar(payload.value)


def record_to_payload(record: Record) -> RecordPayload:
    return RecordPayload(
        entity_type=record.entity_type,
        id=record.id,
        attributes={
            name: attribute_to_payload(value) for name, value in record.attributes.items()
        },
    )


def record_from_payload(payload: RecordPayload) -> Record:
    return Record(
        payload.entity_type,
        payload.id,
        {name: attribute_from_payload(value) for name, value in payload.attributes.items()},
    )


def dump_batch(records: list[Record], *, indent: int | None = 2) -> str:
    payload = BatchPayload(records=[record_to_payload(record) for record in records])
    return payload.model_dump_json(indent=indent)


def load_batch(text: str | bytes) -> list[Record]:
    payload = BatchPayload.model_validate_json(text)
    return [record_from_payload(item) for item in payload.records]


def dump_record(record: Record, *, indent: int | None = 2) -> str:
    return record_to_payload(record).model_dump_json(indent=indent)


def load_record(text: str | bytes) -> Record:
    return record_from_payload(RecordPayload.model_validate_json(text))


def encode_attributes(record: Record) -> dict[str, object]:
    """JSON-compatible form of ``record.attributes``."""

    return record_to_payload(record).model_dump(mode="json")["attributes"]


def decode_attributes(data: dict[str, object]) -> dict[str, AttributeValue]:
    payloads = _ATTRIBUTES_ADAPTER.validate_python(data)
    return {name: attribute_from_payload(value) for name, value in payloads.items()}
