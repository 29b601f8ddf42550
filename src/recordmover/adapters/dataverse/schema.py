"""Pydantic models describing Dataverse Web API payloads."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field

DUPLICATE_ASSOCIATION_CODE: Final[str] = "0x80040237"


class DataverseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorDetail(DataverseBaseModel):
    code: str = ""
    message: str = ""


class ErrorResponse(DataverseBaseModel):
    error: ErrorDetail

    @property
    def is_duplicate_association(self) -> bool:
        return self.error.code.lower() == DUPLICATE_ASSOCIATION_CODE


class LocalizedLabel(DataverseBaseModel):
    label: str = Field(alias="Label")


class LabelPayload(DataverseBaseModel):
    user_localized_label: LocalizedLabel | None = Field(default=None, alias="UserLocalizedLabel")

    @property
    def text(self) -> str | None:
        if self.user_localized_label is None:
            return None
        return self.user_localized_label.label or None


class AttributeMetadataPayload(DataverseBaseModel):
    logical_name: str = Field(alias="LogicalName")
    attribute_type: str = Field(default="String", alias="AttributeType")
    targets: list[str] | None = Field(default=None, alias="Targets")


class ManyToManyPayload(DataverseBaseModel):
    schema_name: str = Field(alias="SchemaName")
    intersect_entity_name: str = Field(alias="IntersectEntityName")
    entity1_logical_name: str = Field(alias="Entity1LogicalName")
    entity1_intersect_attribute: str = Field(alias="Entity1IntersectAttribute")
    entity2_logical_name: str = Field(alias="Entity2LogicalName")
    entity2_intersect_attribute: str = Field(alias="Entity2IntersectAttribute")


class EntityMetadataPayload(DataverseBaseModel):
    logical_name: str = Field(alias="LogicalName")
    schema_name: str | None = Field(default=None, alias="SchemaName")
    display_name: LabelPayload | None = Field(default=None, alias="DisplayName")
    is_intersect: bool = Field(default=False, alias="IsIntersect")
    primary_id_attribute: str | None = Field(default=None, alias="PrimaryIdAttribute")
    primary_name_attribute: str | None = Field(default=None, alias="PrimaryNameAttribute")
    entity_set_name: str | None = Field(default=None, alias="EntitySetName")
    attributes: list[AttributeMetadataPayload] = Field(
        default_factory=list[AttributeMetadataPayload], alias="Attributes"
    )
    many_to_many: list[ManyToManyPayload] = Field(
        default_factory=list[ManyToManyPayload], alias="ManyToManyRelationships"
    )


class EntityDefinitionsResponse(DataverseBaseModel):
    value: list[EntityMetadataPayload]


class RecordCollectionResponse(DataverseBaseModel):
    value: list[dict[str, object]]
    more_records: bool = Field(default=False, alias="@Microsoft.Dynamics.CRM.morerecords")
