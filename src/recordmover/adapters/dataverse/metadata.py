"""Schema catalog loaded from Dataverse entity definitions."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from recordmover.domain.model import (
    AttributeDescriptor,
    EntityTypeDescriptor,
    Relationship,
    SchemaCatalog,
)

if TYPE_CHECKING:
    from .schema import EntityMetadataPayload
    from .store import DataverseRecordStore

log = getLogger(__name__)


def descriptor_from_metadata(payload: EntityMetadataPayload) -> EntityTypeDescriptor:
    return EntityTypeDescriptor(
        logical_name=payload.logical_name,
        display_name=payload.display_name.text if payload.display_name is not None else None,
        schema_name=payload.schema_name,
        is_intersect=payload.is_intersect,
        many_to_many=tuple(
            Relationship(
                name=relationship.schema_name,
                intersect_type=relationship.intersect_entity_name,
                side1_type=relationship.entity1_logical_name,
                side1_id_attribute=relationship.entity1_intersect_attribute,
                side2_type=relationship.entity2_logical_name,
                side2_id_attribute=relationship.entity2_intersect_attribute,
            )
            for relationship in payload.many_to_many
        ),
        primary_id_attribute=payload.primary_id_attribute,
        primary_name_attribute=payload.primary_name_attribute,
        entity_set_name=payload.entity_set_name,
        attributes=tuple(
            AttributeDescriptor(
                attribute.logical_name,
                attribute.attribute_type,
                tuple(attribute.targets or ()),
            )
            for attribute in payload.attributes
        ),
    )


@dataclass(slots=True)
class DataverseSchemaProvider:
    """Loads the catalog of the environment behind ``store`` and hands it to the store."""

    store: DataverseRecordStore

    def load_catalog(self) -> SchemaCatalog:
        definitions = self.store.entity_definitions()
        catalog = SchemaCatalog.of(descriptor_from_metadata(payload) for payload in definitions)
        log.info("Loaded %d entity definitions", len(catalog))
        self.store.use_catalog(catalog)
        return catalog
