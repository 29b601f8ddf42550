"""Schema catalog persisted next to the SQL record store."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from recordmover.domain.model import (
    AttributeDescriptor,
    EntityTypeDescriptor,
    Relationship,
    SchemaCatalog,
)

from .connection import session_factory
from .tables import entity_attribute_table, entity_type_table, relationship_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


class SqlAlchemySchemaProvider:
    def __init__(self, engine: Engine) -> None:
        self._session_factory = session_factory(engine)

    def register(self, descriptors: Iterable[EntityTypeDescriptor]) -> None:
        """Store ``descriptors``, replacing earlier definitions of the same types."""

        with self._session_factory.begin() as session:
            for descriptor in descriptors:
                name = descriptor.logical_name
                session.execute(
                    delete(entity_attribute_table).where(
                        entity_attribute_table.c.entity_type == name
                    )
                )
                session.execute(
                    delete(entity_type_table).where(entity_type_table.c.logical_name == name)
                )
                session.execute(
                    insert(entity_type_table).values(
                        logical_name=name,
                        display_name=descriptor.display_name,
                        schema_name=descriptor.schema_name,
                        is_intersect=descriptor.is_intersect,
                        primary_id_attribute=descriptor.primary_id_attribute,
                        primary_name_attribute=descriptor.primary_name_attribute,
                        entity_set_name=descriptor.entity_set_name,
                    )
                )
                if descriptor.attributes:
                    session.execute(
                        insert(entity_attribute_table),
                        [
                            {
                                "entity_type": name,
                                "name": attribute.name,
                                "attribute_type": attribute.attribute_type,
                                "targets": list(attribute.targets),
                            }
                            for attribute in descriptor.attributes
                        ],
                    )
                for relationship in descriptor.many_to_many:
                    _save_relationship(session, relationship)

    def load_catalog(self) -> SchemaCatalog:
        with self._session_factory() as session:
            type_rows = session.execute(
                select(entity_type_table).order_by(entity_type_table.c.logical_name)
            ).all()
            attribute_rows = session.execute(select(entity_attribute_table)).all()
            relationship_rows = session.execute(select(relationship_table)).all()

        attributes: defaultdict[str, list[AttributeDescriptor]] = defaultdict(list)
        for row in attribute_rows:
            attributes[row.entity_type].append(
                AttributeDescriptor(row.name, row.attribute_type, tuple(row.targets or ()))
            )

        relationships: defaultdict[str, list[Relationship]] = defaultdict(list)
        for row in relationship_rows:
            relationship = Relationship(
                name=row.name,
                intersect_type=row.intersect_type,
                side1_type=row.side1_type,
                side1_id_attribute=row.side1_id_attribute,
                side2_type=row.side2_type,
                side2_id_attribute=row.side2_id_attribute,
            )
            relationships[relationship.side1_type].append(relationship)
            if relationship.side2_type != relationship.side1_type:
                relationships[relationship.side2_type].append(relationship)

        return SchemaCatalog.of(
            EntityTypeDescriptor(
                logical_name=row.logical_name,
                display_name=row.display_name,
                schema_name=row.schema_name,
                is_intersect=row.is_intersect,
                many_to_many=tuple(relationships[row.logical_name]),
                primary_id_attribute=row.primary_id_attribute,
                primary_name_attribute=row.primary_name_attribute,
                entity_set_name=row.entity_set_name,
                attributes=tuple(attributes[row.logical_name]),
            )
            for row in type_rows
        )


def _save_relationship(session: Session, relationship: Relationship) -> None:
    values = {
        "intersect_type": relationship.intersect_type,
        "side1_type": relationship.side1_type,
        "side1_id_attribute": relationship.side1_id_attribute,
        "side2_type": relationship.side2_type,
        "side2_id_attribute": relationship.side2_id_attribute,
    }
    existing = session.execute(
        select(relationship_table.c.name).where(relationship_table.c.name == relationship.name)
    ).first()
    if existing is None:
        session.execute(insert(relationship_table).values(name=relationship.name, **values))
    else:
        session.execute(
            update(relationship_table)
            .where(relationship_table.c.name == relationship.name)
            .values(**values)
        )
