"""
SQLAlchemy Core tables backing the SQL record store.

Records keep their attribute map as a JSON document; the catalog tables hold
what :class:`recordmover.domain.model.SchemaCatalog` needs.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    UniqueConstraint,
    Uuid,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

entity_type_table = Table(
    "entity_type",
    metadata,
    Column("logical_name", String, primary_key=True),
    Column("display_name", String),
    Column("schema_name", String),
    Column("is_intersect", Boolean, nullable=False, default=False),
    Column("primary_id_attribute", String),
    Column("primary_name_attribute", String),
    Column("entity_set_name", String),
)

entity_attribute_table = Table(
    "entity_attribute",
    metadata,
    Column(
        "entity_type",
        String,
        ForeignKey("entity_type.logical_name", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("attribute_type", String, nullable=False, default="String"),
    Column("targets", JSON, nullable=False, default=list),
    PrimaryKeyConstraint("entity_type", "name"),
)

relationship_table = Table(
    "relationship",
    metadata,
    Column("name", String, primary_key=True),
    Column("intersect_type", String, nullable=False, unique=True),
    Column("side1_type", String, nullable=False),
    Column("side1_id_attribute", String, nullable=False),
    Column("side2_type", String, nullable=False),
    Column("side2_id_attribute", String, nullable=False),
)

record_table = Table(
    "record",
    metadata,
    Column("entity_type", String, nullable=False),
    Column("id", Uuid, nullable=False),  # type: ignore[reportUnknownArgumentType]
    Column("attributes", JSON, nullable=False),
    PrimaryKeyConstraint("entity_type", "id"),
)

association_table = Table(
    "association",
    metadata,
    Column("id", Uuid, primary_key=True),  # type: ignore[reportUnknownArgumentType]
    Column("relationship_name", String, ForeignKey("relationship.name"), nullable=False),
    Column("entity_id", Uuid, nullable=False),  # type: ignore[reportUnknownArgumentType]
    Column("related_id", Uuid, nullable=False),  # type: ignore[reportUnknownArgumentType]
    UniqueConstraint("relationship_name", "entity_id", "related_id"),
)


def create_all_tables(engine: Engine) -> None:
    log.debug("Creating record store tables on %s", engine.url)
    metadata.create_all(engine)
