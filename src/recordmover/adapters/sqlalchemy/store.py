"""Record store backed by SQLAlchemy Core tables."""

from __future__ import annotations

import uuid
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import delete, insert, or_, select, update

from recordmover.adapters.payloads import decode_attributes, encode_attributes
from recordmover.domain.model import Identifier, Record, RecordRef, matches
from recordmover.domain.ports.store import (
    AlreadyAssociated,
    Associated,
    StoreError,
    UpsertOutcome,
)

from .connection import session_factory
from .tables import association_table, entity_type_table, record_table, relationship_table

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from sqlalchemy.engine import Engine, Row
    from sqlalchemy.orm import Session

    from recordmover.domain.model import QueryFilter
    from recordmover.domain.ports.store import AssociationResult

log = getLogger(__name__)


class SqlAlchemyRecordStore:
    """Source and target store over a SQL database.

    Reference attributes must point at stored records, and a relationship
    holds each pair of records at most once. Intersect records are not stored
    as records: querying an intersect type returns one record per association.
    """

    def __init__(self, engine: Engine) -> None:
        self._session_factory = session_factory(engine)

    def __enter__(self) -> SqlAlchemyRecordStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        return False

    def upsert(self, record: Record) -> UpsertOutcome:
        with self._session_factory.begin() as session:
            self._check_references(session, record)
            existing = self._load(session, record.ref)
            if existing is None:
                session.execute(
                    insert(record_table).values(
                        entity_type=record.entity_type,
                        id=record.id,
                        attributes=encode_attributes(record),
                    )
                )
                return UpsertOutcome.CREATED
            existing.merge(record)
            self._write(session, existing)
            return UpsertOutcome.UPDATED

    def update(self, record: Record) -> None:
        with self._session_factory.begin() as session:
            existing = self._load(session, record.ref)
            if existing is None:
                raise StoreError(f"{record.ref} does not exist", code="not_found")
            self._check_references(session, record)
            existing.merge(record)
            self._write(session, existing)

    def associate(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        relationship_name: str,
        related_type: str,
        related_id: uuid.UUID,
    ) -> AssociationResult:
        with self._session_factory.begin() as session:
            relationship = session.execute(
                select(relationship_table).where(relationship_table.c.name == relationship_name)
            ).first()
            if relationship is None:
                raise StoreError(
                    f"Unknown relationship {relationship_name}", code="unknown_relationship"
                )
            for ref in (RecordRef(entity_type, entity_id), RecordRef(related_type, related_id)):
                if not self._exists(session, ref):
                    raise StoreError(f"{ref} does not exist", code="not_found")

            duplicate = session.execute(
                select(association_table.c.id)
                .where(association_table.c.relationship_name == relationship_name)
                .where(association_table.c.entity_id == entity_id)
                .where(association_table.c.related_id == related_id)
            ).first()
            if duplicate is not None:
                return AlreadyAssociated()

            session.execute(
                insert(association_table).values(
                    id=uuid.uuid4(),
                    relationship_name=relationship_name,
                    entity_id=entity_id,
                    related_id=related_id,
                )
            )
            return Associated()

    def query(self, query: QueryFilter) -> list[Record]:
        with self._session_factory() as session:
            id_attribute = session.execute(
                select(entity_type_table.c.primary_id_attribute).where(
                    entity_type_table.c.logical_name == query.entity_type
                )
            ).scalar_one_or_none()
            relationship = session.execute(
                select(relationship_table).where(
                    relationship_table.c.intersect_type == query.entity_type
                )
            ).first()
            if relationship is not None:
                candidates = self._association_records(session, relationship, id_attribute)
            else:
                rows = session.execute(
                    select(record_table).where(record_table.c.entity_type == query.entity_type)
                ).all()
                candidates = [_record_from_row(row) for row in rows]
        return [record for record in candidates if matches(record, query, id_attribute=id_attribute)]

    def query_many(self, queries: Sequence[QueryFilter]) -> list[list[Record]]:
        return [self.query(query) for query in queries]

    def delete(self, entity_type: str, entity_id: uuid.UUID) -> None:
        with self._session_factory.begin() as session:
            result = session.execute(
                delete(record_table)
                .where(record_table.c.entity_type == entity_type)
                .where(record_table.c.id == entity_id)
            )
            if result.rowcount == 0:
                raise StoreError(f"{entity_type}/{entity_id} does not exist", code="not_found")
            session.execute(
                delete(association_table).where(
                    or_(
                        association_table.c.entity_id == entity_id,
                        association_table.c.related_id == entity_id,
                    )
                )
            )
        log.debug("Deleted %s/%s", entity_type, entity_id)

    def _check_references(self, session: Session, record: Record) -> None:
        for name, reference in record.references():
            if reference.target == record.ref:
                continue
            if not self._exists(session, reference.target):
                raise StoreError(
                    f"{record.ref}: {name} references missing record {reference.target}",
                    code="missing_reference",
                )

    def _exists(self, session: Session, ref: RecordRef) -> bool:
        return (
            session.execute(
                select(record_table.c.id)
                .where(record_table.c.entity_type == ref.entity_type)
                .where(record_table.c.id == ref.id)
            ).first()
            is not None
        )

    def _load(self, session: Session, ref: RecordRef) -> Record | None:
        row = session.execute(
            select(record_table)
            .where(record_table.c.entity_type == ref.entity_type)
            .where(record_table.c.id == ref.id)
        ).first()
        return _record_from_row(row) if row is not None else None

    def _write(self, session: Session, record: Record) -> None:
        session.execute(
            update(record_table)
            .where(record_table.c.entity_type == record.entity_type)
            .where(record_table.c.id == record.id)
            .values(attributes=encode_attributes(record))
        )

    def _association_records(
        self, session: Session, relationship: Row[tuple[object, ...]], id_attribute: str | None
    ) -> list[Record]:
        intersect_type: str = relationship.intersect_type
        own_id_attribute = id_attribute or f"{intersect_type}id"
        rows = session.execute(
            select(association_table).where(
                association_table.c.relationship_name == relationship.name
            )
        ).all()
        return [
            Record(
                intersect_type,
                row.id,
                {
                    own_id_attribute: Identifier(row.id),
                    relationship.side1_id_attribute: Identifier(row.entity_id),
                    relationship.side2_id_attribute: Identifier(row.related_id),
                },
            )
            for row in rows
        ]


def _record_from_row(row: Row[tuple[object, ...]]) -> Record:
    return Record(row.entity_type, row.id, decode_attributes(row.attributes))
