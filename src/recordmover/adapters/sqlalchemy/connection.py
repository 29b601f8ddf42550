"""Engines and sessions for SQL environments."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .tables import create_all_tables

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


def connect(database_uri: str) -> Engine:
    """Create an engine for ``database_uri`` with every store table in place."""

    engine = create_engine(database_uri, future=True)
    log.info("Connected to %s", engine.url.render_as_string(hide_password=True))
    create_all_tables(engine)
    return engine


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)
