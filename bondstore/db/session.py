"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..core.config import settings
from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections get shared-thread access and FK enforcement."""

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    new_engine = create_engine(url, connect_args=connect_args)
    if url.startswith("sqlite"):
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def bind_engine(url: str) -> Engine:
    """Point ``SessionLocal`` at a different database (used when switching stores)."""

    global engine
    previous = engine
    engine = build_engine(url)
    SessionLocal.configure(bind=engine)
    previous.dispose()
    logger.info("database engine bound", extra={"extra_data": {"url": url}})
    return engine


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db: Session, message: str, **details) -> None:
    """Commit the session; on a database error roll back and raise ``PersistenceError``."""

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("%s: %s", message, exc)
        raise PersistenceError(message, **details) from exc
