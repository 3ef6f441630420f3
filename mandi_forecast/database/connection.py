"""
Database connection utilities for SQLite (default) and any SQLAlchemy URL.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mandi_forecast.config import StorageConfig

SessionFactory = Callable[[], Session]


def _sqlite_pragmas(wal_mode: bool):
    def _configure(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        if wal_mode:
            cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.execute("PRAGMA temp_store=MEMORY;")
        cursor.close()

    return _configure


def create_db_engine(config: StorageConfig) -> Engine:
    url = config.url
    if url.startswith("sqlite"):
        in_memory = url in ("sqlite://", "sqlite:///:memory:")
        kwargs = {"connect_args": {"check_same_thread": False}}
        if in_memory:
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = 1
            kwargs["max_overflow"] = 0
        engine = create_engine(url, echo=False, future=True, **kwargs)
        event.listen(engine, "connect", _sqlite_pragmas(config.sqlite_wal_mode and not in_memory))
        return engine

    return create_engine(url, echo=False, future=True, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> SessionFactory:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: SessionFactory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
