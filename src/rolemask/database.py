"""
Database configuration and session management.

This module is intentionally small and test-friendly:
- Defaults to SQLite for local dev
- Supports Postgres via DATABASE_URL
- Engines are created lazily and cached per URL
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import RLock
from typing import Generator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from rolemask.config import get_settings
from rolemask.exceptions import ConfigurationError
from rolemask.models.base import Base

REQUIRED_TABLES = ("rbac_roles", "rbac_resources", "audit_logs")

_lock = RLock()
_engine: Optional[Engine] = None
_sessionmaker: Optional[sessionmaker] = None
_engine_url: Optional[str] = None


def get_database_url() -> str:
    settings = get_settings()
    return settings.DATABASE_URL


def create_db_engine(database_url: Optional[str] = None, *, echo: bool = False) -> Engine:
    url = database_url or get_database_url()

    connect_args: dict = {}
    if "sqlite" in url:
        connect_args["check_same_thread"] = False

    if url.startswith("sqlite:///:memory:") or url == "sqlite://":
        from sqlalchemy.pool import StaticPool

        engine = create_engine(
            url,
            echo=echo,
            connect_args=connect_args,
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args=connect_args,
        )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):  # pragma: no cover
        if "sqlite" in url:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_engine() -> Engine:
    global _engine, _sessionmaker, _engine_url
    url = get_database_url()
    with _lock:
        if _engine is not None and _engine_url == url:
            return _engine

        if _engine is not None:
            _engine.dispose()
        _engine = create_db_engine(url)
        _sessionmaker = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=_engine
        )
        _engine_url = url
        return _engine


def get_sessionmaker() -> sessionmaker:
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    SessionLocal = get_sessionmaker()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def import_all_models() -> None:
    from rolemask.models import audit as _audit  # noqa: F401
    from rolemask.security.rbac import models as _rbac  # noqa: F401


def init_db(*, create_tables: bool = False, bind_engine: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    When SCHEMA_MODE=migrations, this will NOT auto-create tables.
    Use `rolemask db upgrade` for production deployments.
    """
    if not create_tables:
        return

    settings = get_settings()
    target_engine = bind_engine or get_engine()
    import_all_models()

    if settings.SCHEMA_MODE == "migrations":
        existing_tables = set(inspect(target_engine).get_table_names())
        missing = sorted(set(REQUIRED_TABLES) - existing_tables)
        if missing:
            raise ConfigurationError(
                "SCHEMA_MODE=migrations: database is missing tables: "
                + ", ".join(missing)
                + ". Run `rolemask db upgrade` first to create tables via Alembic.",
                config_key="SCHEMA_MODE",
            )
        return

    Base.metadata.create_all(bind=target_engine, checkfirst=True)
