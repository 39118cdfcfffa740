from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from checklist.core.config import BASE_DIR, DEFAULT_DB_URL, Settings


LOGGER = logging.getLogger("checklist.db")


def _normalise_database_url(raw_url: str) -> URL:
    # Hosted Postgres providers hand out postgres://, which SQLAlchemy rejects.
    if raw_url.startswith("postgres://"):
        raw_url = "postgresql://" + raw_url[len("postgres://"):]
    url = make_url(raw_url)
    drivername = url.drivername
    if drivername.startswith("sqlite+"):
        url = url.set(drivername="sqlite")
    elif "+" in drivername and drivername.startswith("postgresql+"):
        url = url.set(drivername="postgresql")
    return url


def _is_memory_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _sqlite_connect_args(url: URL) -> Dict[str, Any]:
    connect_args: Dict[str, Any] = {"check_same_thread": False}
    db_path = url.database
    if db_path and db_path != ":memory:":
        path = Path(db_path)
        if not path.is_absolute():
            path = (BASE_DIR / db_path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
    return connect_args


def _postgres_connect_args(use_ssl: bool) -> Dict[str, Any]:
    # "require" encrypts without verifying the server certificate.
    return {"sslmode": "require" if use_ssl else "disable"}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def resolve_database_url(settings: Settings) -> str:
    if settings.db_url:
        return settings.db_url
    LOGGER.warning(
        "DATABASE_URL is not set; falling back to local database %s", DEFAULT_DB_URL
    )
    return DEFAULT_DB_URL


def make_engine(settings: Settings) -> Engine:
    url = _normalise_database_url(resolve_database_url(settings))
    kwargs: Dict[str, Any] = {}
    backend = url.get_backend_name()
    if backend == "sqlite":
        kwargs["connect_args"] = _sqlite_connect_args(url)
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
    elif backend == "postgresql":
        kwargs["connect_args"] = _postgres_connect_args(settings.database_ssl)
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    if backend == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


__all__ = ["make_engine", "make_session_factory", "resolve_database_url"]
