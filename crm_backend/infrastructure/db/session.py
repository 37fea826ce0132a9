# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, scoped_session, sessionmaker

from crm_backend.shared.config import load_config
from crm_backend.shared.config.settings import DatabaseConfig
from crm_backend.shared.logging import logger

_config = load_config()


class Base(DeclarativeBase):
    pass


def build_engine(database: DatabaseConfig) -> Engine:
    kwargs: dict[str, object] = {"echo": False, "future": True, "pool_pre_ping": True}
    if database.is_sqlite():
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": int(database.pool_timeout),
        }
    else:
        kwargs.update(
            pool_size=database.pool_size,
            max_overflow=database.max_overflow,
            pool_timeout=database.pool_timeout,
        )
    engine = create_engine(database.url, **kwargs)

    if database.is_sqlite():
        # FK cascades from users to password_reset_tokens are off by default in SQLite.
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


ENGINE: Engine = build_engine(_config.database)


SessionLocal = scoped_session(
    sessionmaker(bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)
)


@contextmanager
def session_scope() -> Iterator[Session]:
    session = SessionLocal()
    logger.debug("db.session: opened scoped session")
    try:
        yield session
        session.commit()
        logger.debug("db.session: committed scoped session")
    except Exception:
        logger.exception("db.session: error, rolling back")
        session.rollback()
        raise
    finally:
        session.close()
        SessionLocal.remove()
        logger.debug("db.session: closed scoped session")


def init_db(engine: Engine | None = None) -> None:
    from crm_backend.infrastructure.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine or ENGINE)
    logger.info("Database schema ensured")
