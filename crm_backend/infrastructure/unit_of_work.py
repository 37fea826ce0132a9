# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Database unit of work implementation."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crm_backend.domain.users.repositories import AuthUnitOfWork
from crm_backend.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemyResetTokenRepository,
    SqlAlchemyUserRepository,
)
from crm_backend.shared.errors import StoreUnavailableError
from crm_backend.shared.logging import logger


class SqlAlchemyUnitOfWork(AbstractContextManager):
    """SQLAlchemy-backed unit of work.

    Store failures (connectivity, constraint violations) surface as
    :class:`StoreUnavailableError` after the transaction is rolled back.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self.session_factory()
        logger.debug("uow: session opened")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._session is not None
        try:
            if exc:
                logger.debug(f"uow: rollback due to {exc_type.__name__}")
                self._session.rollback()
            else:
                self._session.commit()
                logger.debug("uow: committed")
        except SQLAlchemyError as commit_exc:
            logger.exception("uow: exception while finalising")
            self._session.rollback()
            raise StoreUnavailableError() from commit_exc
        finally:
            self._session.close()
            logger.debug("uow: session closed")
            self._session = None

        if isinstance(exc, SQLAlchemyError):
            logger.opt(exception=exc).error("uow: store error")
            raise StoreUnavailableError() from exc

    @property
    def session(self) -> Session:
        if self._session is None:
            msg = "UnitOfWork session accessed before entering context"
            raise RuntimeError(msg)
        return self._session


class SqlAlchemyAuthUnitOfWork(SqlAlchemyUnitOfWork, AuthUnitOfWork):
    """Unit of work exposing the user and reset token stores on one session."""

    def __enter__(self) -> SqlAlchemyAuthUnitOfWork:
        super().__enter__()
        self.users = SqlAlchemyUserRepository(self.session)
        self.reset_tokens = SqlAlchemyResetTokenRepository(self.session)
        return self


def auth_unit_of_work_factory(
    session_factory: Callable[[], Session],
) -> Callable[[], SqlAlchemyAuthUnitOfWork]:
    def _factory() -> SqlAlchemyAuthUnitOfWork:
        return SqlAlchemyAuthUnitOfWork(session_factory)

    return _factory
