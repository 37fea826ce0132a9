"""Use-case for removing reset tokens that can no longer be redeemed."""

from __future__ import annotations

from collections.abc import Callable

from crm_backend.application.clock import Clock, utcnow
from crm_backend.domain.users.repositories import AuthUnitOfWork
from crm_backend.shared.logging import logger


class PurgeResetTokensUseCase:
    def __init__(self, *, uow: Callable[[], AuthUnitOfWork], clock: Clock = utcnow) -> None:
        self._uow = uow
        self._clock = clock

    def execute(self) -> int:
        with self._uow() as uow:
            removed = uow.reset_tokens.purge_stale(self._clock())
        if removed:
            logger.info(f"auth.purge: removed {removed} stale reset tokens")
        return removed
