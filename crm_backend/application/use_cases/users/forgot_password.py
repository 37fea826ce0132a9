# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from crm_backend.application.clock import Clock, utcnow
from crm_backend.application.services.reset_secrets import (
    build_reset_url,
    generate_reset_secret,
    hash_reset_secret,
)
from crm_backend.domain.users.entities import normalize_email
from crm_backend.domain.users.repositories import AuthUnitOfWork, NotificationSender
from crm_backend.shared.errors import InfrastructureError
from crm_backend.shared.logging import logger

DEFAULT_TTL = timedelta(minutes=60)


class ForgotPasswordUseCase:
    """Issues a fresh reset link, replacing any the user had before.

    Unknown e-mails are a silent no-op and delivery failures are only logged,
    so the outcome is the same whether or not the account exists.
    """

    def __init__(
        self,
        *,
        uow: Callable[[], AuthUnitOfWork],
        notifier: NotificationSender,
        frontend_url: str,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utcnow,
    ) -> None:
        self._uow = uow
        self._notifier = notifier
        self._frontend_url = frontend_url
        self._ttl = ttl
        self._clock = clock

    def execute(self, email: str) -> None:
        email = normalize_email(email)
        raw = generate_reset_secret()

        with self._uow() as uow:
            user = uow.users.find_by_email(email)
            if user is None:
                logger.info("auth.forgot_password: no matching account, nothing sent")
                return
            revoked = uow.reset_tokens.delete_for_user(user.id)
            uow.reset_tokens.add(
                user_id=user.id,
                token_hash=hash_reset_secret(raw),
                expires_at=self._clock() + self._ttl,
            )

        try:
            self._notifier.send_password_reset_email(
                user.email, build_reset_url(self._frontend_url, raw, user.email)
            )
        except InfrastructureError as exc:
            # The response must not differ from the unknown-account case.
            logger.opt(exception=exc).error(
                f"auth.forgot_password: delivery failed user_id={user.id} error={exc.code}"
            )
            return
        logger.info(
            f"auth.forgot_password: reset link issued user_id={user.id} revoked={revoked}"
        )
