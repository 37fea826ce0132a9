# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from crm_backend.application.clock import Clock, utcnow
from crm_backend.application.services.reset_secrets import hash_reset_secret
from crm_backend.domain.users.entities import User, normalize_email
from crm_backend.domain.users.exceptions import InvalidResetTokenError
from crm_backend.domain.users.repositories import (
    AuthUnitOfWork,
    PasswordHasher,
    ResetTokenRepository,
    UserRepository,
)
from crm_backend.shared.logging import logger


class ResetPasswordUseCase:
    """Consumes a reset token and replaces the user's password.

    Unknown e-mail, unknown token, a token owned by someone else, a used
    token and an expired token all raise the same
    :class:`InvalidResetTokenError`. The password update, the consumption
    of the token and the removal of the user's other tokens commit
    together or not at all.
    """

    def __init__(
        self,
        *,
        uow: Callable[[], AuthUnitOfWork],
        password_hasher: PasswordHasher,
        clock: Clock = utcnow,
    ) -> None:
        self._uow = uow
        self._password_hasher = password_hasher
        self._clock = clock

    def _resolve_usable(
        self, users: UserRepository, tokens: ResetTokenRepository, email: str, token_hash: str
    ) -> User:
        user = users.find_by_email(email)
        record = tokens.find_by_hash(token_hash) if user else None
        if user is None or record is None or not record.is_usable_by(user.id, self._clock()):
            raise InvalidResetTokenError()
        return user

    def execute(self, email: str, token: str, new_password: str) -> None:
        email = normalize_email(email)
        token_hash = hash_reset_secret(token)

        with self._uow() as uow:
            self._resolve_usable(uow.users, uow.reset_tokens, email, token_hash)

        new_hash = self._password_hasher.hash(new_password)

        with self._uow() as uow:
            # Re-checked inside the writing transaction; state may have moved while hashing.
            user = self._resolve_usable(uow.users, uow.reset_tokens, email, token_hash)
            uow.users.update_password(user.id, new_hash)
            if not uow.reset_tokens.mark_used(token_hash, self._clock()):
                raise InvalidResetTokenError()
            purged = uow.reset_tokens.delete_others_for_user(user.id, token_hash)

        logger.info(f"auth.reset_password: password replaced user_id={user.id} purged={purged}")
