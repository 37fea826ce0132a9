# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
from collections.abc import Callable
from functools import cached_property

from crm_backend.application.use_cases.users.auth_payload import AuthPayloadBuilder
from crm_backend.domain.users.entities import AuthPayload, normalize_email
from crm_backend.domain.users.exceptions import InvalidCredentialsError
from crm_backend.domain.users.repositories import AuthUnitOfWork, PasswordHasher


class LoginUserUseCase:
    def __init__(
        self,
        *,
        uow: Callable[[], AuthUnitOfWork],
        password_hasher: PasswordHasher,
        payloads: AuthPayloadBuilder,
    ) -> None:
        self._uow = uow
        self._password_hasher = password_hasher
        self._payloads = payloads

    @cached_property
    def _dummy_hash(self) -> str:
        # Verified against when the account is unknown, so both failures cost a hash check.
        return self._password_hasher.hash(secrets.token_urlsafe(16))

    def execute(self, email: str, password: str) -> AuthPayload:
        with self._uow() as uow:
            user = uow.users.find_by_email(normalize_email(email))

        stored_hash = user.password_hash if user else self._dummy_hash
        password_valid = self._password_hasher.verify(password, stored_hash)

        if user is None or not password_valid:
            raise InvalidCredentialsError()

        return self._payloads.build(user)
