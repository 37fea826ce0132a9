# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
import uuid
from collections.abc import Callable

from crm_backend.application.clock import Clock, utcnow
from crm_backend.application.use_cases.users.auth_payload import AuthPayloadBuilder
from crm_backend.domain.users.entities import AuthPayload, User, UserRole, normalize_email
from crm_backend.domain.users.exceptions import UserAlreadyExistsError
from crm_backend.domain.users.repositories import AuthUnitOfWork, PasswordHasher
from crm_backend.shared.logging import logger


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        uow: Callable[[], AuthUnitOfWork],
        password_hasher: PasswordHasher,
        payloads: AuthPayloadBuilder,
        clock: Clock = utcnow,
    ) -> None:
        self._uow = uow
        self._password_hasher = password_hasher
        self._payloads = payloads
        self._clock = clock

    def execute(
        self, email: str, password: str, name: str, role: UserRole | None = None
    ) -> AuthPayload:
        email = normalize_email(email)
        with self._uow() as uow:
            existing = uow.users.find_by_email(email)
        if existing:
            raise UserAlreadyExistsError()

        hashed = self._password_hasher.hash(password)
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hashed,
            name=name.strip(),
            role=role or UserRole.USER,
            api_key=secrets.token_urlsafe(32),
            created_at=self._clock(),
        )
        with self._uow() as uow:
            persisted = uow.users.add(user)

        logger.info(f"auth.register: created user_id={persisted.id} role={persisted.role.value}")
        return self._payloads.build(persisted)
