# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from crm_backend.domain.users.entities import User
from crm_backend.domain.users.exceptions import InvalidAccessTokenError
from crm_backend.domain.users.repositories import AuthUnitOfWork, TokenSigner


class AuthenticateUserUseCase:
    def __init__(self, *, uow: Callable[[], AuthUnitOfWork], signer: TokenSigner) -> None:
        self._uow = uow
        self._signer = signer

    def execute(self, token: str) -> User:
        if not token:
            raise InvalidAccessTokenError()
        claims = self._signer.verify(token)
        with self._uow() as uow:
            user = uow.users.find_by_id(str(claims["sub"]))
        if user is None:
            raise InvalidAccessTokenError()
        return user
