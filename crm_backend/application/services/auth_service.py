# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Entry point for the authentication and credential recovery operations."""

from __future__ import annotations

from crm_backend.application.use_cases.users.authenticate_user import AuthenticateUserUseCase
from crm_backend.application.use_cases.users.forgot_password import ForgotPasswordUseCase
from crm_backend.application.use_cases.users.login_user import LoginUserUseCase
from crm_backend.application.use_cases.users.purge_reset_tokens import PurgeResetTokensUseCase
from crm_backend.application.use_cases.users.register_user import RegisterUserUseCase
from crm_backend.application.use_cases.users.reset_password import ResetPasswordUseCase
from crm_backend.domain.users.entities import AuthPayload, User, UserRole


class AuthService:
    def __init__(
        self,
        *,
        register_use_case: RegisterUserUseCase,
        login_use_case: LoginUserUseCase,
        forgot_password_use_case: ForgotPasswordUseCase,
        reset_password_use_case: ResetPasswordUseCase,
        authenticate_use_case: AuthenticateUserUseCase,
        purge_use_case: PurgeResetTokensUseCase,
    ) -> None:
        self._register = register_use_case
        self._login = login_use_case
        self._forgot_password = forgot_password_use_case
        self._reset_password = reset_password_use_case
        self._authenticate = authenticate_use_case
        self._purge = purge_use_case

    def register(
        self, email: str, password: str, name: str, role: UserRole | None = None
    ) -> AuthPayload:
        return self._register.execute(email, password, name, role)

    def login(self, email: str, password: str) -> AuthPayload:
        return self._login.execute(email, password)

    def forgot_password(self, email: str) -> None:
        self._forgot_password.execute(email)

    def reset_password(self, email: str, token: str, new_password: str) -> None:
        self._reset_password.execute(email, token, new_password)

    def authenticate(self, token: str) -> User:
        return self._authenticate.execute(token)

    def purge_expired_reset_tokens(self) -> int:
        return self._purge.execute()
