"""Application dependency container."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from functools import cached_property

from crm_backend.application.services.auth_service import AuthService
from crm_backend.application.services.password_hashing import BcryptPasswordHasher
from crm_backend.application.services.token_signing import JwtTokenSigner
from crm_backend.application.use_cases.users.auth_payload import AuthPayloadBuilder
from crm_backend.application.use_cases.users.authenticate_user import AuthenticateUserUseCase
from crm_backend.application.use_cases.users.forgot_password import ForgotPasswordUseCase
from crm_backend.application.use_cases.users.login_user import LoginUserUseCase
from crm_backend.application.use_cases.users.purge_reset_tokens import PurgeResetTokensUseCase
from crm_backend.application.use_cases.users.register_user import RegisterUserUseCase
from crm_backend.application.use_cases.users.reset_password import ResetPasswordUseCase
from crm_backend.domain.users.repositories import AuthUnitOfWork, NotificationSender
from crm_backend.infrastructure.db import SessionLocal
from crm_backend.infrastructure.mail import build_notification_sender
from crm_backend.infrastructure.unit_of_work import auth_unit_of_work_factory
from crm_backend.interfaces.http.controllers.auth_controller import AuthController
from crm_backend.interfaces.http.controllers.misc_controller import MiscController
from crm_backend.shared.config import AppConfig, load_config


class Container:
    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or load_config()

    @cached_property
    def password_hasher(self) -> BcryptPasswordHasher:
        return BcryptPasswordHasher(rounds=self.config.auth.bcrypt_rounds)

    @cached_property
    def token_signer(self) -> JwtTokenSigner:
        return JwtTokenSigner(
            self.config.secret_key,
            algorithm=self.config.auth.jwt_algorithm,
            ttl_seconds=self.config.auth.access_token_ttl_seconds,
        )

    @cached_property
    def unit_of_work(self) -> Callable[[], AuthUnitOfWork]:
        return auth_unit_of_work_factory(SessionLocal)

    @cached_property
    def notification_sender(self) -> NotificationSender:
        return build_notification_sender(self.config.mail)

    @cached_property
    def auth_payloads(self) -> AuthPayloadBuilder:
        return AuthPayloadBuilder(signer=self.token_signer)

    @cached_property
    def register_user_use_case(self) -> RegisterUserUseCase:
        return RegisterUserUseCase(
            uow=self.unit_of_work,
            password_hasher=self.password_hasher,
            payloads=self.auth_payloads,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            uow=self.unit_of_work,
            password_hasher=self.password_hasher,
            payloads=self.auth_payloads,
        )

    @cached_property
    def forgot_password_use_case(self) -> ForgotPasswordUseCase:
        return ForgotPasswordUseCase(
            uow=self.unit_of_work,
            notifier=self.notification_sender,
            frontend_url=self.config.auth.frontend_url,
            ttl=timedelta(minutes=self.config.auth.reset_token_ttl_minutes),
        )

    @cached_property
    def reset_password_use_case(self) -> ResetPasswordUseCase:
        return ResetPasswordUseCase(uow=self.unit_of_work, password_hasher=self.password_hasher)

    @cached_property
    def authenticate_user_use_case(self) -> AuthenticateUserUseCase:
        return AuthenticateUserUseCase(uow=self.unit_of_work, signer=self.token_signer)

    @cached_property
    def purge_reset_tokens_use_case(self) -> PurgeResetTokensUseCase:
        return PurgeResetTokensUseCase(uow=self.unit_of_work)

    @cached_property
    def auth_service(self) -> AuthService:
        return AuthService(
            register_use_case=self.register_user_use_case,
            login_use_case=self.login_user_use_case,
            forgot_password_use_case=self.forgot_password_use_case,
            reset_password_use_case=self.reset_password_use_case,
            authenticate_use_case=self.authenticate_user_use_case,
            purge_use_case=self.purge_reset_tokens_use_case,
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(auth_service=self.auth_service)

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController()


container = Container()
