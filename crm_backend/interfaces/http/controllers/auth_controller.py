# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import TypeVar

from flask import Blueprint, Response, jsonify, request
from pydantic import BaseModel, ValidationError

from crm_backend.application.services.auth_service import AuthService
from crm_backend.domain.users.entities import PublicUser
from crm_backend.domain.users.exceptions import (
    InvalidCredentialsError,
    InvalidResetTokenError,
    UserAlreadyExistsError,
)
from crm_backend.infrastructure.audit import AuditAction, audit_log
from crm_backend.interfaces.http.auth import auth_required, current_user
from crm_backend.interfaces.http.dto.auth import (
    AuthPayloadDTO,
    AuthSuccessDTO,
    ForgotPasswordRequestDTO,
    LoginRequestDTO,
    PublicUserDTO,
    RegisterRequestDTO,
    ResetPasswordRequestDTO,
)
from crm_backend.shared.errors.validation import raise_validation_error
from crm_backend.shared.logging import logger
from crm_backend.shared.middleware.rate_limit import rate_limit

DTO = TypeVar("DTO", bound=BaseModel)


def _get_client_ip() -> str | None:
    ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
    if ip_address and "," in ip_address:
        ip_address = ip_address.split(",")[0].strip()
    return ip_address


def _parse(dto_type: type[DTO]) -> DTO:
    try:
        return dto_type.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise_validation_error(exc)


class AuthController:
    def __init__(self, *, auth_service: AuthService) -> None:
        self._auth = auth_service

    @rate_limit(limit=5, window_seconds=60.0)
    def register(self) -> tuple[Response, int]:
        dto = _parse(RegisterRequestDTO)

        try:
            payload = self._auth.register(dto.email, dto.password, dto.name, dto.role)
        except UserAlreadyExistsError:
            audit_log(AuditAction.REGISTER_FAILED, ip_address=_get_client_ip(), success=False)
            raise

        audit_log(
            AuditAction.REGISTER,
            user_id=payload.user.id,
            ip_address=_get_client_ip(),
            details={"role": payload.user.role},
            success=True,
        )
        logger.info(f"auth.register: ok user_id={payload.user.id}")
        return jsonify(AuthPayloadDTO.from_domain(payload).model_dump(by_alias=True)), 201

    @rate_limit(limit=10, window_seconds=60.0)
    def login(self) -> tuple[Response, int]:
        dto = _parse(LoginRequestDTO)
        ip_address = _get_client_ip()

        try:
            payload = self._auth.login(dto.email, dto.password)
        except InvalidCredentialsError:
            audit_log(AuditAction.LOGIN_FAILED, ip_address=ip_address, success=False)
            raise

        audit_log(
            AuditAction.LOGIN_SUCCESS,
            user_id=payload.user.id,
            ip_address=ip_address,
            success=True,
        )
        return jsonify(AuthPayloadDTO.from_domain(payload).model_dump(by_alias=True)), 200

    @rate_limit(limit=5, window_seconds=60.0)
    def forgot_password(self) -> tuple[Response, int]:
        dto = _parse(ForgotPasswordRequestDTO)

        self._auth.forgot_password(dto.email)

        audit_log(AuditAction.PASSWORD_RESET_REQUESTED, ip_address=_get_client_ip())
        return jsonify(AuthSuccessDTO().model_dump()), 200

    @rate_limit(limit=10, window_seconds=60.0)
    def reset_password(self) -> tuple[Response, int]:
        dto = _parse(ResetPasswordRequestDTO)
        ip_address = _get_client_ip()

        try:
            self._auth.reset_password(dto.email, dto.token, dto.new_password)
        except InvalidResetTokenError:
            audit_log(AuditAction.PASSWORD_RESET_FAILED, ip_address=ip_address, success=False)
            raise

        audit_log(AuditAction.PASSWORD_RESET_COMPLETED, ip_address=ip_address)
        return jsonify(AuthSuccessDTO().model_dump()), 200

    def me(self) -> tuple[Response, int]:
        user = PublicUser.from_user(current_user())
        return jsonify(PublicUserDTO.from_domain(user).model_dump(by_alias=True)), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        bp.add_url_rule("/register", view_func=self.register, methods=["POST"])
        bp.add_url_rule("/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/forgot-password", view_func=self.forgot_password, methods=["POST"])
        bp.add_url_rule("/reset-password", view_func=self.reset_password, methods=["POST"])
        bp.add_url_rule(
            "/me",
            endpoint="me",
            view_func=auth_required(self._auth.authenticate)(self.me),
            methods=["GET"],
        )
        return bp
