# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from crm_backend.shared.errors.base import DomainError


class UserAlreadyExistsError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.CONFLICT
    message = "E-mail already registered."


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid credentials."


class InvalidResetTokenError(DomainError):
    code = "invalid_or_expired_token"
    status = HTTPStatus.BAD_REQUEST
    message = "Invalid or expired token."


class InvalidAccessTokenError(DomainError):
    code = "invalid_access_token"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid or expired access token."
