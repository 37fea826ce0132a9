# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from crm_backend.domain.users.entities import AuthPayload, PublicUser, UserRole

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def _check_password_policy(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError(
            "password_too_short",
            "Password must be at least {min_length} characters long",
            {"min_length": PASSWORD_MIN_LENGTH},
        )

    if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
        raise PydanticCustomError(
            "password_too_weak",
            "Password must contain at least one letter and one digit",
            {},
        )

    return value


class RegisterRequestDTO(BaseModel):
    email: EmailStr = Field(max_length=320)
    password: str = Field(max_length=PASSWORD_MAX_LENGTH)
    name: str = Field(min_length=1, max_length=128)
    role: UserRole | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("missing", "Name cannot be blank", {})
        return value.strip()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, value: str) -> str:
        return _check_password_policy(value)


class LoginRequestDTO(BaseModel):
    email: EmailStr = Field(max_length=320)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)  # No strength check on login


class ForgotPasswordRequestDTO(BaseModel):
    email: EmailStr = Field(max_length=320)


class ResetPasswordRequestDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(max_length=320)
    token: str = Field(min_length=1, max_length=256)
    new_password: str = Field(max_length=PASSWORD_MAX_LENGTH, alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, value: str) -> str:
        return _check_password_policy(value)


class PublicUserDTO(BaseModel):
    id: str
    name: str
    email: str
    role: str
    api_key: str = Field(serialization_alias="apiKey")

    @classmethod
    def from_domain(cls, user: PublicUser) -> PublicUserDTO:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            api_key=user.api_key,
        )


class AuthPayloadDTO(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    user: PublicUserDTO

    @classmethod
    def from_domain(cls, payload: AuthPayload) -> AuthPayloadDTO:
        return cls(access_token=payload.access_token, user=PublicUserDTO.from_domain(payload.user))


class AuthSuccessDTO(BaseModel):
    ok: bool = True
