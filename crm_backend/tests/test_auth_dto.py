from __future__ import annotations

import pytest
from pydantic import ValidationError

from crm_backend.domain.users.entities import AuthPayload, PublicUser, UserRole
from crm_backend.interfaces.http.dto.auth import (
    AuthPayloadDTO,
    RegisterRequestDTO,
    ResetPasswordRequestDTO,
)


def _error_types(exc: ValidationError) -> set[str]:
    return {error["type"] for error in exc.errors()}


def test_register_dto_accepts_valid_payload() -> None:
    dto = RegisterRequestDTO.model_validate(
        {"email": "a@x.com", "password": "Secret123", "name": "  Ana ", "role": "admin"}
    )

    assert dto.name == "Ana"
    assert dto.role is UserRole.ADMIN


def test_register_dto_role_is_optional() -> None:
    dto = RegisterRequestDTO.model_validate(
        {"email": "a@x.com", "password": "Secret123", "name": "Ana"}
    )

    assert dto.role is None


@pytest.mark.parametrize(
    ("payload", "error_type"),
    [
        ({"email": "nope", "password": "Secret123", "name": "Ana"}, "value_error"),
        ({"email": "a@x.com", "password": "S3cret", "name": "Ana"}, "password_too_short"),
        ({"email": "a@x.com", "password": "onlyletters", "name": "Ana"}, "password_too_weak"),
        ({"email": "a@x.com", "password": "Secret123", "name": "   "}, "missing"),
        ({"email": "a@x.com", "password": "Secret123", "name": "Ana", "role": "root"}, "enum"),
    ],
)
def test_register_dto_rejects_invalid_payload(payload: dict, error_type: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        RegisterRequestDTO.model_validate(payload)

    assert error_type in _error_types(excinfo.value)


def test_reset_dto_accepts_camel_case_password() -> None:
    dto = ResetPasswordRequestDTO.model_validate(
        {"email": "a@x.com", "token": "abc", "newPassword": "Secret123"}
    )

    assert dto.new_password == "Secret123"


def test_reset_dto_applies_password_policy() -> None:
    with pytest.raises(ValidationError):
        ResetPasswordRequestDTO.model_validate(
            {"email": "a@x.com", "token": "abc", "new_password": "short"}
        )


def test_auth_payload_dto_uses_client_field_names() -> None:
    payload = AuthPayload(
        access_token="jwt",
        user=PublicUser(id="u-1", name="Ana", email="a@x.com", role="user", api_key="key"),
    )

    dumped = AuthPayloadDTO.from_domain(payload).model_dump(by_alias=True)

    assert dumped == {
        "accessToken": "jwt",
        "user": {"id": "u-1", "name": "Ana", "email": "a@x.com", "role": "user", "apiKey": "key"},
    }
