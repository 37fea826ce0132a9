from datetime import UTC, datetime, timedelta

import pytest

from crm_backend.domain import InvariantViolation, PublicUser, ResetToken, User, UserRole

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _token(**overrides) -> ResetToken:
    fields = {
        "id": 1,
        "user_id": "u-1",
        "token_hash": "a" * 64,
        "expires_at": NOW + timedelta(minutes=60),
        "used_at": None,
        "created_at": NOW,
    }
    fields.update(overrides)
    return ResetToken(**fields)


def test_user_requires_normalised_email() -> None:
    with pytest.raises(InvariantViolation):
        User(
            id="u-1",
            email="Ana@X.com",
            password_hash="hash",
            name="Ana",
            role=UserRole.USER,
            api_key="key",
            created_at=NOW,
        )


def test_public_user_drops_password_hash() -> None:
    user = User(
        id="u-1",
        email="a@x.com",
        password_hash="hash",
        name="Ana",
        role=UserRole.ADMIN,
        api_key="key",
        created_at=NOW,
    )

    public = PublicUser.from_user(user)

    assert public.role == "admin"
    assert not hasattr(public, "password_hash")


def test_reset_token_requires_sha256_digest() -> None:
    with pytest.raises(InvariantViolation):
        _token(token_hash="raw-secret")


def test_reset_token_expires_at_boundary() -> None:
    token = _token()

    assert token.is_usable_by("u-1", NOW + timedelta(minutes=59))
    assert token.is_expired(NOW + timedelta(minutes=60))
    assert not token.is_usable_by("u-1", NOW + timedelta(minutes=60))


def test_reset_token_usable_only_by_owner_and_once() -> None:
    assert not _token().is_usable_by("u-2", NOW)
    assert not _token(used_at=NOW).is_usable_by("u-1", NOW)
