# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from crm_backend.domain.exceptions import InvariantViolation


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(slots=True, frozen=True)
class User:

    id: str
    email: str
    password_hash: str
    name: str
    role: UserRole
    api_key: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.email or self.email != normalize_email(self.email):
            raise InvariantViolation("email must be stored normalised", field="email")


@dataclass(slots=True, frozen=True)
class PublicUser:
    """Projection of a user that is safe to hand to clients."""

    id: str
    name: str
    email: str
    role: str
    api_key: str

    @classmethod
    def from_user(cls, user: User) -> PublicUser:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            api_key=user.api_key,
        )


@dataclass(slots=True, frozen=True)
class AuthPayload:

    access_token: str
    user: PublicUser


@dataclass(slots=True, frozen=True)
class ResetToken:
    """Stored half of a password reset link.

    Only the digest of the emailed secret is kept; ``used_at`` is set once,
    when the token is consumed, and expiry is evaluated at use time.
    """

    id: int
    user_id: str
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime

    def __post_init__(self) -> None:
        if len(self.token_hash) != 64:
            raise InvariantViolation("token_hash must be a sha256 hex digest", field="token_hash")

    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_usable_by(self, user_id: str, now: datetime) -> bool:
        return self.user_id == user_id and not self.is_used() and not self.is_expired(now)
