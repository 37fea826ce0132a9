# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from .entities import ResetToken, User


class UserRepository(Protocol):
    def find_by_email(self, email: str) -> User | None: ...
    def find_by_id(self, user_id: str) -> User | None: ...
    def add(self, user: User) -> User: ...
    def update_password(self, user_id: str, password_hash: str) -> None: ...


class ResetTokenRepository(Protocol):
    def add(self, user_id: str, token_hash: str, expires_at: datetime) -> ResetToken: ...
    def find_by_hash(self, token_hash: str) -> ResetToken | None: ...
    def delete_for_user(self, user_id: str) -> int: ...
    def mark_used(self, token_hash: str, used_at: datetime) -> bool: ...
    def delete_others_for_user(self, user_id: str, keep_token_hash: str) -> int: ...
    def purge_stale(self, now: datetime) -> int: ...


class AuthUnitOfWork(Protocol):
    """Transactional scope over the user and reset token stores.

    Leaving the ``with`` block normally commits; leaving it with an
    exception rolls back every change made through ``users`` and
    ``reset_tokens``.
    """

    users: UserRepository
    reset_tokens: ResetTokenRepository

    def __enter__(self) -> AuthUnitOfWork: ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class TokenSigner(Protocol):
    def sign(self, claims: dict[str, Any]) -> str: ...
    def verify(self, token: str) -> dict[str, Any]: ...


class NotificationSender(Protocol):
    def send_password_reset_email(self, email: str, reset_url: str) -> None: ...
