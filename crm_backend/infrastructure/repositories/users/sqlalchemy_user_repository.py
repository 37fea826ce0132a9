# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crm_backend.domain.users.entities import ResetToken as DomainResetToken
from crm_backend.domain.users.entities import User as DomainUser
from crm_backend.domain.users.entities import UserRole
from crm_backend.domain.users.exceptions import UserAlreadyExistsError
from crm_backend.domain.users.repositories import ResetTokenRepository, UserRepository
from crm_backend.infrastructure.db.models import PasswordResetToken, User


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_domain_user(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        name=row.name,
        role=UserRole(row.role),
        api_key=row.api_key,
        created_at=_as_utc(row.created_at),
    )


def _to_domain_token(row: PasswordResetToken) -> DomainResetToken:
    return DomainResetToken(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=_as_utc(row.expires_at),
        used_at=_as_utc(row.used_at) if row.used_at else None,
        created_at=_as_utc(row.created_at),
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_email(self, email: str) -> DomainUser | None:
        row = self._session.query(User).filter(User.email == email).first()
        return _to_domain_user(row) if row else None

    def find_by_id(self, user_id: str) -> DomainUser | None:
        row = self._session.get(User, user_id)
        return _to_domain_user(row) if row else None

    def add(self, user: DomainUser) -> DomainUser:
        row = User(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            name=user.name,
            role=user.role.value,
            api_key=user.api_key,
            created_at=user.created_at,
        )
        try:
            self._session.add(row)
            self._session.flush()
        except IntegrityError as exc:
            # Two registrations raced past the existence check.
            if "email" in str(exc.orig).lower():
                raise UserAlreadyExistsError() from exc
            raise
        return _to_domain_user(row)

    def update_password(self, user_id: str, password_hash: str) -> None:
        updated = (
            self._session.query(User)
            .filter(User.id == user_id)
            .update(
                {User.password_hash: password_hash, User.updated_at: datetime.now(UTC)},
                synchronize_session=False,
            )
        )
        if updated != 1:
            raise LookupError(f"user {user_id} vanished during password update")


class SqlAlchemyResetTokenRepository(ResetTokenRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, user_id: str, token_hash: str, expires_at: datetime) -> DomainResetToken:
        row = PasswordResetToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=datetime.now(UTC),
        )
        self._session.add(row)
        self._session.flush()
        return _to_domain_token(row)

    def find_by_hash(self, token_hash: str) -> DomainResetToken | None:
        row = (
            self._session.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_hash)
            .first()
        )
        return _to_domain_token(row) if row else None

    def delete_for_user(self, user_id: str) -> int:
        return (
            self._session.query(PasswordResetToken)
            .filter(PasswordResetToken.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def mark_used(self, token_hash: str, used_at: datetime) -> bool:
        # Conditional on used_at IS NULL so two racing resets cannot both consume it.
        updated = (
            self._session.query(PasswordResetToken)
            .filter(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used_at.is_(None),
            )
            .update({PasswordResetToken.used_at: used_at}, synchronize_session=False)
        )
        return updated == 1

    def delete_others_for_user(self, user_id: str, keep_token_hash: str) -> int:
        return (
            self._session.query(PasswordResetToken)
            .filter(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.token_hash != keep_token_hash,
            )
            .delete(synchronize_session=False)
        )

    def purge_stale(self, now: datetime) -> int:
        return (
            self._session.query(PasswordResetToken)
            .filter(
                or_(
                    PasswordResetToken.expires_at <= now,
                    PasswordResetToken.used_at.is_not(None),
                )
            )
            .delete(synchronize_session=False)
        )
