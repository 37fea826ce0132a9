from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlsplit

import pytest
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from crm_backend.app import create_app
from crm_backend.container import Container
from crm_backend.domain.users.exceptions import InvalidCredentialsError, InvalidResetTokenError
from crm_backend.infrastructure.db import ENGINE, Base, SessionLocal
from crm_backend.infrastructure.db.models import PasswordResetToken, User
from crm_backend.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemyResetTokenRepository,
)
from crm_backend.shared.errors import NotificationDeliveryError, StoreUnavailableError


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_password_reset_email(self, email: str, reset_url: str) -> None:
        self.sent.append((email, reset_url))

    def last_secret(self) -> str:
        _, url = self.sent[-1]
        return parse_qs(urlsplit(url).query)["token"][0]


@pytest.fixture(autouse=True)
def reset_database() -> Iterator[None]:
    Base.metadata.drop_all(bind=ENGINE)
    Base.metadata.create_all(bind=ENGINE)
    yield
    SessionLocal.remove()
    Base.metadata.drop_all(bind=ENGINE)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def container(notifier: RecordingNotifier) -> Container:
    container = Container()
    container.notification_sender = notifier
    return container


@pytest.fixture()
def app(container: Container) -> Flask:
    return create_app(container)


def _token_rows() -> list[PasswordResetToken]:
    session = SessionLocal()
    try:
        return session.query(PasswordResetToken).all()
    finally:
        session.close()


def test_concrete_recovery_scenario(container: Container, notifier: RecordingNotifier) -> None:
    auth = container.auth_service

    registered = auth.register("a@x.com", "pw1", "Ana")
    assert registered.user.role == "user"

    before = datetime.now(UTC)
    auth.forgot_password("a@x.com")
    [row] = _token_rows()
    expires_at = row.expires_at.replace(tzinfo=UTC)
    assert abs((expires_at - before).total_seconds() - 3600) < 5
    assert row.used_at is None

    auth.reset_password("a@x.com", notifier.last_secret(), "pw2")
    [row] = _token_rows()
    assert row.used_at is not None

    with pytest.raises(InvalidCredentialsError):
        auth.login("a@x.com", "pw1")
    assert auth.login("a@x.com", "pw2").user.id == registered.user.id


def test_stored_token_is_a_digest(container: Container, notifier: RecordingNotifier) -> None:
    container.auth_service.register("a@x.com", "pw1", "Ana")
    container.auth_service.forgot_password("a@x.com")

    raw = notifier.last_secret()
    [row] = _token_rows()
    assert row.token_hash != raw
    assert len(row.token_hash) == 64


def test_expired_token_is_rejected(container: Container, notifier: RecordingNotifier) -> None:
    auth = container.auth_service
    auth.register("a@x.com", "pw1", "Ana")
    auth.forgot_password("a@x.com")

    session = SessionLocal()
    try:
        session.query(PasswordResetToken).update(
            {PasswordResetToken.expires_at: datetime.now(UTC) - timedelta(seconds=1)}
        )
        session.commit()
    finally:
        session.close()

    with pytest.raises(InvalidResetTokenError):
        auth.reset_password("a@x.com", notifier.last_secret(), "pw2")
    assert auth.login("a@x.com", "pw1")


def test_second_request_replaces_first_token(
    container: Container, notifier: RecordingNotifier
) -> None:
    auth = container.auth_service
    auth.register("a@x.com", "pw1", "Ana")
    auth.forgot_password("a@x.com")
    first = notifier.last_secret()
    auth.forgot_password("a@x.com")
    second = notifier.last_secret()

    assert len(_token_rows()) == 1
    with pytest.raises(InvalidResetTokenError):
        auth.reset_password("a@x.com", first, "pw2")
    auth.reset_password("a@x.com", second, "pw2")
    with pytest.raises(InvalidResetTokenError):
        auth.reset_password("a@x.com", second, "pw3")


def test_purge_removes_consumed_tokens(container: Container, notifier: RecordingNotifier) -> None:
    auth = container.auth_service
    auth.register("a@x.com", "pw1", "Ana")
    auth.forgot_password("a@x.com")
    auth.reset_password("a@x.com", notifier.last_secret(), "pw2")

    assert auth.purge_expired_reset_tokens() == 1
    assert _token_rows() == []


def test_http_register_login_recover_flow(app: Flask, notifier: RecordingNotifier) -> None:
    with app.test_client() as client:
        register = client.post(
            "/api/auth/register",
            json={"email": "A@x.com", "password": "Secret123", "name": "Ana"},
        )
        assert register.status_code == 201
        access_token = register.get_json()["accessToken"]

        duplicate = client.post(
            "/api/auth/register",
            json={"email": "a@x.com", "password": "Secret123", "name": "Ana"},
        )
        assert duplicate.status_code == 409

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {access_token}"})
        assert me.status_code == 200
        assert me.get_json()["email"] == "a@x.com"

        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@x.com"})
        assert unknown.status_code == 200
        assert notifier.sent == []

        forgot = client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
        assert forgot.get_json() == {"ok": True}
        email, url = notifier.sent[0]
        assert email == "a@x.com"
        assert url.startswith("https://app.crm.io/reset-password?token=")

        reset = client.post(
            "/api/auth/reset-password",
            json={"email": "a@x.com", "token": notifier.last_secret(), "newPassword": "Secret456"},
        )
        assert reset.status_code == 200

        replay = client.post(
            "/api/auth/reset-password",
            json={"email": "a@x.com", "token": notifier.last_secret(), "newPassword": "Secret789"},
        )
        assert replay.status_code == 400
        assert replay.get_json()["error"] == "invalid_or_expired_token"

        old_login = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "Secret123"}
        )
        wrong_user = client.post(
            "/api/auth/login", json={"email": "ghost@x.com", "password": "Secret123"}
        )
        assert old_login.status_code == wrong_user.status_code == 401
        assert old_login.get_json() == wrong_user.get_json()

        new_login = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "Secret456"}
        )
        assert new_login.status_code == 200
        assert new_login.get_json()["user"]["email"] == "a@x.com"

    session = SessionLocal()
    try:
        assert session.query(User).count() == 1
    finally:
        session.close()


def test_health_endpoint(app: Flask) -> None:
    with app.test_client() as client:
        response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "database": "ok"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_request_id_is_echoed(app: Flask) -> None:
    with app.test_client() as client:
        response = client.get("/api/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_forgot_password_hides_delivery_failure(
    app: Flask, notifier: RecordingNotifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _undeliverable(self, email: str, reset_url: str) -> None:
        raise NotificationDeliveryError()

    monkeypatch.setattr(RecordingNotifier, "send_password_reset_email", _undeliverable)

    with app.test_client() as client:
        client.post(
            "/api/auth/register",
            json={"email": "a@x.com", "password": "Secret123", "name": "Ana"},
        )
        known = client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json() == {"ok": True}
    assert len(_token_rows()) == 1


def test_reset_rolls_back_when_sibling_cleanup_fails(
    container: Container, notifier: RecordingNotifier, monkeypatch: pytest.MonkeyPatch
) -> None:
    auth = container.auth_service
    auth.register("a@x.com", "pw1", "Ana")
    auth.forgot_password("a@x.com")

    def _boom(self, user_id: str, keep_token_hash: str) -> int:
        raise SQLAlchemyError("connection dropped")

    monkeypatch.setattr(SqlAlchemyResetTokenRepository, "delete_others_for_user", _boom)

    with pytest.raises(StoreUnavailableError):
        auth.reset_password("a@x.com", notifier.last_secret(), "pw2")

    [row] = _token_rows()
    assert row.used_at is None
    assert auth.login("a@x.com", "pw1").user.email == "a@x.com"
    with pytest.raises(InvalidCredentialsError):
        auth.login("a@x.com", "pw2")
