from __future__ import annotations

import json

import httpx
import pytest
from loguru import logger as loguru_logger

from crm_backend.infrastructure.mail import (
    HttpMailNotificationSender,
    LoggingNotificationSender,
    build_notification_sender,
)
from crm_backend.infrastructure.resilience import CircuitBreaker
from crm_backend.shared.config.settings import MailConfig
from crm_backend.shared.errors import NotificationDeliveryError

RESET_URL = "https://app.crm.io/reset-password?token=abc&email=a%40x.com"


def _sender(handler, breaker: CircuitBreaker | None = None) -> HttpMailNotificationSender:
    return HttpMailNotificationSender(
        api_url="https://mail.crm.io/send",
        api_key="mail-key",
        sender="no-reply@crm.io",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        breaker=breaker or CircuitBreaker(failure_threshold=5, reset_timeout=60.0),
    )


def test_http_sender_posts_message() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202, json={"id": "m-1"})

    _sender(handler).send_password_reset_email("a@x.com", RESET_URL)

    [request] = requests
    assert request.headers["Authorization"] == "Bearer mail-key"
    body = json.loads(request.content)
    assert body["to"] == "a@x.com"
    assert body["from"] == "no-reply@crm.io"
    assert RESET_URL in body["text"]


def test_http_sender_retries_then_fails() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503)

    with pytest.raises(NotificationDeliveryError):
        _sender(handler).send_password_reset_email("a@x.com", RESET_URL)

    assert calls == 2


def test_http_sender_refuses_when_circuit_open() -> None:
    breaker = CircuitBreaker(failure_threshold=1, reset_timeout=60.0)
    breaker.on_failure()

    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected while the circuit is open")

    with pytest.raises(NotificationDeliveryError):
        _sender(handler, breaker).send_password_reset_email("a@x.com", RESET_URL)


def test_logging_sender_logs_recipient_only() -> None:
    messages: list[str] = []
    handler_id = loguru_logger.add(messages.append, format="{message}")
    try:
        LoggingNotificationSender().send_password_reset_email("a@x.com", RESET_URL)
    finally:
        loguru_logger.remove(handler_id)

    [message] = messages
    assert "to=a@x.com" in message
    assert "token=" not in message
    assert RESET_URL not in message
    assert not hasattr(LoggingNotificationSender(), "sent_to")


def test_build_notification_sender_selects_backend() -> None:
    assert isinstance(
        build_notification_sender(MailConfig(MAIL_BACKEND="log")), LoggingNotificationSender
    )
    http_sender = build_notification_sender(
        MailConfig(MAIL_BACKEND="http", MAIL_API_URL="https://mail.crm.io/send")
    )
    assert isinstance(http_sender, HttpMailNotificationSender)


def test_build_notification_sender_requires_url() -> None:
    with pytest.raises(ValueError):
        build_notification_sender(MailConfig(MAIL_BACKEND="http"))
