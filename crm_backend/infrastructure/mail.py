# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Delivery of password reset links."""

from __future__ import annotations

import httpx

from crm_backend.domain.users.repositories import NotificationSender
from crm_backend.infrastructure.resilience import CircuitBreaker, resilient_call
from crm_backend.shared.config import MailConfig, load_config
from crm_backend.shared.errors import NotificationDeliveryError
from crm_backend.shared.logging import logger

RESET_SUBJECT = "Password reset"


def _reset_body(reset_url: str) -> str:
    return (
        "We received a request to reset your password.\n\n"
        f"Open the link below within the next hour to choose a new one:\n{reset_url}\n\n"
        "If you did not ask for this, you can ignore this e-mail."
    )


class LoggingNotificationSender(NotificationSender):
    """Development sender: records that a link went out, never the link itself."""

    def send_password_reset_email(self, email: str, reset_url: str) -> None:
        logger.info(f"mail.log: password reset e-mail queued to={email}")


class HttpMailNotificationSender(NotificationSender):
    """Posts the message as JSON to a transactional mail API."""

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str | None,
        sender: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._sender = sender
        self._client = client or httpx.Client(timeout=timeout)
        resilience = load_config().resilience
        self._breaker = breaker or CircuitBreaker(
            failure_threshold=resilience.circuit_fail_threshold,
            reset_timeout=resilience.circuit_reset_timeout,
        )

    def _post(self, payload: dict[str, str]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        response = self._client.post(self._api_url, json=payload, headers=headers)
        response.raise_for_status()
        return response

    def send_password_reset_email(self, email: str, reset_url: str) -> None:
        payload = {
            "from": self._sender,
            "to": email,
            "subject": RESET_SUBJECT,
            "text": _reset_body(reset_url),
        }
        try:
            resilient_call(
                self._post,
                payload,
                breaker=self._breaker,
                retry_on=(httpx.TransportError, httpx.HTTPStatusError),
            )
        except Exception as exc:
            logger.error(f"mail.http: delivery failed to={email} error={type(exc).__name__}")
            raise NotificationDeliveryError() from exc
        logger.info(f"mail.http: password reset e-mail sent to={email}")


def build_notification_sender(config: MailConfig | None = None) -> NotificationSender:
    config = config or load_config().mail
    if config.backend == "http":
        if not config.api_url:
            raise ValueError("MAIL_API_URL is required when MAIL_BACKEND=http")
        return HttpMailNotificationSender(
            api_url=config.api_url,
            api_key=config.api_key,
            sender=config.sender,
            timeout=config.timeout,
        )
    return LoggingNotificationSender()
