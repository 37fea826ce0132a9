# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Bearer session tokens signed with PyJWT."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import jwt

from crm_backend.domain.users.exceptions import InvalidAccessTokenError
from crm_backend.domain.users.repositories import TokenSigner


class JwtTokenSigner(TokenSigner):
    """Adds ``iat``/``exp`` to the given claims and signs them.

    ``verify`` rejects bad signatures, malformed tokens and expired tokens
    with the same :class:`InvalidAccessTokenError`.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        ttl_seconds: int = 7 * 24 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("JwtTokenSigner requires a non-empty secret")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def sign(self, claims: dict[str, Any]) -> str:
        now = int(self._clock())
        payload = {**claims, "iat": now, "exp": now + self._ttl_seconds}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidAccessTokenError() from exc

        if int(self._clock()) >= int(payload["exp"]):
            raise InvalidAccessTokenError()
        return payload
