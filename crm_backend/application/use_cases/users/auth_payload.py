# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from crm_backend.domain.users.entities import AuthPayload, PublicUser, User
from crm_backend.domain.users.repositories import TokenSigner


class AuthPayloadBuilder:
    """Issues the session token handed back by register and login."""

    def __init__(self, *, signer: TokenSigner) -> None:
        self._signer = signer

    def build(self, user: User) -> AuthPayload:
        access_token = self._signer.sign({"sub": user.id, "email": user.email})
        return AuthPayload(access_token=access_token, user=PublicUser.from_user(user))
