# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Helpers for the opaque secrets carried by password reset links."""

from __future__ import annotations

import hashlib
import secrets
from urllib.parse import quote

SECRET_BYTES = 32


def generate_reset_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


def hash_reset_secret(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def build_reset_url(frontend_url: str, raw: str, email: str) -> str:
    return f"{frontend_url.rstrip('/')}/reset-password?token={raw}&email={quote(email, safe='')}"
