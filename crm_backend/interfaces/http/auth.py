# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from functools import wraps

from flask import g, request

from crm_backend.domain.users.entities import User
from crm_backend.domain.users.exceptions import InvalidAccessTokenError
from crm_backend.shared.logging import logger


def bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if auth[:7].lower() == "bearer ":
        return auth[7:].strip()
    return ""


def auth_required(authenticate: Callable[[str], User]):
    """Guard a view with a bearer session token.

    The resolved user is stored on ``flask.g.current_user``.
    """

    def decorator(f):
        @wraps(f)
        def inner(*a, **kw):
            token = bearer_token()
            if not token:
                logger.warning(f"No bearer token on {request.method} {request.path}")
                raise InvalidAccessTokenError()
            g.current_user = authenticate(token)
            g.user_id = g.current_user.id
            logger.debug(f"Auth OK: user={g.user_id} {request.method} {request.path}")
            return f(*a, **kw)

        return inner

    return decorator


def current_user() -> User:
    return g.current_user
