# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .exceptions import DomainError, InvariantViolation
from .users.entities import AuthPayload, PublicUser, ResetToken, User, UserRole

__all__ = [
    "AuthPayload",
    "PublicUser",
    "ResetToken",
    "User",
    "UserRole",
    "DomainError",
    "InvariantViolation",
]
