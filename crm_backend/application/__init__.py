# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .services.auth_service import AuthService
from .services.password_hashing import BcryptPasswordHasher
from .services.token_signing import JwtTokenSigner

__all__ = [
    "AuthService",
    "BcryptPasswordHasher",
    "JwtTokenSigner",
]
