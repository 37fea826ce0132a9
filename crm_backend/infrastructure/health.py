# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import text

from crm_backend.infrastructure.db import session_scope


def check_database() -> bool:
    with session_scope() as session:
        session.execute(text("SELECT 1"))
    return True


__all__ = ["check_database"]
