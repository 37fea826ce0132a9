# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Remove expired and consumed password reset tokens."""

from __future__ import annotations

import argparse

from crm_backend.container import container
from crm_backend.infrastructure.db import init_db
from crm_backend.shared.logging import logger, setup_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge stale password reset tokens")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    setup_logging(debug_mode=args.verbose)
    init_db()

    removed = container.auth_service.purge_expired_reset_tokens()
    logger.info(f"purge: {removed} reset tokens removed")
    print(removed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
