# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from threading import Lock

from flask import Request, jsonify, request

from crm_backend.shared.config import load_config


@dataclass
class Bucket:
    timestamps: deque[float]


class InMemoryRateLimiter:
    def __init__(self, limit: int, window_seconds: float) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._buckets: dict[str, Bucket] = defaultdict(lambda: Bucket(deque(maxlen=self._limit)))
        self._lock = Lock()
        self._last_sweep = 0.0

    def allow(self, key: str, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            if now - self._last_sweep > self._window:
                self._sweep(now)
            bucket = self._buckets[key]
            # Drop old
            while bucket.timestamps and (now - bucket.timestamps[0]) > self._window:
                bucket.timestamps.popleft()
            if len(bucket.timestamps) >= self._limit:
                return False
            bucket.timestamps.append(now)
            return True

    def _sweep(self, now: float) -> None:
        stale = [
            key
            for key, bucket in self._buckets.items()
            if not bucket.timestamps or (now - bucket.timestamps[-1]) > self._window
        ]
        for key in stale:
            del self._buckets[key]
        self._last_sweep = now

    def __len__(self) -> int:
        return len(self._buckets)


def _client_key(req: Request) -> str:
    forwarded = req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    return forwarded or (req.remote_addr or "unknown")


def rate_limit(limit: int | None = None, window_seconds: float | None = None):
    config = load_config()
    enabled = config.security.enable_rate_limit
    limiter = InMemoryRateLimiter(
        limit or config.security.rate_limit_requests,
        window_seconds or config.security.rate_limit_window,
    )

    def decorator(f: Callable):
        if not enabled:
            return f

        @wraps(f)
        def wrapper(*args, **kwargs):
            key = f"{request.path}:{_client_key(request)}"
            if not limiter.allow(key):
                return jsonify({"error": "rate_limited"}), 429
            return f(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["InMemoryRateLimiter", "rate_limit"]
