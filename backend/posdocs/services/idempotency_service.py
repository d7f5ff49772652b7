# Overview: Duplicate-submission guard for write endpoints (X-Idempotency-Key).

"""
Idempotency Key Store

A write request may carry an X-Idempotency-Key header. The first request
with a key claims it for IDEMPOTENCY_TTL_SECONDS; any repeat inside that
window is rejected with 409 rather than replayed.

The store is an injected key-value abstraction with an explicit TTL and an
injectable clock, registered as app.extensions["idempotency_store"]. The
in-memory store is per-process; multi-process deployments supply a shared
implementation of KeyValueStore.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable


class KeyValueStore(ABC):
    """Key-value store with per-key expiry."""

    @abstractmethod
    def set_if_absent(self, key: str, ttl_seconds: float) -> bool:
        """Claim `key` for ttl_seconds. Returns False if it is already held."""


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires: dict[str, float] = {}
        self._lock = threading.Lock()

    def _purge(self, now: float) -> None:
        expired = [key for key, expires_at in self._expires.items() if expires_at <= now]
        for key in expired:
            del self._expires[key]

    def set_if_absent(self, key: str, ttl_seconds: float) -> bool:
        with self._lock:
            now = self._clock()
            self._purge(now)
            if key in self._expires:
                return False
            self._expires[key] = now + ttl_seconds
            return True

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._expires)

