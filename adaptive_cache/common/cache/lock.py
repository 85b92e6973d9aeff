"""
Per-Key Lock Module

This module implements a store-resident mutual-exclusion record used to
serialize TTL adaptations of a single cache key across processes. The lock
is a sentinel key created with set-if-absent and a short TTL, so a holder
that crashes can never block the key for longer than that TTL. The record
holds a per-instance token and is only deleted while it still holds it.
"""

import logging
import time
import uuid
from typing import Callable

from adaptive_cache.common.exceptions import ContentionError

from .base import StoreBackend
from .key_builder import KeyBuilder

# Setup logging
logger = logging.getLogger(__name__)


class KeyLock:
    """
    Short-lived lock on a cache key.

    Acquisition is attempted up to ``max_retries`` times, sleeping
    ``backoff * 2**attempt`` seconds after each failed attempt except the
    last. Use as a context manager:

        with KeyLock(store, "todo::1"):
            ...
    """

    def __init__(
        self,
        store: StoreBackend,
        key: str,
        ttl: int = 10,
        max_retries: int = 3,
        backoff: float = 0.1,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the lock.

        Args:
            store: Backing store holding the lock record
            key: Cache key to lock
            ttl: Lifetime of the lock record in seconds
            max_retries: Number of acquisition attempts
            backoff: Initial backoff in seconds, doubled after each attempt
            sleep: Sleep function (injectable for tests)
        """
        self.store = store
        self.key = key
        self.lock_key = KeyBuilder.lock_key(key)
        self.ttl = ttl
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep = sleep
        self.token = uuid.uuid4().hex
        self._held = False

    @property
    def held(self) -> bool:
        """Whether this instance currently holds the lock."""
        return self._held

    def backoff_delay(self, attempt: int) -> float:
        """Sleep duration after a failed attempt (100ms, 200ms, 400ms...)."""
        return self.backoff * (2 ** attempt)

    def acquire(self) -> None:
        """
        Acquire the lock.

        Raises:
            ContentionError: If the lock is still held elsewhere after all retries
            BackingStoreUnavailable: If the store fails
        """
        for attempt in range(self.max_retries):
            if self.store.set_if_absent(self.lock_key, self.token, self.ttl):
                self._held = True
                return

            if attempt < self.max_retries - 1:
                delay = self.backoff_delay(attempt)
                logger.debug(f"Lock {self.lock_key} busy, retrying in {delay:.3f}s")
                self._sleep(delay)

        logger.warning(f"Contention on {self.key}: lock not acquired after {self.max_retries} attempts")
        raise ContentionError(self.key, self.max_retries)

    def release(self) -> None:
        """
        Release the lock if held.

        A record that expired and was taken by another caller is left alone.
        """
        if not self._held:
            return
        self._held = False
        if not self.store.delete_if_equals(self.lock_key, self.token):
            logger.warning(f"Lock {self.lock_key} expired before release after {self.ttl}s")

    def __enter__(self) -> 'KeyLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
