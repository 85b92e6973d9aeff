"""
Cache Service Module

This module provides the adaptive-TTL cache service. Entries are stored with
a TTL derived from their priority; caching a key that already exists does not
overwrite it but adapts its TTL to how often it is being re-cached. Every
TTL write is mirrored into the expiration index used by the eviction
scheduler.
"""

import logging
import time
from typing import Any, Callable, Optional

from adaptive_cache.common.config import AppConfig, get_config
from adaptive_cache.common.redis import get_redis_client

from .base import Priority, SerializationFormat, StoreBackend
from .entry import CacheEntry, to_millis
from .expiration_index import ExpirationIndex
from .lock import KeyLock
from .memory import MemoryStoreBackend
from .policy import TTLPolicy
from .redis import RedisStoreBackend

# Setup logging
logger = logging.getLogger(__name__)

# Global default cache service
_default_cache_service = None


class DynamicTTLCacheService:
    """
    Cache service with access-adaptive, priority-aware TTLs.

    Operations:
    - cache(key, value, priority): store a new entry or adapt an existing one
    - get_value(key): read the payload without touching metadata or TTL
    - delete_value(key): drop the entry and its index record (idempotent)

    Adaptations of the same key are serialized through a store-resident
    KeyLock; failing to get the lock raises ContentionError.
    """

    def __init__(
        self,
        store: StoreBackend,
        policy: Optional[TTLPolicy] = None,
        index: Optional[ExpirationIndex] = None,
        lock_ttl: int = 10,
        max_lock_retries: int = 3,
        lock_backoff: float = 0.1,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the cache service.

        Args:
            store: Backing store holding entries, locks and the index
            policy: TTL policy (defaults to TTLPolicy())
            index: Expiration index (defaults to the store's default index)
            lock_ttl: Lifetime of adaptation locks in seconds
            max_lock_retries: Lock acquisition attempts before ContentionError
            lock_backoff: Initial lock retry backoff in seconds
            clock: Time source in epoch seconds
            sleep: Sleep function used between lock attempts
        """
        self.store = store
        self.policy = policy or TTLPolicy()
        self.index = index or ExpirationIndex(store)
        self.lock_ttl = lock_ttl
        self.max_lock_retries = max_lock_retries
        self.lock_backoff = lock_backoff
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_config(cls, store: StoreBackend, app_config: Optional[AppConfig] = None,
                    **kwargs) -> 'DynamicTTLCacheService':
        """
        Build a service from application configuration.

        Args:
            store: Backing store to use
            app_config: Configuration (if None, uses the global config)
            **kwargs: Extra constructor arguments (clock, sleep)

        Returns:
            Configured DynamicTTLCacheService
        """
        cache_config = (app_config or get_config()).cache
        return cls(
            store=store,
            policy=TTLPolicy.from_config(cache_config),
            index=ExpirationIndex(store, cache_config.index_name),
            lock_ttl=cache_config.lock_ttl_seconds,
            max_lock_retries=cache_config.max_lock_retries,
            lock_backoff=cache_config.lock_backoff_seconds,
            **kwargs
        )

    def cache(self, key: str, value: Any, priority: Priority = Priority.MEDIUM) -> None:
        """
        Cache a value, or adapt the TTL of an existing entry.

        Re-caching an existing key keeps its stored payload and priority;
        only its TTL and access metadata change.

        Args:
            key: The cache key
            value: The payload to cache when the key is new
            priority: Priority tier used when the key is new

        Raises:
            ContentionError: If the adaptation lock could not be acquired
            BackingStoreUnavailable: If the backing store fails
        """
        if self.store.exists(key):
            self._adapt(key, value, priority)
        else:
            self._create(key, value, priority)

    def get_value(self, key: str) -> Optional[Any]:
        """
        Get the cached payload.

        Args:
            key: The cache key

        Returns:
            The payload, or None if the key is not cached
        """
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the full entry (payload and metadata) for a key."""
        return CacheEntry.from_dict(key, self.store.get(key))

    def delete_value(self, key: str) -> bool:
        """
        Delete an entry and its expiration index record.

        Deleting an absent key is a no-op.

        Args:
            key: The cache key

        Returns:
            True if an entry was deleted
        """
        deleted = self.store.delete(key)
        self.index.remove(key)
        if deleted:
            logger.debug(f"Deleted cache entry {key}")
        return deleted

    def _write(self, entry: CacheEntry, ttl: int, now: float) -> None:
        self.store.set(entry.key, entry.to_dict(), ttl=ttl)
        self.index.upsert(entry.key, int(now) + ttl)

    def _create(self, key: str, value: Any, priority: Priority) -> None:
        now = self._clock()
        entry = CacheEntry.create(key, value, Priority(priority), to_millis(now))
        ttl = self.policy.base_ttl(entry.metadata.priority)
        self._write(entry, ttl, now)
        logger.debug(f"Cached {key} with priority {entry.metadata.priority.value}, ttl={ttl}s")

    def _adapt(self, key: str, value: Any, priority: Priority) -> None:
        lock = KeyLock(
            self.store,
            key,
            ttl=self.lock_ttl,
            max_retries=self.max_lock_retries,
            backoff=self.lock_backoff,
            sleep=self._sleep
        )
        with lock:
            # Re-read under the lock so concurrent adaptations never lose updates
            entry = self.get_entry(key)
            if entry is None:
                self._create(key, value, priority)
                return

            now = self._clock()
            now_ms = to_millis(now)
            ttl = self.policy.next_ttl(entry.metadata, now_ms)
            entry.metadata.record_access(now_ms)
            self._write(entry, ttl, now)
            logger.debug(
                f"Adapted {key}: ttl={ttl}s, usage_count={entry.metadata.usage_count}"
            )


def create_store_backend(app_config: Optional[AppConfig] = None) -> StoreBackend:
    """
    Create the backing store selected by configuration.

    Args:
        app_config: Configuration (if None, uses the global config)

    Returns:
        A MemoryStoreBackend or a RedisStoreBackend
    """
    app_config = app_config or get_config()
    cache_config = app_config.cache

    if cache_config.backend == "memory":
        return MemoryStoreBackend()

    return RedisStoreBackend(
        redis_client=get_redis_client(app_config.redis),
        key_prefix=cache_config.key_prefix,
        serialization=SerializationFormat(cache_config.serialization)
    )


def get_cache_service() -> DynamicTTLCacheService:
    """
    Get the default cache service instance, creating it from configuration.

    Returns:
        The default cache service
    """
    global _default_cache_service
    if _default_cache_service is None:
        _default_cache_service = DynamicTTLCacheService.from_config(create_store_backend())
    return _default_cache_service


def set_default_cache_service(service: Optional[DynamicTTLCacheService]) -> None:
    """
    Set (or clear, with None) the default cache service instance.

    Args:
        service: The cache service to set as default
    """
    global _default_cache_service
    _default_cache_service = service
