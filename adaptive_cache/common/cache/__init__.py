"""
Adaptive-TTL Caching System

This package provides a cache whose entry TTLs adapt to how often each key is
re-cached and to a declared priority, on top of a pluggable backing store
(Redis or in-memory), plus the expiration index the eviction scheduler uses.
"""

from adaptive_cache.common.cache.base import (
    Priority,
    SerializationFormat,
    StoreBackend,
)

from adaptive_cache.common.cache.entry import (
    CacheEntry,
    EntryMetadata,
)

from adaptive_cache.common.cache.expiration_index import ExpirationIndex
from adaptive_cache.common.cache.key_builder import KeyBuilder
from adaptive_cache.common.cache.lock import KeyLock
from adaptive_cache.common.cache.memory import MemoryStoreBackend
from adaptive_cache.common.cache.policy import TTLPolicy
from adaptive_cache.common.cache.redis import RedisStoreBackend

from adaptive_cache.common.cache.service import (
    DynamicTTLCacheService,
    create_store_backend,
    get_cache_service,
    set_default_cache_service,
)

# Public API
__all__ = [
    # Types
    'Priority',
    'SerializationFormat',
    'StoreBackend',
    'CacheEntry',
    'EntryMetadata',

    # Store implementations
    'MemoryStoreBackend',
    'RedisStoreBackend',

    # Engine
    'ExpirationIndex',
    'KeyBuilder',
    'KeyLock',
    'TTLPolicy',
    'DynamicTTLCacheService',

    # Service management
    'create_store_backend',
    'get_cache_service',
    'set_default_cache_service',
]
