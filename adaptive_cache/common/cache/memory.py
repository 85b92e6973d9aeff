"""
Memory Store Backend Module

This module implements an in-memory backing store using dictionary-based
storage with thread safety, lazy TTL expiry and sorted indexes. It mirrors
the subset of Redis semantics the cache engine relies on and is intended
for development and tests.
"""

import bisect
import logging
import pickle
import sys
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

from .base import ScoredMember, StoreBackend

# Setup logging
logger = logging.getLogger(__name__)


class MemoryStoreBackend(StoreBackend):
    """
    In-memory store backend implementation.

    Values are pickled on write so callers never share mutable state with
    the store, and so per-key memory usage can be measured. Expired keys are
    removed lazily whenever they are touched.

    Features:
    - Thread-safe operations
    - Per-key TTL with Redis-like SET/EXPIRE/SET NX semantics
    - Named sorted indexes with range queries
    """

    def __init__(self, name: str = "memory", clock: Callable[[], float] = time.time):
        """
        Initialize the memory store backend.

        Args:
            name: Name for this store backend (default: "memory")
            clock: Time source in epoch seconds (injectable for tests)
        """
        self._name = name
        self._clock = clock
        self._lock = threading.RLock()
        self._values: Dict[str, bytes] = {}
        self._expires_at: Dict[str, float] = {}
        self._indexes: Dict[str, Dict[str, float]] = {}

    @property
    def name(self) -> str:
        """Get the name of this store backend."""
        return self._name

    def _purge_if_expired(self, key: str) -> None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and self._clock() >= expires_at:
            self._values.pop(key, None)
            self._expires_at.pop(key, None)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            self._purge_if_expired(key)
            data = self._values.get(key)
            return pickle.loads(data) if data is not None else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._values[key] = pickle.dumps(value)
            if ttl is not None and ttl > 0:
                self._expires_at[key] = self._clock() + ttl
            else:
                self._expires_at.pop(key, None)

    def delete(self, key: str) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            self._expires_at.pop(key, None)
            return self._values.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            return key in self._values

    def expire(self, key: str, ttl: int) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if key not in self._values:
                return False
            self._expires_at[key] = self._clock() + ttl
            return True

    def ttl(self, key: str) -> Optional[float]:
        """
        Get the remaining TTL of a key.

        Returns:
            Remaining seconds, or None if the key is absent or never expires
        """
        with self._lock:
            self._purge_if_expired(key)
            expires_at = self._expires_at.get(key)
            if key not in self._values or expires_at is None:
                return None
            return max(0.0, expires_at - self._clock())

    def set_if_absent(self, key: str, value: Any, ttl: int) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if key in self._values:
                return False
            self.set(key, value, ttl)
            return True

    def delete_if_equals(self, key: str, value: Any) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if self._values.get(key) != pickle.dumps(value):
                return False
            self._expires_at.pop(key, None)
            del self._values[key]
            return True

    def index_upsert(self, index: str, member: str, score: float) -> None:
        with self._lock:
            self._indexes.setdefault(index, {})[member] = float(score)

    def index_remove(self, index: str, member: str) -> bool:
        with self._lock:
            return self._indexes.get(index, {}).pop(member, None) is not None

    def _sorted(self, index: str) -> List[ScoredMember]:
        members = self._indexes.get(index, {})
        return sorted(members.items(), key=lambda item: (item[1], item[0]))

    def index_range_by_score(
        self,
        index: str,
        low: float,
        high: float,
        with_scores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        with self._lock:
            ordered = self._sorted(index)
            scores = [score for _, score in ordered]
            start = bisect.bisect_left(scores, low)
            end = bisect.bisect_right(scores, high)
            selected = ordered[start:end]
            if with_scores:
                return list(selected)
            return [member for member, _ in selected]

    def index_remove_range_by_score(self, index: str, low: float, high: float) -> int:
        with self._lock:
            doomed = self.index_range_by_score(index, low, high)
            members = self._indexes.get(index, {})
            for member in doomed:
                del members[member]
            return len(doomed)

    def index_score(self, index: str, member: str) -> Optional[float]:
        with self._lock:
            return self._indexes.get(index, {}).get(member)

    def index_count(self, index: str) -> int:
        with self._lock:
            return len(self._indexes.get(index, {}))

    def memory_usage(self, key: str) -> int:
        with self._lock:
            self._purge_if_expired(key)
            data = self._values.get(key)
            if data is None:
                return 0
            return len(key.encode("utf-8")) + len(data)

    def used_memory_bytes(self) -> int:
        """
        Approximate memory held by stored values and indexes.

        Returns:
            Sum of key and pickled value sizes plus index entry sizes
        """
        with self._lock:
            for key in list(self._expires_at):
                self._purge_if_expired(key)
            total = sum(len(key.encode("utf-8")) + len(data) for key, data in self._values.items())
            for members in self._indexes.values():
                total += sum(len(member.encode("utf-8")) + sys.getsizeof(0.0) for member in members)
            return total

    def __len__(self) -> int:
        """Return the number of live keys in the store."""
        with self._lock:
            for key in list(self._expires_at):
                self._purge_if_expired(key)
            return len(self._values)
