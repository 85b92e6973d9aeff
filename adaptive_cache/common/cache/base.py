"""
Store interface and entry priority tiers.

The cache engine is written against StoreBackend: key/value operations
with expiry, an atomic set-if-absent for locks, a score-ordered index,
and memory introspection. Redis and an in-process dictionary implement it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

# (member, score) pair from the sorted index
ScoredMember = Tuple[str, float]


class Priority(str, Enum):
    """Caller-declared importance tier of a cache entry."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SerializationFormat(str, Enum):
    JSON = "json"
    PICKLE = "pickle"


class StoreBackend(ABC):
    """
    Key-value store the cache engine runs on.

    Missing keys read as None. Implementations raise
    BackingStoreUnavailable when the store itself fails, never a miss.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Value stored at ``key``, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Write ``value``, expiring after ``ttl`` seconds (None or <= 0 keeps it forever)."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; True if it was present."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def expire(self, key: str, ttl: int) -> bool:
        """Reset the expiry of an existing key; False if the key is absent."""
        pass

    @abstractmethod
    def set_if_absent(self, key: str, value: Any, ttl: int) -> bool:
        """
        Write ``value`` only when ``key`` is free, in one atomic step.

        Returns:
            True if this call created the key
        """
        pass

    @abstractmethod
    def delete_if_equals(self, key: str, value: Any) -> bool:
        """
        Delete ``key`` only while it still holds ``value``, in one atomic step.

        Returns:
            True if the key held ``value`` and was deleted
        """
        pass

    @abstractmethod
    def index_upsert(self, index: str, member: str, score: float) -> None:
        """Insert a member into a sorted index or replace its score."""
        pass

    @abstractmethod
    def index_remove(self, index: str, member: str) -> bool:
        """Remove a member from a sorted index."""
        pass

    @abstractmethod
    def index_range_by_score(
        self,
        index: str,
        low: float,
        high: float,
        with_scores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        """
        Get index members with low <= score <= high.

        Args:
            index: Name of the sorted index
            low: Lowest score (inclusive), may be float('-inf')
            high: Highest score (inclusive), may be float('inf')
            with_scores: Return (member, score) pairs instead of members

        Returns:
            Members in ascending score order
        """
        pass

    @abstractmethod
    def index_remove_range_by_score(self, index: str, low: float, high: float) -> int:
        """
        Remove index members with low <= score <= high.

        Returns:
            Number of members removed
        """
        pass

    @abstractmethod
    def index_score(self, index: str, member: str) -> Optional[float]:
        """Get the score of a member, or None if it is not indexed."""
        pass

    @abstractmethod
    def index_count(self, index: str) -> int:
        """Get the number of members in a sorted index."""
        pass

    @abstractmethod
    def used_memory_bytes(self) -> int:
        """Get the total memory currently used by the store, in bytes."""
        pass

    @abstractmethod
    def memory_usage(self, key: str) -> int:
        """Get the approximate memory used by a single key, in bytes (0 if absent)."""
        pass
