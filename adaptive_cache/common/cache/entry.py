"""
Cache Entry Module

This module provides the CacheEntry class, which encapsulates a cached payload
with the metadata used to adapt its TTL to how often it is re-cached.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import Priority


def to_millis(seconds: float) -> int:
    """Convert epoch seconds to epoch milliseconds."""
    return int(seconds * 1000)


@dataclass
class EntryMetadata:
    """
    Access metadata tracked for each cache entry.

    Attributes:
        initial_access_time: Epoch millis when the entry was created
        last_access_time: Epoch millis of the most recent TTL adaptation
        usage_count: Number of adaptations performed so far
        priority: Priority tier declared when the entry was created
    """
    initial_access_time: int
    last_access_time: int
    usage_count: int = 0
    priority: Priority = Priority.MEDIUM

    @classmethod
    def create(cls, priority: Priority, timestamp_ms: int) -> 'EntryMetadata':
        """
        Create fresh metadata for a new entry.

        Args:
            priority: Priority tier of the entry
            timestamp_ms: Creation time in epoch millis

        Returns:
            New EntryMetadata instance
        """
        return cls(
            initial_access_time=timestamp_ms,
            last_access_time=timestamp_ms,
            usage_count=0,
            priority=Priority(priority)
        )

    def record_access(self, timestamp_ms: int) -> None:
        """Record one adaptation at the given time."""
        self.usage_count += 1
        self.last_access_time = timestamp_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialAccessTime": self.initial_access_time,
            "lastAccessTime": self.last_access_time,
            "usageCount": self.usage_count,
            "priority": self.priority.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EntryMetadata':
        return cls(
            initial_access_time=int(data["initialAccessTime"]),
            last_access_time=int(data["lastAccessTime"]),
            usage_count=int(data.get("usageCount", 0)),
            priority=Priority(data.get("priority", Priority.MEDIUM.value)),
        )


@dataclass
class CacheEntry:
    """
    Represents a cached value with metadata.

    Attributes:
        key: The cache key
        data: The cached payload
        metadata: Access metadata used for TTL adaptation
    """
    key: str
    data: Any
    metadata: EntryMetadata = field(default=None)

    @classmethod
    def create(cls, key: str, data: Any, priority: Priority, timestamp_ms: int) -> 'CacheEntry':
        """Build a new entry with fresh metadata."""
        return cls(key=key, data=data, metadata=EntryMetadata.create(priority, timestamp_ms))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the entry into the shape stored in the backing store.

        Returns:
            Dictionary with "data" and "metadata" fields
        """
        return {"data": self.data, "metadata": self.metadata.to_dict()}

    @classmethod
    def from_dict(cls, key: str, stored: Optional[Dict[str, Any]]) -> Optional['CacheEntry']:
        """
        Rebuild an entry from its stored shape.

        Args:
            key: The cache key
            stored: Value read from the backing store

        Returns:
            The CacheEntry, or None if nothing was stored
        """
        if stored is None:
            return None
        return cls(
            key=key,
            data=stored.get("data"),
            metadata=EntryMetadata.from_dict(stored["metadata"])
        )
