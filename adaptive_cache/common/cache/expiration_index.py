"""
Expiration Index Module

A sorted index mapping each live cache key to its absolute expiry time
(epoch seconds). It mirrors the cache entries so eviction can scan keys in
earliest-expiring-first order without touching the entries themselves.
"""

from typing import List, Optional, Union

from .base import ScoredMember, StoreBackend

DEFAULT_INDEX_NAME = "expirationTimes"

NEG_INF = float("-inf")
POS_INF = float("inf")


class ExpirationIndex:
    """
    Thin wrapper over the store's sorted index primitive.

    Range queries return list snapshots; callers that delete while walking
    the index always iterate over a snapshot, never over live state.
    """

    def __init__(self, store: StoreBackend, name: str = DEFAULT_INDEX_NAME):
        self.store = store
        self.name = name

    def upsert(self, key: str, expires_at: float) -> None:
        """Record or replace the expiry of a key (one record per key)."""
        self.store.index_upsert(self.name, key, expires_at)

    def remove(self, key: str) -> bool:
        return self.store.index_remove(self.name, key)

    def range_by_score(
        self,
        low: float = NEG_INF,
        high: float = POS_INF,
        with_scores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        """
        Get keys expiring between low and high, earliest first.

        Args:
            low: Lowest expiry (inclusive)
            high: Highest expiry (inclusive)
            with_scores: Return (key, expires_at) pairs

        Returns:
            Snapshot list in ascending expiry order
        """
        return list(self.store.index_range_by_score(self.name, low, high, with_scores=with_scores))

    def remove_range_by_score(self, low: float, high: float) -> int:
        return self.store.index_remove_range_by_score(self.name, low, high)

    def score(self, key: str) -> Optional[float]:
        return self.store.index_score(self.name, key)

    def count(self) -> int:
        return self.store.index_count(self.name)
