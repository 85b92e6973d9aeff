"""
Adaptive TTL Policy

This module computes entry TTLs: a base TTL derived from the entry's
priority tier, and an adapted TTL that grows with how densely the entry is
re-cached, bounded by a global ceiling.
"""

import logging

from adaptive_cache.common.config import CacheConfig

from .base import Priority
from .entry import EntryMetadata

# Module logger
logger = logging.getLogger(__name__)

# Base TTL multiplier per priority tier
PRIORITY_MULTIPLIERS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


class TTLPolicy:
    """
    Frequency-based TTL calculation.

    The access frequency ratio blends the long-run access density of an
    entry with the density implied by the gap since its last adaptation:

        recent  = 1 / recent_gap
        overall = (usage_count + 1) / elapsed
        ratio   = (overall * w_overall + recent * w_recent) / 2

    and the new TTL is base_ttl(priority) * (ratio + 1), capped at max_ttl.
    Gaps are measured in whole seconds, so two adaptations inside the same
    second give a zero gap, for which the frequency is undefined; it is
    then taken to be max_access_frequency, a ceiling high enough that a
    same-second re-cache reaches max_ttl. Non-zero gaps use the exact
    quotient.
    """

    def __init__(
        self,
        initial_ttl: int = 3600,
        max_ttl: int = 10800,
        recent_weight: float = 0.5,
        overall_weight: float = 0.5,
        max_access_frequency: float = 1000.0
    ):
        """
        Initialize the policy.

        Args:
            initial_ttl: TTL unit in seconds for the LOW tier
            max_ttl: Ceiling applied to every adapted TTL, in seconds
            recent_weight: Weight of the recent access frequency
            overall_weight: Weight of the overall access frequency
            max_access_frequency: Frequency used for a zero-second gap, in accesses per second
        """
        self.initial_ttl = initial_ttl
        self.max_ttl = max_ttl
        self.recent_weight = recent_weight
        self.overall_weight = overall_weight
        self.max_access_frequency = max_access_frequency

    @classmethod
    def from_config(cls, cache_config: CacheConfig) -> 'TTLPolicy':
        """Build a policy from the cache configuration section."""
        return cls(
            initial_ttl=cache_config.initial_ttl_seconds,
            max_ttl=cache_config.max_ttl_seconds,
            recent_weight=cache_config.recent_frequency_weight,
            overall_weight=cache_config.overall_frequency_weight,
            max_access_frequency=cache_config.max_access_frequency,
        )

    def base_ttl(self, priority: Priority) -> int:
        """
        Get the base TTL for a priority tier.

        Args:
            priority: Priority tier

        Returns:
            TTL in seconds (LOW=T, MEDIUM=2T, HIGH=3T)
        """
        return self.initial_ttl * PRIORITY_MULTIPLIERS.get(Priority(priority), 1)

    def _frequency(self, events: int, seconds: int) -> float:
        if seconds <= 0:
            return self.max_access_frequency
        return events / seconds

    def access_frequency_ratio(self, metadata: EntryMetadata, now_ms: int) -> float:
        """
        Calculate the access frequency ratio of an entry.

        Args:
            metadata: Entry metadata before this adaptation
            now_ms: Current time in epoch millis

        Returns:
            Non-negative frequency ratio
        """
        elapsed = (now_ms - metadata.initial_access_time) // 1000
        recent_gap = (now_ms - metadata.last_access_time) // 1000

        if recent_gap <= 0:
            logger.debug(
                f"Zero access gap, using recent frequency {self.max_access_frequency}"
            )

        recent_frequency = self._frequency(1, recent_gap)
        overall_frequency = self._frequency(metadata.usage_count + 1, elapsed)

        return (overall_frequency * self.overall_weight
                + recent_frequency * self.recent_weight) / 2

    def adapted_ttl(self, ratio: float, priority: Priority) -> int:
        """
        Calculate the TTL for an entry from its frequency ratio.

        Args:
            ratio: Access frequency ratio (negative values are treated as 0)
            priority: Priority tier of the entry

        Returns:
            TTL in seconds, never above max_ttl
        """
        extended = int(self.base_ttl(priority) * (max(ratio, 0.0) + 1))
        return min(extended, self.max_ttl)

    def next_ttl(self, metadata: EntryMetadata, now_ms: int) -> int:
        """Ratio and adapted TTL in one step."""
        return self.adapted_ttl(self.access_frequency_ratio(metadata, now_ms), metadata.priority)
