"""
Cache Eviction Module

This module implements the threshold-driven eviction cycle run periodically
against the cache. A cycle first sweeps index records whose entries already
expired, then, only when memory usage crosses the eviction threshold,
escalates through two phases:

1. Light eviction: drop entries that would expire within the grace window.
2. Deep eviction: drop the earliest-expiring entries in batches of 10%, 20%,
   ... of the index until usage falls to the safe threshold.
"""

import enum
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from adaptive_cache.common.cache import DynamicTTLCacheService, ExpirationIndex
from adaptive_cache.common.cache.expiration_index import NEG_INF
from adaptive_cache.common.config import AppConfig, EvictionConfig, get_config
from adaptive_cache.common.exceptions import UnresolvedPressureError
from adaptive_cache.common.logger import log_execution_time

# Set up logging
logger = logging.getLogger(__name__)


class EvictionOutcome(enum.Enum):
    """Terminal state of an eviction cycle."""
    NO_ACTION = "no_action"
    LIGHT_EVICTION = "light_eviction"
    DEEP_EVICTION = "deep_eviction"
    UNRESOLVED_PRESSURE = "unresolved_pressure"


@dataclass
class EvictionReport:
    """
    Summary of one eviction cycle.

    Attributes:
        outcome: Terminal state reached
        usage_before_pct: Memory usage when the cycle started
        usage_after_pct: Memory usage when the cycle ended
        swept: Index records removed because their entries had already expired
        light_evicted: Entries removed by light eviction
        deep_evicted: Entries removed by deep eviction
        final_batch_pct: Last deep eviction batch size, in percent of the index
        cache_size_bytes: Footprint of the indexed entries after the cycle
    """
    outcome: EvictionOutcome = EvictionOutcome.NO_ACTION
    usage_before_pct: float = 0.0
    usage_after_pct: float = 0.0
    swept: int = 0
    light_evicted: int = 0
    deep_evicted: int = 0
    final_batch_pct: Optional[int] = None
    cache_size_bytes: Optional[int] = None
    started_at: float = field(default_factory=time.time)

    @property
    def evicted(self) -> int:
        return self.light_evicted + self.deep_evicted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "usage_before_pct": round(self.usage_before_pct, 2),
            "usage_after_pct": round(self.usage_after_pct, 2),
            "swept": self.swept,
            "light_evicted": self.light_evicted,
            "deep_evicted": self.deep_evicted,
            "final_batch_pct": self.final_batch_pct,
            "cache_size_bytes": self.cache_size_bytes,
            "started_at": self.started_at,
        }


class EvictionScheduler:
    """
    Runs eviction cycles against a cache service.

    The scheduler takes no locks: it only deletes whole entries, which is
    safe to interleave with TTL adaptations of the same keys.
    """

    def __init__(
        self,
        cache_service: DynamicTTLCacheService,
        max_memory_bytes: int,
        eviction_threshold_pct: float = 85,
        safe_threshold_pct: float = 60,
        grace_window_seconds: int = 600,
        batch_step_pct: int = 10,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the eviction scheduler.

        Args:
            cache_service: Cache whose entries are evicted
            max_memory_bytes: Capacity used to compute usage percentages
            eviction_threshold_pct: Usage at or above which eviction starts
            safe_threshold_pct: Usage eviction tries to get back under
            grace_window_seconds: Remaining TTL below which light eviction drops an entry
            batch_step_pct: Deep eviction batch size and its increment
            clock: Time source in epoch seconds
        """
        self.cache_service = cache_service
        self.store = cache_service.store
        self.index: ExpirationIndex = cache_service.index
        self.max_memory_bytes = max_memory_bytes
        self.eviction_threshold_pct = eviction_threshold_pct
        self.safe_threshold_pct = safe_threshold_pct
        self.grace_window_seconds = grace_window_seconds
        self.batch_step_pct = batch_step_pct
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        cache_service: DynamicTTLCacheService,
        app_config: Optional[AppConfig] = None,
        **kwargs
    ) -> 'EvictionScheduler':
        """Build a scheduler from the eviction configuration section."""
        eviction: EvictionConfig = (app_config or get_config()).eviction
        return cls(
            cache_service=cache_service,
            max_memory_bytes=eviction.max_memory_bytes,
            eviction_threshold_pct=eviction.eviction_threshold_pct,
            safe_threshold_pct=eviction.safe_threshold_pct,
            grace_window_seconds=eviction.grace_window_seconds,
            batch_step_pct=eviction.batch_step_pct,
            **kwargs
        )

    def usage_pct(self) -> float:
        """Current memory usage as a percentage of max_memory_bytes."""
        return self.store.used_memory_bytes() / self.max_memory_bytes * 100

    def calculate_current_cache_size(self) -> int:
        """
        Sum the memory used by every indexed entry.

        Compared with the store-wide usage this shows how much of the
        store's memory the cache itself accounts for.

        Returns:
            Total bytes used by indexed entries
        """
        return sum(self.store.memory_usage(key) for key in self.index.range_by_score())

    def sweep_expired(self) -> int:
        """
        Remove index records whose entries have already expired.

        Returns:
            Number of records removed
        """
        return self.index.remove_range_by_score(NEG_INF, self._clock())

    def evict_expiring(self) -> int:
        """
        Light eviction: drop entries with less than the grace window left.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        evicted = 0
        for key, expires_at in self.index.range_by_score(with_scores=True):
            if expires_at - now < self.grace_window_seconds and self.cache_service.delete_value(key):
                evicted += 1
        return evicted

    def evict_to_target(self, report: EvictionReport) -> bool:
        """
        Deep eviction: drop earliest-expiring batches until usage is at target.

        Batches start at batch_step_pct percent of the index and grow by the
        same step after every batch that leaves usage above target. The index
        is re-read before each batch.

        Args:
            report: Report updated with deep_evicted and final_batch_pct

        Returns:
            True if usage reached the target, False if the ladder was exhausted
        """
        target_bytes = self.safe_threshold_pct / 100 * self.max_memory_bytes
        batch_pct = self.batch_step_pct

        while batch_pct <= 100:
            keys = self.index.range_by_score()
            if not keys:
                logger.warning("Expiration index is empty but memory is still above target")
                return False

            batch_size = math.ceil(len(keys) * batch_pct / 100)
            removed = sum(1 for key in keys[:batch_size] if self.cache_service.delete_value(key))
            report.deep_evicted += removed
            report.final_batch_pct = batch_pct
            logger.info(f"Deep eviction removed {removed} of {batch_size} entries ({batch_pct}% batch)")

            if self.store.used_memory_bytes() <= target_bytes:
                return True

            batch_pct += self.batch_step_pct

        return False

    @log_execution_time(logger)
    def run_cycle(self, strict: bool = False) -> EvictionReport:
        """
        Run one full eviction cycle.

        Args:
            strict: Raise UnresolvedPressureError instead of only reporting it

        Returns:
            Report describing what the cycle did

        Raises:
            UnresolvedPressureError: If strict and usage stays above the safe threshold
            BackingStoreUnavailable: If the backing store fails
        """
        report = EvictionReport(started_at=self._clock())
        report.swept = self.sweep_expired()

        usage = self.usage_pct()
        report.usage_before_pct = report.usage_after_pct = usage

        if usage < self.eviction_threshold_pct:
            logger.debug(f"Cache usage {usage:.1f}% below eviction threshold, nothing to do")
            return self._finish(report)

        logger.info(f"Cache usage {usage:.1f}% reached eviction threshold {self.eviction_threshold_pct}%")
        report.light_evicted = self.evict_expiring()
        report.outcome = EvictionOutcome.LIGHT_EVICTION

        usage = self.usage_pct()
        report.usage_after_pct = usage
        if usage < self.safe_threshold_pct:
            return self._finish(report)

        resolved = self.evict_to_target(report)
        report.usage_after_pct = self.usage_pct()
        report.outcome = EvictionOutcome.DEEP_EVICTION if resolved else EvictionOutcome.UNRESOLVED_PRESSURE
        self._finish(report)

        if not resolved and strict:
            raise UnresolvedPressureError(report)
        return report

    def _finish(self, report: EvictionReport) -> EvictionReport:
        report.cache_size_bytes = self.calculate_current_cache_size()

        if report.outcome == EvictionOutcome.UNRESOLVED_PRESSURE:
            logger.warning(
                f"Eviction could not reach safe threshold {self.safe_threshold_pct}%: "
                f"usage {report.usage_after_pct:.1f}% after evicting {report.evicted} entries",
                extra={"data": report.to_dict()}
            )
        elif report.outcome != EvictionOutcome.NO_ACTION:
            logger.info(
                f"Eviction cycle finished ({report.outcome.value}): usage "
                f"{report.usage_before_pct:.1f}% -> {report.usage_after_pct:.1f}%, "
                f"{report.evicted} entries evicted",
                extra={"data": report.to_dict()}
            )
        return report
