"""
Predefined Tasks Module

This module contains the maintenance tasks run by the worker.
"""

import logging
from typing import Any, Dict

from adaptive_cache.common.cache import get_cache_service
from adaptive_cache.common.tasks.config import MAINTENANCE_QUEUE
from adaptive_cache.common.tasks.eviction import EvictionScheduler
from adaptive_cache.common.tasks.registry import task

# Set up logging
logger = logging.getLogger(__name__)

EVICT_CACHE_TASK = "adaptive_cache.evict_cache"


# ---- Cache Maintenance Tasks ----

@task(
    name=EVICT_CACHE_TASK,
    queue=MAINTENANCE_QUEUE,
    tags=["cache", "maintenance"],
    description="Run one cache eviction cycle",
    max_retries=0,
    soft_time_limit=300
)
def evict_cache(strict: bool = False) -> Dict[str, Any]:
    """
    Run one eviction cycle against the default cache service.

    Args:
        strict: Fail the task when memory pressure cannot be resolved

    Returns:
        The eviction report as a dictionary
    """
    scheduler = EvictionScheduler.from_config(get_cache_service())
    report = scheduler.run_cycle(strict=strict)
    return report.to_dict()
