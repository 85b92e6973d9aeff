"""
Background cache maintenance.

The eviction cycle, the Celery task that runs it, and the registry and
beat schedule the worker uses to run that task periodically.
"""

from adaptive_cache.common.tasks.config import MAINTENANCE_QUEUE, TaskConfig, get_task_config, load_config_from_env
from adaptive_cache.common.tasks.eviction import EvictionOutcome, EvictionReport, EvictionScheduler
from adaptive_cache.common.tasks.registry import TaskDefinition, TaskRegistry, get_registry, task
from adaptive_cache.common.tasks.scheduler import TaskScheduler
from adaptive_cache.common.tasks.predefined import EVICT_CACHE_TASK, evict_cache

__all__ = [
    'MAINTENANCE_QUEUE',
    'TaskConfig',
    'get_task_config',
    'load_config_from_env',
    'EvictionOutcome',
    'EvictionReport',
    'EvictionScheduler',
    'TaskDefinition',
    'TaskRegistry',
    'get_registry',
    'task',
    'TaskScheduler',
    'EVICT_CACHE_TASK',
    'evict_cache',
]
