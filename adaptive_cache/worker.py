"""
Celery worker entry point.

Builds the Celery application, binds the registered tasks to it, and
schedules the eviction cycle every ``eviction.scheduler_interval_seconds``.

Run a worker with an embedded beat scheduler:

    celery -A adaptive_cache.worker worker -B

Without ``-Q`` the worker consumes every declared queue, including the
maintenance queue the eviction task is routed to.
"""

import logging
from typing import Optional

from celery import Celery
from celery.signals import beat_init, task_failure, worker_init

from adaptive_cache.common.config import AppConfig, get_config
from adaptive_cache.common.logger import get_app_logger
from adaptive_cache.common.tasks import EVICT_CACHE_TASK, TaskConfig, TaskScheduler, get_registry

logger = logging.getLogger(__name__)


def create_app(app_config: Optional[AppConfig] = None, task_config: Optional[TaskConfig] = None) -> Celery:
    """
    Create the Celery application for the cache worker.

    Args:
        app_config: Application configuration (if None, uses the global config)
        task_config: Task configuration (if None, uses the global task config)

    Returns:
        The configured Celery application
    """
    app_config = app_config or get_config()

    scheduler = TaskScheduler(app_name=app_config.app_name, config=task_config)
    get_registry().set_celery_app(scheduler.celery_app)
    scheduler.schedule_periodic_task(
        EVICT_CACHE_TASK,
        schedule=app_config.eviction.scheduler_interval_seconds,
        task_id="evict-cache"
    )
    return scheduler.celery_app


@worker_init.connect
def on_worker_init(sender, **kwargs):
    get_app_logger()
    logger.info(f"Worker initialized: {sender}")


@beat_init.connect
def on_beat_init(sender, **kwargs):
    logger.info(f"Beat scheduler initialized: {sender}")


@task_failure.connect
def on_task_failure(sender, task_id, exception, traceback, **kwargs):
    logger.error(f"Task failed: {sender.name} [{task_id}] -> {exception}")


app = create_app()
