"""
Celery application and beat schedule for cache maintenance.

Building a TaskScheduler creates the Celery app from a TaskConfig but
does not contact the broker; that happens when a worker or beat process
starts.
"""

import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from celery import Celery
from celery.schedules import crontab
from celery.schedules import schedule as interval_schedule

from adaptive_cache.common.tasks.config import TaskConfig, get_task_config

logger = logging.getLogger(__name__)

Schedule = Union[int, float, crontab]


def _describe(schedule: Any) -> str:
    run_every = getattr(schedule, 'run_every', None)
    return f"every {run_every}" if run_every is not None else str(schedule)


class TaskScheduler:
    """Owns the Celery app and its periodic (beat) entries."""

    def __init__(self, app_name: str = "adaptive_cache", config: Optional[TaskConfig] = None):
        self.app_name = app_name
        self.config = config or get_task_config()

        self._celery_app = Celery(app_name, broker=self.config.broker_url, backend=self.config.result_backend)
        self._celery_app.conf.update(self.config.to_celery_config())
        logger.info(f"Celery app {app_name} uses broker {self.config.broker_url}")

    @property
    def celery_app(self) -> Celery:
        return self._celery_app

    def schedule_periodic_task(
        self,
        task_name: str,
        schedule: Schedule,
        args: Optional[Tuple] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        task_id: Optional[str] = None
    ) -> str:
        """
        Run ``task_name`` periodically.

        Args:
            task_name: Registered task name
            schedule: Seconds between runs, or a crontab
            args: Positional task arguments
            kwargs: Keyword task arguments
            task_id: Beat entry name (defaults to the task name)

        Returns:
            The beat entry name
        """
        entry_name = task_id or task_name
        if not isinstance(schedule, crontab):
            schedule = interval_schedule(datetime.timedelta(seconds=schedule))

        entries = dict(self._celery_app.conf.beat_schedule or {})
        entries[entry_name] = {
            'task': task_name,
            'schedule': schedule,
            'args': tuple(args or ()),
            'kwargs': dict(kwargs or {}),
        }
        self._celery_app.conf.beat_schedule = entries

        logger.info(f"Beat entry {entry_name} runs {task_name} {_describe(schedule)}")
        return entry_name

    def get_scheduled_tasks(self) -> List[Dict[str, Any]]:
        """Beat entries with their schedules rendered as text."""
        return [
            {
                'id': entry_name,
                'task': entry['task'],
                'schedule': _describe(entry['schedule']),
                'args': entry.get('args', ()),
                'kwargs': entry.get('kwargs', {}),
            }
            for entry_name, entry in (self._celery_app.conf.beat_schedule or {}).items()
        ]
