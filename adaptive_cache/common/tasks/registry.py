"""
Registry of worker tasks.

Maintenance tasks are declared with the ``@task`` decorator when their
module is imported and bound to Celery later, once the worker has built
its application. Functions stay plain callables, so the eviction cycle
can also be run inline.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from celery import Celery
from celery.app.task import Task as CeleryTask

logger = logging.getLogger(__name__)


def describe_parameters(func: Callable) -> Dict[str, Dict[str, Any]]:
    """Map each parameter of ``func`` to whether it is required and its default."""
    described = {}
    for param in inspect.signature(func).parameters.values():
        info = {'name': param.name, 'required': param.default is param.empty}
        if not info['required']:
            info['default'] = param.default
        described[param.name] = info
    return described


@dataclass
class TaskDefinition:
    """A task function plus the Celery options it is bound with."""
    name: str
    func: Callable
    description: Optional[str] = None
    queue: Optional[str] = None
    max_retries: Optional[int] = None
    soft_time_limit: Optional[int] = None
    hard_time_limit: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    celery_task: Optional[CeleryTask] = field(default=None, repr=False)

    def __post_init__(self):
        self.description = self.description or inspect.getdoc(self.func) or ''
        self.tags = list(self.tags or [])
        self.parameters = describe_parameters(self.func)

    def celery_options(self) -> Dict[str, Any]:
        options = dict(
            name=self.name,
            queue=self.queue,
            max_retries=self.max_retries,
            soft_time_limit=self.soft_time_limit,
            time_limit=self.hard_time_limit,
        )
        return {key: value for key, value in options.items() if value is not None}

    def register_with_celery(self, app: Celery) -> CeleryTask:
        """Bind the function to ``app`` and remember the resulting Celery task."""
        self.celery_task = app.task(**self.celery_options())(self.func)
        logger.debug(f"Bound task {self.name} to Celery app {app.main}")
        return self.celery_task

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'queue': self.queue,
            'parameters': self.parameters,
            'max_retries': self.max_retries,
            'soft_time_limit': self.soft_time_limit,
            'hard_time_limit': self.hard_time_limit,
            'tags': self.tags,
        }


class TaskRegistry:
    """
    Named task definitions, optionally bound to one Celery app.

    Tasks registered before ``set_celery_app`` are bound when it is
    called; tasks registered afterwards are bound straight away.
    """

    def __init__(self):
        self._tasks: Dict[str, TaskDefinition] = {}
        self._celery_app: Optional[Celery] = None

    def register_task(self, func: Callable, name: Optional[str] = None, **options) -> TaskDefinition:
        """
        Add ``func`` to the registry.

        Args:
            func: Task function
            name: Task name (defaults to ``<module>.<function>``)
            **options: Remaining TaskDefinition fields

        Returns:
            The new task definition
        """
        task_def = TaskDefinition(name=name or f"{func.__module__}.{func.__name__}", func=func, **options)
        self._tasks[task_def.name] = task_def

        if self._celery_app is not None:
            task_def.register_with_celery(self._celery_app)
        return task_def

    def get_task(self, name: str) -> Optional[TaskDefinition]:
        return self._tasks.get(name)

    def set_celery_app(self, app: Celery) -> None:
        self._celery_app = app
        for task_def in self._tasks.values():
            task_def.register_with_celery(app)
        logger.info(f"Bound {len(self._tasks)} registered tasks to Celery app {app.main}")


_registry: Optional[TaskRegistry] = None


def get_registry() -> TaskRegistry:
    """Process-wide registry used by the ``@task`` decorator."""
    global _registry
    if _registry is None:
        _registry = TaskRegistry()
    return _registry


def task(name: Optional[str] = None, **options) -> Callable[[Callable], Callable]:
    """
    Register the decorated function in the global registry.

    Accepts the TaskDefinition options (description, queue, max_retries,
    soft_time_limit, hard_time_limit, tags). The function is returned
    unchanged.
    """
    def decorator(func: Callable) -> Callable:
        get_registry().register_task(func, name=name, **options)
        return func

    return decorator
