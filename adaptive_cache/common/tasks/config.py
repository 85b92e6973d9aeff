"""
Worker settings.

Broker, result backend and serialization options for the Celery worker
that runs eviction cycles, read from ``TASK_*`` environment variables.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

# The worker talks to the same Redis server as the cache, on its own db
DEFAULT_BROKER_URL = "redis://localhost:6379/1"

DEFAULT_QUEUE = "celery"
# Queue the maintenance tasks are routed to
MAINTENANCE_QUEUE = "maintenance"


def declare_queues(names: List[str]) -> Dict[str, Dict[str, str]]:
    """Celery ``task_queues`` entries, each bound to a direct exchange of the same name."""
    return {name: {"exchange": name, "routing_key": name} for name in names}


@dataclass
class TaskConfig:
    """
    Celery settings for the eviction worker.

    A worker started without ``-Q`` consumes every queue in ``task_queues``,
    so the maintenance queue is declared by default. Anything in
    ``additional_options`` is passed to Celery untouched and wins over the
    named fields.
    """
    broker_url: str = DEFAULT_BROKER_URL
    result_backend: str = DEFAULT_BROKER_URL
    worker_concurrency: int = 1
    task_serializer: str = "json"
    result_serializer: str = "json"
    accept_content: List[str] = field(default_factory=lambda: ["json"])
    timezone: str = "UTC"
    enable_utc: bool = True
    task_default_queue: str = DEFAULT_QUEUE
    task_queues: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: declare_queues([DEFAULT_QUEUE, MAINTENANCE_QUEUE]))
    additional_options: Dict[str, Any] = field(default_factory=dict)

    def to_celery_config(self) -> Dict[str, Any]:
        settings = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "additional_options"}
        settings.update(self.additional_options)
        return settings


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# Environment variable -> (TaskConfig field, parser)
ENV_MAPPING: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "TASK_BROKER_URL": ("broker_url", str),
    "TASK_RESULT_BACKEND": ("result_backend", str),
    "TASK_WORKER_CONCURRENCY": ("worker_concurrency", int),
    "TASK_SERIALIZER": ("task_serializer", str),
    "TASK_RESULT_SERIALIZER": ("result_serializer", str),
    "TASK_ACCEPT_CONTENT": ("accept_content", _parse_list),
    "TASK_TIMEZONE": ("timezone", str),
    "TASK_ENABLE_UTC": ("enable_utc", _parse_bool),
    "TASK_QUEUES": ("task_queues", lambda value: declare_queues(_parse_list(value))),
}


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> TaskConfig:
    """Build a TaskConfig, overriding defaults with any ``TASK_*`` variables set."""
    environ = os.environ if environ is None else environ

    overrides = {}
    for env_var, (attr, parse) in ENV_MAPPING.items():
        if env_var in environ:
            overrides[attr] = parse(environ[env_var])
    return TaskConfig(**overrides)


_task_config: Optional[TaskConfig] = None


def get_task_config() -> TaskConfig:
    """Worker settings, read from the environment on first use."""
    global _task_config
    if _task_config is None:
        _task_config = load_config_from_env()
    return _task_config
