import datetime

from adaptive_cache.common.config import AppConfig, EvictionConfig
from adaptive_cache.common.tasks import (
    EVICT_CACHE_TASK,
    MAINTENANCE_QUEUE,
    TaskConfig,
    TaskRegistry,
    TaskScheduler,
    evict_cache,
    get_registry,
    load_config_from_env,
)

MEMORY_BROKER = TaskConfig(broker_url="memory://", result_backend="cache+memory://")


class TestTaskConfig:
    """Test task configuration."""

    def test_defaults(self):
        config = TaskConfig()
        assert config.broker_url.startswith("redis://")
        assert config.to_celery_config()["task_serializer"] == "json"

    def test_load_from_env(self):
        config = load_config_from_env({
            "TASK_BROKER_URL": "redis://broker:6379/2",
            "TASK_WORKER_CONCURRENCY": "4",
            "TASK_ENABLE_UTC": "false",
            "TASK_ACCEPT_CONTENT": "json, msgpack",
        })

        assert config.broker_url == "redis://broker:6379/2"
        assert config.worker_concurrency == 4
        assert config.enable_utc is False
        assert config.accept_content == ["json", "msgpack"]

    def test_additional_options(self):
        config = TaskConfig(additional_options={"task_acks_late": True})
        assert config.to_celery_config()["task_acks_late"] is True

    def test_declares_maintenance_queue(self):
        celery_config = TaskConfig().to_celery_config()

        assert celery_config["task_default_queue"] == "celery"
        assert set(celery_config["task_queues"]) == {"celery", MAINTENANCE_QUEUE}

    def test_queues_from_env(self):
        config = load_config_from_env({"TASK_QUEUES": "celery, maintenance, bulk"})
        assert list(config.task_queues) == ["celery", "maintenance", "bulk"]
        assert config.task_queues["bulk"] == {"exchange": "bulk", "routing_key": "bulk"}


class TestTaskRegistry:
    """Test the task registry."""

    def test_evict_cache_is_registered(self):
        task_def = get_registry().get_task(EVICT_CACHE_TASK)

        assert task_def is not None
        assert task_def.func is evict_cache
        assert task_def.queue == "maintenance"
        assert "strict" in task_def.parameters
        assert task_def.parameters["strict"]["default"] is False

    def test_register_default_name(self):
        registry = TaskRegistry()

        def sample(x, y=1):
            """Add numbers."""
            return x + y

        task_def = registry.register_task(sample)
        assert task_def.name == f"{__name__}.sample"
        assert task_def.description == "Add numbers."
        assert task_def.to_dict()["parameters"]["x"]["required"] is True

    def test_bind_to_celery(self):
        registry = TaskRegistry()

        def answer():
            return 42

        registry.register_task(answer, name="tests.answer")

        scheduler = TaskScheduler(app_name="test", config=MEMORY_BROKER)
        registry.set_celery_app(scheduler.celery_app)

        assert "tests.answer" in scheduler.celery_app.tasks
        assert registry.get_task("tests.answer").celery_task is not None


class TestTaskScheduler:
    """Test the beat schedule management."""

    def test_schedule_periodic_task(self):
        scheduler = TaskScheduler(app_name="test", config=MEMORY_BROKER)
        entry_id = scheduler.schedule_periodic_task(EVICT_CACHE_TASK, 600, task_id="evict-cache")

        assert entry_id == "evict-cache"
        entry = scheduler.celery_app.conf.beat_schedule["evict-cache"]
        assert entry["task"] == EVICT_CACHE_TASK
        assert entry["schedule"].run_every == datetime.timedelta(seconds=600)

        scheduled = scheduler.get_scheduled_tasks()
        assert scheduled == [{
            "id": "evict-cache",
            "task": EVICT_CACHE_TASK,
            "schedule": "every 0:10:00",
            "args": (),
            "kwargs": {},
        }]


class TestEvictCacheTask:
    """Test the eviction task against the default cache service."""

    def test_runs_one_cycle(self, default_service):
        default_service.cache("key", "value")

        result = evict_cache()

        assert result["outcome"] == "no_action"
        assert result["cache_size_bytes"] > 0
        assert default_service.get_value("key") == "value"


class TestWorker:
    """Test the Celery worker application."""

    def test_create_app(self):
        from adaptive_cache.worker import create_app

        app_config = AppConfig(app_name="cache-worker",
                               eviction=EvictionConfig(scheduler_interval_seconds=120))
        app = create_app(app_config, MEMORY_BROKER)

        assert app.main == "cache-worker"
        assert EVICT_CACHE_TASK in app.tasks
        assert app.conf.beat_schedule["evict-cache"]["schedule"].run_every == datetime.timedelta(seconds=120)

    def test_eviction_task_routed_to_consumed_queue(self):
        from adaptive_cache.worker import create_app

        app = create_app(AppConfig(), MEMORY_BROKER)
        evict_task = app.tasks[EVICT_CACHE_TASK]

        route = app.amqp.router.route({"queue": evict_task.queue}, EVICT_CACHE_TASK)

        # A worker without -Q consumes every declared queue
        assert route["queue"].name == MAINTENANCE_QUEUE
        assert MAINTENANCE_QUEUE in app.amqp.queues
        assert app.conf.task_default_queue in app.amqp.queues
