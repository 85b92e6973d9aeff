"""
Application Logger

Logging setup for the cache engine and its worker. Modules log through
``logging.getLogger(__name__)``; everything under the ``adaptive_cache``
logger is routed to the handlers installed here, as plain text or JSON
depending on the ``logging`` configuration section.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from adaptive_cache.common.config import LoggingConfig, get_config

# Default log format
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Parent of every module logger in the package
APP_LOGGER_NAME = "adaptive_cache"

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'configure_logger',
    'get_logger',
    'get_app_logger',
    'JsonFormatter',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    Render log records as one JSON object per line.

    Fields passed with ``extra=`` are added to the object, so eviction
    reports and store errors can be logged as structured data:

        logger.info("eviction finished", extra={"data": report.to_dict()})
    """

    def __init__(self, datefmt: Optional[str] = None, *, indent: Optional[int] = None):
        super().__init__(datefmt=datefmt)
        self.indent = indent

    def _extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        fields = {key: value for key, value in vars(record).items()
                  if key not in _RECORD_ATTRS and not key.startswith("_")}
        # extra={"data": {...}} is flattened into the top level
        if isinstance(fields.get("data"), dict):
            fields.update(fields.pop("data"))
        return fields

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
        }
        payload.update(self._extra_fields(record))

        if record.exc_info:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        return json.dumps(payload, indent=self.indent, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Install handlers on a logger, replacing any it already has.

    Args:
        name: Logger name
        level: Log level (name or number)
        use_json: Emit JSON lines instead of the text format
        log_file: Also write to this file (its directory is created)
        console_output: Write to stdout

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter() if use_json else logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)

    handlers = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            logging.getLogger(__name__).warning(f"Could not open log file {log_file}: {e}")

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str, parent: Optional[logging.Logger] = None) -> logging.Logger:
    """Get a logger, optionally as a child of ``parent``."""
    return parent.getChild(name) if parent else logging.getLogger(name)


def get_app_logger(logging_config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Get the package logger, configuring it on first use.

    Settings come from the ``logging`` configuration section, which reads
    LOG_LEVEL, LOG_JSON and LOG_FILE from the environment.

    Args:
        logging_config: Logging settings (if None, uses the global config)

    Returns:
        The ``adaptive_cache`` logger
    """
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger

    logging_config = logging_config or get_config().logging
    return configure_logger(
        name=APP_LOGGER_NAME,
        level=logging_config.level,
        use_json=logging_config.use_json,
        log_file=logging_config.file_path
    )


def log_execution_time(logger: Optional[logging.Logger] = None,
                       level: int = logging.DEBUG) -> Callable[[F], F]:
    """
    Decorator logging how long each call takes.

    Failures are logged at ERROR with their duration and re-raised.

    Args:
        logger: Logger to use (defaults to the package logger)
        level: Level for successful calls
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = logger or get_app_logger()
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(f"{func.__qualname__} failed after {time.perf_counter() - started:.3f}s: {e}")
                raise
            log.log(level, f"{func.__qualname__} executed in {time.perf_counter() - started:.3f}s")
            return result

        return wrapper
    return decorator
