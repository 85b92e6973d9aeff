"""
Cache Engine Exceptions

Everything raised by the cache engine derives from CacheEngineError.
Store and lock failures are CacheError subclasses so callers can catch
them together; configuration and lookup failures stand on their own.
"""

from typing import Optional, Any


class CacheEngineError(Exception):
    """Root of the package's exception tree."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class CacheError(CacheEngineError):
    """A cache operation could not be completed."""


class ContentionError(CacheError):
    """
    The per-key adaptation lock stayed taken through every retry.

    Attributes:
        key: Cache key whose ``<key>:lock`` record could not be written
        attempts: How many times acquisition was tried
    """

    def __init__(self, key: str, attempts: int):
        super().__init__(f"Lock for '{key}' still held after {attempts} attempts")
        self.key = key
        self.attempts = attempts


class BackingStoreUnavailable(CacheError):
    """
    The key-value store rejected or failed a request.

    Wraps the client exception so callers never depend on redis-py's
    exception types.
    """

    def __init__(self, operation: str, original_exception: Optional[Exception] = None):
        reason = f" ({original_exception})" if original_exception else ""
        super().__init__(f"Store operation '{operation}' failed{reason}", original_exception)
        self.operation = operation


class UnresolvedPressureError(CacheError):
    # Only raised by EvictionScheduler.run_cycle(strict=True)
    def __init__(self, report: Any):
        super().__init__(
            f"Memory usage still at {report.usage_after_pct:.1f}% "
            f"after {report.evicted} evictions"
        )
        self.report = report


class ConfigurationError(CacheEngineError):
    """Settings failed validation while loading."""


class NotFoundError(CacheEngineError):
    """A requested record does not exist."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(f"{resource_type} {resource_id} does not exist")
        self.resource_type = resource_type
        self.resource_id = resource_id
