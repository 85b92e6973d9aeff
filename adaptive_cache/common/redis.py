"""
Shared Redis connection for the cache store.

One connection pool is built from the ``redis`` configuration section
and reused by every client the process asks for. The pool is created
lazily so importing the package never opens a socket.
"""

import logging
import threading
from typing import Any, Dict, Optional

import redis
from redis.exceptions import RedisError

from adaptive_cache.common.config import RedisConfig, get_config

logger = logging.getLogger(__name__)

_client: Optional[redis.Redis] = None
_client_lock = threading.Lock()


def get_redis_settings(redis_config: Optional[RedisConfig] = None) -> Dict[str, Any]:
    """Connection keyword arguments for ``redis.Redis`` (raw bytes, no decoding)."""
    cfg = redis_config or get_config().redis
    settings = dict(
        host=cfg.host,
        port=cfg.port,
        db=cfg.db,
        password=cfg.password,
        socket_connect_timeout=cfg.connection_timeout,
    )
    if cfg.use_ssl:
        settings["ssl"] = True
    return settings


def get_redis_client(redis_config: Optional[RedisConfig] = None) -> redis.Redis:
    """
    Return the process-wide Redis client.

    The first call builds it from ``redis_config`` (or the global config)
    and pings the server. An unreachable server is logged but not raised;
    store operations report it as BackingStoreUnavailable later.
    """
    global _client

    with _client_lock:
        if _client is not None:
            return _client

        settings = get_redis_settings(redis_config)
        client = redis.Redis(**settings)
        try:
            client.ping()
        except RedisError as e:
            logger.error(f"Redis at {settings['host']}:{settings['port']} is not reachable: {e}")
        else:
            logger.info(f"Cache store connected to {settings['host']}:{settings['port']}/{settings['db']}")

        _client = client
        return _client


def reset_redis_client() -> None:
    """Close the shared client; the next get_redis_client() reconnects."""
    global _client

    with _client_lock:
        client, _client = _client, None

    if client is None:
        return
    try:
        client.close()
    except RedisError as e:
        logger.warning(f"Ignoring error while closing Redis client: {e}")
