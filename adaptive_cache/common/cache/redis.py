"""
Redis implementation of the store interface.

Entries are plain string keys written with SET EX, locks use SET NX EX,
the expiration index is a sorted set, and memory usage comes from
INFO memory. Every RedisError is logged and re-raised as
BackingStoreUnavailable so an outage never looks like a cache miss.
"""

import json
import logging
import pickle
from typing import Any, List, Optional, Union

import redis
from redis.exceptions import RedisError

from adaptive_cache.common.exceptions import BackingStoreUnavailable
from adaptive_cache.common.redis import get_redis_client

from .base import ScoredMember, SerializationFormat, StoreBackend

logger = logging.getLogger(__name__)

# GET and DEL in one server-side step so a lock is only released by its owner
DELETE_IF_EQUALS_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class RedisStoreBackend(StoreBackend):
    """
    Store backed by a shared Redis server.

    Args:
        redis_client: Client to use; the process-wide client when omitted
        key_prefix: Prepended to every key and index name
        serialization: JSON (with pickle fallback for non-JSON values) or PICKLE
        name: Backend name reported in logs
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        key_prefix: str = "",
        serialization: SerializationFormat = SerializationFormat.JSON,
        name: str = "redis"
    ):
        self._redis = redis_client if redis_client is not None else get_redis_client()
        self._key_prefix = key_prefix
        self._serialization = SerializationFormat(serialization)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _build_key(self, key: str) -> str:
        return self._key_prefix + key

    @staticmethod
    def _decode_member(member: Union[bytes, str]) -> str:
        return member.decode("utf-8") if isinstance(member, bytes) else member

    def _serialize(self, value: Any) -> bytes:
        if self._serialization == SerializationFormat.PICKLE:
            return pickle.dumps(value)
        try:
            return json.dumps(value).encode('utf-8')
        except (TypeError, ValueError) as e:
            logger.warning(f"Value is not JSON serializable, storing it pickled: {e}")
            return pickle.dumps(value)

    def _deserialize(self, data: Optional[bytes]) -> Any:
        if data is None:
            return None
        if self._serialization == SerializationFormat.PICKLE:
            return pickle.loads(data)
        try:
            return json.loads(data.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError):
            # written by the pickle fallback above
            return pickle.loads(data)

    def _fail(self, operation: str, error: RedisError) -> BackingStoreUnavailable:
        logger.error(f"Redis error in {operation}: {error}")
        return BackingStoreUnavailable(operation, error)

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._redis.get(self._build_key(key))
        except RedisError as e:
            raise self._fail("get", e) from e
        return self._deserialize(data)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        data = self._serialize(value)
        try:
            if ttl is not None and ttl > 0:
                self._redis.set(self._build_key(key), data, ex=ttl)
            else:
                self._redis.set(self._build_key(key), data)
        except RedisError as e:
            raise self._fail("set", e) from e

    def delete(self, key: str) -> bool:
        try:
            return bool(self._redis.delete(self._build_key(key)))
        except RedisError as e:
            raise self._fail("delete", e) from e

    def exists(self, key: str) -> bool:
        try:
            return bool(self._redis.exists(self._build_key(key)))
        except RedisError as e:
            raise self._fail("exists", e) from e

    def expire(self, key: str, ttl: int) -> bool:
        try:
            return bool(self._redis.expire(self._build_key(key), ttl))
        except RedisError as e:
            raise self._fail("expire", e) from e

    def set_if_absent(self, key: str, value: Any, ttl: int) -> bool:
        try:
            return bool(self._redis.set(self._build_key(key), self._serialize(value), nx=True, ex=ttl))
        except RedisError as e:
            raise self._fail("set_if_absent", e) from e

    def delete_if_equals(self, key: str, value: Any) -> bool:
        try:
            deleted = self._redis.eval(
                DELETE_IF_EQUALS_SCRIPT, 1, self._build_key(key), self._serialize(value)
            )
        except RedisError as e:
            raise self._fail("delete_if_equals", e) from e
        return bool(deleted)

    def index_upsert(self, index: str, member: str, score: float) -> None:
        try:
            self._redis.zadd(self._build_key(index), {member: score})
        except RedisError as e:
            raise self._fail("index_upsert", e) from e

    def index_remove(self, index: str, member: str) -> bool:
        try:
            return bool(self._redis.zrem(self._build_key(index), member))
        except RedisError as e:
            raise self._fail("index_remove", e) from e

    def index_range_by_score(
        self,
        index: str,
        low: float,
        high: float,
        with_scores: bool = False
    ) -> Union[List[str], List[ScoredMember]]:
        try:
            result = self._redis.zrangebyscore(
                self._build_key(index), low, high, withscores=with_scores
            )
        except RedisError as e:
            raise self._fail("index_range_by_score", e) from e

        if with_scores:
            return [(self._decode_member(member), float(score)) for member, score in result]
        return [self._decode_member(member) for member in result]

    def index_remove_range_by_score(self, index: str, low: float, high: float) -> int:
        try:
            return int(self._redis.zremrangebyscore(self._build_key(index), low, high))
        except RedisError as e:
            raise self._fail("index_remove_range_by_score", e) from e

    def index_score(self, index: str, member: str) -> Optional[float]:
        try:
            score = self._redis.zscore(self._build_key(index), member)
        except RedisError as e:
            raise self._fail("index_score", e) from e
        return float(score) if score is not None else None

    def index_count(self, index: str) -> int:
        try:
            return int(self._redis.zcard(self._build_key(index)))
        except RedisError as e:
            raise self._fail("index_count", e) from e

    def used_memory_bytes(self) -> int:
        """
        Read ``used_memory`` from the Redis INFO memory section.

        Returns:
            Bytes of memory used by the Redis server
        """
        try:
            info = self._redis.info("memory")
        except RedisError as e:
            raise self._fail("used_memory_bytes", e) from e
        return int(info.get("used_memory", 0))

    def memory_usage(self, key: str) -> int:
        try:
            usage = self._redis.memory_usage(self._build_key(key))
        except RedisError as e:
            raise self._fail("memory_usage", e) from e
        return int(usage or 0)
