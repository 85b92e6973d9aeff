import json
import pickle
from unittest.mock import MagicMock

import pytest
import redis

from adaptive_cache.common.cache import RedisStoreBackend, SerializationFormat
from adaptive_cache.common.exceptions import BackingStoreUnavailable


class TestRedisStoreBackend:
    """Test the RedisStoreBackend class."""

    @pytest.fixture
    def mock_redis(self):
        """Create a mock Redis client."""
        mock = MagicMock(spec=redis.Redis)
        mock.ping.return_value = True
        return mock

    @pytest.fixture
    def backend(self, mock_redis):
        """Create a RedisStoreBackend instance with a mock Redis client."""
        return RedisStoreBackend(redis_client=mock_redis, key_prefix="app:")

    def test_set_with_ttl(self, backend, mock_redis):
        value = {"data": 1, "metadata": {"usageCount": 0}}
        backend.set("todo::1", value, ttl=60)

        mock_redis.set.assert_called_with("app:todo::1", json.dumps(value).encode("utf-8"), ex=60)

    def test_set_without_ttl(self, backend, mock_redis):
        backend.set("key", "value")
        mock_redis.set.assert_called_with("app:key", b'"value"')

    def test_get(self, backend, mock_redis):
        mock_redis.get.return_value = b'{"data": [1, 2]}'

        assert backend.get("key") == {"data": [1, 2]}
        mock_redis.get.assert_called_with("app:key")

    def test_get_nonexistent(self, backend, mock_redis):
        mock_redis.get.return_value = None
        assert backend.get("missing") is None

    def test_json_falls_back_to_pickle(self, backend, mock_redis):
        value = {1, 2, 3}
        backend.set("key", value)

        stored = mock_redis.set.call_args[0][1]
        assert stored == pickle.dumps(value)

        mock_redis.get.return_value = stored
        assert backend.get("key") == value

    def test_pickle_serialization(self, mock_redis):
        backend = RedisStoreBackend(redis_client=mock_redis, serialization=SerializationFormat.PICKLE)
        backend.set("key", ("a", 1))
        mock_redis.set.assert_called_with("key", pickle.dumps(("a", 1)))

    def test_delete_and_exists(self, backend, mock_redis):
        mock_redis.delete.return_value = 1
        mock_redis.exists.return_value = 0

        assert backend.delete("key") is True
        assert backend.exists("key") is False
        mock_redis.delete.assert_called_with("app:key")

    def test_set_if_absent(self, backend, mock_redis):
        mock_redis.set.return_value = True
        assert backend.set_if_absent("key:lock", "1", 10)
        mock_redis.set.assert_called_with("app:key:lock", b'"1"', nx=True, ex=10)

        # redis-py returns None when NX prevents the write
        mock_redis.set.return_value = None
        assert not backend.set_if_absent("key:lock", "1", 10)

    def test_delete_if_equals(self, backend, mock_redis):
        mock_redis.eval.return_value = 1
        assert backend.delete_if_equals("key:lock", "token")

        script, numkeys, key, value = mock_redis.eval.call_args[0]
        assert "redis.call(\"del\", KEYS[1])" in script
        assert (numkeys, key, value) == (1, "app:key:lock", b'"token"')

        mock_redis.eval.return_value = 0
        assert not backend.delete_if_equals("key:lock", "token")

    def test_index_operations(self, backend, mock_redis):
        backend.index_upsert("expirationTimes", "todo::1", 1234)
        mock_redis.zadd.assert_called_with("app:expirationTimes", {"todo::1": 1234})

        mock_redis.zrangebyscore.return_value = [(b"todo::1", 1234.0), (b"todo::2", 1300.0)]
        result = backend.index_range_by_score("expirationTimes", float("-inf"), 2000, with_scores=True)
        assert result == [("todo::1", 1234.0), ("todo::2", 1300.0)]
        mock_redis.zrangebyscore.assert_called_with(
            "app:expirationTimes", float("-inf"), 2000, withscores=True
        )

        mock_redis.zrangebyscore.return_value = [b"todo::1"]
        assert backend.index_range_by_score("expirationTimes", 0, 10) == ["todo::1"]

        mock_redis.zremrangebyscore.return_value = 3
        assert backend.index_remove_range_by_score("expirationTimes", float("-inf"), 100) == 3

        mock_redis.zscore.return_value = None
        assert backend.index_score("expirationTimes", "missing") is None

        mock_redis.zcard.return_value = 7
        assert backend.index_count("expirationTimes") == 7

    def test_used_memory_from_info(self, backend, mock_redis):
        mock_redis.info.return_value = {"used_memory": 123456, "used_memory_human": "120.56K"}

        assert backend.used_memory_bytes() == 123456
        mock_redis.info.assert_called_with("memory")

    def test_memory_usage(self, backend, mock_redis):
        mock_redis.memory_usage.return_value = 88
        assert backend.memory_usage("key") == 88
        mock_redis.memory_usage.assert_called_with("app:key")

        mock_redis.memory_usage.return_value = None
        assert backend.memory_usage("missing") == 0

    def test_errors_are_wrapped(self, backend, mock_redis):
        error = redis.ConnectionError("connection refused")
        mock_redis.get.side_effect = error

        with pytest.raises(BackingStoreUnavailable) as exc_info:
            backend.get("key")

        assert exc_info.value.operation == "get"
        assert exc_info.value.original_exception is error
        assert exc_info.value.__cause__ is error

    def test_index_errors_are_wrapped(self, backend, mock_redis):
        mock_redis.zadd.side_effect = redis.TimeoutError("timeout")

        with pytest.raises(BackingStoreUnavailable):
            backend.index_upsert("idx", "key", 1)
