import unittest
from unittest.mock import patch

from redis.exceptions import ConnectionError as RedisConnectionError

from adaptive_cache.common import redis as redis_module
from adaptive_cache.common.config import RedisConfig


class TestRedisClient(unittest.TestCase):
    """Test the shared Redis client."""

    def setUp(self):
        redis_module.reset_redis_client()
        patcher = patch.object(redis_module.redis, "Redis")
        self.redis_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(redis_module.reset_redis_client)

    def test_settings(self):
        settings = redis_module.get_redis_settings(RedisConfig(host="cache", port=6380, db=3))

        self.assertEqual(settings["host"], "cache")
        self.assertEqual(settings["port"], 6380)
        self.assertEqual(settings["db"], 3)
        self.assertNotIn("ssl", settings)
        self.assertTrue(redis_module.get_redis_settings(RedisConfig(use_ssl=True))["ssl"])

    def test_client_is_shared(self):
        first = redis_module.get_redis_client(RedisConfig())
        second = redis_module.get_redis_client()

        self.assertIs(first, second)
        self.redis_cls.assert_called_once()
        first.ping.assert_called_once()

    def test_unreachable_server_is_not_raised(self):
        self.redis_cls.return_value.ping.side_effect = RedisConnectionError("refused")

        with self.assertLogs("adaptive_cache.common.redis", level="ERROR") as logs:
            client = redis_module.get_redis_client(RedisConfig())

        self.assertIs(client, self.redis_cls.return_value)
        self.assertIn("not reachable", logs.output[0])

    def test_reset_closes_client(self):
        client = redis_module.get_redis_client(RedisConfig())
        redis_module.reset_redis_client()

        client.close.assert_called_once()
        redis_module.get_redis_client(RedisConfig())
        self.assertEqual(self.redis_cls.call_count, 2)
