import json
import logging
import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock

from adaptive_cache.common.logger import (
    APP_LOGGER_NAME,
    JsonFormatter,
    configure_logger,
    get_logger,
    log_execution_time,
)


class TestJsonFormatter(unittest.TestCase):
    """Test the JsonFormatter class."""

    def make_record(self, msg, args=(), exc_info=None, **extra):
        record = logging.LogRecord(
            name="adaptive_cache.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg=msg,
            args=args,
            exc_info=exc_info
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_format(self):
        output = JsonFormatter().format(self.make_record("usage at %d%%", (91,)))
        data = json.loads(output)

        self.assertEqual(data["message"], "usage at 91%")
        self.assertEqual(data["level"], "WARNING")
        self.assertEqual(data["name"], "adaptive_cache.test")
        self.assertIn("timestamp", data)

    def test_structured_data(self):
        record = self.make_record("eviction finished", data={"outcome": "light_eviction", "evicted": 3})
        data = json.loads(JsonFormatter().format(record))

        self.assertEqual(data["outcome"], "light_eviction")
        self.assertEqual(data["evicted"], 3)

    def test_exception(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = self.make_record("failed", exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))
        self.assertEqual(data["exception"]["type"], "ValueError")
        self.assertEqual(data["exception"]["message"], "bad value")


class TestLoggerSetup(unittest.TestCase):
    """Test logger configuration helpers."""

    def test_configure_logger(self):
        logger = configure_logger(name="adaptive_cache.test_configure", level="debug", use_json=True)

        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0].formatter, JsonFormatter)

        # Reconfiguring replaces handlers instead of stacking them
        configure_logger(name="adaptive_cache.test_configure")
        self.assertEqual(len(logger.handlers), 1)

    def test_configure_logger_with_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, "logs", "cache.log")
            logger = configure_logger(name="adaptive_cache.test_file", log_file=log_file,
                                      console_output=False)
            logger.info("written")
            for handler in logger.handlers:
                handler.close()
            logger.handlers = []

            with open(log_file) as f:
                self.assertIn("written", f.read())

    def test_get_logger_child(self):
        parent = logging.getLogger(APP_LOGGER_NAME)
        self.assertEqual(get_logger("cache", parent).name, "adaptive_cache.cache")
        self.assertEqual(get_logger("other").name, "other")


class TestLogExecutionTime(unittest.TestCase):
    """Test the log_execution_time decorator."""

    def test_logs_duration(self):
        logger = MagicMock()

        @log_execution_time(logger)
        def add(a, b):
            return a + b

        self.assertEqual(add(2, 3), 5)
        logger.log.assert_called_once()
        level, message = logger.log.call_args[0]
        self.assertEqual(level, logging.DEBUG)
        self.assertIn("add executed in", message)

    def test_custom_level(self):
        logger = MagicMock()

        @log_execution_time(logger, level=logging.INFO)
        def noop():
            return None

        noop()
        self.assertEqual(logger.log.call_args[0][0], logging.INFO)

    def test_logs_and_reraises_errors(self):
        logger = MagicMock()

        @log_execution_time(logger)
        def fail():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            fail()
        logger.error.assert_called_once()
        self.assertIn("boom", logger.error.call_args[0][0])
