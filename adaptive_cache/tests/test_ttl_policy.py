import unittest

import pytest

from adaptive_cache.common.cache import EntryMetadata, Priority, TTLPolicy
from adaptive_cache.common.config import CacheConfig

START_MS = 1_700_000_000_000


def metadata_at(priority=Priority.MEDIUM, usage_count=0, last_offset_ms=0):
    metadata = EntryMetadata.create(priority, START_MS)
    metadata.usage_count = usage_count
    metadata.last_access_time = START_MS + last_offset_ms
    return metadata


class TestTTLPolicy(unittest.TestCase):
    """Test the TTLPolicy class."""

    def setUp(self):
        self.policy = TTLPolicy()

    def test_base_ttl_per_priority(self):
        self.assertEqual(self.policy.base_ttl(Priority.LOW), 3600)
        self.assertEqual(self.policy.base_ttl(Priority.MEDIUM), 7200)
        self.assertEqual(self.policy.base_ttl(Priority.HIGH), 10800)

    def test_first_adaptation_after_a_minute(self):
        """A MEDIUM entry re-cached 60s after creation gets just over 2h."""
        metadata = metadata_at(Priority.MEDIUM)
        now_ms = START_MS + 60_000

        ratio = self.policy.access_frequency_ratio(metadata, now_ms)
        self.assertEqual(ratio, pytest.approx(1 / 120))

        ttl = self.policy.next_ttl(metadata, now_ms)
        self.assertTrue(7200 < ttl <= 7260)

    def test_zero_gap_reaches_max_ttl(self):
        """Two adaptations in the same second extend the entry to the ceiling."""
        metadata = metadata_at(Priority.LOW)

        ratio = self.policy.access_frequency_ratio(metadata, START_MS)
        self.assertEqual(ratio, pytest.approx((1000.0 * 0.5 + 1000.0 * 0.5) / 2))
        self.assertEqual(self.policy.next_ttl(metadata, START_MS), 10800)

    def test_zero_gap_uses_configured_frequency(self):
        policy = TTLPolicy(max_access_frequency=2.0)
        metadata = metadata_at(Priority.LOW)

        self.assertEqual(policy.access_frequency_ratio(metadata, START_MS), pytest.approx(1.0))
        self.assertEqual(policy.next_ttl(metadata, START_MS), 7200)

    def test_sub_second_gap_is_zero(self):
        metadata = metadata_at(Priority.LOW)
        self.assertEqual(
            self.policy.access_frequency_ratio(metadata, START_MS + 999),
            self.policy.access_frequency_ratio(metadata, START_MS)
        )

    def test_finite_frequencies_are_exact(self):
        """101 uses in 10 seconds with a 1 second gap: no clamping."""
        metadata = metadata_at(Priority.LOW, usage_count=100, last_offset_ms=9_000)
        now_ms = START_MS + 10_000

        ratio = self.policy.access_frequency_ratio(metadata, now_ms)
        self.assertEqual(ratio, pytest.approx((10.1 * 0.5 + 1.0 * 0.5) / 2))
        self.assertEqual(self.policy.next_ttl(metadata, now_ms), 10800)

    def test_moderate_frequency_below_max(self):
        metadata = metadata_at(Priority.LOW, usage_count=9, last_offset_ms=8_000)
        now_ms = START_MS + 10_000

        # overall 10/10 = 1.0, recent 1/2 = 0.5 -> ratio 0.375
        self.assertEqual(self.policy.access_frequency_ratio(metadata, now_ms), pytest.approx(0.375))
        self.assertEqual(self.policy.next_ttl(metadata, now_ms), 4950)

    def test_ttl_never_exceeds_max(self):
        self.assertEqual(self.policy.adapted_ttl(5.0, Priority.HIGH), 10800)
        metadata = metadata_at(Priority.HIGH)
        self.assertEqual(self.policy.next_ttl(metadata, START_MS), 10800)

    def test_ttl_never_below_base(self):
        for gap_seconds in (1, 10, 100, 10_000, 1_000_000):
            for priority in Priority:
                metadata = metadata_at(priority)
                ttl = self.policy.next_ttl(metadata, START_MS + gap_seconds * 1000)
                self.assertGreaterEqual(ttl, min(self.policy.base_ttl(priority), 10800))

    def test_negative_ratio_treated_as_zero(self):
        self.assertEqual(self.policy.adapted_ttl(-1.0, Priority.LOW), 3600)

    def test_from_config(self):
        policy = TTLPolicy.from_config(CacheConfig(
            initial_ttl_seconds=100,
            max_ttl_seconds=250,
            recent_frequency_weight=1.0,
            overall_frequency_weight=0.0
        ))

        self.assertEqual(policy.base_ttl(Priority.MEDIUM), 200)
        self.assertEqual(policy.base_ttl(Priority.HIGH), 300)
        self.assertEqual(policy.adapted_ttl(0.0, Priority.HIGH), 250)

        # Only the recent frequency counts with these weights
        metadata = metadata_at(last_offset_ms=8_000)
        ratio = policy.access_frequency_ratio(metadata, START_MS + 10_000)
        self.assertEqual(ratio, pytest.approx(0.5 / 2))
