"""
Tests for the exponential backoff calculation.
"""

import random

from spi_operator.utils.backoff import calculate_exponential_backoff


class TestCalculateExponentialBackoff:
    def test_progression_without_jitter(self):
        delays = [calculate_exponential_backoff(i, jitter=False) for i in range(5)]

        assert delays == [1, 2, 4, 8, 16]

    def test_capped_at_max_delay(self):
        assert calculate_exponential_backoff(20, max_delay=300, jitter=False) == 300

    def test_jitter_stays_within_range(self):
        rng = random.Random(7)
        for _ in range(50):
            delay = calculate_exponential_backoff(4, jitter=True, rng=rng)
            assert 12 <= delay <= 20

    def test_never_below_base_delay(self):
        for _ in range(50):
            assert calculate_exponential_backoff(0, base_delay=2) >= 2

    def test_sub_second_base_delay(self):
        assert calculate_exponential_backoff(1, base_delay=0.5, jitter=False) == 1.0

    def test_negative_retry_count(self):
        assert calculate_exponential_backoff(-1, base_delay=3) == 3
