"""
Retry delays of requests whose reconcile failed.
"""

import random
from typing import Optional


def calculate_exponential_backoff(
    retry_count: int,
    base_delay: float = 1,
    max_delay: float = 300,
    multiplier: float = 2.0,
    jitter: bool = True,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Delay in seconds before retry number retry_count (0-based).

    The delay grows by multiplier per failure, from base_delay up to
    max_delay: 1, 2, 4, ... 256, 300 with the defaults. Jitter spreads it by
    up to 25% either way but never below base_delay.
    """
    if retry_count < 0:
        return base_delay

    delay = min(base_delay * multiplier**retry_count, max_delay)
    if jitter:
        spread = delay * 0.25
        delay += (rng or random).uniform(-spread, spread)
    return round(max(delay, base_delay), 3)
