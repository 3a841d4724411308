"""
Request clock with an opt-in override for deterministic testing.
"""
import logging
import math
import time
from typing import Optional

from ephemeral_paste.config import settings

logger = logging.getLogger(__name__)

TEST_NOW_HEADER = "x-test-now-ms"

# 9999-12-31T23:59:59.999Z, the last instant datetime can represent
MAX_TIMESTAMP_MS = 253_402_300_799_999


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


def current_time_ms(x_test_now_ms: Optional[str] = None) -> int:
    """
    Get current time, respecting TEST_MODE for deterministic testing.

    Args:
        x_test_now_ms: Test timestamp header (milliseconds since epoch)

    Returns:
        Current time in epoch milliseconds
    """
    if not settings.TEST_MODE or not x_test_now_ms:
        return wall_clock_ms()

    try:
        value = float(x_test_now_ms)
    except ValueError as e:
        logger.warning(f"Invalid {TEST_NOW_HEADER} header: {e}")
        return wall_clock_ms()

    if not math.isfinite(value) or not 0 <= value <= MAX_TIMESTAMP_MS:
        logger.warning(f"Ignoring out-of-range {TEST_NOW_HEADER} header: {x_test_now_ms!r}")
        return wall_clock_ms()

    return math.floor(value)
