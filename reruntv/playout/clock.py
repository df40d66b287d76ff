"""Wall clock in the channel's time unit (Unix epoch milliseconds)."""

import time
from typing import Callable

Clock = Callable[[], int]

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


def now_ms() -> int:
    return int(time.time() * 1000)
