"""Wall-clock time source expressed in epoch milliseconds."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND


def system_now_ms() -> int:
    return time.time_ns() // 1_000_000
