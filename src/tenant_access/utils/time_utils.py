from __future__ import annotations

import time


def epoch_seconds() -> float:
    return time.time()


def now_ms() -> int:
    return int(epoch_seconds() * 1000)


def seconds_until(deadline: float, now: float | None = None) -> float:
    current = epoch_seconds() if now is None else now
    return deadline - current
