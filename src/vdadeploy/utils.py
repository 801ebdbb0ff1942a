from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


def wait_until(
    condition: Callable[[], bool],
    timeout_seconds: float,
    interval_seconds: float,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> bool:
    """Poll ``condition`` at a fixed interval until it holds or time runs out.

    The deadline is measured from the call itself. Returns ``True`` as soon as
    the condition is met and ``False`` once ``timeout_seconds`` have elapsed
    without it.
    """
    started = clock()
    while True:
        if condition():
            return True
        if clock() - started >= timeout_seconds:
            return False
        sleep(interval_seconds)
