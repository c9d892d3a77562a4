from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    *,
    timeout_s: float,
    interval_s: float = 0.25,
) -> bool:
    """Run `check` until it returns truthy or `timeout_s` elapses.

    Returns False on timeout instead of raising, so callers decide whether
    expiry is fatal. `check` always runs at least once.
    """

    deadline = time.monotonic() + max(0.0, timeout_s)
    interval_s = max(0.0, interval_s)
    while True:
        if await check():
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(interval_s, remaining))
