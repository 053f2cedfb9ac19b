"""Exponential backoff helpers shared by the outbound HTTP collaborators"""

import asyncio
from typing import Awaitable, Callable

Sleeper = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float = 1.0, factor: float = 2.0, max_delay: float = 30.0) -> float:
    """
    Delay before retry number ``attempt`` (1-based)

    attempt=1 -> base, attempt=2 -> base*factor, attempt=3 -> base*factor^2 ...
    """
    if attempt < 1:
        return 0.0
    return min(base_delay * (factor ** (attempt - 1)), max_delay)


async def default_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)
