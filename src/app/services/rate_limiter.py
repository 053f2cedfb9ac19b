"""Rate Limiter

Fixed-window request limiting per (owner, operation), consulted before any
call to an external service.
"""

import logging
import math
from typing import Callable, Dict, Optional, Tuple
from datetime import datetime

from src.app.repositories.rate_limit_repository import RateLimitRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.errors import RateLimitExceeded
from src.domain.rate_window import RateWindow

logger = logging.getLogger(__name__)

# operation -> (max_requests, window_seconds)
DEFAULT_RATE_LIMITS: Dict[str, Tuple[int, int]] = {
    "ai_rename_single": (10, 300),
    "ai_suggestions": (20, 300),
    "ai_bulk_rename": (3, 600),
    "ai_test_connection": (5, 60),
}


def parse_rate_limits(overrides: Optional[dict]) -> Dict[str, Tuple[int, int]]:
    """
    Merge configured overrides into the defaults

    Overrides map an operation to either ``{"requests": N, "window": W}`` or
    a ``[N, W]`` pair. Invalid values are ignored with a warning.
    """
    limits = dict(DEFAULT_RATE_LIMITS)
    for operation, value in (overrides or {}).items():
        if isinstance(value, dict):
            requests, window = value.get("requests"), value.get("window")
        elif isinstance(value, (list, tuple)) and len(value) == 2:
            requests, window = value
        else:
            logger.warning(f"Ignoring malformed rate limit for {operation}: {value!r}")
            continue

        try:
            requests, window = int(requests), int(window)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric rate limit for {operation}: {value!r}")
            continue

        if requests < 1 or window < 1:
            logger.warning(f"Ignoring non-positive rate limit for {operation}: {value!r}")
            continue
        limits[operation] = (requests, window)
    return limits


class RateLimiter:
    """
    Fixed-window limiter

    - First request of a window sets count=1 and starts the window
    - Each admitted request increments the count
    - Once the window has elapsed the counter starts over
    - Operations without a configured limit are always admitted
    - Administrators are exempt only when debug is on

    The window row is read with SELECT FOR UPDATE and committed per call, so
    concurrent requests of one owner cannot overshoot max_requests on
    databases with row locks.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limit_repo: RateLimitRepository,
        limits: Optional[dict] = None,
        debug: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.rate_limit_repo = rate_limit_repo
        self.limits = parse_rate_limits(limits)
        self.debug = debug
        self.clock = clock

    def get_limit(self, operation: str) -> Optional[Tuple[int, int]]:
        return self.limits.get(operation)

    async def admit(self, owner_id: str, operation: str, is_admin: bool = False) -> bool:
        """
        Admit one request or raise

        Raises:
            RateLimitExceeded: window is full; retry_after holds the whole
                seconds left until the window resets
        """
        if is_admin and self.debug:
            logger.debug(f"Rate limit bypassed for admin {owner_id} on {operation} (debug mode)")
            return True

        limit = self.get_limit(operation)
        if limit is None:
            return True
        max_requests, window_seconds = limit

        now = self.clock()
        window = await self.rate_limit_repo.get_window(owner_id, operation, for_update=True)

        if window is None:
            window = RateWindow(
                owner_id=owner_id,
                operation=operation,
                count=1,
                window_started_at=now,
                window_seconds=window_seconds,
            )
        elif window.has_expired(now) or window.window_seconds != window_seconds:
            window.count = 1
            window.window_started_at = now
            window.window_seconds = window_seconds
        elif window.count >= max_requests:
            retry_after = max(1, math.ceil(window.seconds_remaining(now)))
            logger.warning(
                f"Rate limit exceeded: owner={owner_id}, operation={operation}, "
                f"count={window.count}/{max_requests}, retry_after={retry_after}s"
            )
            await self.uow.rollback()
            raise RateLimitExceeded(operation, retry_after)
        else:
            window.count += 1

        await self.rate_limit_repo.save(window)
        await self.uow.commit()
        return True

    async def status(self, owner_id: str, operation: str) -> dict:
        """Remaining requests in the current window"""
        limit = self.get_limit(operation)
        if limit is None:
            return {"operation": operation, "limited": False}

        max_requests, window_seconds = limit
        now = self.clock()
        window = await self.rate_limit_repo.get_window(owner_id, operation)
        if window is None or window.has_expired(now):
            used, reset_in = 0, 0
        else:
            used, reset_in = window.count, math.ceil(window.seconds_remaining(now))

        return {
            "operation": operation,
            "limited": True,
            "max_requests": max_requests,
            "window_seconds": window_seconds,
            "used": used,
            "remaining": max(max_requests - used, 0),
            "reset_in": reset_in,
        }

    async def reset(self, owner_id: str, operation: Optional[str] = None) -> int:
        removed = await self.rate_limit_repo.clear(owner_id, operation)
        await self.uow.commit()
        return removed
