"""Rate Limit Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.rate_window import RateWindow


class RateLimitRepository(ABC):

    @abstractmethod
    async def get_window(self, owner_id: str, operation: str, for_update: bool = False) -> Optional[RateWindow]:
        """
        Retrieve the counter window for (owner, operation)

        Args:
            for_update: If True, lock the row so the read-increment-write is atomic
        """
        pass

    @abstractmethod
    async def save(self, window: RateWindow) -> RateWindow:
        """Insert or update a window"""
        pass

    @abstractmethod
    async def clear(self, owner_id: str, operation: Optional[str] = None) -> int:
        pass
