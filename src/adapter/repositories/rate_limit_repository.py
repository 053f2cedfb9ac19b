"""SQLAlchemy implementation of RateLimitRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete
from src.app.repositories.rate_limit_repository import RateLimitRepository
from src.domain.rate_window import RateWindow


class SqlAlchemyRateLimitRepository(RateLimitRepository):
    """
    Rate window persistence

    get_window(for_update=True) takes a row lock so the increment in
    RateLimiter.admit is atomic per (owner, operation) on PostgreSQL.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_window(self, owner_id: str, operation: str, for_update: bool = False) -> Optional[RateWindow]:
        stmt = select(RateWindow).where(
            RateWindow.owner_id == owner_id,
            RateWindow.operation == operation,
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, window: RateWindow) -> RateWindow:
        self.session.add(window)
        await self.session.flush()
        return window

    async def clear(self, owner_id: str, operation: Optional[str] = None) -> int:
        stmt = delete(RateWindow).where(RateWindow.owner_id == owner_id)
        if operation is not None:
            stmt = stmt.where(RateWindow.operation == operation)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
