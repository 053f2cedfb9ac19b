"""SQLAlchemy implementation of AuditLogRepository"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_event import AuditEvent


class SqlAlchemyAuditLogRepository(AuditLogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, event: AuditEvent) -> AuditEvent:
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_recent(self, owner_id: Optional[str] = None, limit: int = 50) -> List[AuditEvent]:
        stmt = select(AuditEvent)
        if owner_id is not None:
            stmt = stmt.where(AuditEvent.owner_id == owner_id)
        stmt = stmt.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_older_than(self, cutoff: datetime) -> int:
        result = await self.session.execute(delete(AuditEvent).where(AuditEvent.created_at < cutoff))
        await self.session.flush()
        return result.rowcount or 0
