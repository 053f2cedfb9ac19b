"""SQLAlchemy implementation of SettlementRecordRepository"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.settlement_record_repository import SettlementRecordRepository
from src.domain.settlement_record import SettlementRecord, SettlementStatus


class SqlAlchemySettlementRecordRepository(SettlementRecordRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, record: SettlementRecord) -> SettlementRecord:
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def get_by_request_id(self, request_id: str) -> Optional[SettlementRecord]:
        stmt = select(SettlementRecord).where(SettlementRecord.request_id == request_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, record: SettlementRecord) -> SettlementRecord:
        self.session.add(record)
        await self.session.flush()
        return record

    async def list_by_status(
        self,
        status: SettlementStatus,
        updated_before: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[SettlementRecord]:
        stmt = select(SettlementRecord).where(SettlementRecord.status == status)
        if updated_before is not None:
            stmt = stmt.where(SettlementRecord.updated_at < updated_before)
        stmt = stmt.order_by(SettlementRecord.created_at.asc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
