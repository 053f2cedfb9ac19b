"""SQLAlchemy implementation of OperationRecordRepository"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete
from src.app.repositories.operation_record_repository import OperationRecordRepository
from src.domain.operation_record import OperationRecord


class SqlAlchemyOperationRecordRepository(OperationRecordRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, record: OperationRecord, keep_latest: int) -> OperationRecord:
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)

        stale_stmt = (
            select(OperationRecord.id)
            .where(OperationRecord.resource_id == record.resource_id)
            .order_by(OperationRecord.created_at.desc(), OperationRecord.id.desc())
            .offset(keep_latest)
        )
        result = await self.session.execute(stale_stmt)
        stale_ids = list(result.scalars().all())
        if stale_ids:
            await self.session.execute(delete(OperationRecord).where(OperationRecord.id.in_(stale_ids)))
            await self.session.flush()

        return record

    async def list_by_resource(self, resource_id: int, limit: int = 10) -> List[OperationRecord]:
        stmt = (
            select(OperationRecord)
            .where(OperationRecord.resource_id == resource_id)
            .order_by(OperationRecord.created_at.desc(), OperationRecord.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_batch(self, bulk_batch_id: str) -> List[OperationRecord]:
        stmt = (
            select(OperationRecord)
            .where(OperationRecord.bulk_batch_id == bulk_batch_id)
            .order_by(OperationRecord.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
