"""SQLAlchemy implementation of CreditTransactionRepository

Append-only persistence of ledger transactions, with the retention trims the
ledger needs (bounded per-account window, age-based cleanup).
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete, func
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.credit_transaction import CreditTransaction, TransactionType


class SqlAlchemyCreditTransactionRepository(CreditTransactionRepository):
    """
    SQLAlchemy implementation of CreditTransactionRepository

    Features:
    - Unique idempotency_key for remotely settled deductions
    - Newest-first listing
    - Per-account trimming to the most recent N rows
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """
        Append a credit transaction

        Raises:
            IntegrityError: If idempotency_key already exists
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditTransaction]:
        stmt = select(CreditTransaction).where(
            CreditTransaction.idempotency_key == idempotency_key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: str, limit: int = 20, offset: int = 0) -> List[CreditTransaction]:
        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.owner_id == owner_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_owner(self, owner_id: str) -> int:
        stmt = select(func.count(CreditTransaction.id)).where(
            CreditTransaction.owner_id == owner_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_since(self, owner_id: str, transaction_type: TransactionType, since: datetime) -> int:
        stmt = select(func.coalesce(func.sum(CreditTransaction.amount), 0)).where(
            CreditTransaction.owner_id == owner_id,
            CreditTransaction.transaction_type == transaction_type,
            CreditTransaction.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def trim_to_latest(self, account_id: int, keep: int) -> int:
        stale_ids_stmt = (
            select(CreditTransaction.id)
            .where(CreditTransaction.account_id == account_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .offset(keep)
        )
        result = await self.session.execute(stale_ids_stmt)
        stale_ids = list(result.scalars().all())
        if not stale_ids:
            return 0

        await self.session.execute(
            delete(CreditTransaction).where(CreditTransaction.id.in_(stale_ids))
        )
        await self.session.flush()
        return len(stale_ids)

    async def delete_older_than(self, cutoff: datetime) -> int:
        result = await self.session.execute(
            delete(CreditTransaction).where(CreditTransaction.created_at < cutoff)
        )
        await self.session.flush()
        return result.rowcount or 0
