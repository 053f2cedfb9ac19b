"""SQLAlchemy implementation of CreditAccountRepository

Provides persistence for CreditAccount entities with pessimistic locking
support so that concurrent ledger mutations of one owner serialize.
"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.domain.credit_account import CreditAccount


class SqlAlchemyCreditAccountRepository(CreditAccountRepository):
    """
    SQLAlchemy implementation of CreditAccountRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (no-op on SQLite)
    - Accounts are never deleted
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_owner_id(self, owner_id: str, for_update: bool = False) -> Optional[CreditAccount]:
        stmt = select(CreditAccount).where(CreditAccount.owner_id == owner_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, account: CreditAccount) -> CreditAccount:
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def save(self, account: CreditAccount) -> CreditAccount:
        """
        Flush account changes

        Note:
            Should be called within a transaction with the account already locked
        """
        self.session.add(account)
        await self.session.flush()
        return account
