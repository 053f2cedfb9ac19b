"""Credit Transaction Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from src.domain.credit_transaction import CreditTransaction, TransactionType


class CreditTransactionRepository(ABC):
    """
    Repository interface for CreditTransaction persistence

    Transactions are append-only; the only deletions are retention trims.
    """

    @abstractmethod
    async def create(self, transaction: CreditTransaction) -> CreditTransaction:
        """Append a transaction and return it with its generated ID"""
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditTransaction]:
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str, limit: int = 20, offset: int = 0) -> List[CreditTransaction]:
        """
        List transactions for an owner, newest first

        Args:
            owner_id: Owner identifier
            limit: Maximum number of transactions
            offset: Number of transactions to skip
        """
        pass

    @abstractmethod
    async def count_by_owner(self, owner_id: str) -> int:
        pass

    @abstractmethod
    async def sum_since(self, owner_id: str, transaction_type: TransactionType, since: datetime) -> int:
        """Sum of amounts of one transaction type created at or after ``since``"""
        pass

    @abstractmethod
    async def trim_to_latest(self, account_id: int, keep: int) -> int:
        """
        Delete all but the ``keep`` most recent transactions of an account

        Returns:
            Number of deleted transactions
        """
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete transactions created before ``cutoff``. Returns deleted count."""
        pass
