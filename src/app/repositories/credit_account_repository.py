"""Credit Account Repository Interface

Defines the contract for credit account persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.credit_account import CreditAccount


class CreditAccountRepository(ABC):
    """
    Repository interface for CreditAccount persistence

    Mutating callers read with for_update=True (SELECT FOR UPDATE) so that
    concurrent deductions for the same owner serialize.
    """

    @abstractmethod
    async def get_by_owner_id(self, owner_id: str, for_update: bool = False) -> Optional[CreditAccount]:
        """
        Retrieve account by owner ID

        Args:
            owner_id: Owner identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            CreditAccount if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, account: CreditAccount) -> CreditAccount:
        """
        Create a new credit account

        Returns:
            Created CreditAccount with generated ID
        """
        pass

    @abstractmethod
    async def save(self, account: CreditAccount) -> CreditAccount:
        """Persist changes to an existing account"""
        pass
