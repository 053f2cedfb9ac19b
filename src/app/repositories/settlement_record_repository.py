"""Settlement Record Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from src.domain.settlement_record import SettlementRecord, SettlementStatus


class SettlementRecordRepository(ABC):

    @abstractmethod
    async def create(self, record: SettlementRecord) -> SettlementRecord:
        pass

    @abstractmethod
    async def get_by_request_id(self, request_id: str) -> Optional[SettlementRecord]:
        pass

    @abstractmethod
    async def save(self, record: SettlementRecord) -> SettlementRecord:
        pass

    @abstractmethod
    async def list_by_status(
        self,
        status: SettlementStatus,
        updated_before: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[SettlementRecord]:
        """
        List records in a given status, oldest first

        Args:
            status: Status to filter on
            updated_before: Only records whose last update is older than this
            limit: Maximum number of records
        """
        pass
