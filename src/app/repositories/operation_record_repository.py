"""Operation Record (rename history) Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.operation_record import OperationRecord


class OperationRecordRepository(ABC):

    @abstractmethod
    async def append(self, record: OperationRecord, keep_latest: int) -> OperationRecord:
        """
        Append a history record and drop the resource's older records

        Args:
            record: Record to append
            keep_latest: Number of most recent records kept per resource
        """
        pass

    @abstractmethod
    async def list_by_resource(self, resource_id: int, limit: int = 10) -> List[OperationRecord]:
        """Newest first"""
        pass

    @abstractmethod
    async def list_by_batch(self, bulk_batch_id: str) -> List[OperationRecord]:
        pass
