"""Audit Log Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from src.domain.audit_event import AuditEvent


class AuditLogRepository(ABC):

    @abstractmethod
    async def record(self, event: AuditEvent) -> AuditEvent:
        pass

    @abstractmethod
    async def list_recent(self, owner_id: Optional[str] = None, limit: int = 50) -> List[AuditEvent]:
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        pass
