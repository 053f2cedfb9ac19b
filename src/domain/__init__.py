from .base import BaseModel, generate_uuid, utcnow
from .credit_account import CreditAccount
from .credit_transaction import CreditTransaction, TransactionType
from .settlement_record import SettlementRecord, SettlementStatus
from .cache_entry import CacheEntry, CacheType
from .rate_window import RateWindow
from .operation_record import OperationRecord, RenameMethod
from .audit_event import AuditEvent
from .media_resource import MediaResource, SUPPORTED_MIME_TYPES

__all__ = [
    "BaseModel",
    "generate_uuid",
    "utcnow",
    "CreditAccount",
    "CreditTransaction",
    "TransactionType",
    "SettlementRecord",
    "SettlementStatus",
    "CacheEntry",
    "CacheType",
    "RateWindow",
    "OperationRecord",
    "RenameMethod",
    "AuditEvent",
    "MediaResource",
    "SUPPORTED_MIME_TYPES",
]
