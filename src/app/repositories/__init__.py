from .credit_account_repository import CreditAccountRepository
from .credit_transaction_repository import CreditTransactionRepository
from .settlement_record_repository import SettlementRecordRepository
from .cache_repository import CacheRepository
from .rate_limit_repository import RateLimitRepository
from .operation_record_repository import OperationRecordRepository
from .audit_log_repository import AuditLogRepository
from .media_resource_repository import MediaResourceRepository

__all__ = [
    "CreditAccountRepository",
    "CreditTransactionRepository",
    "SettlementRecordRepository",
    "CacheRepository",
    "RateLimitRepository",
    "OperationRecordRepository",
    "AuditLogRepository",
    "MediaResourceRepository",
]
