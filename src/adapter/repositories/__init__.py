from .credit_account_repository import SqlAlchemyCreditAccountRepository
from .credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from .settlement_record_repository import SqlAlchemySettlementRecordRepository
from .cache_repository import SqlAlchemyCacheRepository
from .rate_limit_repository import SqlAlchemyRateLimitRepository
from .operation_record_repository import SqlAlchemyOperationRecordRepository
from .audit_log_repository import SqlAlchemyAuditLogRepository
from .media_resource_repository import SqlAlchemyMediaResourceRepository

__all__ = [
    "SqlAlchemyCreditAccountRepository",
    "SqlAlchemyCreditTransactionRepository",
    "SqlAlchemySettlementRecordRepository",
    "SqlAlchemyCacheRepository",
    "SqlAlchemyRateLimitRepository",
    "SqlAlchemyOperationRecordRepository",
    "SqlAlchemyAuditLogRepository",
    "SqlAlchemyMediaResourceRepository",
]
