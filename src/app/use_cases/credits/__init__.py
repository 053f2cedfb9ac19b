from .dtos import (
    ALLOWED_OPERATIONS,
    AddCreditsCommandDTO,
    BalanceResponseDTO,
    CleanupResultDTO,
    CreditStatsDTO,
    CreditTransactionResponseDTO,
    DeductCommandDTO,
    FreeCreditsResultDTO,
    ResetCreditsCommandDTO,
    ResetResultDTO,
    SettlementDeductCommandDTO,
    SettlementReconciliationDTO,
    SettlementResultDTO,
    StuckSettlementDTO,
    TransactionListResponseDTO,
)
from .get_balance import GetBalance
from .check_credits import CheckCredits
from .deduct_credit import DeductCredit
from .deduct_credit_with_settlement import DeductCreditWithSettlement
from .add_credits import AddCredits
from .reset_credits import ResetCredits
from .initialize_free_credits import InitializeFreeCredits
from .get_credit_stats import GetCreditStats
from .list_transactions import ListTransactions
from .cleanup_old_transactions import CleanupOldTransactions
from .reconcile_settlements import ReconcileSettlements
from .ledger import CreditLedger

__all__ = [
    "ALLOWED_OPERATIONS",
    "AddCreditsCommandDTO",
    "BalanceResponseDTO",
    "CleanupResultDTO",
    "CreditStatsDTO",
    "CreditTransactionResponseDTO",
    "DeductCommandDTO",
    "FreeCreditsResultDTO",
    "ResetCreditsCommandDTO",
    "ResetResultDTO",
    "SettlementDeductCommandDTO",
    "SettlementReconciliationDTO",
    "SettlementResultDTO",
    "StuckSettlementDTO",
    "TransactionListResponseDTO",
    "GetBalance",
    "CheckCredits",
    "DeductCredit",
    "DeductCreditWithSettlement",
    "AddCredits",
    "ResetCredits",
    "InitializeFreeCredits",
    "GetCreditStats",
    "ListTransactions",
    "CleanupOldTransactions",
    "ReconcileSettlements",
    "CreditLedger",
]
