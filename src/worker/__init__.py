"""Background workers for the rename service"""
from .maintenance import MaintenanceWorker
from .settlement_reconciler import SettlementReconcilerWorker

__all__ = ["MaintenanceWorker", "SettlementReconcilerWorker"]
