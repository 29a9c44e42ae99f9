"""
Tallybook - Personal Finance Ledger

Single-entry bookkeeping over SQLite: accounts with running balances,
transactions, debts, amortized loans, recurring bills, and encrypted
backups of the whole ledger.
"""

from .db import LedgerRepository, get_repository
from .models import (
    AllocationInput,
    CategoryType,
    DebtType,
    Frequency,
    ItemInput,
    PendingDueInfo,
)
from .services import AppState, BackupError, BackupService, ExportService, plan_loan

__version__ = "0.1.0"

__all__ = [
    "AllocationInput",
    "AppState",
    "BackupError",
    "BackupService",
    "CategoryType",
    "DebtType",
    "ExportService",
    "Frequency",
    "ItemInput",
    "LedgerRepository",
    "PendingDueInfo",
    "get_repository",
    "plan_loan",
]
