"""
Database module for the Tallybook ledger.

This module provides the database layer for single-entry bookkeeping with
running account balances.

Structure:
- base.py: Base repository with connection management, schema and migrations
- models.py: Data models (Account, Category, Transaction, Debt, Loan, etc.)
- accounts.py: Accounts, categories and balance deltas
- transactions.py: Transaction posting, reversal and transfers
- debts.py: Borrow/lend tracking
- loans.py: Loans and installment payments
- recurring.py: Recurring bills
- settings.py: Key/value preferences
- queries.py: Balance totals and reports
- snapshot.py: Whole-database dump, restore and reset
- repository.py: Main facade that composes all sub-repositories
"""

from .accounts import AccountRepository
from .base import DEFAULT_DB_PATH, BaseRepository
from .debts import DebtRepository
from .loans import LoanRepository
from .models import (
    Account,
    BalanceSummary,
    Category,
    CategorySpending,
    Debt,
    ItemConsumption,
    Loan,
    LoanInstallment,
    RecurringPayment,
    RecurringPaymentView,
    Transaction,
    TransactionAllocation,
    TransactionItem,
    TransactionView,
    TrendPoint,
)
from .queries import QueryRepository
from .recurring import RecurringRepository, next_due_date_for
from .repository import LedgerRepository, get_repository
from .settings import SettingsRepository
from .snapshot import SnapshotRepository
from .transactions import TransactionRepository

__all__ = [
    # Base
    "BaseRepository",
    "DEFAULT_DB_PATH",
    # Models
    "Account",
    "BalanceSummary",
    "Category",
    "CategorySpending",
    "Debt",
    "ItemConsumption",
    "Loan",
    "LoanInstallment",
    "RecurringPayment",
    "RecurringPaymentView",
    "Transaction",
    "TransactionAllocation",
    "TransactionItem",
    "TransactionView",
    "TrendPoint",
    # Repositories
    "AccountRepository",
    "DebtRepository",
    "LedgerRepository",
    "LoanRepository",
    "QueryRepository",
    "RecurringRepository",
    "SettingsRepository",
    "SnapshotRepository",
    "TransactionRepository",
    # Utilities
    "get_repository",
    "next_due_date_for",
]
