"""
Ledger repository facade.

Composes the account, transaction, debt, loan, recurring, settings, query and
snapshot repositories behind one object. Callers use this class; the
sub-repositories are wired together here and share one database file.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from tallybook.models import (
    AllocationInput,
    CategoryType,
    DebtType,
    Frequency,
    ItemInput,
    PendingDueInfo,
)

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
    TransactionAllocation,
    TransactionItem,
    TransactionView,
    TrendPoint,
)
from .queries import QueryRepository
from .recurring import RecurringRepository
from .settings import SettingsRepository
from .snapshot import SnapshotRepository
from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


class LedgerRepository(BaseRepository):
    """
    Main repository for the personal-finance ledger.

    Initializes the schema once, then delegates to specialised
    sub-repositories that reuse the same database path.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the repository and all sub-repositories.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/finance.db
        """
        super().__init__(db_path, init_schema=True)

        self._accounts = AccountRepository(self.db_path)
        self._transactions = TransactionRepository(self.db_path, account_repo=self._accounts)
        self._debts = DebtRepository(self.db_path, transaction_repo=self._transactions)
        self._loans = LoanRepository(self.db_path, transaction_repo=self._transactions)
        self._recurring = RecurringRepository(self.db_path, transaction_repo=self._transactions)
        self._settings = SettingsRepository(self.db_path)
        self._queries = QueryRepository(self.db_path)
        self._snapshots = SnapshotRepository(self.db_path)

        logger.info(f"LedgerRepository initialized with db_path: {self.db_path}")

    # =========================================================================
    # Settings
    # =========================================================================

    def get_setting(self, key: str) -> Optional[str]:
        return self._settings.get_setting(key)

    def set_setting(self, key: str, value: str):
        self._settings.set_setting(key, value)

    def get_all_settings(self) -> dict[str, str]:
        return self._settings.get_all_settings()

    def get_currency(self) -> str:
        return self._settings.get_currency()

    def set_currency(self, symbol: str):
        self._settings.set_currency(symbol)

    # =========================================================================
    # Accounts
    # =========================================================================

    def get_accounts(self) -> list[Account]:
        return self._accounts.get_accounts()

    def get_account_by_id(self, account_id: int) -> Optional[Account]:
        return self._accounts.get_account_by_id(account_id)

    def add_account(
        self,
        name: str,
        type: str,
        balance: float = 0,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Account:
        return self._accounts.add_account(name, type, balance, color, icon)

    def update_account(
        self,
        account_id: int,
        name: str,
        type: str,
        balance: float,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> bool:
        return self._accounts.update_account(account_id, name, type, balance, color, icon)

    def delete_account(self, account_id: int) -> bool:
        return self._accounts.delete_account(account_id)

    def can_cover(self, account_id: int, amount: float) -> bool:
        return self._accounts.can_cover(account_id, amount)

    # =========================================================================
    # Categories
    # =========================================================================

    def get_categories(self, type: Optional[CategoryType] = None) -> list[Category]:
        return self._accounts.get_categories(type)

    def get_category_by_id(self, category_id: int) -> Optional[Category]:
        return self._accounts.get_category_by_id(category_id)

    def add_category(
        self,
        name: str,
        type: CategoryType,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        return self._accounts.add_category(name, type, color, icon)

    def update_category(
        self,
        category_id: int,
        name: str,
        type: CategoryType,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> bool:
        return self._accounts.update_category(category_id, name, type, color, icon)

    def delete_category(self, category_id: int) -> bool:
        return self._accounts.delete_category(category_id)

    # =========================================================================
    # Transactions
    # =========================================================================

    def add_transaction(
        self,
        amount: float,
        date: int,
        category_id: int,
        note: Optional[str] = "",
        items: Optional[Sequence[ItemInput]] = None,
        account_id: Optional[int] = None,
        allocations: Optional[Sequence[AllocationInput]] = None,
        pending_due: Optional[PendingDueInfo] = None,
    ) -> int:
        return self._transactions.add_transaction(
            amount, date, category_id, note, items, account_id, allocations, pending_due
        )

    def delete_transaction(self, transaction_id: int) -> bool:
        return self._transactions.delete_transaction(transaction_id)

    def transfer_funds(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: float,
        date: Optional[int] = None,
        note: Optional[str] = None,
    ) -> tuple[int, int]:
        return self._transactions.transfer_funds(
            from_account_id, to_account_id, amount, date, note
        )

    def get_transactions(self, limit: int = 50, offset: int = 0) -> list[TransactionView]:
        return self._transactions.get_transactions(limit, offset)

    def get_transactions_by_range(self, start_date: int, end_date: int) -> list[TransactionView]:
        return self._transactions.get_transactions_by_range(start_date, end_date)

    def get_transaction_by_id(self, transaction_id: int) -> Optional[TransactionView]:
        return self._transactions.get_transaction_by_id(transaction_id)

    def get_transaction_items(self, transaction_id: int) -> list[TransactionItem]:
        return self._transactions.get_transaction_items(transaction_id)

    def get_transaction_allocations(self, transaction_id: int) -> list[TransactionAllocation]:
        return self._transactions.get_transaction_allocations(transaction_id)

    def count_transactions(self) -> int:
        return self._transactions.count_transactions()

    # =========================================================================
    # Debts
    # =========================================================================

    def add_debt(
        self,
        amount: float,
        description: Optional[str],
        type: DebtType,
        due_date: Optional[int],
        contact_name: str,
        account_id: Optional[int] = None,
    ) -> int:
        return self._debts.add_debt(amount, description, type, due_date, contact_name, account_id)

    def mark_debt_as_paid(self, debt_id: int, account_id: Optional[int] = None) -> bool:
        return self._debts.mark_debt_as_paid(debt_id, account_id)

    def delete_debt(self, debt_id: int) -> bool:
        return self._debts.delete_debt(debt_id)

    def get_debts(self) -> list[Debt]:
        return self._debts.get_debts()

    def get_debt_by_id(self, debt_id: int) -> Optional[Debt]:
        return self._debts.get_debt_by_id(debt_id)

    # =========================================================================
    # Loans
    # =========================================================================

    def add_loan(
        self, loan: Loan, installments: Sequence, target_account_id: Optional[int] = None
    ) -> int:
        return self._loans.add_loan(loan, installments, target_account_id)

    def pay_installment(self, installment_id: int, account_id: Optional[int] = None) -> bool:
        return self._loans.pay_installment(installment_id, account_id)

    def delete_loan(self, loan_id: int) -> bool:
        return self._loans.delete_loan(loan_id)

    def get_loans(self) -> list[Loan]:
        return self._loans.get_loans()

    def get_loan_by_id(self, loan_id: int) -> Optional[Loan]:
        return self._loans.get_loan_by_id(loan_id)

    def get_loan_installments(self, loan_id: int) -> list[LoanInstallment]:
        return self._loans.get_loan_installments(loan_id)

    # =========================================================================
    # Recurring Payments
    # =========================================================================

    def add_recurring_payment(
        self,
        amount: float,
        description: Optional[str],
        category_id: int,
        frequency: Frequency,
        due_day: Optional[int],
        next_due_date: Optional[int],
        reminder_days_before: int = 1,
    ) -> int:
        return self._recurring.add_recurring_payment(
            amount, description, category_id, frequency, due_day, next_due_date,
            reminder_days_before,
        )

    def update_recurring_payment_next_date(
        self,
        payment_id: int,
        next_due_date: int,
        last_paid_date: int,
        amount: float,
        category_id: int,
        note: Optional[str],
        account_id: Optional[int] = None,
    ) -> int:
        return self._recurring.update_recurring_payment_next_date(
            payment_id, next_due_date, last_paid_date, amount, category_id, note, account_id
        )

    def pay_recurring_payment(
        self, payment_id: int, paid_at: Optional[int] = None, account_id: Optional[int] = None
    ) -> Optional[int]:
        return self._recurring.pay_recurring_payment(payment_id, paid_at, account_id)

    def set_recurring_payment_active(self, payment_id: int, is_active: bool) -> bool:
        return self._recurring.set_recurring_payment_active(payment_id, is_active)

    def delete_recurring_payment(self, payment_id: int) -> bool:
        return self._recurring.delete_recurring_payment(payment_id)

    def get_recurring_payments(self) -> list[RecurringPaymentView]:
        return self._recurring.get_recurring_payments()

    def get_recurring_payment_by_id(self, payment_id: int) -> Optional[RecurringPayment]:
        return self._recurring.get_recurring_payment_by_id(payment_id)

    # =========================================================================
    # Reports
    # =========================================================================

    def get_balance(self) -> BalanceSummary:
        return self._queries.get_balance()

    def get_account_balances(self) -> dict[str, float]:
        return self._queries.get_account_balances()

    def get_item_consumption_report(self, start_date: int, end_date: int) -> list[ItemConsumption]:
        return self._queries.get_item_consumption_report(start_date, end_date)

    def get_daily_trend(self, start_date: int, end_date: int) -> list[TrendPoint]:
        return self._queries.get_daily_trend(start_date, end_date)

    def get_monthly_trend_by_range(self, start_date: int, end_date: int) -> list[TrendPoint]:
        return self._queries.get_monthly_trend_by_range(start_date, end_date)

    def get_spending_by_category(self, start_date: int, end_date: int) -> list[CategorySpending]:
        return self._queries.get_spending_by_category(start_date, end_date)

    def get_upcoming_bills(self, now: Optional[int] = None) -> list[RecurringPaymentView]:
        return self._queries.get_upcoming_bills(now)

    # =========================================================================
    # Snapshots
    # =========================================================================

    def dump_tables(self) -> dict:
        return self._snapshots.dump_tables()

    def replace_all(self, tables: dict):
        self._snapshots.replace_all(tables)

    def reset_database(self):
        self._snapshots.reset_database()

    def count_rows(self) -> dict[str, int]:
        return self._snapshots.count_rows()


# Singleton instance
_default_repository: Optional[LedgerRepository] = None


def get_repository(db_path: Optional[Path] = None) -> LedgerRepository:
    """Get or create the default repository instance."""
    global _default_repository
    if _default_repository is None:
        _default_repository = LedgerRepository(db_path or DEFAULT_DB_PATH)
    return _default_repository
