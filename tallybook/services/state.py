"""
Application state snapshot.

Holds the last-loaded view of the ledger for a presentation layer. The
object is owned by its caller; nothing here is global. Every mutating call
made through it reloads the whole snapshot so it always matches the store.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from tallybook.config import CURRENCY_SETTING_KEY, DEFAULT_CURRENCY, DEFAULT_TRANSACTION_LIMIT
from tallybook.db import (
    Account,
    BalanceSummary,
    Category,
    Debt,
    LedgerRepository,
    Loan,
    RecurringPaymentView,
    TransactionView,
)

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Last-loaded snapshot of accounts, categories, transactions and the rest."""

    repository: LedgerRepository
    transaction_limit: int = DEFAULT_TRANSACTION_LIMIT
    accounts: list[Account] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    transactions: list[TransactionView] = field(default_factory=list)
    debts: list[Debt] = field(default_factory=list)
    recurring_payments: list[RecurringPaymentView] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    balance: BalanceSummary = field(default_factory=BalanceSummary)
    currency: str = DEFAULT_CURRENCY

    def init(self) -> "AppState":
        """Persist the default currency on first run, then load everything."""
        saved = self.repository.get_setting(CURRENCY_SETTING_KEY)
        if saved is None:
            self.repository.set_currency(DEFAULT_CURRENCY)
        return self.refresh()

    def refresh(self) -> "AppState":
        """Reload every collection from the repository in one pass."""
        repo = self.repository
        self.accounts = repo.get_accounts()
        self.categories = repo.get_categories()
        self.transactions = repo.get_transactions(self.transaction_limit, 0)
        self.debts = repo.get_debts()
        self.recurring_payments = repo.get_recurring_payments()
        self.loans = repo.get_loans()
        self.balance = repo.get_balance()
        self.currency = repo.get_currency()
        logger.debug(
            f"State refreshed: {len(self.accounts)} accounts, "
            f"{len(self.transactions)} transactions"
        )
        return self

    def filter_transactions(self, start_date: int, end_date: int) -> list[TransactionView]:
        """Replace the loaded transactions with those in an inclusive date range."""
        self.transactions = self.repository.get_transactions_by_range(start_date, end_date)
        return self.transactions

    def set_currency(self, symbol: str):
        self.repository.set_currency(symbol)
        self.currency = symbol

    def account_by_id(self, account_id: int) -> Optional[Account]:
        return next((a for a in self.accounts if a.id == account_id), None)

    def category_by_id(self, category_id: int) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)
