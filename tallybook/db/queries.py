"""
Queries repository module for balance totals and report aggregations.

Handles all read-only reporting operations including:
- Balance summary (income, expense, authoritative account total)
- Item consumption over a date range
- Daily and monthly expense trends
- Spending by category
- Bills inside their reminder window
"""

import logging
from typing import Optional

from tallybook.models import CategoryType, now_ms

from .base import BaseRepository
from .models import (
    BalanceSummary,
    CategorySpending,
    ItemConsumption,
    RecurringPaymentView,
    TrendPoint,
)

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


class QueryRepository(BaseRepository):
    """
    Repository for reporting queries.

    Provides read-only query operations for analyzing ledger data. Dates are
    epoch milliseconds, ranges are inclusive, buckets use local time.
    """

    def __init__(self, db_path=None, init_schema: bool = False):
        """
        Initialize the query repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
        """
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Balance Queries
    # =========================================================================

    def get_balance(self) -> BalanceSummary:
        """
        Get income and expense totals plus the sum of account balances.

        The balance is taken from the accounts, not from income minus expense,
        so it includes seed balances and is unaffected by transfers.
        """
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN c.type = 'income' THEN t.amount END), 0) AS income,
                    COALESCE(SUM(CASE WHEN c.type = 'expense' THEN t.amount END), 0) AS expense
                FROM transactions t
                JOIN categories c ON t.categoryId = c.id
                """
            ).fetchone()
            balance = conn.execute(
                "SELECT COALESCE(SUM(balance), 0) FROM accounts"
            ).fetchone()[0]

            return BalanceSummary(
                total_income=row["income"],
                total_expense=row["expense"],
                balance=balance,
            )

    def get_account_balances(self) -> dict[str, float]:
        """Map each account name to its running balance."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT name, balance FROM accounts ORDER BY name")
            return {row["name"]: row["balance"] for row in cursor.fetchall()}

    # =========================================================================
    # Report Queries
    # =========================================================================

    def get_item_consumption_report(self, start_date: int, end_date: int) -> list[ItemConsumption]:
        """Total quantity and spend per item name and unit, biggest spend first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT
                    ti.name,
                    ti.unit,
                    SUM(ti.quantity) AS totalQuantity,
                    SUM(ti.quantity * ti.pricePerUnit) AS totalSpent
                FROM transaction_items ti
                JOIN transactions t ON ti.transactionId = t.id
                WHERE t.date BETWEEN ? AND ?
                GROUP BY ti.name, ti.unit
                ORDER BY totalSpent DESC
                """,
                (start_date, end_date),
            )
            return [
                ItemConsumption(
                    name=row["name"],
                    unit=row["unit"],
                    total_quantity=row["totalQuantity"] or 0,
                    total_spent=row["totalSpent"] or 0,
                )
                for row in cursor.fetchall()
            ]

    def get_daily_trend(self, start_date: int, end_date: int) -> list[TrendPoint]:
        """Expense totals per day of month ("01".."31")."""
        return self._expense_trend("%d", start_date, end_date)

    def get_monthly_trend_by_range(self, start_date: int, end_date: int) -> list[TrendPoint]:
        """Expense totals per month ("YYYY-MM")."""
        return self._expense_trend("%Y-%m", start_date, end_date)

    def _expense_trend(self, bucket: str, start_date: int, end_date: int) -> list[TrendPoint]:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT
                    strftime(?, t.date / 1000, 'unixepoch', 'localtime') AS bucket,
                    SUM(t.amount) AS expense
                FROM transactions t
                JOIN categories c ON t.categoryId = c.id
                WHERE c.type = ? AND t.date BETWEEN ? AND ?
                GROUP BY bucket
                ORDER BY bucket ASC
                """,
                (bucket, CategoryType.EXPENSE.value, start_date, end_date),
            )
            return [
                TrendPoint(label=row["bucket"], expense=row["expense"] or 0)
                for row in cursor.fetchall()
            ]

    def get_spending_by_category(self, start_date: int, end_date: int) -> list[CategorySpending]:
        """Expense totals per category, largest first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT c.id, c.name, c.color, SUM(t.amount) AS total
                FROM transactions t
                JOIN categories c ON t.categoryId = c.id
                WHERE c.type = ? AND t.date BETWEEN ? AND ?
                GROUP BY c.id
                ORDER BY total DESC
                """,
                (CategoryType.EXPENSE.value, start_date, end_date),
            )
            return [
                CategorySpending(
                    category_id=row["id"],
                    name=row["name"],
                    color=row["color"],
                    total=row["total"] or 0,
                )
                for row in cursor.fetchall()
            ]

    def get_upcoming_bills(self, now: Optional[int] = None) -> list[RecurringPaymentView]:
        """
        Get active bills whose reminder window has opened.

        A bill is due for a reminder once `now` reaches
        `next_due_date - reminder_days_before` days.
        """
        now = now if now is not None else now_ms()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT r.*, c.name AS categoryName, c.color AS categoryColor,
                       c.icon AS categoryIcon
                FROM recurring_payments r
                LEFT JOIN categories c ON r.categoryId = c.id
                WHERE r.is_active = 1
                  AND r.next_due_date IS NOT NULL
                  AND r.next_due_date - COALESCE(r.reminder_days_before, 0) * ? <= ?
                ORDER BY r.next_due_date ASC
                """,
                (DAY_MS, now),
            )
            bills = [RecurringPaymentView.from_row(row) for row in cursor.fetchall()]
            logger.debug(f"{len(bills)} bills inside their reminder window")
            return bills
