"""
Recurring bill repository.

Bills are templates with a rolling next due date. Nothing advances on a
timer: a bill moves forward only when it is paid, and each payment becomes
an ordinary ledger transaction.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from dateutil.relativedelta import relativedelta

from tallybook.models import (
    CategoryType,
    Frequency,
    from_epoch_ms,
    now_ms,
    round_amount,
    step_date,
    to_epoch_ms,
)

from .base import BaseRepository
from .models import RecurringPayment, RecurringPaymentView

if TYPE_CHECKING:
    from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


def next_due_date_for(due_day: int, today: Optional[datetime] = None) -> datetime:
    """
    First occurrence of `due_day` on or after today.

    Days past the end of a month clamp to its last day.
    """
    today = today or datetime.now()
    today = today.replace(hour=0, minute=0, second=0, microsecond=0)

    candidate = today + relativedelta(day=due_day)
    if candidate < today:
        candidate = today + relativedelta(months=1, day=due_day)
    return candidate


class RecurringRepository(BaseRepository):
    """Repository for recurring bill templates."""

    def __init__(
        self,
        db_path=None,
        init_schema: bool = False,
        transaction_repo: Optional["TransactionRepository"] = None,
    ):
        super().__init__(db_path, init_schema=init_schema)
        self._transaction_repo = transaction_repo

    @property
    def transactions(self) -> "TransactionRepository":
        if not self._transaction_repo:
            raise RuntimeError("Transaction repository not set")
        return self._transaction_repo

    def _require_expense_category(self, conn, category_id: int):
        category = self.transactions.accounts.get_category_by_id(category_id, conn=conn)
        if category is not None and category.type != CategoryType.EXPENSE:
            raise ValueError(f"Recurring payments need an expense category, got '{category.name}'")

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
        """
        Create a recurring bill. No money moves.

        Without a `next_due_date`, a bill with a `due_day` is first due on the
        next occurrence of that day.

        Raises:
            ValueError: If the category is an income category; bills are
                always paid as debits
        """
        frequency = Frequency(frequency)
        if next_due_date is None and due_day is not None:
            next_due_date = to_epoch_ms(next_due_date_for(due_day))

        with self._get_connection() as conn:
            self._require_expense_category(conn, category_id)

            cursor = conn.execute(
                """
                INSERT INTO recurring_payments (
                    amount, description, categoryId, frequency, due_day,
                    next_due_date, reminder_days_before
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    round_amount(amount),
                    description,
                    category_id,
                    frequency.value,
                    due_day,
                    next_due_date,
                    reminder_days_before,
                ),
            )
            logger.info(f"Added recurring payment {cursor.lastrowid} '{description}'")
            return cursor.lastrowid

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
        """
        Record a bill payment and roll the bill forward.

        The payment is always posted as a debit.

        Returns:
            The id of the posted transaction

        Raises:
            ValueError: If the bill does not exist or the category is not an
                expense category. Nothing is written in either case.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE recurring_payments SET next_due_date = ?, last_paid_date = ? WHERE id = ?",
                (next_due_date, last_paid_date, payment_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Recurring payment {payment_id} not found")
            self._require_expense_category(conn, category_id)

            transaction_id = self.transactions.post(
                conn,
                amount,
                last_paid_date,
                category_id,
                CategoryType.EXPENSE,
                note,
                account_id,
            )
            logger.info(
                f"Paid recurring payment {payment_id} (transaction {transaction_id}), "
                f"next due {next_due_date}"
            )
            return transaction_id

    def pay_recurring_payment(
        self,
        payment_id: int,
        paid_at: Optional[int] = None,
        account_id: Optional[int] = None,
    ) -> Optional[int]:
        """
        Pay a bill for its current period and advance it by one period.

        Returns:
            The posted transaction id, or None if the bill does not exist
        """
        payment = self.get_recurring_payment_by_id(payment_id)
        if payment is None:
            logger.debug(f"Recurring payment {payment_id} not found")
            return None

        paid_at = paid_at if paid_at is not None else now_ms()
        base = payment.next_due_date if payment.next_due_date is not None else paid_at
        next_due = to_epoch_ms(step_date(from_epoch_ms(base), payment.frequency))

        return self.update_recurring_payment_next_date(
            payment_id,
            next_due,
            paid_at,
            payment.amount,
            payment.category_id,
            payment.description,
            account_id,
        )

    def set_recurring_payment_active(self, payment_id: int, is_active: bool) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE recurring_payments SET is_active = ? WHERE id = ?",
                (1 if is_active else 0, payment_id),
            )
            return cursor.rowcount > 0

    def delete_recurring_payment(self, payment_id: int) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM recurring_payments WHERE id = ?", (payment_id,))
            return cursor.rowcount > 0

    def get_recurring_payments(self) -> list[RecurringPaymentView]:
        """Get all bills with category display fields, soonest due first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT r.*, c.name AS categoryName, c.color AS categoryColor,
                       c.icon AS categoryIcon
                FROM recurring_payments r
                LEFT JOIN categories c ON r.categoryId = c.id
                ORDER BY r.next_due_date ASC, r.id ASC
                """
            )
            return [RecurringPaymentView.from_row(row) for row in cursor.fetchall()]

    def get_recurring_payment_by_id(self, payment_id: int) -> Optional[RecurringPayment]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM recurring_payments WHERE id = ?", (payment_id,)
            ).fetchone()
            return RecurringPayment.from_row(row) if row else None
