"""
Debt repository for borrow/lend tracking.

A debt optionally moves money when it is opened and when it is settled;
both postings go under the reserved "Debt" categories.
"""

import logging
from typing import TYPE_CHECKING, Optional

from tallybook.config import DEBT_CATEGORY
from tallybook.models import DebtType, now_ms, round_amount

from .base import BaseRepository
from .models import Debt

if TYPE_CHECKING:
    from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


class DebtRepository(BaseRepository):
    """Repository for debts owed by or to the user."""

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

    def add_debt(
        self,
        amount: float,
        description: Optional[str],
        type: DebtType,
        due_date: Optional[int],
        contact_name: str,
        account_id: Optional[int] = None,
    ) -> int:
        """
        Record a debt, optionally moving the money through an account.

        Borrowing posts income into `account_id`; lending posts an expense
        out of it.

        Returns:
            The new debt id
        """
        type = DebtType(type)
        amount = round_amount(amount)
        created_at = now_ms()

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO debts (amount, description, type, due_date, contact_name, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (amount, description, type.value, due_date, contact_name, created_at),
            )
            debt_id = cursor.lastrowid

            if account_id:
                category_type = type.opening_type
                category_id = self.transactions.accounts.get_or_create_auto_category(
                    conn, DEBT_CATEGORY, category_type
                )
                direction = "Borrowed from" if type is DebtType.BORROWED else "Lent to"
                note = f"Debt: {direction} {contact_name}"
                if description:
                    note += f" - {description}"

                self.transactions.post(
                    conn, amount, created_at, category_id, category_type, note, account_id
                )

            logger.info(f"Added {type.value} debt {debt_id} of {amount} with '{contact_name}'")
            return debt_id

    def mark_debt_as_paid(self, debt_id: int, account_id: Optional[int] = None) -> bool:
        """
        Mark a debt paid, optionally posting the settlement.

        Settlement inverts the opening direction: repaying a borrowed debt is
        an expense, collecting a lent one is income. A debt already paid is
        left alone so the settlement is never posted twice.

        Returns:
            True if the debt was open and is now paid
        """
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM debts WHERE id = ?", (debt_id,)).fetchone()
            if not row:
                logger.debug(f"Debt {debt_id} not found")
                return False

            debt = Debt.from_row(row)
            if debt.is_paid:
                logger.debug(f"Debt {debt_id} already paid")
                return False

            conn.execute("UPDATE debts SET is_paid = 1 WHERE id = ?", (debt_id,))

            if account_id:
                category_type = debt.type.settlement_type
                category_id = self.transactions.accounts.get_or_create_auto_category(
                    conn, DEBT_CATEGORY, category_type
                )
                direction = "Paid back to" if debt.type is DebtType.BORROWED else "Received from"
                self.transactions.post(
                    conn,
                    debt.amount,
                    now_ms(),
                    category_id,
                    category_type,
                    f"Debt Repayment: {direction} {debt.contact_name}",
                    account_id,
                )

            logger.info(f"Debt {debt_id} marked paid (account: {account_id})")
            return True

    def delete_debt(self, debt_id: int) -> bool:
        """Delete a debt. Transactions it spawned stay on the ledger."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM debts WHERE id = ?", (debt_id,))
            return cursor.rowcount > 0

    def get_debts(self) -> list[Debt]:
        """Get all debts, soonest due first."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM debts ORDER BY due_date ASC, id ASC")
            return [Debt.from_row(row) for row in cursor.fetchall()]

    def get_debt_by_id(self, debt_id: int) -> Optional[Debt]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM debts WHERE id = ?", (debt_id,)).fetchone()
            return Debt.from_row(row) if row else None
