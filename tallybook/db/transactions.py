"""
Transactions repository module for ledger postings.

Handles all transaction-related database operations including:
- Adding transactions (items, split allocations, unpaid remainders)
- Deleting transactions with exact balance reversal
- Transfers between accounts
- Reading transactions with their display attributes
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from tallybook.config import DEFAULT_OFFSET, DEFAULT_TRANSACTION_LIMIT, TRANSFER_CATEGORY
from tallybook.models import (
    AllocationInput,
    CategoryType,
    DebtType,
    ItemInput,
    PendingDueInfo,
    now_ms,
    round_amount,
)

from .base import BaseRepository
from .models import TransactionAllocation, TransactionItem, TransactionView

if TYPE_CHECKING:
    from .accounts import AccountRepository

logger = logging.getLogger(__name__)

TRANSACTION_VIEW_SQL = """
    SELECT t.*,
           c.name AS categoryName, c.type AS categoryType,
           c.color AS categoryColor, c.icon AS categoryIcon,
           a.name AS accountName
    FROM transactions t
    LEFT JOIN categories c ON t.categoryId = c.id
    LEFT JOIN accounts a ON t.accountId = a.id
"""


class TransactionRepository(BaseRepository):
    """
    Repository for managing transactions.

    Every posting applies its balance effect in the same unit of work as the
    row insert, and every deletion reverses that effect before the row goes.
    """

    def __init__(
        self,
        db_path=None,
        init_schema: bool = False,
        account_repo: Optional["AccountRepository"] = None,
    ):
        """
        Initialize the transaction repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
            account_repo: Account repository for balance and category operations
        """
        super().__init__(db_path, init_schema=init_schema)
        self._account_repo = account_repo

    @property
    def accounts(self) -> "AccountRepository":
        if not self._account_repo:
            raise RuntimeError("Account repository not set")
        return self._account_repo

    # =========================================================================
    # Create Operations
    # =========================================================================

    def post(
        self,
        conn,
        amount: float,
        date: int,
        category_id: Optional[int],
        category_type: CategoryType,
        note: Optional[str],
        account_id: Optional[int] = None,
    ) -> int:
        """
        Insert one single-account transaction and apply its balance effect.

        Shared by every flow that posts on the ledger's own behalf (transfers,
        debts, loans, recurring bills). Runs inside the caller's unit of work.

        Returns:
            The new transaction id
        """
        amount = round_amount(amount)
        cursor = conn.execute(
            "INSERT INTO transactions (amount, date, categoryId, note, accountId) "
            "VALUES (?, ?, ?, ?, ?)",
            (amount, date, category_id, note, account_id),
        )
        self.accounts.apply_delta(conn, account_id, amount, category_type)
        return cursor.lastrowid

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
        """
        Add a transaction and apply its balance effect.

        Amounts are rounded to whole units before they are stored or applied,
        so the stored row and the balance delta always agree.

        Args:
            amount: Full bill amount
            date: Epoch milliseconds
            category_id: Category whose type decides the sign
            note: Free text
            items: Itemized breakdown (informational)
            account_id: Single account to post against
            allocations: Per-account split; supersedes `account_id`
            pending_due: Unpaid remainder; the posted amount is `amount`
                minus this, and the remainder becomes a borrowed debt

        Returns:
            The new transaction id
        """
        items = items or []
        allocations = allocations or []
        amount = round_amount(amount)

        pending_amount = 0
        if pending_due is not None and pending_due.is_owed():
            pending_amount = round_amount(pending_due.amount)
        posted_amount = amount - pending_amount

        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO transactions (amount, date, categoryId, note, accountId) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    posted_amount,
                    date,
                    category_id,
                    note,
                    None if allocations else account_id,
                ),
            )
            transaction_id = cursor.lastrowid

            if pending_amount > 0:
                conn.execute(
                    """
                    INSERT INTO debts (
                        amount, description, type, due_date, contact_name,
                        created_at, transactionId
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        pending_amount,
                        f"Pending: {note}" if note else "Pending payment",
                        DebtType.BORROWED.value,
                        pending_due.due_date,
                        pending_due.contact_name,
                        now_ms(),
                        transaction_id,
                    ),
                )
                logger.info(
                    f"Recorded pending {pending_amount} owed to "
                    f"'{pending_due.contact_name}' for transaction {transaction_id}"
                )

            conn.executemany(
                "INSERT INTO transaction_items (transactionId, name, quantity, unit, pricePerUnit) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (transaction_id, item.name, item.quantity, item.unit, item.price_per_unit)
                    for item in items
                ],
            )

            category = self.accounts.get_category_by_id(category_id, conn=conn)
            if category is None:
                logger.warning(
                    f"Category {category_id} not found; transaction {transaction_id} "
                    f"has no balance effect"
                )
                return transaction_id

            if allocations:
                for alloc in allocations:
                    alloc_amount = round_amount(alloc.amount)
                    conn.execute(
                        "INSERT INTO transaction_allocations (transactionId, accountId, amount) "
                        "VALUES (?, ?, ?)",
                        (transaction_id, alloc.account_id, alloc_amount),
                    )
                    self.accounts.apply_delta(conn, alloc.account_id, alloc_amount, category.type)
            elif account_id:
                self.accounts.apply_delta(conn, account_id, posted_amount, category.type)

            logger.info(
                f"Added {category.type.value} transaction {transaction_id} "
                f"of {posted_amount} ({len(allocations)} allocations, {len(items)} items)"
            )
            return transaction_id

    def transfer_funds(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: float,
        date: Optional[int] = None,
        note: Optional[str] = None,
    ) -> tuple[int, int]:
        """
        Move money between two accounts.

        Posts an expense leg on the source and an income leg on the
        destination, both under the reserved "Transfer" categories.

        Returns:
            (expense leg id, income leg id)
        """
        amount = round_amount(amount)
        date = date if date is not None else now_ms()

        with self._get_connection() as conn:
            source = self.accounts.get_account_by_id(from_account_id, conn=conn)
            destination = self.accounts.get_account_by_id(to_account_id, conn=conn)
            source_name = source.name if source else str(from_account_id)
            destination_name = destination.name if destination else str(to_account_id)

            expense_category = self.accounts.get_or_create_auto_category(
                conn, TRANSFER_CATEGORY, CategoryType.EXPENSE
            )
            income_category = self.accounts.get_or_create_auto_category(
                conn, TRANSFER_CATEGORY, CategoryType.INCOME
            )

            out_id = self.post(
                conn,
                amount,
                date,
                expense_category,
                CategoryType.EXPENSE,
                note or f"Transfer to {destination_name}",
                from_account_id,
            )
            in_id = self.post(
                conn,
                amount,
                date,
                income_category,
                CategoryType.INCOME,
                note or f"Transfer from {source_name}",
                to_account_id,
            )

            logger.info(
                f"Transferred {amount} from account {from_account_id} to {to_account_id}"
            )
            return out_id, in_id

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def delete_transaction(self, transaction_id: int) -> bool:
        """
        Delete a transaction after reversing its balance effect.

        Items and allocations go with it by cascade.

        Returns:
            True if deleted, False if the transaction or its category is missing
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM transactions WHERE id = ?", (transaction_id,)
            ).fetchone()
            if not row:
                logger.debug(f"Transaction {transaction_id} not found, nothing to delete")
                return False

            category = self.accounts.get_category_by_id(row["categoryId"], conn=conn)
            if category is None:
                logger.warning(
                    f"Category of transaction {transaction_id} not found, leaving it in place"
                )
                return False

            allocations = conn.execute(
                "SELECT accountId, amount FROM transaction_allocations WHERE transactionId = ?",
                (transaction_id,),
            ).fetchall()

            if allocations:
                for alloc in allocations:
                    self.accounts.apply_delta(
                        conn, alloc["accountId"], alloc["amount"], category.type, reverse=True
                    )
            elif row["accountId"]:
                self.accounts.apply_delta(
                    conn, row["accountId"], row["amount"], category.type, reverse=True
                )

            conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            logger.info(f"Deleted transaction {transaction_id}")
            return True

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_transactions(
        self, limit: int = DEFAULT_TRANSACTION_LIMIT, offset: int = DEFAULT_OFFSET
    ) -> list[TransactionView]:
        """Get a page of transactions, newest first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                TRANSACTION_VIEW_SQL + " ORDER BY t.date DESC, t.id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            return [TransactionView.from_row(row) for row in cursor.fetchall()]

    def get_transactions_by_range(self, start_date: int, end_date: int) -> list[TransactionView]:
        """Get transactions dated within [start_date, end_date], newest first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                TRANSACTION_VIEW_SQL
                + " WHERE t.date BETWEEN ? AND ? ORDER BY t.date DESC, t.id DESC",
                (start_date, end_date),
            )
            return [TransactionView.from_row(row) for row in cursor.fetchall()]

    def get_transaction_by_id(self, transaction_id: int) -> Optional[TransactionView]:
        """Get one transaction with its items and allocations."""
        with self._get_connection() as conn:
            row = conn.execute(
                TRANSACTION_VIEW_SQL + " WHERE t.id = ?", (transaction_id,)
            ).fetchone()
            if not row:
                return None

            view = TransactionView.from_row(row)
            view.items = self.get_transaction_items(transaction_id, conn=conn)
            view.allocations = self.get_transaction_allocations(transaction_id, conn=conn)
            return view

    def get_transaction_items(self, transaction_id: int, conn=None) -> list[TransactionItem]:
        with self._get_connection(conn) as conn:
            cursor = conn.execute(
                "SELECT * FROM transaction_items WHERE transactionId = ? ORDER BY id",
                (transaction_id,),
            )
            return [TransactionItem.from_row(row) for row in cursor.fetchall()]

    def get_transaction_allocations(
        self, transaction_id: int, conn=None
    ) -> list[TransactionAllocation]:
        with self._get_connection(conn) as conn:
            cursor = conn.execute(
                "SELECT * FROM transaction_allocations WHERE transactionId = ? ORDER BY id",
                (transaction_id,),
            )
            return [TransactionAllocation.from_row(row) for row in cursor.fetchall()]

    def count_transactions(self) -> int:
        """Count all transactions."""
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]
