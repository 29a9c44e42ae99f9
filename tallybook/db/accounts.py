"""
Accounts repository module for money accounts and categories.

Handles:
- Account CRUD (the only place a balance is set directly)
- Category CRUD
- Reserved auto-categories ("Transfer", "Debt", "Loan")
- The balance-delta primitive every posting goes through
"""

import logging
from typing import Optional

from tallybook.config import AUTO_CATEGORY_ICONS, EXPENSE_COLOR, INCOME_COLOR
from tallybook.models.ledger import CategoryType, round_amount

from .base import BaseRepository
from .models import Account, Category

logger = logging.getLogger(__name__)


class AccountRepository(BaseRepository):
    """
    Repository for managing accounts and categories.

    Account balances change in two ways only: an explicit value written by
    `add_account`/`update_account`, or a signed delta from `apply_delta`.
    """

    def __init__(self, db_path=None, init_schema: bool = False):
        """
        Initialize the account repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
        """
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Account Operations
    # =========================================================================

    def add_account(
        self,
        name: str,
        type: str,
        balance: float = 0,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Account:
        """
        Create an account with an explicit starting balance.

        Args:
            name: Display name
            type: Free-form label (Cash, Bank, Mobile...)
            balance: Initial balance, rounded to whole units
            color: Display colour
            icon: Display icon name

        Returns:
            The created Account
        """
        if not name or not name.strip():
            raise ValueError("Account name cannot be empty")

        balance = round_amount(balance)
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO accounts (name, type, balance, color, icon) VALUES (?, ?, ?, ?, ?)",
                (name.strip(), type, balance, color, icon),
            )
            account_id = cursor.lastrowid
            logger.info(f"Created account '{name}' (id: {account_id}, balance: {balance})")

        return Account(
            id=account_id, name=name.strip(), type=type, balance=balance, color=color, icon=icon
        )

    def update_account(
        self,
        account_id: int,
        name: str,
        type: str,
        balance: float,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> bool:
        """
        Overwrite an account, including its balance.

        Returns:
            True if the account existed
        """
        if not name or not name.strip():
            raise ValueError("Account name cannot be empty")

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE accounts SET name = ?, type = ?, balance = ?, color = ?, icon = ?
                WHERE id = ?
                """,
                (name.strip(), type, round_amount(balance), color, icon, account_id),
            )
            updated = cursor.rowcount > 0
            if updated:
                logger.info(f"Updated account {account_id}")
            return updated

    def delete_account(self, account_id: int) -> bool:
        """
        Delete an account.

        Raises:
            sqlite3.IntegrityError: If transactions still reference the account
        """
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted account {account_id}")
            return deleted

    def get_accounts(self) -> list[Account]:
        """Get all accounts ordered by name."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM accounts ORDER BY name, id")
            return [Account.from_row(row) for row in cursor.fetchall()]

    def get_account_by_id(self, account_id: int, conn=None) -> Optional[Account]:
        with self._get_connection(conn) as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
            return Account.from_row(row) if row else None

    def can_cover(self, account_id: int, amount: float) -> bool:
        """
        Check whether an account holds at least `amount`.

        The ledger never refuses an overdraft itself; callers that want to
        prevent one ask here first.
        """
        account = self.get_account_by_id(account_id)
        if account is None:
            return False
        return account.balance >= round_amount(amount)

    def apply_delta(
        self,
        conn,
        account_id: Optional[int],
        amount: float,
        category_type: CategoryType,
        reverse: bool = False,
    ):
        """
        Apply the signed effect of a posting to one account's balance.

        Income adds `amount`, expense subtracts it; `reverse` flips the sign
        to undo an earlier posting. Must run inside the caller's unit of work.
        """
        if not account_id:
            return

        delta = category_type.sign * amount
        if reverse:
            delta = -delta

        conn.execute(
            "UPDATE accounts SET balance = balance + ? WHERE id = ?",
            (delta, account_id),
        )
        logger.debug(f"Account {account_id} balance changed by {delta}")

    # =========================================================================
    # Category Operations
    # =========================================================================

    def add_category(
        self,
        name: str,
        type: CategoryType,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """Create a category."""
        if not name or not name.strip():
            raise ValueError("Category name cannot be empty")

        type = CategoryType(type)
        with self._get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (name, type, color, icon) VALUES (?, ?, ?, ?)",
                (name.strip(), type.value, color, icon),
            )
            category_id = cursor.lastrowid
            logger.info(f"Created category '{name}' ({type.value}, id: {category_id})")

        return Category(id=category_id, name=name.strip(), type=type, color=color, icon=icon)

    def update_category(
        self,
        category_id: int,
        name: str,
        type: CategoryType,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> bool:
        """
        Overwrite a category. Balances are not touched.

        Raises:
            ValueError: If the type would change while transactions or
                recurring bills still use the category
        """
        type = CategoryType(type)
        with self._get_connection() as conn:
            current = self.get_category_by_id(category_id, conn=conn)
            if current is not None and current.type != type:
                in_use = conn.execute(
                    """
                    SELECT EXISTS (SELECT 1 FROM transactions WHERE categoryId = ?)
                        OR EXISTS (SELECT 1 FROM recurring_payments WHERE categoryId = ?)
                    """,
                    (category_id, category_id),
                ).fetchone()[0]
                if in_use:
                    raise ValueError(
                        f"Cannot change the type of category '{current.name}' while it is in use"
                    )

            cursor = conn.execute(
                "UPDATE categories SET name = ?, type = ?, color = ?, icon = ? WHERE id = ?",
                (name.strip(), type.value, color, icon, category_id),
            )
            return cursor.rowcount > 0

    def delete_category(self, category_id: int) -> bool:
        """
        Delete a category.

        Raises:
            sqlite3.IntegrityError: If transactions still reference the category
        """
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted category {category_id}")
            return deleted

    def get_categories(self, type: Optional[CategoryType] = None) -> list[Category]:
        """Get categories ordered by name, optionally only one type."""
        with self._get_connection() as conn:
            if type:
                cursor = conn.execute(
                    "SELECT * FROM categories WHERE type = ? ORDER BY name, id",
                    (CategoryType(type).value,),
                )
            else:
                cursor = conn.execute("SELECT * FROM categories ORDER BY name, id")
            return [Category.from_row(row) for row in cursor.fetchall()]

    def get_category_by_id(self, category_id: Optional[int], conn=None) -> Optional[Category]:
        if category_id is None:
            return None
        with self._get_connection(conn) as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
            return Category.from_row(row) if row else None

    def get_or_create_auto_category(
        self, conn, name: str, type: CategoryType
    ) -> Optional[int]:
        """
        Look up a reserved category by name and type, creating it if absent.

        Repeated calls for the same name and type return the same row.

        Returns:
            The category id, or None if the insert produced no id
        """
        row = conn.execute(
            "SELECT id FROM categories WHERE name = ? AND type = ? ORDER BY id LIMIT 1",
            (name, type.value),
        ).fetchone()
        if row:
            return row["id"]

        cursor = conn.execute(
            "INSERT INTO categories (name, type, color, icon) VALUES (?, ?, ?, ?)",
            (
                name,
                type.value,
                INCOME_COLOR if type is CategoryType.INCOME else EXPENSE_COLOR,
                AUTO_CATEGORY_ICONS.get(name),
            ),
        )
        if not cursor.lastrowid:
            logger.warning(f"Could not create auto-category '{name}' ({type.value})")
            return None

        logger.info(f"Created auto-category '{name}' ({type.value}, id: {cursor.lastrowid})")
        return cursor.lastrowid
