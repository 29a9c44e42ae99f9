"""
Snapshot repository for whole-database dump, restore and reset.

Rows are read and written as plain column dictionaries with their primary
keys preserved, so child rows keep pointing at the right parents.
"""

import logging
from typing import Any

from .base import DELETE_ORDER, BaseRepository

logger = logging.getLogger(__name__)

# (table, columns) in referential insert order: parents before children
RESTORE_ORDER = [
    ("accounts", ["id", "name", "type", "balance", "color", "icon"]),
    ("categories", ["id", "name", "type", "color", "icon"]),
    ("transactions", ["id", "amount", "date", "categoryId", "note", "accountId"]),
    ("transaction_items", ["id", "transactionId", "name", "quantity", "unit", "pricePerUnit"]),
    ("transaction_allocations", ["id", "transactionId", "accountId", "amount"]),
    (
        "debts",
        [
            "id", "amount", "description", "type", "due_date", "is_paid",
            "contact_name", "created_at", "transactionId",
        ],
    ),
    (
        "recurring_payments",
        [
            "id", "amount", "description", "categoryId", "frequency", "due_day",
            "next_due_date", "reminder_days_before", "is_active", "last_paid_date",
        ],
    ),
    (
        "loans",
        [
            "id", "title", "principal_amount", "interest_rate", "total_repayable",
            "start_date", "installment_frequency", "installment_amount", "status",
            "description", "remaining_amount",
        ],
    ),
    ("loan_installments", ["id", "loanId", "due_date", "amount", "status", "paid_date"]),
    ("settings", ["key", "value"]),
]

TABLE_COLUMNS = dict(RESTORE_ORDER)


class SnapshotRepository(BaseRepository):
    """Repository for full-table snapshots."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def dump_tables(self) -> dict[str, list[dict[str, Any]]]:
        """Read every table in full, keyed by table name."""
        with self._get_connection() as conn:
            snapshot = {}
            for table, columns in RESTORE_ORDER:
                order = "key" if table == "settings" else "id"
                cursor = conn.execute(
                    f"SELECT {', '.join(columns)} FROM {table} ORDER BY {order}"
                )
                snapshot[table] = [dict(row) for row in cursor.fetchall()]
            logger.debug(
                "Dumped tables: "
                + ", ".join(f"{t}={len(rows)}" for t, rows in snapshot.items())
            )
            return snapshot

    def replace_all(self, tables: dict[str, list[dict[str, Any]]]):
        """
        Replace the whole database with the given rows in one unit of work.

        Every table is emptied children-first, then refilled parents-first
        with explicit ids. Tables missing from `tables` stay empty. Any
        failure rolls the database back to its previous contents.
        """
        with self._get_connection() as conn:
            self._delete_all(conn)

            for table, columns in RESTORE_ORDER:
                rows = tables.get(table) or []
                if not rows:
                    continue
                placeholders = ", ".join("?" for _ in columns)
                conn.executemany(
                    f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                    [tuple(row.get(column) for column in columns) for row in rows],
                )

            logger.info(
                "Restored tables: "
                + ", ".join(f"{t}={len(tables.get(t) or [])}" for t, _ in RESTORE_ORDER)
            )

    def reset_database(self):
        """Delete every row of every table without reseeding."""
        with self._get_connection() as conn:
            self._delete_all(conn)
            logger.info("Database reset")

    @staticmethod
    def _delete_all(conn):
        for table in DELETE_ORDER:
            conn.execute(f"DELETE FROM {table}")

    def count_rows(self) -> dict[str, int]:
        """Row count of every table."""
        with self._get_connection() as conn:
            return {table: self._count_rows(conn, table) for table, _ in RESTORE_ORDER}
