"""
Base repository module with connection management and schema initialization.

Provides the foundation for all database operations in the Tallybook ledger:
the unit-of-work connection primitive shared by every repository, the
create-if-absent schema, additive column migrations and one-time seeding.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from tallybook.config import DB_TIMEOUT, DEFAULT_ACCOUNTS, DEFAULT_CATEGORIES, DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

TABLES = [
    (
        "categories",
        """
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
            color TEXT,
            icon TEXT
        )
        """,
    ),
    (
        "accounts",
        """
        CREATE TABLE IF NOT EXISTS accounts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            balance REAL DEFAULT 0,
            color TEXT,
            icon TEXT
        )
        """,
    ),
    (
        "transactions",
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            amount REAL NOT NULL CHECK(amount >= 0),
            date INTEGER NOT NULL,
            note TEXT,
            categoryId INTEGER REFERENCES categories(id),
            accountId INTEGER REFERENCES accounts(id)
        )
        """,
    ),
    (
        "transaction_items",
        """
        CREATE TABLE IF NOT EXISTS transaction_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            transactionId INTEGER NOT NULL
                REFERENCES transactions(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            quantity REAL DEFAULT 0,
            unit TEXT,
            pricePerUnit REAL DEFAULT 0
        )
        """,
    ),
    (
        "transaction_allocations",
        """
        CREATE TABLE IF NOT EXISTS transaction_allocations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            transactionId INTEGER NOT NULL
                REFERENCES transactions(id) ON DELETE CASCADE,
            accountId INTEGER NOT NULL REFERENCES accounts(id),
            amount REAL NOT NULL
        )
        """,
    ),
    (
        "debts",
        """
        CREATE TABLE IF NOT EXISTS debts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            amount REAL NOT NULL,
            description TEXT,
            type TEXT NOT NULL CHECK(type IN ('borrowed', 'lent')),
            due_date INTEGER,
            is_paid INTEGER DEFAULT 0 CHECK(is_paid IN (0, 1)),
            contact_name TEXT,
            created_at INTEGER,
            transactionId INTEGER REFERENCES transactions(id) ON DELETE SET NULL
        )
        """,
    ),
    (
        "recurring_payments",
        """
        CREATE TABLE IF NOT EXISTS recurring_payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            amount REAL NOT NULL,
            description TEXT,
            categoryId INTEGER REFERENCES categories(id),
            frequency TEXT NOT NULL,
            due_day INTEGER,
            next_due_date INTEGER,
            reminder_days_before INTEGER DEFAULT 1,
            is_active INTEGER DEFAULT 1,
            last_paid_date INTEGER
        )
        """,
    ),
    (
        "loans",
        """
        CREATE TABLE IF NOT EXISTS loans (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            principal_amount REAL NOT NULL,
            interest_rate REAL DEFAULT 0,
            total_repayable REAL NOT NULL,
            start_date INTEGER NOT NULL,
            installment_frequency TEXT NOT NULL,
            installment_amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'active'
                CHECK(status IN ('active', 'completed')),
            description TEXT,
            remaining_amount REAL NOT NULL
        )
        """,
    ),
    (
        "loan_installments",
        """
        CREATE TABLE IF NOT EXISTS loan_installments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            loanId INTEGER NOT NULL REFERENCES loans(id) ON DELETE CASCADE,
            due_date INTEGER NOT NULL,
            amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'paid')),
            paid_date INTEGER
        )
        """,
    ),
    (
        "settings",
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT
        )
        """,
    ),
]

# Additive column migrations for databases created by older releases.
# Each runs on every startup; "duplicate column name" means already applied.
MIGRATIONS = [
    "ALTER TABLE transactions ADD COLUMN accountId INTEGER REFERENCES accounts(id)",
    "ALTER TABLE debts ADD COLUMN transactionId INTEGER "
    "REFERENCES transactions(id) ON DELETE SET NULL",
]

INDEXES = [
    ("idx_transactions_date", "transactions", "date"),
    ("idx_transactions_category", "transactions", "categoryId"),
    ("idx_transactions_account", "transactions", "accountId"),
    ("idx_items_transaction", "transaction_items", "transactionId"),
    ("idx_allocations_transaction", "transaction_allocations", "transactionId"),
    ("idx_categories_name_type", "categories", "name, type"),
    ("idx_debts_due_date", "debts", "due_date"),
    ("idx_recurring_next_due", "recurring_payments", "next_due_date"),
    ("idx_installments_loan", "loan_installments", "loanId"),
]

# Children before parents, following foreign-key direction.
DELETE_ORDER = [
    "transaction_items",
    "transaction_allocations",
    "loan_installments",
    "debts",
    "transactions",
    "recurring_payments",
    "loans",
    "categories",
    "accounts",
    "settings",
]


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Every mutating operation runs inside one unit of work: a single connection
    whose statements commit together or roll back together. Operations that
    compose other operations pass the open connection down instead of opening
    a second one, so the whole composition stays one atomic scope.
    """

    def __init__(self, db_path: Optional[Path] = None, init_schema: bool = True):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/finance.db
            init_schema: Whether to initialize the schema on startup
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._ensure_db_directory()
        if init_schema:
            self._init_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    @contextmanager
    def _get_connection(self, conn: Optional[sqlite3.Connection] = None):
        """
        Context manager for one unit of work.

        When `conn` is given the caller already owns an open unit of work and
        this one joins it: nothing is committed or rolled back here.
        """
        if conn is not None:
            yield conn
            return

        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
            conn.row_factory = sqlite3.Row
            # Enable foreign keys
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            logger.error(f"Database locked or operational error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    def _init_schema(self):
        """Create tables, apply column migrations and seed reference data."""
        with self._get_connection() as conn:
            for _, ddl in TABLES:
                conn.execute(ddl)

            self._apply_migrations(conn)
            self._create_indexes(conn)
            self._seed_defaults(conn)

            logger.debug("Ledger schema initialized successfully")

    def _apply_migrations(self, conn):
        """Apply additive migrations, treating already-present columns as done."""
        for statement in MIGRATIONS:
            try:
                conn.execute(statement)
                logger.info(f"Applied migration: {statement}")
            except sqlite3.OperationalError as e:
                if "duplicate column name" in str(e).lower():
                    logger.debug(f"Migration already applied: {statement}")
                    continue
                raise

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        for index_name, table, columns in INDEXES:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)

    def _seed_defaults(self, conn):
        """Seed default categories and accounts, each only into an empty table."""
        if self._count_rows(conn, "categories") == 0:
            conn.executemany(
                "INSERT INTO categories (name, type, color, icon) VALUES (?, ?, ?, ?)",
                DEFAULT_CATEGORIES,
            )
            logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")

        if self._count_rows(conn, "accounts") == 0:
            conn.executemany(
                "INSERT INTO accounts (name, type, balance, color, icon) VALUES (?, ?, ?, ?, ?)",
                DEFAULT_ACCOUNTS,
            )
            logger.info(f"Seeded {len(DEFAULT_ACCOUNTS)} default accounts")

    @staticmethod
    def _count_rows(conn, table: str) -> int:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def get_tables(self) -> list[str]:
        """List the user tables present in the database."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
            return [row[0] for row in cursor.fetchall()]

    def get_columns(self, table: str) -> list[str]:
        """List the column names of a table."""
        with self._get_connection() as conn:
            cursor = conn.execute(f"PRAGMA table_info({table})")
            return [row[1] for row in cursor.fetchall()]
