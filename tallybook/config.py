"""
Configuration module for Tallybook.

Contains constants, settings, and configuration values used throughout the application.
"""

import os
from pathlib import Path

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = PROJECT_ROOT / "logs"

# Database configuration
DEFAULT_DB_PATH = Path(os.getenv("TALLYBOOK_DB_PATH", str(DATA_DIR / "finance.db")))
DB_TIMEOUT = 10.0  # seconds

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "tallybook.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Query limits
DEFAULT_TRANSACTION_LIMIT = 50
DEFAULT_OFFSET = 0

# Export configuration
MAX_EXPORT_ENTRIES = 100000
CSV_HEADER = ["Date", "Amount", "Type", "Category", "Account", "Note"]

# Backup configuration
BACKUP_VERSION = 1
BACKUP_FILE_SUFFIX = ".enc"
DEFAULT_BACKUP_NAME = "finance_backup"

# Settings keys
CURRENCY_SETTING_KEY = "currency"
DEFAULT_CURRENCY = "৳"

# Reserved categories created by the engine itself
TRANSFER_CATEGORY = "Transfer"
DEBT_CATEGORY = "Debt"
LOAN_CATEGORY = "Loan"
AUTO_CATEGORY_ICONS = {
    TRANSFER_CATEGORY: "bank-transfer",
    DEBT_CATEGORY: "handshake",
    LOAN_CATEGORY: "bank",
}
INCOME_COLOR = "#4CAF50"
EXPENSE_COLOR = "#F44336"

# Seed data, inserted only into empty tables
DEFAULT_CATEGORIES = [
    ("Salary", "income", "#4CAF50", "cash"),
    ("Freelance", "income", "#8BC34A", "laptop"),
    ("Groceries", "expense", "#FF9800", "cart"),
    ("Transport", "expense", "#2196F3", "bus"),
    ("Housing", "expense", "#9C27B0", "home"),
    ("Entertainment", "expense", "#E91E63", "movie"),
    ("Health", "expense", "#F44336", "hospital"),
    ("Education", "expense", "#3F51B5", "school"),
]

DEFAULT_ACCOUNTS = [
    ("Cash", "Cash", 0, "#4CAF50", "cash"),
    ("Bank", "Bank", 0, "#2196F3", "bank"),
    ("Mobile Money", "Mobile", 0, "#E91E63", "cellphone"),
]

# Error messages
ERROR_MESSAGES = {
    "invalid_backup": "Invalid file or wrong password",
}


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level():
    """Get the configured log level."""
    import logging

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(LOG_LEVEL.upper(), logging.INFO)
