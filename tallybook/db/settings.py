"""
Settings repository for app-wide scalar preferences.

A single key/value table; the currency symbol is the main consumer.
"""

import logging
from typing import Optional

from tallybook.config import CURRENCY_SETTING_KEY, DEFAULT_CURRENCY

from .base import BaseRepository

logger = logging.getLogger(__name__)


class SettingsRepository(BaseRepository):
    """Repository for the key/value settings table."""

    def __init__(self, db_path=None, init_schema: bool = False):
        """
        Initialize the settings repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
        """
        super().__init__(db_path, init_schema=init_schema)

    def get_setting(self, key: str, conn=None) -> Optional[str]:
        """
        Get a setting value.

        Args:
            key: Setting key

        Returns:
            The stored string, or None if the key was never set
        """
        if not key:
            raise ValueError("Setting key cannot be empty")

        with self._get_connection(conn) as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None

    def set_setting(self, key: str, value: str, conn=None):
        """Insert or overwrite a setting value."""
        if not key:
            raise ValueError("Setting key cannot be empty")

        with self._get_connection(conn) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, value),
            )
            logger.info(f"Setting '{key}' updated")

    def get_all_settings(self) -> dict[str, str]:
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT key, value FROM settings ORDER BY key")
            return {row["key"]: row["value"] for row in cursor.fetchall()}

    def get_currency(self) -> str:
        """Get the currency symbol, falling back to the default."""
        return self.get_setting(CURRENCY_SETTING_KEY) or DEFAULT_CURRENCY

    def set_currency(self, symbol: str):
        self.set_setting(CURRENCY_SETTING_KEY, symbol)
