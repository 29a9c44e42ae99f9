"""Shared fixtures: a fresh ledger database per test."""
from datetime import datetime
from pathlib import Path

import pytest

from tallybook.db import LedgerRepository
from tallybook.models import CategoryType, to_epoch_ms


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Path for a throwaway database file."""
    return tmp_path / "finance.db"


@pytest.fixture
def repo(temp_db_path: Path) -> LedgerRepository:
    """Ledger on a fresh database with the default seed data."""
    return LedgerRepository(temp_db_path)


@pytest.fixture
def at():
    """Epoch milliseconds for a local date (noon unless given)."""
    def _at(year: int, month: int, day: int, hour: int = 12) -> int:
        return to_epoch_ms(datetime(year, month, day, hour))
    return _at


@pytest.fixture
def account_id(repo):
    """Look up a seeded account id by name."""
    def _lookup(name: str) -> int:
        return next(a.id for a in repo.get_accounts() if a.name == name)
    return _lookup


@pytest.fixture
def category_id(repo):
    """Look up a category id by name and type."""
    def _lookup(name: str, type: CategoryType = CategoryType.EXPENSE) -> int:
        return next(c.id for c in repo.get_categories(type) if c.name == name)
    return _lookup


@pytest.fixture
def balance_of(repo):
    """Current balance of an account."""
    def _balance(account: int) -> float:
        return repo.get_account_by_id(account).balance
    return _balance
