"""
Bootstrap script for the Tallybook ledger.

Loads the environment, configures logging, opens the ledger and prints a
summary of accounts, balances and bills that are coming due.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from tallybook.config import (
    DEFAULT_DB_PATH,
    LOG_DIR,
    LOG_FILE,
    LOG_FORMAT,
    VERSION,
    ensure_directories,
    get_log_level,
)
from tallybook.db import LedgerRepository
from tallybook.models import from_epoch_ms
from tallybook.services import AppState

logger = logging.getLogger(__name__)


def configure_logging():
    ensure_directories()
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_DIR / LOG_FILE),
            logging.StreamHandler(sys.stdout),
        ],
    )


def main():
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    configure_logging()
    if env_path.exists():
        logger.info(f"Loaded environment from {env_path}")

    # The environment may have changed after config was imported
    db_path = Path(os.getenv("TALLYBOOK_DB_PATH", str(DEFAULT_DB_PATH)))

    try:
        repository = LedgerRepository(db_path)
    except Exception as e:
        logger.critical(f"Could not open ledger at {db_path}: {e}", exc_info=True)
        print(f"\nCould not open ledger: {e}")
        print(f"Check {LOG_FILE} for more details.")
        sys.exit(1)

    state = AppState(repository).init()
    currency = state.currency

    print("=" * 60)
    print(f"Tallybook {VERSION}")
    print("=" * 60)
    print(f"Database: {db_path}")

    print("\nAccounts")
    print("-" * 40)
    for account in state.accounts:
        print(f"  {account.name:<20} {currency}{account.balance:>12,.0f}")

    print("\nTotals")
    print("-" * 40)
    print(f"  Income:   {currency}{state.balance.total_income:,.0f}")
    print(f"  Expense:  {currency}{state.balance.total_expense:,.0f}")
    print(f"  Balance:  {currency}{state.balance.balance:,.0f}")

    bills = repository.get_upcoming_bills()
    if bills:
        print("\nBills coming due")
        print("-" * 40)
        for bill in bills:
            due = from_epoch_ms(bill.next_due_date).strftime("%Y-%m-%d")
            name = bill.description or bill.category_name or "Bill"
            print(f"  {name:<20} {currency}{bill.amount:,.0f} on {due}")

    print(f"\n{len(state.transactions)} recent transactions loaded")


if __name__ == "__main__":
    main()
