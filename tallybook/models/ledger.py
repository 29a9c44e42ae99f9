"""
Ledger enumerations for single-entry bookkeeping.

Defines category types, debt directions, loan and installment states, and
the schedule frequencies used by loans and recurring bills.
"""

import math
from datetime import datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta


class CategoryType(str, Enum):
    """
    Type of a category.

    The category type decides the sign of a transaction's effect:
    - INCOME: money flows into the account (balance increases)
    - EXPENSE: money flows out of the account (balance decreases)
    """

    INCOME = "income"
    EXPENSE = "expense"

    @property
    def sign(self) -> int:
        """Multiplier applied to a transaction amount posted under this type."""
        return 1 if self is CategoryType.INCOME else -1

    @property
    def opposite(self) -> "CategoryType":
        return CategoryType.EXPENSE if self is CategoryType.INCOME else CategoryType.INCOME


class DebtType(str, Enum):
    """Direction of a debt relative to the user."""

    BORROWED = "borrowed"
    LENT = "lent"

    @property
    def opening_type(self) -> CategoryType:
        """Borrowing is money received; lending is money leaving."""
        return CategoryType.INCOME if self is DebtType.BORROWED else CategoryType.EXPENSE

    @property
    def settlement_type(self) -> CategoryType:
        """Paying back a borrowed debt is an expense; collecting a loan out is income."""
        return self.opening_type.opposite


class LoanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class Frequency(str, Enum):
    """Schedule step used by loan installments and recurring bills."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def round_amount(value: float) -> int:
    """
    Round a monetary value to the nearest whole currency unit.

    Halves round up (2.5 -> 3, -2.5 -> -2), unlike Python's built-in
    banker's rounding.
    """
    return int(math.floor(value + 0.5))


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now().timestamp() * 1000)


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Local datetime for an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(value / 1000)


def step_date(start: datetime, frequency: Frequency, periods: int = 1) -> datetime:
    """
    Move `start` forward by a number of schedule periods.

    Months are calendar months counted from `start`, clamped to the last day
    of shorter months (Jan 31 + 1 month = Feb 28/29).
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.DAILY:
        return start + timedelta(days=periods)
    if frequency == Frequency.WEEKLY:
        return start + timedelta(days=7 * periods)
    if frequency == Frequency.MONTHLY:
        return start + relativedelta(months=periods)
    return start + relativedelta(years=periods)
