"""
Loan amortization for flat-interest installment loans.

Interest is charged once on the principal; the repayable total is split into
equal installments, with the last one absorbing the rounding remainder.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from tallybook.db.models import Loan
from tallybook.models import (
    Frequency,
    LoanStatus,
    from_epoch_ms,
    round_amount,
    step_date,
    to_epoch_ms,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallmentPlan:
    """One scheduled installment before it is stored."""

    due_date: int  # epoch milliseconds
    amount: int


@dataclass
class LoanPlan:
    """A computed loan, ready to be handed to `LoanRepository.add_loan`."""

    title: str
    principal_amount: int
    interest_rate: float
    total_interest: int
    total_repayable: int
    start_date: int
    installment_frequency: Frequency
    installment_amount: int
    description: Optional[str] = None
    installments: list[InstallmentPlan] = field(default_factory=list)

    @property
    def status(self) -> LoanStatus:
        return LoanStatus.ACTIVE

    def schedule_total(self) -> int:
        """Sum of every scheduled installment."""
        return sum(i.amount for i in self.installments)

    def to_loan(self) -> Loan:
        """The loan row to store for this plan."""
        return Loan(
            id=None,
            title=self.title,
            principal_amount=self.principal_amount,
            interest_rate=self.interest_rate,
            total_repayable=self.total_repayable,
            start_date=self.start_date,
            installment_frequency=self.installment_frequency,
            installment_amount=self.installment_amount,
            status=self.status,
            description=self.description,
            remaining_amount=self.total_repayable,
        )


def calculate_totals(principal: float, interest_rate: float, count: int) -> tuple[int, int, int]:
    """
    Compute the flat-interest totals of a loan.

    Returns:
        (total_interest, total_repayable, installment_amount)
    """
    if count <= 0:
        raise ValueError(f"Installment count must be positive: {count}")

    principal = round_amount(principal)
    total_interest = round_amount(principal * interest_rate / 100)
    total_repayable = principal + total_interest
    installment_amount = round_amount(total_repayable / count)
    return total_interest, total_repayable, installment_amount


def build_schedule(
    total_repayable: int,
    installment_amount: int,
    count: int,
    start_date: int,
    frequency: Frequency,
) -> list[InstallmentPlan]:
    """
    Lay out the installments of a loan.

    The first installment falls one period after `start_date`. Every
    installment equals `installment_amount` except the last, which takes
    whatever is left so the schedule sums to `total_repayable` exactly.

    Rounding the per-installment amount up can leave nothing for the last
    one: 20 over 12 installments is 2 each, and eleven of those already
    come to 22. Such loans are refused rather than given a negative
    installment.

    Raises:
        ValueError: If any installment would be zero or negative
    """
    last_amount = total_repayable - installment_amount * (count - 1)
    if installment_amount <= 0 or last_amount <= 0:
        raise ValueError(
            f"Cannot split {total_repayable} into {count} positive installments"
        )

    start = from_epoch_ms(start_date)
    schedule = []
    for period in range(1, count + 1):
        amount = last_amount if period == count else installment_amount
        due = step_date(start, frequency, period)
        schedule.append(InstallmentPlan(due_date=to_epoch_ms(due), amount=amount))
    return schedule


def plan_loan(
    title: str,
    principal: float,
    interest_rate: float,
    count: int,
    start_date: int,
    frequency: Frequency,
    description: Optional[str] = None,
) -> LoanPlan:
    """Compute totals and the full installment schedule for a new loan."""
    frequency = Frequency(frequency)
    total_interest, total_repayable, installment_amount = calculate_totals(
        principal, interest_rate, count
    )
    installments = build_schedule(
        total_repayable, installment_amount, count, start_date, frequency
    )
    logger.debug(
        f"Planned loan '{title}': {count} x {installment_amount} ({frequency.value}), "
        f"total {total_repayable}"
    )
    return LoanPlan(
        title=title,
        principal_amount=round_amount(principal),
        interest_rate=interest_rate,
        total_interest=total_interest,
        total_repayable=total_repayable,
        start_date=start_date,
        installment_frequency=frequency,
        installment_amount=installment_amount,
        description=description,
        installments=installments,
    )
