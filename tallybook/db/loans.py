"""
Loan repository for amortized loans and their installment schedules.

Disbursements and installment payments post on the ledger under the
reserved "Loan" categories.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from tallybook.config import LOAN_CATEGORY
from tallybook.models import CategoryType, InstallmentStatus, LoanStatus, now_ms, round_amount

from .base import BaseRepository
from .models import Loan, LoanInstallment

if TYPE_CHECKING:
    from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


class LoanRepository(BaseRepository):
    """
    Repository for loans.

    `remaining_amount` only decreases, by exactly the amount of each
    installment paid, and the loan completes once it reaches zero.
    """

    def __init__(
        self,
        db_path=None,
        init_schema: bool = False,
        transaction_repo: Optional["TransactionRepository"] = None,
    ):
        super().__init__(db_path, init_schema=init_schema)
        self._transaction_repo = transaction_repo

    @property
    def transactions(self) -> "TransactionRepository":
        if not self._transaction_repo:
            raise RuntimeError("Transaction repository not set")
        return self._transaction_repo

    def add_loan(
        self,
        loan: Loan,
        installments: Sequence,
        target_account_id: Optional[int] = None,
    ) -> int:
        """
        Store a loan with its precomputed schedule.

        Args:
            loan: Loan totals (id is ignored)
            installments: Objects with `due_date` and `amount`, stored as pending
            target_account_id: Account credited with the principal, if any

        Returns:
            The new loan id
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO loans (
                    title, principal_amount, interest_rate, total_repayable, start_date,
                    installment_frequency, installment_amount, status, description,
                    remaining_amount
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    loan.title,
                    round_amount(loan.principal_amount),
                    loan.interest_rate,
                    round_amount(loan.total_repayable),
                    loan.start_date,
                    loan.installment_frequency.value,
                    round_amount(loan.installment_amount),
                    LoanStatus.ACTIVE.value,
                    loan.description,
                    round_amount(loan.remaining_amount),
                ),
            )
            loan_id = cursor.lastrowid

            conn.executemany(
                "INSERT INTO loan_installments (loanId, due_date, amount, status) "
                "VALUES (?, ?, ?, ?)",
                [
                    (loan_id, i.due_date, round_amount(i.amount), InstallmentStatus.PENDING.value)
                    for i in installments
                ],
            )

            if target_account_id:
                category_id = self.transactions.accounts.get_or_create_auto_category(
                    conn, LOAN_CATEGORY, CategoryType.INCOME
                )
                self.transactions.post(
                    conn,
                    loan.principal_amount,
                    loan.start_date,
                    category_id,
                    CategoryType.INCOME,
                    f"Loan Received: {loan.title}",
                    target_account_id,
                )

            logger.info(
                f"Added loan {loan_id} '{loan.title}' with {len(installments)} installments"
            )
            return loan_id

    def pay_installment(self, installment_id: int, account_id: Optional[int] = None) -> bool:
        """
        Pay one installment.

        Marks it paid, lowers the loan's remaining amount, optionally posts
        the payment as an expense, then completes the loan if nothing remains.

        Returns:
            True if a pending installment was paid
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM loan_installments WHERE id = ?", (installment_id,)
            ).fetchone()
            if not row:
                logger.debug(f"Installment {installment_id} not found")
                return False

            installment = LoanInstallment.from_row(row)
            if installment.status == InstallmentStatus.PAID:
                logger.debug(f"Installment {installment_id} already paid")
                return False

            paid_at = now_ms()
            conn.execute(
                "UPDATE loan_installments SET status = ?, paid_date = ? WHERE id = ?",
                (InstallmentStatus.PAID.value, paid_at, installment_id),
            )
            conn.execute(
                "UPDATE loans SET remaining_amount = remaining_amount - ? WHERE id = ?",
                (installment.amount, installment.loan_id),
            )

            loan_row = conn.execute(
                "SELECT * FROM loans WHERE id = ?", (installment.loan_id,)
            ).fetchone()
            loan = Loan.from_row(loan_row) if loan_row else None

            if account_id:
                category_id = self.transactions.accounts.get_or_create_auto_category(
                    conn, LOAN_CATEGORY, CategoryType.EXPENSE
                )
                title = loan.title if loan else f"#{installment.loan_id}"
                self.transactions.post(
                    conn,
                    installment.amount,
                    paid_at,
                    category_id,
                    CategoryType.EXPENSE,
                    f"Loan Installment: {title}",
                    account_id,
                )

            if loan and loan.remaining_amount <= 0 and loan.status == LoanStatus.ACTIVE:
                conn.execute(
                    "UPDATE loans SET status = ? WHERE id = ?",
                    (LoanStatus.COMPLETED.value, loan.id),
                )
                logger.info(f"Loan {loan.id} completed")

            logger.info(f"Paid installment {installment_id} of loan {installment.loan_id}")
            return True

    def delete_loan(self, loan_id: int) -> bool:
        """
        Delete a loan and its installments.

        Disbursement and payment transactions stay on the ledger.
        """
        with self._get_connection() as conn:
            conn.execute("DELETE FROM loan_installments WHERE loanId = ?", (loan_id,))
            cursor = conn.execute("DELETE FROM loans WHERE id = ?", (loan_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted loan {loan_id}")
            return deleted

    def get_loans(self) -> list[Loan]:
        """Get all loans, most recent start first."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM loans ORDER BY start_date DESC, id DESC")
            return [Loan.from_row(row) for row in cursor.fetchall()]

    def get_loan_by_id(self, loan_id: int) -> Optional[Loan]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM loans WHERE id = ?", (loan_id,)).fetchone()
            return Loan.from_row(row) if row else None

    def get_loan_installments(self, loan_id: int) -> list[LoanInstallment]:
        """Get a loan's installments in due order."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM loan_installments WHERE loanId = ? ORDER BY due_date ASC, id ASC",
                (loan_id,),
            )
            return [LoanInstallment.from_row(row) for row in cursor.fetchall()]
