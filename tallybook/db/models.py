"""
Database models for the Tallybook ledger.

Write models mirror one table row each. Read models (`TransactionView`,
`RecurringPaymentView` and the report rows) carry joined display fields and
are never written back.
"""

from dataclasses import dataclass, field
from typing import Optional

from tallybook.models.ledger import (
    CategoryType,
    DebtType,
    Frequency,
    InstallmentStatus,
    LoanStatus,
)


@dataclass
class Category:
    """A transaction category; its type fixes the sign of every posting under it."""

    id: Optional[int]
    name: str
    type: CategoryType
    color: Optional[str] = None
    icon: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "color": self.color,
            "icon": self.icon,
        }

    @classmethod
    def from_row(cls, row) -> "Category":
        """Create a Category from a database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            type=CategoryType(row["type"]),
            color=row["color"],
            icon=row["icon"],
        )


@dataclass
class Account:
    """
    A money account with a running balance.

    The balance is never derived from history; it is mutated incrementally by
    every posting against the account.
    """

    id: Optional[int]
    name: str
    type: str
    balance: float = 0
    color: Optional[str] = None
    icon: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "balance": self.balance,
            "color": self.color,
            "icon": self.icon,
        }

    @classmethod
    def from_row(cls, row) -> "Account":
        """Create an Account from a database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            balance=row["balance"] or 0,
            color=row["color"],
            icon=row["icon"],
        )


@dataclass
class TransactionItem:
    """One itemized line of a transaction. Informational only."""

    id: Optional[int]
    transaction_id: int
    name: str
    quantity: float = 0
    unit: Optional[str] = None
    price_per_unit: float = 0

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price_per_unit": self.price_per_unit,
        }

    @classmethod
    def from_row(cls, row) -> "TransactionItem":
        """Create a TransactionItem from a database row."""
        return cls(
            id=row["id"],
            transaction_id=row["transactionId"],
            name=row["name"],
            quantity=row["quantity"] or 0,
            unit=row["unit"],
            price_per_unit=row["pricePerUnit"] or 0,
        )


@dataclass
class TransactionAllocation:
    """One account's share of a split transaction."""

    id: Optional[int]
    transaction_id: int
    account_id: int
    amount: float

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "account_id": self.account_id,
            "amount": self.amount,
        }

    @classmethod
    def from_row(cls, row) -> "TransactionAllocation":
        """Create a TransactionAllocation from a database row."""
        return cls(
            id=row["id"],
            transaction_id=row["transactionId"],
            account_id=row["accountId"],
            amount=row["amount"],
        )


@dataclass
class Transaction:
    """
    A single-entry ledger posting.

    `amount` is never negative; the sign of its effect comes from the
    category type. A null `account_id` means the money moved through
    allocations instead.
    """

    id: Optional[int]
    amount: float
    date: int  # epoch milliseconds
    category_id: Optional[int]
    note: Optional[str] = None
    account_id: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "amount": self.amount,
            "date": self.date,
            "category_id": self.category_id,
            "note": self.note,
            "account_id": self.account_id,
        }

    @classmethod
    def from_row(cls, row) -> "Transaction":
        """Create a Transaction from a database row."""
        return cls(
            id=row["id"],
            amount=row["amount"],
            date=row["date"],
            category_id=row["categoryId"],
            note=row["note"],
            account_id=row["accountId"],
        )


@dataclass
class TransactionView(Transaction):
    """Transaction joined with its category and account display attributes."""

    category_name: Optional[str] = None
    category_type: Optional[CategoryType] = None
    category_color: Optional[str] = None
    category_icon: Optional[str] = None
    account_name: Optional[str] = None
    items: list[TransactionItem] = field(default_factory=list)
    allocations: list[TransactionAllocation] = field(default_factory=list)

    @property
    def signed_amount(self) -> float:
        """Amount with the sign of its balance effect (0 when the category is gone)."""
        if self.category_type is None:
            return 0
        return self.category_type.sign * self.amount

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        data = super().to_dict()
        data.update(
            {
                "category_name": self.category_name,
                "category_type": self.category_type.value if self.category_type else None,
                "category_color": self.category_color,
                "category_icon": self.category_icon,
                "account_name": self.account_name,
                "items": [i.to_dict() for i in self.items],
                "allocations": [a.to_dict() for a in self.allocations],
            }
        )
        return data

    @classmethod
    def from_row(cls, row) -> "TransactionView":
        """Create a TransactionView from a joined row."""
        return cls(
            id=row["id"],
            amount=row["amount"],
            date=row["date"],
            category_id=row["categoryId"],
            note=row["note"],
            account_id=row["accountId"],
            category_name=row["categoryName"],
            category_type=CategoryType(row["categoryType"]) if row["categoryType"] else None,
            category_color=row["categoryColor"],
            category_icon=row["categoryIcon"],
            account_name=row["accountName"],
        )


@dataclass
class Debt:
    """Money borrowed from or lent to a contact."""

    id: Optional[int]
    amount: float
    description: Optional[str]
    type: DebtType
    due_date: Optional[int]
    is_paid: bool
    contact_name: Optional[str]
    created_at: Optional[int]
    transaction_id: Optional[int] = None  # set for the unpaid part of a transaction

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "type": self.type.value,
            "due_date": self.due_date,
            "is_paid": self.is_paid,
            "contact_name": self.contact_name,
            "created_at": self.created_at,
            "transaction_id": self.transaction_id,
        }

    @classmethod
    def from_row(cls, row) -> "Debt":
        """Create a Debt from a database row."""
        return cls(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            type=DebtType(row["type"]),
            due_date=row["due_date"],
            is_paid=bool(row["is_paid"]),
            contact_name=row["contact_name"],
            created_at=row["created_at"],
            transaction_id=row["transactionId"],
        )


@dataclass
class RecurringPayment:
    """A bill template with a rolling next due date."""

    id: Optional[int]
    amount: float
    description: Optional[str]
    category_id: Optional[int]
    frequency: Frequency
    due_day: Optional[int]
    next_due_date: Optional[int]
    reminder_days_before: int = 1
    is_active: bool = True
    last_paid_date: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "category_id": self.category_id,
            "frequency": self.frequency.value,
            "due_day": self.due_day,
            "next_due_date": self.next_due_date,
            "reminder_days_before": self.reminder_days_before,
            "is_active": self.is_active,
            "last_paid_date": self.last_paid_date,
        }

    @classmethod
    def from_row(cls, row) -> "RecurringPayment":
        """Create a RecurringPayment from a database row."""
        return cls(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            category_id=row["categoryId"],
            frequency=Frequency(row["frequency"]),
            due_day=row["due_day"],
            next_due_date=row["next_due_date"],
            reminder_days_before=row["reminder_days_before"],
            is_active=bool(row["is_active"]),
            last_paid_date=row["last_paid_date"],
        )


@dataclass
class RecurringPaymentView(RecurringPayment):
    """Recurring payment joined with its category display attributes."""

    category_name: Optional[str] = None
    category_color: Optional[str] = None
    category_icon: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "RecurringPaymentView":
        base = RecurringPayment.from_row(row)
        return cls(
            **base.__dict__,
            category_name=row["categoryName"],
            category_color=row["categoryColor"],
            category_icon=row["categoryIcon"],
        )


@dataclass
class Loan:
    """An amortized loan with a flat interest charge."""

    id: Optional[int]
    title: str
    principal_amount: float
    interest_rate: float  # percent
    total_repayable: float
    start_date: int
    installment_frequency: Frequency
    installment_amount: float
    status: LoanStatus = LoanStatus.ACTIVE
    description: Optional[str] = None
    remaining_amount: Optional[float] = None

    def __post_init__(self):
        """A fresh loan owes everything."""
        if self.remaining_amount is None:
            self.remaining_amount = self.total_repayable

    @property
    def progress(self) -> float:
        """Fraction of the repayable total already paid."""
        if not self.total_repayable:
            return 0.0
        return 1 - (self.remaining_amount / self.total_repayable)

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "principal_amount": self.principal_amount,
            "interest_rate": self.interest_rate,
            "total_repayable": self.total_repayable,
            "start_date": self.start_date,
            "installment_frequency": self.installment_frequency.value,
            "installment_amount": self.installment_amount,
            "status": self.status.value,
            "description": self.description,
            "remaining_amount": self.remaining_amount,
        }

    @classmethod
    def from_row(cls, row) -> "Loan":
        """Create a Loan from a database row."""
        return cls(
            id=row["id"],
            title=row["title"],
            principal_amount=row["principal_amount"],
            interest_rate=row["interest_rate"],
            total_repayable=row["total_repayable"],
            start_date=row["start_date"],
            installment_frequency=Frequency(row["installment_frequency"]),
            installment_amount=row["installment_amount"],
            status=LoanStatus(row["status"]),
            description=row["description"],
            remaining_amount=row["remaining_amount"],
        )


@dataclass
class LoanInstallment:
    """One scheduled repayment of a loan. Immutable once paid."""

    id: Optional[int]
    loan_id: int
    due_date: int
    amount: float
    status: InstallmentStatus = InstallmentStatus.PENDING
    paid_date: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "loan_id": self.loan_id,
            "due_date": self.due_date,
            "amount": self.amount,
            "status": self.status.value,
            "paid_date": self.paid_date,
        }

    @classmethod
    def from_row(cls, row) -> "LoanInstallment":
        """Create a LoanInstallment from a database row."""
        return cls(
            id=row["id"],
            loan_id=row["loanId"],
            due_date=row["due_date"],
            amount=row["amount"],
            status=InstallmentStatus(row["status"]),
            paid_date=row["paid_date"],
        )


@dataclass
class BalanceSummary:
    """
    Income and expense totals plus the authoritative balance.

    `balance` is the sum of account balances. It need not equal
    income minus expense since it also carries seed balances.
    """

    total_income: float = 0
    total_expense: float = 0
    balance: float = 0

    def to_dict(self) -> dict:
        return {
            "total_income": self.total_income,
            "total_expense": self.total_expense,
            "balance": self.balance,
        }


@dataclass
class ItemConsumption:
    name: str
    unit: Optional[str]
    total_quantity: float
    total_spent: float


@dataclass
class TrendPoint:
    label: str  # day of month ("05") or month ("2025-03")
    expense: float


@dataclass
class CategorySpending:
    category_id: Optional[int]
    name: str
    color: Optional[str]
    total: float
