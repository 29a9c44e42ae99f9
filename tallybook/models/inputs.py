from dataclasses import dataclass
from typing import Optional


@dataclass
class ItemInput:
    """One itemized receipt line supplied when a transaction is added."""

    name: str
    quantity: float = 0.0
    unit: Optional[str] = None
    price_per_unit: float = 0.0


@dataclass
class AllocationInput:
    """One account's share of a split transaction."""

    account_id: int
    amount: float


@dataclass
class PendingDueInfo:
    """
    Unpaid remainder of a transaction.

    When a bill is only partly paid now, the remainder is recorded as a
    borrowed debt owed to `contact_name` and due at `due_date` (epoch ms).
    """

    amount: float
    contact_name: str
    due_date: Optional[int] = None

    def is_owed(self) -> bool:
        """Check if there is anything left to owe."""
        return self.amount is not None and self.amount > 0
