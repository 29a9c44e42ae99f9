from .inputs import AllocationInput, ItemInput, PendingDueInfo
from .ledger import (
    CategoryType,
    DebtType,
    Frequency,
    InstallmentStatus,
    LoanStatus,
    from_epoch_ms,
    now_ms,
    round_amount,
    step_date,
    to_epoch_ms,
)

__all__ = [
    "AllocationInput",
    "CategoryType",
    "DebtType",
    "Frequency",
    "InstallmentStatus",
    "ItemInput",
    "LoanStatus",
    "PendingDueInfo",
    "from_epoch_ms",
    "now_ms",
    "round_amount",
    "step_date",
    "to_epoch_ms",
]
