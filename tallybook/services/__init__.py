from .amortization import (
    InstallmentPlan,
    LoanPlan,
    build_schedule,
    calculate_totals,
    plan_loan,
)
from .backup import BackupError, BackupService, sanitize_backup_filename
from .export import ExportFormat, ExportService
from .state import AppState

__all__ = [
    "AppState",
    "BackupError",
    "BackupService",
    "ExportFormat",
    "ExportService",
    "InstallmentPlan",
    "LoanPlan",
    "build_schedule",
    "calculate_totals",
    "plan_loan",
    "sanitize_backup_filename",
]
