"""
Export service for ledger data.

Provides functionality to export transactions to CSV and XLSX formats.
"""

import csv
import io
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, cast

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from tallybook.config import CSV_HEADER, MAX_EXPORT_ENTRIES
from tallybook.db import LedgerRepository, TransactionView
from tallybook.models import CategoryType, from_epoch_ms


class ExportFormat(str, Enum):
    """Supported export formats."""

    CSV = "csv"
    XLSX = "xlsx"


def _plain_amount(value: float):
    """Whole amounts are written without a trailing .0"""
    return int(value) if float(value).is_integer() else value


def _utc_date(ms: int) -> str:
    """Calendar date of an epoch-ms timestamp in UTC, as YYYY-MM-DD."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


class ExportService:
    """Service for exporting ledger data to various formats."""

    def __init__(self, repository: LedgerRepository):
        """
        Initialize the export service.

        Args:
            repository: Ledger repository to read transactions from
        """
        self.repository = repository

    def export_to_csv(
        self,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> str:
        """
        Export transactions to CSV text.

        One row per transaction, newest first, under the header
        `Date,Amount,Type,Category,Account,Note`. Text fields are quoted with
        embedded quotes doubled. Split transactions have no account name.

        Args:
            start_date: Optional start of the range (epoch ms, inclusive)
            end_date: Optional end of the range (epoch ms, inclusive)

        Returns:
            The CSV document
        """
        transactions = self._get_transactions(start_date, end_date)

        text_buffer = io.StringIO()
        writer = csv.writer(text_buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")

        # Header stays bare; only data fields are quoted
        text_buffer.write(",".join(CSV_HEADER) + "\n")
        for txn in transactions:
            writer.writerow(
                [
                    _utc_date(txn.date),
                    _plain_amount(txn.amount),
                    txn.category_type.value if txn.category_type else "",
                    txn.category_name or "",
                    txn.account_name or "",
                    txn.note or "",
                ]
            )

        return text_buffer.getvalue()

    def export_to_xlsx(
        self,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> io.BytesIO:
        """
        Export transactions to XLSX format with formatting.

        Args:
            start_date: Optional start of the range (epoch ms, inclusive)
            end_date: Optional end of the range (epoch ms, inclusive)

        Returns:
            BytesIO buffer containing the XLSX data
        """
        transactions = self._get_transactions(start_date, end_date)

        wb = Workbook()
        ws = cast(Worksheet, wb.active)
        ws.title = "Transactions"

        # Define styles
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        income_fill = PatternFill(
            start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"
        )
        expense_fill = PatternFill(
            start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"
        )

        headers = ["ID", *CSV_HEADER]
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, txn in enumerate(transactions, 2):
            ws.cell(row=row_idx, column=1, value=txn.id)
            ws.cell(row=row_idx, column=2, value=_utc_date(txn.date))
            ws.cell(row=row_idx, column=3, value=txn.amount)
            ws.cell(
                row=row_idx,
                column=4,
                value=txn.category_type.value if txn.category_type else "",
            )
            ws.cell(row=row_idx, column=5, value=txn.category_name or "")
            ws.cell(row=row_idx, column=6, value=txn.account_name or "")
            ws.cell(row=row_idx, column=7, value=txn.note or "")

            if txn.category_type == CategoryType.INCOME:
                fill = income_fill
            elif txn.category_type == CategoryType.EXPENSE:
                fill = expense_fill
            else:
                continue

            for col in range(1, len(headers) + 1):
                ws.cell(row=row_idx, column=col).fill = fill

        for row in range(2, len(transactions) + 2):
            ws.cell(row=row, column=3).number_format = "#,##0.00"

        column_widths = [8, 12, 15, 10, 18, 18, 40]
        for col, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = width

        ws.freeze_panes = "A2"

        self._add_summary_sheet(wb, transactions)

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)

        return buffer

    def _add_summary_sheet(self, wb: Workbook, transactions: list[TransactionView]):
        """Add a summary sheet to the workbook."""
        ws = wb.create_sheet(title="Summary")

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)

        ws.cell(row=1, column=1, value="Ledger Summary").font = title_font
        ws.cell(
            row=2,
            column=1,
            value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        )

        income = [t for t in transactions if t.category_type == CategoryType.INCOME]
        expense = [t for t in transactions if t.category_type == CategoryType.EXPENSE]
        total_income = sum(t.amount for t in income)
        total_expense = sum(t.amount for t in expense)

        summary_start = 4
        ws.cell(row=summary_start, column=1, value="Type").font = header_font
        ws.cell(row=summary_start, column=2, value="Count").font = header_font
        ws.cell(row=summary_start, column=3, value="Total").font = header_font

        ws.cell(row=summary_start + 1, column=1, value="Income")
        ws.cell(row=summary_start + 1, column=2, value=len(income))
        ws.cell(row=summary_start + 1, column=3, value=total_income)

        ws.cell(row=summary_start + 2, column=1, value="Expense")
        ws.cell(row=summary_start + 2, column=2, value=len(expense))
        ws.cell(row=summary_start + 2, column=3, value=total_expense)

        ws.cell(row=summary_start + 4, column=1, value="Net").font = header_font
        ws.cell(row=summary_start + 4, column=3, value=total_income - total_expense)

        # Account balances are the authoritative totals
        balances_start = summary_start + 6
        ws.cell(row=balances_start, column=1, value="Account").font = header_font
        ws.cell(row=balances_start, column=3, value="Balance").font = header_font
        balances = self.repository.get_account_balances()
        for offset, (name, balance) in enumerate(balances.items(), 1):
            ws.cell(row=balances_start + offset, column=1, value=name)
            ws.cell(row=balances_start + offset, column=3, value=balance)

        for row in range(summary_start + 1, balances_start + len(balances) + 1):
            ws.cell(row=row, column=3).number_format = "#,##0.00"

        ws.column_dimensions["A"].width = 18
        ws.column_dimensions["B"].width = 10
        ws.column_dimensions["C"].width = 18

    def _get_transactions(
        self,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> list[TransactionView]:
        """Transactions in the range when both ends are given, otherwise all of them."""
        if start_date is not None and end_date is not None:
            return self.repository.get_transactions_by_range(start_date, end_date)
        return self.repository.get_transactions(limit=MAX_EXPORT_ENTRIES, offset=0)

    def get_filename(
        self,
        format: ExportFormat,
        start_date: Optional[int] = None,
        end_date: Optional[int] = None,
    ) -> str:
        """
        Generate a filename for the export.

        Args:
            format: Export format
            start_date: Optional start of the range (epoch ms)
            end_date: Optional end of the range (epoch ms)

        Returns:
            Suggested filename
        """
        format = ExportFormat(format)
        date_str = datetime.now().strftime("%Y%m%d")

        if start_date is not None and end_date is not None:
            date_range = (
                f"_{from_epoch_ms(start_date).strftime('%Y%m%d')}"
                f"-{from_epoch_ms(end_date).strftime('%Y%m%d')}"
            )
        else:
            date_range = ""

        return f"transactions_{date_str}{date_range}.{format.value}"
