"""
Report Exporter

Renders a ShareReport as CSV or as a fixed-width text table.
Both are pure functions of the report; nothing here touches the disk.

CSV layout:
    Name,Total,Receipt
    Alice,25.00€,
    ,25.00€,Groceries
    Total,50.00€,

Text layout:
    Name  |  Total | Receipt
    ------------------------------------
    Alice | 25.00€ |
          |        | > Groceries: 25.00€
    ------------------------------------
    Total | 50.00€ |
"""

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from splitledger.config import ExportSettings, LedgerSettings
from splitledger.models.ledger import ShareReport


CENT = Decimal("0.01")
HEADER = ("Name", "Total", "Receipt")
TOTAL_LABEL = "Total"
RECEIPT_MARKER = ">"


class ReportExporter:
    """Formats share reports for export."""

    def __init__(
        self,
        currency_symbol: str = "€",
        name_min_width: int = 5,
        total_min_width: int = 5,
        receipt_min_width: int = 7,
        column_separator: str = " | ",
    ):
        self._currency_symbol = currency_symbol
        self._min_widths = (name_min_width, total_min_width, receipt_min_width)
        self._separator = column_separator

    @classmethod
    def from_settings(
        cls,
        ledger_settings: Optional[LedgerSettings] = None,
        export_settings: Optional[ExportSettings] = None,
    ) -> "ReportExporter":
        ledger_settings = ledger_settings or LedgerSettings()
        export_settings = export_settings or ExportSettings()
        return cls(
            currency_symbol=ledger_settings.currency_symbol,
            name_min_width=export_settings.name_min_width,
            total_min_width=export_settings.total_min_width,
            receipt_min_width=export_settings.receipt_min_width,
            column_separator=export_settings.column_separator,
        )

    def format_amount(self, amount: Decimal) -> str:
        """Exactly two decimals followed by the currency symbol."""
        quantized = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
        return f"{quantized}{self._currency_symbol}"

    def to_csv(self, report: ShareReport) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(HEADER)
        for row in report.rows:
            writer.writerow([row.name, self.format_amount(row.total), ""])
            for label, amount in row.shares.items():
                writer.writerow(["", self.format_amount(amount), label])
        writer.writerow([TOTAL_LABEL, self.format_amount(report.grand_total), ""])

        return buffer.getvalue()

    def _text_cells(self, report: ShareReport) -> list[tuple[str, str, str]]:
        cells = []
        for row in report.rows:
            cells.append((row.name, self.format_amount(row.total), ""))
            for label, amount in row.shares.items():
                cells.append(
                    ("", "", f"{RECEIPT_MARKER} {label}: {self.format_amount(amount)}")
                )
        return cells

    def column_widths(self, report: ShareReport) -> tuple[int, int, int]:
        """Longest cell per column (header and total row included), floored."""
        rows = [HEADER, *self._text_cells(report), self._total_cells(report)]
        return tuple(
            max(floor, *(len(row[column]) for row in rows))
            for column, floor in enumerate(self._min_widths)
        )

    def _total_cells(self, report: ShareReport) -> tuple[str, str, str]:
        return (TOTAL_LABEL, self.format_amount(report.grand_total), "")

    def _line(self, cells: tuple[str, str, str], widths: tuple[int, int, int]) -> str:
        name, total, receipt = cells
        return self._separator.join([
            name.ljust(widths[0]),
            total.rjust(widths[1]),
            receipt.ljust(widths[2]),
        ]).rstrip()

    def to_text(self, report: ShareReport) -> str:
        widths = self.column_widths(report)
        row_width = sum(widths) + len(self._separator) * (len(widths) - 1)
        rule = "-" * row_width

        lines = [self._line(HEADER, widths), rule]
        lines.extend(self._line(cells, widths) for cells in self._text_cells(report))
        lines.append(rule)
        lines.append(self._line(self._total_cells(report), widths))

        return "\n".join(lines) + "\n"
