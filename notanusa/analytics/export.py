"""
CSV Export of a Period Report

Layout:

    Financial Report (<start> to <end>)

    Total Income,<n>
    Total Expense,<n>
    Profit/Loss,<n>
    Total Transactions,<n>

    Category,Type,Amount
    <name>,<type>,<total>
    ...

Fields go through the csv module, so category names containing commas
or quotes are quoted instead of shifting columns.
"""

import csv
import io
from decimal import Decimal

from notanusa.models.reports import PeriodReport


CSV_HEADERS = ["Category", "Type", "Amount"]


def plain_number(value: Decimal) -> str:
    """
    Decimal as a bare number: no exponent, no trailing zeros.

    Decimal("1500000.00") -> "1500000", Decimal("12.50") -> "12.5"
    """
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)) + 0)
    return format(value.normalize(), "f")


def report_filename(report: PeriodReport) -> str:
    return f"financial-report-{report.start_date.isoformat()}-{report.end_date.isoformat()}.csv"


def report_to_csv(report: PeriodReport) -> str:
    """Render the report as CSV text (newline-terminated rows)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([
        f"Financial Report ({report.start_date.isoformat()} to {report.end_date.isoformat()})"
    ])
    writer.writerow([])
    writer.writerow(["Total Income", plain_number(report.total_income)])
    writer.writerow(["Total Expense", plain_number(report.total_expense)])
    writer.writerow(["Profit/Loss", plain_number(report.profit_loss)])
    writer.writerow(["Total Transactions", report.transaction_count])
    writer.writerow([])
    writer.writerow(CSV_HEADERS)

    for entry in report.category_breakdown:
        writer.writerow([entry.name, entry.type.value, plain_number(entry.total)])

    return buffer.getvalue()
