"""
Financial Aggregation

Pure functions from records to report models. No I/O, no clock:
callers pass `today` where a function needs it.

DESIGN DECISION: All sums use Decimal. Percentages are floats since
they are only ever displayed.

Empty inputs produce empty or zero results, never an error.
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from notanusa.models.records import (
    CashFlowPeriod,
    DebtReceivable,
    DebtStatus,
    DebtType,
    Transaction,
    TransactionType,
)
from notanusa.models.reports import (
    CategoryBreakdownEntry,
    CategoryTotal,
    DashboardSummary,
    DebtProgress,
    DebtSummary,
    MonthlyTotal,
    PeriodReport,
    ReportPeriod,
    TransactionFilter,
)


UNCATEGORIZED = "Uncategorized"

TOP_CATEGORIES = 10

# Indonesian short month names (id-ID locale)
MONTH_NAMES_ID = (
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
)

ZERO = Decimal("0")


# =============================================================================
# DATE HELPERS
# =============================================================================

def month_key(day: date) -> str:
    """'YYYY-MM' for the month containing day."""
    return f"{day.year:04d}-{day.month:02d}"


def month_label(key: str) -> str:
    """'2024-05' -> 'Mei 2024'."""
    year, month = key.split("-")
    return f"{MONTH_NAMES_ID[int(month) - 1]} {year}"


def shift_months(day: date, months: int) -> date:
    """
    Move day by a number of calendar months.

    The day of month is clamped to the target month's length,
    so 31 March minus one month is 29 February in a leap year.
    """
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing day."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def preset_range(period: ReportPeriod, today: date) -> tuple[date, date]:
    """
    Report range ending today.

    week  -> today - 7 days
    month -> today - 1 month
    year  -> today - 1 year
    """
    if period == ReportPeriod.WEEK:
        start = today - timedelta(days=7)
    elif period == ReportPeriod.MONTH:
        start = shift_months(today, -1)
    else:
        start = shift_months(today, -12)
    return start, today


# =============================================================================
# MONTHLY ROLLUP
# =============================================================================

def monthly_rollup(transactions: Iterable[Transaction]) -> list[MonthlyTotal]:
    """
    Income and expense per calendar month, ascending by month.

    Every transaction lands in exactly one month, so the income totals
    add up to the income of the input (and the same for expense).
    """
    totals: dict[str, dict[TransactionType, Decimal]] = defaultdict(
        lambda: {TransactionType.INCOME: ZERO, TransactionType.EXPENSE: ZERO}
    )

    for transaction in transactions:
        totals[month_key(transaction.transaction_date)][transaction.type] += transaction.amount

    return [
        MonthlyTotal(
            month=key,
            month_label=month_label(key),
            income_total=sums[TransactionType.INCOME],
            expense_total=sums[TransactionType.EXPENSE],
        )
        for key, sums in sorted(totals.items())
    ]


# =============================================================================
# CATEGORY ROLLUP
# =============================================================================

def resolve_category(transaction: Transaction) -> tuple[str, TransactionType]:
    """
    The (name, type) a transaction is grouped under.

    The type is that of the category actually referenced, so an income
    and an expense category sharing a name stay separate. Unlinked
    transactions fall under 'Uncategorized' with their own type.
    """
    if transaction.category is None:
        return UNCATEGORIZED, transaction.type
    return transaction.category.name, transaction.category.type or transaction.type


def category_totals(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """
    Sum per resolved category, descending by total.

    Ties are ordered by name, then type.
    """
    totals: dict[tuple[str, TransactionType], Decimal] = defaultdict(lambda: ZERO)
    for transaction in transactions:
        totals[resolve_category(transaction)] += transaction.amount

    entries = [
        CategoryTotal(name=name, type=category_type, total=total)
        for (name, category_type), total in totals.items()
    ]
    entries.sort(key=lambda e: (-e.total, e.name, e.type.value))
    return entries


def category_rollup(
    transactions: Iterable[Transaction],
    limit: int = TOP_CATEGORIES,
) -> list[CategoryTotal]:
    """Top categories by total (at most `limit`)."""
    return category_totals(transactions)[:limit]


# =============================================================================
# PERIOD REPORT
# =============================================================================

def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole == 0:
        return 0.0
    return float(part / whole * 100)


def period_report(
    transactions: Iterable[Transaction],
    start_date: date,
    end_date: date,
) -> PeriodReport:
    """
    Totals and category breakdown for the inclusive range.

    Transactions outside the range are ignored, so the caller may pass
    a superset. Each breakdown entry carries its share of the total
    for its own type; a zero total gives 0%.
    """
    in_range = [
        t for t in transactions
        if start_date <= t.transaction_date <= end_date
    ]

    total_income = sum(
        (t.amount for t in in_range if t.type == TransactionType.INCOME), ZERO
    )
    total_expense = sum(
        (t.amount for t in in_range if t.type == TransactionType.EXPENSE), ZERO
    )

    # Shares are taken within the resolved category type, so the
    # percentages of one type always add up to 100
    group_totals: dict[TransactionType, Decimal] = defaultdict(lambda: ZERO)
    for transaction in in_range:
        group_totals[resolve_category(transaction)[1]] += transaction.amount

    breakdown = []
    for entry in category_totals(in_range):
        breakdown.append(
            CategoryBreakdownEntry(
                name=entry.name,
                type=entry.type,
                total=entry.total,
                percentage=_percentage(entry.total, group_totals[entry.type]),
            )
        )

    return PeriodReport(
        start_date=start_date,
        end_date=end_date,
        total_income=total_income,
        total_expense=total_expense,
        transaction_count=len(in_range),
        category_breakdown=breakdown,
    )


# =============================================================================
# DEBTS AND RECEIVABLES
# =============================================================================

def debt_progress(record: DebtReceivable, today: date) -> DebtProgress:
    """
    Remaining amount, paid percentage and overdue flag.

    A zero amount counts as fully paid (100%). Overdue means the due
    date has passed and the record is not paid.
    """
    if record.amount == 0:
        percent = 100.0
    else:
        percent = float(record.paid_amount / record.amount * 100)

    return DebtProgress(
        record=record,
        remaining=record.amount - record.paid_amount,
        progress_percent=percent,
        overdue=record.due_date < today and record.status != DebtStatus.PAID,
    )


def debt_summary(records: Iterable[DebtReceivable]) -> DebtSummary:
    """Outstanding (unpaid remainder) totals and counts per type."""
    summary = DebtSummary()
    for record in records:
        outstanding = max(record.remaining, ZERO)
        if record.type == DebtType.DEBT:
            summary.total_debt += outstanding
            summary.debt_count += 1
        else:
            summary.total_receivable += outstanding
            summary.receivable_count += 1
    return summary


# =============================================================================
# DASHBOARD AND TRANSACTION LIST
# =============================================================================

def open_cash_flow_period(
    periods: Iterable[CashFlowPeriod],
    today: date,
) -> Optional[CashFlowPeriod]:
    """The latest period that has started and not ended by today."""
    current = [
        p for p in periods
        if p.period_start <= today and (p.period_end is None or p.period_end >= today)
    ]
    return max(current, key=lambda p: p.period_start, default=None)


def dashboard_summary(
    transactions: Iterable[Transaction],
    recent_limit: int = 5,
    period: Optional[CashFlowPeriod] = None,
    period_transactions: Iterable[Transaction] = (),
) -> DashboardSummary:
    """
    Income, expense and most recent entries.

    The caller passes the current month's transactions and, when a
    cash-flow period is open, the transactions booked since its start.
    """
    transactions = list(transactions)
    recent = sorted(
        transactions, key=lambda t: t.transaction_date, reverse=True
    )[:recent_limit]

    period_net = ZERO
    if period is not None:
        period_net = sum(
            (t.signed_amount for t in period_transactions if t.transaction_date >= period.period_start),
            ZERO,
        )

    return DashboardSummary(
        total_income=sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME), ZERO
        ),
        total_expense=sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE), ZERO
        ),
        recent_transactions=recent,
        cash_flow_period=period,
        period_net=period_net,
    )


def filter_transactions(
    transactions: Iterable[Transaction],
    transaction_filter: Optional[TransactionFilter] = None,
) -> list[Transaction]:
    """Apply the type and inclusive date bounds. Order is preserved."""
    if transaction_filter is None:
        return list(transactions)

    result = []
    for transaction in transactions:
        if transaction_filter.type and transaction.type != transaction_filter.type:
            continue
        if transaction_filter.date_from and transaction.transaction_date < transaction_filter.date_from:
            continue
        if transaction_filter.date_to and transaction.transaction_date > transaction_filter.date_to:
            continue
        result.append(transaction)
    return result


def totals_by_type(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    """(income, expense) of the given transactions."""
    income = expense = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount
    return income, expense
