"""
Report Models for NotaNusa

Output shapes of the aggregation functions in notanusa.analytics.
These are read-only views computed from records; they are never stored.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from notanusa.models.records import (
    CashFlowPeriod,
    DebtReceivable,
    Transaction,
    TransactionType,
)


class ReportPeriod(str, Enum):
    """Quick-pick ranges on the reports page, each ending today."""
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class MonthlyTotal(BaseModel):
    """Income and expense summed for one calendar month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    month_label: str = Field(..., description="Display label, e.g. 'Mei 2024'")
    income_total: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")

    @property
    def profit_loss(self) -> Decimal:
        return self.income_total - self.expense_total

    @property
    def is_profit(self) -> bool:
        return self.profit_loss >= 0


class CategoryTotal(BaseModel):
    """Sum of transaction amounts for one resolved category."""

    name: str
    type: TransactionType
    total: Decimal = Decimal("0")


class CategoryBreakdownEntry(CategoryTotal):
    """A category total with its share of the total for its own type."""

    percentage: float = Field(default=0.0, ge=0.0)


class PeriodReport(BaseModel):
    """Totals and category breakdown for an inclusive date range."""

    start_date: date
    end_date: date
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)
    category_breakdown: list[CategoryBreakdownEntry] = Field(default_factory=list)

    @property
    def profit_loss(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0


class DebtProgress(BaseModel):
    """Payment progress of a single debt/receivable."""

    record: DebtReceivable
    remaining: Decimal
    progress_percent: float = Field(ge=0.0)
    overdue: bool


class DebtSummary(BaseModel):
    """Outstanding totals shown above the debts and receivables lists."""

    total_debt: Decimal = Decimal("0")
    total_receivable: Decimal = Decimal("0")
    debt_count: int = 0
    receivable_count: int = 0


class DashboardSummary(BaseModel):
    """
    Current-month figures for the dashboard.

    balance is the cash position: the opening balance of the open
    cash-flow period plus the net of everything booked since it
    started. Without a period it is this month's profit/loss.
    """

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    recent_transactions: list[Transaction] = Field(default_factory=list)
    cash_flow_period: Optional[CashFlowPeriod] = None
    period_net: Decimal = Decimal("0")

    @property
    def profit_loss(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def balance(self) -> Decimal:
        if self.cash_flow_period is None:
            return self.profit_loss
        return self.cash_flow_period.opening_balance + self.period_net


class TransactionFilter(BaseModel):
    """Client-side filter applied on the transactions page."""

    type: Optional[TransactionType] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return any(v is not None for v in (self.type, self.date_from, self.date_to))
