"""Dashboard: this month's income, expense, cash balance and latest transactions."""

from decimal import Decimal
from typing import Optional

from notanusa.analytics import dashboard_summary, month_bounds, open_cash_flow_period
from notanusa.config import get_settings
from notanusa.models.forms import OpeningBalanceForm
from notanusa.models.records import CashFlowCreate, CashFlowPatch, RecordKind
from notanusa.models.reports import DashboardSummary
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordFilter, RecordOrdering


class DashboardController(PageController):
    page_name = "dashboard"
    record_kind = RecordKind.CASH_FLOW
    record_noun = "opening balance"

    def __init__(self, session, today=None, recent_limit: Optional[int] = None):
        super().__init__(session, today)
        self.recent_limit = recent_limit or get_settings().app.recent_transactions_limit
        self.summary = DashboardSummary()
        self.month_start, self.month_end = month_bounds(self.today())

    def _filter_key(self):
        # A new day can open or close a cash-flow period
        return self.today()

    def _reset_data(self) -> None:
        self.summary = DashboardSummary()

    async def _fetch(self) -> None:
        today = self.today()
        start, end = month_bounds(today)
        transactions = await self.storage.list_records(
            RecordKind.TRANSACTION,
            filters=[
                RecordFilter.gte("transaction_date", start),
                RecordFilter.lte("transaction_date", end),
            ],
            ordering=[RecordOrdering(column="transaction_date", ascending=False)],
        )

        periods = await self.storage.list_records(
            RecordKind.CASH_FLOW,
            filters=[RecordFilter.lte("period_start", today)],
            ordering=[RecordOrdering(column="period_start", ascending=False)],
        )
        period = open_cash_flow_period(periods, today)

        period_transactions = []
        if period is not None:
            period_transactions = await self.storage.list_records(
                RecordKind.TRANSACTION,
                filters=[
                    RecordFilter.gte("transaction_date", period.period_start),
                    RecordFilter.lte("transaction_date", today),
                ],
            )

        self.summary = dashboard_summary(
            transactions, self.recent_limit, period, period_transactions
        )
        self.month_start, self.month_end = start, end

    # ------------------------------------------------------------------
    # Opening balance
    # ------------------------------------------------------------------

    def open_opening_balance_form(self) -> None:
        """Edit the open period's balance, or start a period when none is open."""
        period = self.summary.cash_flow_period
        if period is None:
            self.open_create_form()
        else:
            self.open_edit_form(period.id)

    def opening_balance_form(self) -> OpeningBalanceForm:
        period = self.summary.cash_flow_period
        if period is None:
            return OpeningBalanceForm(opening_balance=Decimal("0"), period_start=self.month_start)
        return OpeningBalanceForm(
            opening_balance=period.opening_balance, period_start=period.period_start
        )

    async def save_opening_balance(self, form: OpeningBalanceForm) -> bool:
        """Record the cash on hand at the start of bookkeeping."""
        result = self.validator.validate_opening_balance(form, today=self.today())
        return await self._submit(
            result,
            create=lambda: CashFlowCreate(
                user_id=self.user_id,
                opening_balance=form.opening_balance,
                period_start=form.period_start,
            ),
            patch=lambda: CashFlowPatch(
                opening_balance=form.opening_balance,
                period_start=form.period_start,
            ),
            audit_details={"opening_balance": str(form.opening_balance)},
        )
