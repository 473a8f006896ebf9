"""Analytics Page: monthly income vs expense and top categories."""

from typing import Optional

from notanusa.analytics import category_rollup, monthly_rollup, shift_months
from notanusa.config import get_settings
from notanusa.models.records import RecordKind
from notanusa.models.reports import CategoryTotal, MonthlyTotal
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordFilter, RecordOrdering


class AnalyticsController(PageController):
    page_name = "analytics"

    def __init__(
        self,
        session,
        today=None,
        months: Optional[int] = None,
        top_limit: Optional[int] = None,
    ):
        super().__init__(session, today)
        settings = get_settings().app
        self.months = months or settings.analytics_months
        self.top_limit = top_limit or settings.top_categories_limit
        self.monthly: list[MonthlyTotal] = []
        self.top_categories: list[CategoryTotal] = []

    @property
    def window_start(self):
        return shift_months(self.today(), -self.months)

    def _filter_key(self):
        return (self.months, self.window_start)

    def _reset_data(self) -> None:
        self.monthly = []
        self.top_categories = []

    async def _fetch(self) -> None:
        transactions = await self.storage.list_records(
            RecordKind.TRANSACTION,
            filters=[RecordFilter.gte("transaction_date", self.window_start)],
            ordering=[RecordOrdering(column="transaction_date")],
        )

        self.monthly = monthly_rollup(transactions)
        self.top_categories = category_rollup(transactions, self.top_limit)

    def set_months(self, months: int) -> None:
        self.months = max(1, months)
