"""
Reports Page

A period report for a preset range (last week, month or year) or a
custom range, with CSV export.
"""

from datetime import date
from typing import Optional

from notanusa.analytics import period_report, preset_range, report_filename, report_to_csv
from notanusa.models.forms import ReportRangeForm
from notanusa.models.records import RecordKind
from notanusa.models.reports import PeriodReport, ReportPeriod
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordFilter


class ReportsController(PageController):
    page_name = "reports"

    def __init__(self, session, today=None, period: ReportPeriod = ReportPeriod.MONTH):
        super().__init__(session, today)
        self.report: Optional[PeriodReport] = None
        self.period: Optional[ReportPeriod] = None
        self.start_date: date
        self.end_date: date
        self.select_period(period)

    def _filter_key(self):
        return (self.start_date, self.end_date)

    def _reset_data(self) -> None:
        self.report = None

    async def _fetch(self) -> None:
        start, end = self.start_date, self.end_date
        transactions = await self.storage.list_records(
            RecordKind.TRANSACTION,
            filters=[
                RecordFilter.gte("transaction_date", start),
                RecordFilter.lte("transaction_date", end),
            ],
        )
        self.report = period_report(transactions, start, end)

    # ------------------------------------------------------------------
    # Range selection
    # ------------------------------------------------------------------

    def select_period(self, period: ReportPeriod) -> None:
        """Switch to a preset range ending today."""
        self.period = period
        self.start_date, self.end_date = preset_range(period, self.today())

    def set_custom_range(self, start_date: Optional[date], end_date: Optional[date]) -> bool:
        """
        Switch to a custom inclusive range.

        Returns False (and keeps the current range) when the range is invalid.
        """
        result = self.validator.validate_report_range(
            ReportRangeForm(start_date=start_date, end_date=end_date)
        )
        self.validation = result
        if result.has_errors:
            self.form_error = self.validator.get_user_friendly_summary(result)
            return False

        self.form_error = None
        self.period = None
        self.start_date, self.end_date = start_date, end_date
        return True

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    @property
    def can_export(self) -> bool:
        """Export is offered only for a report that has transactions."""
        return self.report is not None and not self.report.is_empty

    def export_file(self) -> Optional[tuple[str, str]]:
        """(filename, csv_text) of the current report, or None when there is nothing to export."""
        if not self.can_export:
            return None
        return report_filename(self.report), report_to_csv(self.report)

    async def log_export(self, filename: str) -> None:
        await self.audit.log_report_exported(
            filename, len(self.report.category_breakdown), self.user_id
        )

    async def export_csv(self) -> Optional[tuple[str, str]]:
        """Render the current report and record the export."""
        exported = self.export_file()
        if exported is not None:
            await self.log_export(exported[0])
        return exported
