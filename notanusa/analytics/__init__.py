"""
Aggregation Logic

Pure functions turning records into dashboards, reports and exports.
"""

from notanusa.analytics.aggregation import (
    MONTH_NAMES_ID,
    UNCATEGORIZED,
    category_rollup,
    category_totals,
    dashboard_summary,
    debt_progress,
    debt_summary,
    filter_transactions,
    month_bounds,
    month_key,
    month_label,
    monthly_rollup,
    open_cash_flow_period,
    period_report,
    preset_range,
    resolve_category,
    shift_months,
    totals_by_type,
)
from notanusa.analytics.export import plain_number, report_filename, report_to_csv
from notanusa.analytics.formatting import format_idr, format_percent

__all__ = [
    "MONTH_NAMES_ID",
    "UNCATEGORIZED",
    "category_rollup",
    "category_totals",
    "dashboard_summary",
    "debt_progress",
    "debt_summary",
    "filter_transactions",
    "format_idr",
    "format_percent",
    "month_bounds",
    "month_key",
    "month_label",
    "monthly_rollup",
    "open_cash_flow_period",
    "period_report",
    "plain_number",
    "preset_range",
    "report_filename",
    "report_to_csv",
    "resolve_category",
    "shift_months",
    "totals_by_type",
]
