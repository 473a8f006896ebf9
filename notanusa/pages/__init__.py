"""
Page Controllers

One controller per page of the app. Each takes the SessionContext.
"""

from notanusa.pages.analytics import AnalyticsController
from notanusa.pages.base import PageController, PageState
from notanusa.pages.categories import CategoriesController
from notanusa.pages.dashboard import DashboardController
from notanusa.pages.debts import DebtsController
from notanusa.pages.profile import ProfileController
from notanusa.pages.reports import ReportsController
from notanusa.pages.transactions import TransactionsController

__all__ = [
    "AnalyticsController",
    "CategoriesController",
    "DashboardController",
    "DebtsController",
    "PageController",
    "PageState",
    "ProfileController",
    "ReportsController",
    "TransactionsController",
]
