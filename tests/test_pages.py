"""
Tests for the page controllers.

Controllers run against the in-memory store, signed in as a freshly
registered owner, with the clock pinned to TODAY.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from notanusa.models.audit import AuditEventType
from notanusa.models.forms import CategoryForm, DebtForm, OpeningBalanceForm, ProfileForm, TransactionForm
from notanusa.models.records import DebtReceivableCreate, DebtStatus, DebtType, RecordKind, TransactionType
from notanusa.models.reports import ReportPeriod
from notanusa.models.validation import ValidationResult
from notanusa.orchestrator import create_app_components, create_page_controllers
from notanusa.pages import PageState
from notanusa.services.storage import ConnectionError, InMemoryRecordStorage
from notanusa.session import SessionContext
from notanusa.validation import FormValidator

from tests.conftest import TODAY


INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


@pytest.fixture
def pages(signed_in):
    return create_page_controllers(signed_in, today=lambda: TODAY)


async def add_transaction(pages, type, amount, on, category_id=None, description=None):
    controller = pages["transactions"]
    await controller.ensure_loaded()
    controller.open_create_form()
    saved = await controller.save(TransactionForm(
        type=type,
        amount=Decimal(amount),
        category_id=category_id,
        description=description,
        transaction_date=on,
    ))
    assert saved, controller.form_error


async def add_category(pages, name, type):
    controller = pages["categories"]
    await controller.ensure_loaded()
    controller.open_create_form()
    assert await controller.save(CategoryForm(name=name, type=type))
    return next(c for c in controller.categories if c.name == name and c.type == type)


def event_types(session):
    return [event.event_type for event in session.audit_logger.recent_events]


class FlakyStorage(InMemoryRecordStorage):
    """In-memory store whose reads can be switched off."""

    failing = False

    async def list_records(self, kind, filters=None, ordering=None, limit=None):
        if self.failing:
            raise ConnectionError("network unreachable")
        return await super().list_records(kind, filters, ordering, limit)


class TestPageLoading:

    @pytest.mark.asyncio
    async def test_load_requires_sign_in(self, session):
        controller = create_page_controllers(session, today=lambda: TODAY)["dashboard"]

        assert not await controller.load()
        assert controller.error_message == "Please sign in to continue"
        assert controller.state == PageState.READY

    @pytest.mark.asyncio
    async def test_ensure_loaded_only_fetches_once(self, pages):
        controller = pages["categories"]
        assert controller.needs_reload

        assert await controller.ensure_loaded()
        assert controller.state == PageState.READY
        assert not controller.needs_reload

    @pytest.mark.asyncio
    async def test_failed_load_keeps_previous_data(self, provider, audit_logger):
        storage = FlakyStorage(identity=lambda: provider.current_user_id)
        session = SessionContext(provider, storage, audit_logger, FormValidator(min_password_length=6))
        assert await session.sign_up("sari@warung.id", "rahasia123", "Sari")
        pages = create_page_controllers(session, today=lambda: TODAY)
        await add_transaction(pages, INCOME, "100", TODAY)

        storage.failing = True
        controller = pages["transactions"]
        assert not await controller.load()

        assert controller.error_message == "Failed to load transactions: network unreachable"
        assert len(controller.transactions) == 1
        assert controller.state == PageState.READY
        assert event_types(session)[-1] == AuditEventType.LOAD_FAILED

    @pytest.mark.asyncio
    async def test_identity_change_reloads_and_hides_rows(self, signed_in, pages):
        await add_transaction(pages, INCOME, "100", TODAY)
        controller = pages["transactions"]
        assert len(controller.transactions) == 1

        await signed_in.sign_out()
        assert await signed_in.sign_up("budi@toko.id", "rahasia123", "Budi")

        assert controller.needs_reload
        assert await controller.ensure_loaded()
        assert controller.transactions == []


class TestDashboard:

    @pytest.mark.asyncio
    async def test_summarizes_current_month(self, pages):
        await add_transaction(pages, INCOME, "500000", date(2024, 5, 2))
        await add_transaction(pages, EXPENSE, "120000", date(2024, 5, 10))
        await add_transaction(pages, INCOME, "999999", date(2024, 4, 30))

        dashboard = pages["dashboard"]
        assert await dashboard.load()

        assert dashboard.summary.total_income == Decimal("500000")
        assert dashboard.summary.total_expense == Decimal("120000")
        assert dashboard.summary.balance == Decimal("380000")
        assert [t.transaction_date for t in dashboard.summary.recent_transactions] == [
            date(2024, 5, 10),
            date(2024, 5, 2),
        ]
        assert (dashboard.month_start, dashboard.month_end) == (date(2024, 5, 1), date(2024, 5, 31))

    @pytest.mark.asyncio
    async def test_empty_month(self, pages):
        dashboard = pages["dashboard"]
        assert await dashboard.load()
        assert dashboard.summary.balance == Decimal("0")
        assert dashboard.summary.recent_transactions == []

    @pytest.mark.asyncio
    async def test_opening_balance_carries_into_balance(self, pages):
        await add_transaction(pages, INCOME, "999999", date(2024, 3, 31))
        await add_transaction(pages, INCOME, "300000", date(2024, 4, 20))
        await add_transaction(pages, INCOME, "500000", date(2024, 5, 2))
        await add_transaction(pages, EXPENSE, "120000", date(2024, 5, 10))

        dashboard = pages["dashboard"]
        assert await dashboard.load()
        dashboard.open_opening_balance_form()
        assert dashboard.editing_id is None
        assert dashboard.opening_balance_form().period_start == date(2024, 5, 1)

        assert await dashboard.save_opening_balance(OpeningBalanceForm(
            opening_balance=Decimal("2000000"), period_start=date(2024, 4, 1),
        ))

        summary = dashboard.summary
        assert not dashboard.form_open
        assert summary.cash_flow_period.opening_balance == Decimal("2000000")
        assert summary.profit_loss == Decimal("380000")
        assert summary.balance == Decimal("2680000")

    @pytest.mark.asyncio
    async def test_edit_opening_balance(self, pages):
        dashboard = pages["dashboard"]
        await dashboard.load()
        dashboard.open_opening_balance_form()
        assert await dashboard.save_opening_balance(OpeningBalanceForm(
            opening_balance=Decimal("-50000"), period_start=date(2024, 5, 1),
        ))
        assert dashboard.summary.balance == Decimal("-50000")
        period_id = dashboard.summary.cash_flow_period.id

        dashboard.open_opening_balance_form()
        assert dashboard.editing_id == period_id
        form = dashboard.opening_balance_form()
        form.opening_balance = Decimal("150000")
        assert await dashboard.save_opening_balance(form)

        assert dashboard.summary.cash_flow_period.id == period_id
        assert dashboard.summary.balance == Decimal("150000")
        assert AuditEventType.RECORD_UPDATED in event_types(dashboard.session)

    @pytest.mark.asyncio
    async def test_future_opening_balance_is_rejected(self, pages, storage):
        dashboard = pages["dashboard"]
        await dashboard.load()
        dashboard.open_opening_balance_form()

        assert not await dashboard.save_opening_balance(OpeningBalanceForm(
            opening_balance=Decimal("1000"), period_start=TODAY + timedelta(days=1),
        ))

        assert dashboard.form_error == "Start date cannot be in the future"
        assert dashboard.form_open
        assert await storage.list_records(RecordKind.CASH_FLOW) == []


class TestTransactionsPage:

    @pytest.mark.asyncio
    async def test_create_lists_newest_first(self, pages):
        await add_transaction(pages, INCOME, "100", date(2024, 5, 1))
        await add_transaction(pages, EXPENSE, "40", date(2024, 5, 3))

        controller = pages["transactions"]
        assert [t.amount for t in controller.transactions] == [Decimal("40"), Decimal("100")]
        assert not controller.form_open

    @pytest.mark.asyncio
    async def test_missing_amount_blocks_the_write(self, pages, storage):
        controller = pages["transactions"]
        await controller.ensure_loaded()
        controller.open_create_form()

        assert not await controller.save(TransactionForm(transaction_date=TODAY))

        assert controller.form_open
        assert "Amount is required" in controller.form_error
        assert await storage.list_records(RecordKind.TRANSACTION) == []

    @pytest.mark.asyncio
    async def test_category_must_match_type(self, pages):
        sewa = await add_category(pages, "Sewa", EXPENSE)
        controller = pages["transactions"]
        await controller.load()
        controller.open_create_form()

        saved = await controller.save(TransactionForm(
            type=INCOME, amount=Decimal("10"), category_id=sewa.id, transaction_date=TODAY
        ))

        assert not saved
        assert "category" in controller.form_error

    @pytest.mark.asyncio
    async def test_storage_rejection_keeps_form_open(self, pages, signed_in):
        controller = pages["transactions"]
        await controller.ensure_loaded()
        controller.open_create_form()

        # Category that does not exist in the store
        saved = await controller.save(TransactionForm(
            type=INCOME, amount=Decimal("10"), category_id=uuid4(), transaction_date=TODAY
        ))

        assert not saved
        assert controller.form_open
        assert controller.form_error
        assert event_types(signed_in)[-1] == AuditEventType.SAVE_FAILED

    @pytest.mark.asyncio
    async def test_edit_transaction(self, pages):
        await add_transaction(pages, INCOME, "100", date(2024, 5, 1), description="Nasi")
        controller = pages["transactions"]
        record = controller.transactions[0]

        controller.open_edit_form(record.id)
        form = controller.form_for(record.id)
        assert form.description == "Nasi"

        form.amount = Decimal("150")
        assert await controller.save(form)

        assert len(controller.transactions) == 1
        assert controller.transactions[0].amount == Decimal("150")
        assert controller.transactions[0].updated_at is not None

    @pytest.mark.asyncio
    async def test_delete_after_confirmation(self, pages):
        await add_transaction(pages, INCOME, "100", TODAY)
        controller = pages["transactions"]
        record_id = controller.transactions[0].id

        controller.request_delete(record_id)
        assert controller.delete_prompt == "Are you sure you want to delete this transaction?"
        controller.cancel_delete()
        assert not await controller.confirm_delete()
        assert len(controller.transactions) == 1

        controller.request_delete(record_id)
        assert await controller.confirm_delete()
        assert controller.transactions == []

    @pytest.mark.asyncio
    async def test_filters_do_not_refetch(self, pages):
        await add_transaction(pages, INCOME, "100", date(2024, 4, 1))
        await add_transaction(pages, EXPENSE, "40", date(2024, 5, 3))
        await add_transaction(pages, INCOME, "30", date(2024, 5, 4))
        controller = pages["transactions"]

        controller.set_filter(type=INCOME, date_from=date(2024, 5, 1))

        assert not controller.needs_reload
        assert [t.amount for t in controller.visible_transactions] == [Decimal("30")]
        assert controller.visible_totals == (Decimal("30"), Decimal("0"))

        controller.clear_filter()
        assert len(controller.visible_transactions) == 3

    @pytest.mark.asyncio
    async def test_blank_form_is_dated_today(self, pages):
        form = pages["transactions"].form_for()
        assert form.transaction_date == TODAY
        assert form.amount is None


class TestCategoriesPage:

    @pytest.mark.asyncio
    async def test_grouped_by_type_then_name(self, pages):
        await add_category(pages, "Sewa", EXPENSE)
        await add_category(pages, "Penjualan", INCOME)
        await add_category(pages, "Air", EXPENSE)

        controller = pages["categories"]
        assert [c.name for c in controller.expense_categories] == ["Air", "Sewa"]
        assert [c.name for c in controller.income_categories] == ["Penjualan"]

    @pytest.mark.asyncio
    async def test_deleted_category_leaves_transactions_uncategorized(self, pages):
        sewa = await add_category(pages, "Sewa", EXPENSE)
        await add_transaction(pages, EXPENSE, "750000", TODAY, category_id=sewa.id)

        categories = pages["categories"]
        categories.request_delete(sewa.id)
        assert await categories.confirm_delete()

        transactions = pages["transactions"]
        await transactions.load()
        [record] = transactions.transactions
        assert record.category_id is None
        assert record.category_name is None

    @pytest.mark.asyncio
    async def test_rename_shows_in_transactions(self, pages):
        category = await add_category(pages, "Listrik", EXPENSE)
        await add_transaction(pages, EXPENSE, "200000", TODAY, category_id=category.id)

        controller = pages["categories"]
        controller.open_edit_form(category.id)
        assert await controller.save(CategoryForm(name="Listrik & Air", type=EXPENSE))

        transactions = pages["transactions"]
        await transactions.load()
        assert transactions.transactions[0].category_name == "Listrik & Air"


class TestDebtsPage:

    @pytest.mark.asyncio
    async def test_blank_paid_amount_is_pending(self, pages):
        controller = pages["debts"]
        await controller.ensure_loaded()
        controller.open_create_form()

        assert await controller.save(DebtForm(
            type=DebtType.RECEIVABLE,
            party_name="Bu Rina",
            amount=Decimal("1000000"),
            due_date=TODAY + timedelta(days=14),
        ))

        [item] = controller.receivables
        assert item.record.status == DebtStatus.PENDING
        assert item.record.paid_amount == Decimal("0")
        assert controller.summary.total_receivable == Decimal("1000000")

    @pytest.mark.asyncio
    async def test_payments_update_status(self, pages):
        controller = pages["debts"]
        await controller.ensure_loaded()
        controller.open_create_form()
        assert await controller.save(DebtForm(
            party_name="Toko Makmur",
            amount=Decimal("1000"),
            paid_amount=Decimal("250"),
            due_date=TODAY,
        ))
        record = controller.debts[0].record
        assert record.status == DebtStatus.PARTIAL

        controller.open_edit_form(record.id)
        form = controller.form_for(record.id)
        form.paid_amount = Decimal("1000")
        assert await controller.save(form)

        [item] = controller.debts
        assert item.record.status == DebtStatus.PAID
        assert item.progress_percent == 100.0
        assert controller.summary.total_debt == Decimal("0")

    @pytest.mark.asyncio
    async def test_overlong_party_name_keeps_form_open(self, pages, storage):
        controller = pages["debts"]
        await controller.ensure_loaded()
        controller.open_create_form()

        assert not await controller.save(DebtForm(
            party_name="x" * 201,
            amount=Decimal("1000"),
            due_date=TODAY,
        ))

        assert "Party name can be at most 200 characters" in controller.form_error
        assert controller.form_open
        assert controller.state == PageState.READY
        assert await storage.list_records(RecordKind.DEBT_RECEIVABLE) == []
        assert event_types(controller.session)[-1] == AuditEventType.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_record_model_rejection_is_a_failed_save(self, pages, storage):
        controller = pages["debts"]
        await controller.ensure_loaded()
        controller.open_create_form()

        saved = await controller._submit(
            ValidationResult(form="debt"),
            create=lambda: DebtReceivableCreate(
                user_id=controller.user_id,
                type=DebtType.DEBT,
                party_name="Toko Makmur",
                amount=Decimal("-5"),
                due_date=TODAY,
            ),
            patch=lambda: None,
        )

        assert not saved
        assert controller.form_error.startswith("Failed to save item: ")
        assert controller.form_open
        assert controller.state == PageState.READY
        assert await storage.list_records(RecordKind.DEBT_RECEIVABLE) == []
        assert event_types(controller.session)[-1] == AuditEventType.SAVE_FAILED

    @pytest.mark.asyncio
    async def test_overdue_items(self, pages):
        controller = pages["debts"]
        await controller.ensure_loaded()
        for due in (TODAY - timedelta(days=1), TODAY):
            controller.open_create_form()
            assert await controller.save(DebtForm(
                party_name="Pak Joko", amount=Decimal("500"), due_date=due
            ))

        assert controller.overdue_count == 1
        assert controller.items[0].overdue

    @pytest.mark.asyncio
    async def test_delete_prompt_names_item(self, pages):
        assert pages["debts"].delete_prompt == "Are you sure you want to delete this item?"


class TestReportsPage:

    @pytest.mark.asyncio
    async def test_empty_report_cannot_be_exported(self, pages):
        controller = pages["reports"]
        assert await controller.load()

        assert controller.report.is_empty
        assert not controller.can_export
        assert controller.export_file() is None
        assert await controller.export_csv() is None

    @pytest.mark.asyncio
    async def test_month_report_and_export(self, pages, signed_in):
        penjualan = await add_category(pages, "Penjualan", INCOME)
        await add_transaction(pages, INCOME, "300000", date(2024, 5, 1), category_id=penjualan.id)
        await add_transaction(pages, EXPENSE, "100000", date(2024, 4, 20))
        await add_transaction(pages, INCOME, "1", date(2024, 4, 1))

        controller = pages["reports"]
        assert (controller.start_date, controller.end_date) == (date(2024, 4, 15), TODAY)
        assert await controller.load()

        assert controller.report.total_income == Decimal("300000")
        assert controller.report.total_expense == Decimal("100000")
        assert controller.report.transaction_count == 2

        filename, text = await controller.export_csv()
        assert filename == "financial-report-2024-04-15-2024-05-15.csv"
        assert "Profit/Loss,200000" in text.splitlines()
        assert event_types(signed_in)[-1] == AuditEventType.REPORT_EXPORTED

    @pytest.mark.asyncio
    async def test_switching_range_requires_reload(self, pages):
        controller = pages["reports"]
        await controller.load()

        controller.select_period(ReportPeriod.YEAR)
        assert controller.needs_reload
        assert controller.start_date == date(2023, 5, 15)

    @pytest.mark.asyncio
    async def test_invalid_custom_range_keeps_current(self, pages):
        controller = pages["reports"]

        assert not controller.set_custom_range(date(2024, 5, 1), date(2024, 4, 1))
        assert controller.form_error == "End date is before start date"
        assert controller.period == ReportPeriod.MONTH

        assert controller.set_custom_range(date(2024, 1, 1), date(2024, 1, 31))
        assert controller.period is None
        assert controller.form_error is None


class TestAnalyticsPage:

    @pytest.mark.asyncio
    async def test_six_month_window(self, pages):
        await add_transaction(pages, INCOME, "100", date(2023, 11, 14))
        await add_transaction(pages, INCOME, "200", date(2023, 11, 15))
        await add_transaction(pages, EXPENSE, "50", date(2024, 5, 1))

        controller = pages["analytics"]
        assert controller.window_start == date(2023, 11, 15)
        assert await controller.load()

        assert [m.month for m in controller.monthly] == ["2023-11", "2024-05"]
        assert controller.monthly[0].income_total == Decimal("200")

    @pytest.mark.asyncio
    async def test_top_categories(self, pages):
        sewa = await add_category(pages, "Sewa", EXPENSE)
        await add_transaction(pages, EXPENSE, "700", TODAY, category_id=sewa.id)
        await add_transaction(pages, EXPENSE, "300", TODAY)

        controller = pages["analytics"]
        await controller.load()

        assert [(c.name, c.total) for c in controller.top_categories] == [
            ("Sewa", Decimal("700")),
            ("Uncategorized", Decimal("300")),
        ]

    @pytest.mark.asyncio
    async def test_changing_window_requires_reload(self, pages):
        controller = pages["analytics"]
        await controller.load()

        controller.set_months(12)
        assert controller.needs_reload


class TestProfilePage:

    @pytest.mark.asyncio
    async def test_update_profile(self, pages, signed_in):
        controller = pages["profile"]
        assert await controller.load()
        assert controller.form().business_name == "Warung Sari"

        assert await controller.save(ProfileForm(full_name="Sari Dewi", business_name="Kedai Sari"))

        assert controller.profile.full_name == "Sari Dewi"
        assert signed_in.display_name == "Kedai Sari"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, pages):
        controller = pages["profile"]
        await controller.load()

        assert not await controller.save(ProfileForm(full_name=" "))
        assert controller.form_error == "Full name is required"

    @pytest.mark.asyncio
    async def test_overlong_names_rejected(self, pages):
        controller = pages["profile"]
        await controller.load()

        assert not await controller.save(ProfileForm(full_name="y" * 201))
        assert controller.form_error == "Full name can be at most 200 characters"

        assert not await controller.save(ProfileForm(full_name="Sari", business_name="w" * 201))
        assert controller.form_error == "Business name can be at most 200 characters"
        assert controller.profile.full_name == "Sari"
        assert controller.profile.business_name == "Warung Sari"


class TestAppComponents:

    def test_demo_mode_without_storage(self):
        session, demo_mode = create_app_components(use_storage=False)
        assert demo_mode
        assert isinstance(session.storage, InMemoryRecordStorage)

    def test_falls_back_when_supabase_is_not_configured(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "not-a-url")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        session, demo_mode = create_app_components()
        assert demo_mode
        assert not session.is_authenticated
