"""
Streamlit Frontend for NotaNusa

The bookkeeping screens a small business owner uses every day.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted
3. Clear error messages in simple language
4. Visual feedback for all operations

The UI only renders. Loading, validation, saving and error handling
live in the page controllers (notanusa.pages), one per page, all
sharing the session context of this browser session.
"""

import asyncio
from decimal import Decimal
from typing import Optional

import streamlit as st

from notanusa.analytics import format_idr, format_percent
from notanusa.config import validate_all_settings
from notanusa.models.forms import CategoryForm, DebtForm, OpeningBalanceForm, ProfileForm, TransactionForm
from notanusa.models.records import DebtStatus, DebtType, TransactionType
from notanusa.models.reports import ReportPeriod
from notanusa.orchestrator import create_app_components, create_page_controllers
from notanusa.pages import (
    AnalyticsController,
    CategoriesController,
    DashboardController,
    DebtsController,
    PageController,
    ProfileController,
    ReportsController,
    TransactionsController,
)
from notanusa.session import SessionContext


# Page configuration
st.set_page_config(
    page_title="NotaNusa",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .income { color: #28a745; font-weight: bold; }
    .expense { color: #dc3545; font-weight: bold; }
    .overdue-box {
        padding: 10px 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


STATUS_LABELS = {
    DebtStatus.PENDING: "⏳ Pending",
    DebtStatus.PARTIAL: "🟡 Partial",
    DebtStatus.PAID: "✅ Paid",
}

PERIOD_LABELS = {
    ReportPeriod.WEEK: "Last 7 days",
    ReportPeriod.MONTH: "Last month",
    ReportPeriod.YEAR: "Last year",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> tuple[SessionContext, dict[str, PageController], bool]:
    """
    Get or create this browser session's components.

    Kept in st.session_state rather than st.cache_resource: the session
    context carries the signed-in identity, which must not be shared
    between visitors.
    """
    if "session" not in st.session_state:
        try:
            session, demo_mode = create_app_components(use_storage=True)
        except Exception as e:
            st.error(f"Failed to initialize: {e}")
            session, demo_mode = create_app_components(use_storage=False)
        st.session_state.session = session
        st.session_state.demo_mode = demo_mode
        st.session_state.controllers = create_page_controllers(session)

    return (
        st.session_state.session,
        st.session_state.controllers,
        st.session_state.demo_mode,
    )


def to_decimal(value: Optional[float]) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


def show_page_messages(controller: PageController) -> None:
    if controller.error_message:
        st.error(f"❌ {controller.error_message}")


def render_delete_confirmation(controller: PageController) -> None:
    """Yes/cancel prompt for a pending delete."""
    if controller.pending_delete_id is None:
        return

    st.warning(controller.delete_prompt)
    col1, col2 = st.columns(2)
    with col1:
        if st.button("🗑️ Yes, delete", key=f"{controller.page_name}_confirm_delete"):
            if run_async(controller.confirm_delete()):
                st.success("Deleted")
            st.rerun()
    with col2:
        if st.button("Cancel", key=f"{controller.page_name}_cancel_delete"):
            controller.cancel_delete()
            st.rerun()


def main():
    """Main application entry point."""
    session, controllers, demo_mode = get_components()

    if not session.is_authenticated:
        render_auth_page(session, demo_mode)
        return

    # Sidebar navigation
    st.sidebar.title("📒 NotaNusa")
    st.sidebar.markdown(f"**{session.display_name}**")
    if demo_mode:
        st.sidebar.info("Demo mode: data is kept in memory only")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "💸 Transactions",
            "🏷️ Categories",
            "🤝 Debts & Receivables",
            "📄 Reports",
            "📈 Analytics",
            "👤 Profile",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        run_async(session.sign_out())
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(controllers["dashboard"])
    elif page == "💸 Transactions":
        render_transactions_page(controllers["transactions"])
    elif page == "🏷️ Categories":
        render_categories_page(controllers["categories"])
    elif page == "🤝 Debts & Receivables":
        render_debts_page(controllers["debts"])
    elif page == "📄 Reports":
        render_reports_page(controllers["reports"])
    elif page == "📈 Analytics":
        render_analytics_page(controllers["analytics"])
    elif page == "👤 Profile":
        render_profile_page(controllers["profile"])
    elif page == "⚙️ Settings":
        render_settings_page(demo_mode)


def render_auth_page(session: SessionContext, demo_mode: bool):
    """Sign-in and sign-up forms for anonymous visitors."""
    st.title("📒 NotaNusa")
    st.markdown("Simple bookkeeping for small businesses.")
    if demo_mode:
        st.info("Supabase is not configured. Running in demo mode: register any account to try the app.")

    if session.error_message:
        st.error(f"❌ {session.error_message}")
    if session.notice:
        st.info(session.notice)

    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Register"])

    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                with st.spinner("Signing in..."):
                    run_async(session.sign_in(email, password))
                st.rerun()

    with sign_up_tab:
        with st.form("sign_up"):
            full_name = st.text_input("Full name")
            business_name = st.text_input("Business name (optional)")
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input(
                "Password", type="password", key="sign_up_password",
                help="At least 6 characters",
            )
            if st.form_submit_button("Create account"):
                with st.spinner("Creating your account..."):
                    run_async(session.sign_up(email, password, full_name, business_name))
                st.rerun()


def render_dashboard_page(controller: DashboardController):
    """Render this month's summary."""
    st.title("📊 Dashboard")
    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    summary = controller.summary
    st.caption(f"{controller.month_start:%d %b %Y} to {controller.month_end:%d %b %Y}")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", format_idr(summary.total_income))
    col2.metric("Expense", format_idr(summary.total_expense))
    col3.metric("Balance", format_idr(summary.balance))
    col4.metric(
        "Profit / Loss",
        format_idr(summary.profit_loss),
        delta="Profit" if summary.profit_loss >= 0 else "Loss",
        delta_color="normal" if summary.profit_loss >= 0 else "inverse",
    )

    period = summary.cash_flow_period
    if period is None:
        st.caption("Balance shows this month's profit/loss until you set an opening balance.")
    else:
        st.caption(f"Balance includes {format_idr(period.opening_balance)} cash on hand since {period.period_start:%d %b %Y}.")

    with st.expander("💰 Opening balance", expanded=controller.form_open):
        initial = controller.opening_balance_form()
        with st.form("opening_balance_form"):
            opening_balance = st.number_input(
                "Cash on hand (Rp)",
                step=1000.0,
                value=float(initial.opening_balance),
            )
            period_start = st.date_input("Since", value=initial.period_start)
            submitted = st.form_submit_button("💾 Save")

        if submitted:
            controller.open_opening_balance_form()
            form = OpeningBalanceForm(
                opening_balance=to_decimal(opening_balance),
                period_start=period_start,
            )
            if run_async(controller.save_opening_balance(form)):
                st.rerun()
        if controller.form_error:
            st.error(f"❌ {controller.form_error}")

    st.markdown("### Recent transactions")
    if not summary.recent_transactions:
        st.info("No transactions this month yet.")
        return

    st.dataframe(
        [
            {
                "Date": t.transaction_date.isoformat(),
                "Description": t.description or "-",
                "Category": t.category_name or "Uncategorized",
                "Amount": ("+" if t.type == TransactionType.INCOME else "-") + format_idr(t.amount),
            }
            for t in summary.recent_transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_transactions_page(controller: TransactionsController):
    """Render the transaction list, filters and form."""
    st.title("💸 Transactions")
    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    if st.button("➕ Add transaction"):
        controller.open_create_form()

    if controller.form_open:
        render_transaction_form(controller)

    render_delete_confirmation(controller)

    # Filters
    col1, col2, col3 = st.columns(3)
    with col1:
        type_filter = st.selectbox(
            "Type",
            options=[None, TransactionType.INCOME, TransactionType.EXPENSE],
            format_func=lambda x: "All" if x is None else x.value.title(),
        )
    with col2:
        date_from = st.date_input("From", value=None)
    with col3:
        date_to = st.date_input("To", value=None)
    controller.set_filter(type=type_filter, date_from=date_from, date_to=date_to)

    income, expense = controller.visible_totals
    col1, col2 = st.columns(2)
    col1.metric("Filtered income", format_idr(income))
    col2.metric("Filtered expense", format_idr(expense))

    st.markdown("---")

    transactions = controller.visible_transactions
    if not transactions:
        st.info("No transactions found.")
        return

    for t in transactions:
        col1, col2, col3, col4, col5 = st.columns([2, 4, 3, 3, 2])
        col1.write(t.transaction_date.isoformat())
        col2.write(t.description or "-")
        col3.write(t.category_name or "Uncategorized")
        css = "income" if t.type == TransactionType.INCOME else "expense"
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col4.markdown(f'<span class="{css}">{sign}{format_idr(t.amount)}</span>', unsafe_allow_html=True)
        with col5:
            if st.button("✏️", key=f"edit_tx_{t.id}"):
                controller.open_edit_form(t.id)
                st.rerun()
            if st.button("🗑️", key=f"delete_tx_{t.id}"):
                controller.request_delete(t.id)
                st.rerun()


def render_transaction_form(controller: TransactionsController):
    initial = controller.form_for(controller.editing_id)
    st.markdown("### " + ("Edit transaction" if controller.editing_id else "New transaction"))

    # Outside the form so the category list follows the type
    transaction_type = st.radio(
        "Type",
        options=[TransactionType.INCOME, TransactionType.EXPENSE],
        index=0 if initial.type == TransactionType.INCOME else 1,
        format_func=lambda x: x.value.title(),
        horizontal=True,
        key="tx_form_type",
    )
    categories = controller.categories_for(transaction_type)
    category_ids = [None] + [c.id for c in categories]
    names = {c.id: c.name for c in categories}

    with st.form("transaction_form"):
        amount = st.number_input(
            "Amount (Rp)",
            min_value=0.0,
            step=1000.0,
            value=float(initial.amount) if initial.amount is not None else None,
        )
        category_id = st.selectbox(
            "Category",
            options=category_ids,
            index=category_ids.index(initial.category_id) if initial.category_id in category_ids else 0,
            format_func=lambda x: "No category" if x is None else names[x],
        )
        description = st.text_input("Description", value=initial.description or "")
        transaction_date = st.date_input("Date", value=initial.transaction_date)

        col1, col2 = st.columns(2)
        submitted = col1.form_submit_button("💾 Save")
        cancelled = col2.form_submit_button("Cancel")

    if cancelled:
        controller.close_form()
        st.rerun()

    if submitted:
        form = TransactionForm(
            type=transaction_type,
            amount=to_decimal(amount),
            category_id=category_id,
            description=description,
            transaction_date=transaction_date,
        )
        if run_async(controller.save(form)):
            st.success("✅ Transaction saved")
            st.rerun()

    if controller.form_error:
        st.error(f"❌ {controller.form_error}")


def render_categories_page(controller: CategoriesController):
    """Render categories grouped by type."""
    st.title("🏷️ Categories")
    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    if st.button("➕ Add category"):
        controller.open_create_form()

    if controller.form_open:
        initial = controller.form_for(controller.editing_id)
        with st.form("category_form"):
            name = st.text_input("Name", value=initial.name)
            category_type = st.selectbox(
                "Type",
                options=[TransactionType.INCOME, TransactionType.EXPENSE],
                index=0 if initial.type == TransactionType.INCOME else 1,
                format_func=lambda x: x.value.title(),
            )
            col1, col2 = st.columns(2)
            submitted = col1.form_submit_button("💾 Save")
            cancelled = col2.form_submit_button("Cancel")

        if cancelled:
            controller.close_form()
            st.rerun()
        if submitted:
            if run_async(controller.save(CategoryForm(name=name, type=category_type))):
                st.rerun()
        if controller.form_error:
            st.error(f"❌ {controller.form_error}")

    render_delete_confirmation(controller)

    col_income, col_expense = st.columns(2)
    for column, title, categories in (
        (col_income, "Income", controller.income_categories),
        (col_expense, "Expense", controller.expense_categories),
    ):
        with column:
            st.markdown(f"### {title}")
            if not categories:
                st.caption("No categories yet")
            for category in categories:
                c1, c2, c3 = st.columns([6, 1, 1])
                c1.write(category.name)
                if c2.button("✏️", key=f"edit_cat_{category.id}"):
                    controller.open_edit_form(category.id)
                    st.rerun()
                if c3.button("🗑️", key=f"delete_cat_{category.id}"):
                    controller.request_delete(category.id)
                    st.rerun()


def render_debts_page(controller: DebtsController):
    """Render debts and receivables with payment progress."""
    st.title("🤝 Debts & Receivables")
    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    summary = controller.summary
    col1, col2 = st.columns(2)
    col1.metric(f"Outstanding debts ({summary.debt_count})", format_idr(summary.total_debt))
    col2.metric(f"Outstanding receivables ({summary.receivable_count})", format_idr(summary.total_receivable))

    if controller.overdue_count:
        st.markdown(
            f'<div class="overdue-box">⚠️ {controller.overdue_count} item(s) are overdue</div>',
            unsafe_allow_html=True,
        )

    if st.button("➕ Add debt / receivable"):
        controller.open_create_form()

    if controller.form_open:
        render_debt_form(controller)

    render_delete_confirmation(controller)

    for title, items in (("Debts", controller.debts), ("Receivables", controller.receivables)):
        st.markdown(f"### {title}")
        if not items:
            st.caption(f"No {title.lower()}")
        for item in items:
            record = item.record
            with st.container(border=True):
                c1, c2, c3 = st.columns([5, 3, 2])
                c1.markdown(f"**{record.party_name}**  \nDue {record.due_date.isoformat()}")
                if item.overdue:
                    c1.markdown('<span class="expense">Overdue</span>', unsafe_allow_html=True)
                c2.write(STATUS_LABELS[record.status])
                c2.write(f"{format_idr(record.paid_amount)} / {format_idr(record.amount)}")
                with c3:
                    if st.button("✏️", key=f"edit_debt_{record.id}"):
                        controller.open_edit_form(record.id)
                        st.rerun()
                    if st.button("🗑️", key=f"delete_debt_{record.id}"):
                        controller.request_delete(record.id)
                        st.rerun()
                st.progress(min(item.progress_percent, 100.0) / 100)
                st.caption(f"Remaining {format_idr(item.remaining)} · {format_percent(item.progress_percent)} paid")


def render_debt_form(controller: DebtsController):
    initial = controller.form_for(controller.editing_id)
    st.markdown("### " + ("Edit item" if controller.editing_id else "New item"))

    with st.form("debt_form"):
        debt_type = st.selectbox(
            "Type",
            options=[DebtType.DEBT, DebtType.RECEIVABLE],
            index=0 if initial.type == DebtType.DEBT else 1,
            format_func=lambda x: "Debt (we owe)" if x == DebtType.DEBT else "Receivable (owed to us)",
        )
        party_name = st.text_input("Party name", value=initial.party_name)
        amount = st.number_input(
            "Amount (Rp)", min_value=0.0, step=1000.0,
            value=float(initial.amount) if initial.amount is not None else None,
        )
        paid_amount = st.number_input(
            "Paid amount (Rp)", min_value=0.0, step=1000.0,
            value=float(initial.paid_amount) if initial.paid_amount is not None else None,
        )
        due_date = st.date_input("Due date", value=initial.due_date)
        description = st.text_input("Description", value=initial.description or "")

        col1, col2 = st.columns(2)
        submitted = col1.form_submit_button("💾 Save")
        cancelled = col2.form_submit_button("Cancel")

    if cancelled:
        controller.close_form()
        st.rerun()

    if submitted:
        form = DebtForm(
            type=debt_type,
            party_name=party_name,
            amount=to_decimal(amount),
            paid_amount=to_decimal(paid_amount),
            due_date=due_date,
            description=description,
        )
        if run_async(controller.save(form)):
            st.rerun()

    if controller.form_error:
        st.error(f"❌ {controller.form_error}")


def render_reports_page(controller: ReportsController):
    """Render the period report and CSV export."""
    st.title("📄 Reports")

    options = list(PERIOD_LABELS) + [None]
    period = st.radio(
        "Period",
        options=options,
        index=options.index(controller.period),
        format_func=lambda x: "Custom range" if x is None else PERIOD_LABELS[x],
        horizontal=True,
    )

    if period is not None and period != controller.period:
        controller.select_period(period)
    elif period is None:
        col1, col2 = st.columns(2)
        start = col1.date_input("Start date", value=controller.start_date)
        end = col2.date_input("End date", value=controller.end_date)
        if (start, end) != (controller.start_date, controller.end_date) or controller.period is not None:
            controller.set_custom_range(start, end)
        if controller.form_error:
            st.error(f"❌ {controller.form_error}")

    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    report = controller.report
    if report is None:
        return

    st.caption(f"{report.start_date.isoformat()} to {report.end_date.isoformat()}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total income", format_idr(report.total_income))
    col2.metric("Total expense", format_idr(report.total_expense))
    col3.metric("Profit / Loss", format_idr(report.profit_loss))
    col4.metric("Transactions", report.transaction_count)

    st.markdown("### Category breakdown")
    if report.is_empty:
        st.info("No transactions in this period.")
    else:
        st.dataframe(
            [
                {
                    "Category": entry.name,
                    "Type": entry.type.value.title(),
                    "Amount": format_idr(entry.total),
                    "Share of type": format_percent(entry.percentage),
                }
                for entry in report.category_breakdown
            ],
            use_container_width=True,
            hide_index=True,
        )

    exported = controller.export_file()
    if st.download_button(
        "⬇️ Export CSV",
        data=exported[1] if exported else "",
        file_name=exported[0] if exported else "report.csv",
        mime="text/csv",
        disabled=exported is None,
    ):
        run_async(controller.log_export(exported[0]))


def render_analytics_page(controller: AnalyticsController):
    """Render monthly income vs expense and top categories."""
    st.title("📈 Analytics")

    months = st.slider("Months to show", min_value=1, max_value=24, value=controller.months)
    controller.set_months(months)

    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    st.markdown(f"### Monthly income vs expense (last {controller.months} months)")
    if not controller.monthly:
        st.info("No data available")
    else:
        st.bar_chart(
            {
                "Month": [m.month_label for m in controller.monthly],
                "Income": [float(m.income_total) for m in controller.monthly],
                "Expense": [float(m.expense_total) for m in controller.monthly],
            },
            x="Month",
            y=["Income", "Expense"],
        )
        st.dataframe(
            [
                {
                    "Month": m.month_label,
                    "Income": format_idr(m.income_total),
                    "Expense": format_idr(m.expense_total),
                    "Profit / Loss": format_idr(m.profit_loss),
                }
                for m in controller.monthly
            ],
            use_container_width=True,
            hide_index=True,
        )

    st.markdown("### Top categories")
    if not controller.top_categories:
        st.info("No data available")
        return

    for entry in controller.top_categories:
        css = "income" if entry.type == TransactionType.INCOME else "expense"
        st.markdown(
            f'{entry.name} <span class="{css}">{format_idr(entry.total)}</span>',
            unsafe_allow_html=True,
        )


def render_profile_page(controller: ProfileController):
    """Render the profile form."""
    st.title("👤 Profile")
    run_async(controller.ensure_loaded())
    show_page_messages(controller)

    initial = controller.form()
    with st.form("profile_form"):
        full_name = st.text_input("Full name", value=initial.full_name)
        business_name = st.text_input("Business name", value=initial.business_name or "")
        submitted = st.form_submit_button("💾 Save")

    if submitted:
        form = ProfileForm(full_name=full_name, business_name=business_name)
        if run_async(controller.save(form)):
            st.success("✅ Profile updated")

    if controller.form_error:
        st.error(f"❌ {controller.form_error}")

    profile = controller.profile
    if profile and profile.created_at:
        st.caption(f"Role: {profile.role.value} · Member since {profile.created_at:%d %b %Y}")


def render_settings_page(demo_mode: bool):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Database & Auth)", "supabase"),
        ("Application settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if demo_mode:
        st.warning("Running in demo mode. Data is lost when the browser session ends.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your Supabase "
        "project URL and anon key. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
