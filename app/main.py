"""
Streamlit Frontend for Budget Vault

DESIGN PRINCIPLES:
1. Nothing is shown until the PIN screen is passed
2. Losing the tab locks the app
3. Clear, plain error messages
4. Every destructive action asks first

Lock triggers: Streamlit cannot observe page visibility directly, so a
small script in the page reloads it with ``?signal=<name>`` when the tab
is hidden, the window loses focus or the page comes back from the
back-forward cache (see budget_vault.security.lifecycle). A reload is a
fresh session, which starts locked whenever a PIN exists; the signal is
still fed to the controller so the transition is audited.
"""

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation

import streamlit as st
import streamlit.components.v1 as components

from budget_vault.config import validate_all_settings
from budget_vault.models.budget import (
    CURRENCIES,
    CategoryCreate,
    CategoryUpdate,
    TransactionCreate,
    TransactionType,
    TransactionUpdate,
    format_amount,
)
from budget_vault.models.insights import InsightView
from budget_vault.orchestrator import AppContext, create_app_context
from budget_vault.security import AppLockedError, VerificationFailed
from budget_vault.security.lifecycle import LIFECYCLE_SCRIPT, SIGNAL_PARAM, parse_signal
from budget_vault.services.storage import (
    DataInaccessibleError,
    NotFoundError,
    StorageUnavailable,
)


st.set_page_config(
    page_title="Budget Vault",
    page_icon="🔒",
    layout="centered",
    initial_sidebar_state="expanded",
)

def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_context() -> AppContext:
    """One AppContext per browser session."""
    if "app_context" not in st.session_state:
        st.session_state.app_context = create_app_context()
    return st.session_state.app_context


def consume_lifecycle_signal(ctx: AppContext) -> None:
    if SIGNAL_PARAM not in st.query_params:
        return
    # Unknown values are dropped with the query param
    signal = parse_signal(st.query_params.get(SIGNAL_PARAM))
    if signal is not None:
        ctx.security.handle_signal(signal)
    del st.query_params[SIGNAL_PARAM]


def main():
    """Main application entry point."""
    failures = {k: v for k, v in validate_all_settings().items() if k.endswith("_error")}
    if failures:
        st.error("Configuration error. Check your environment and .env file.")
        for name, message in failures.items():
            st.code(f"{name}: {message}")
        return

    ctx = get_context()
    consume_lifecycle_signal(ctx)
    components.html(LIFECYCLE_SCRIPT, height=0)

    if ctx.lock_controller.is_locked or not ctx.security.has_pin():
        render_pin_screen(ctx)
        return

    st.sidebar.title("🔒 Budget Vault")
    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Home", "💸 Transactions", "🗂️ Categories", "📊 Insights", "⚙️ Settings"],
        index=0,
    )
    st.sidebar.markdown("---")
    if st.sidebar.button("🔒 Lock now"):
        ctx.security.lock()
        st.rerun()

    try:
        if page == "🏠 Home":
            render_home_page(ctx)
        elif page == "💸 Transactions":
            render_transactions_page(ctx)
        elif page == "🗂️ Categories":
            render_categories_page(ctx)
        elif page == "📊 Insights":
            render_insights_page(ctx)
        elif page == "⚙️ Settings":
            render_settings_page(ctx)
    except AppLockedError:
        st.rerun()
    except DataInaccessibleError:
        st.error(
            "Your data could not be decrypted with this PIN. "
            "Lock the app and try again, or reset it from Settings."
        )
    except StorageUnavailable as e:
        ctx.audit_logger.log_error("StorageUnavailable", str(e), {"page": page})
        st.error("Local storage is unavailable. Your changes were not saved.")


def render_pin_screen(ctx: AppContext):
    """Create PIN on first run, otherwise enter PIN."""
    creating = not ctx.security.has_pin()
    st.title("Create PIN" if creating else "Enter PIN")

    with st.form("pin_form", clear_on_submit=True):
        pin = st.text_input("PIN", type="password", max_chars=6, placeholder="4–6 digits")
        submitted = st.form_submit_button("Save" if creating else "Unlock", type="primary")

    if submitted:
        flow = ctx.security.onboard if creating else ctx.security.unlock
        with st.spinner("Checking PIN..."):
            result = run_async(flow(pin))
        if result.success:
            st.rerun()
        else:
            st.error(result.message)


def render_home_page(ctx: AppContext):
    st.title("🏠 Overview")
    storage = ctx.budget_storage()
    currency = run_async(storage.get_currency())
    insights = ctx.insights()

    summary = run_async(insights.summary(InsightView.MONTH))
    col1, col2, col3 = st.columns(3)
    col1.metric("Balance", format_amount(summary.balance, currency))
    col2.metric("Income", format_amount(summary.income, currency))
    col3.metric("Expenses", format_amount(summary.expenses, currency))

    overview = run_async(insights.budget_status())
    st.markdown(f"### Budget for {overview.year_month}")
    ratio = float(overview.total_expenses / overview.monthly_budget) if overview.monthly_budget else 0.0
    st.progress(min(ratio, 1.0))
    st.caption(
        f"{format_amount(overview.total_expenses, currency)} of "
        f"{format_amount(overview.monthly_budget, currency)}"
    )
    if overview.over_budget:
        st.warning("You are over this month's budget.")

    for status in overview.categories:
        label = f"{status.name}: {format_amount(status.spent, currency)} / {format_amount(status.limit, currency)}"
        if status.over_limit:
            st.error(label)
        else:
            st.write(label)


def render_transactions_page(ctx: AppContext):
    st.title("💸 Transactions")
    storage = ctx.budget_storage()
    currency = run_async(storage.get_currency())
    categories = run_async(storage.list_categories())
    names = {c.id: c.name for c in categories}

    with st.expander("➕ Add transaction"):
        if not categories:
            st.info("Create a category first.")
        else:
            with st.form("add_transaction", clear_on_submit=True):
                category = st.selectbox("Category", categories, format_func=lambda c: c.name)
                amount = st.text_input("Amount")
                when = st.date_input("Date", value=datetime.now().date())
                note = st.text_input("Note")
                if st.form_submit_button("Save", type="primary"):
                    try:
                        run_async(storage.create_transaction(TransactionCreate(
                            category_id=category.id,
                            amount=Decimal(amount),
                            date=datetime.combine(when, datetime.min.time()),
                            note=note or None,
                            type=category.type,
                        )))
                        st.success("Transaction saved")
                    except (InvalidOperation, ValueError) as e:
                        st.error(f"Invalid transaction: {e}")

    for t in run_async(storage.list_transactions()):
        col1, col2 = st.columns([5, 1])
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col1.write(
            f"**{names.get(t.category_id, 'Unknown')}** {sign}{format_amount(t.amount, currency)} "
            f"· {t.date:%d %b %Y} {('· ' + t.note) if t.note else ''}"
        )
        if col2.button("🗑️", key=f"delete_tx_{t.id}"):
            try:
                run_async(storage.delete_transaction(t.id))
            except NotFoundError:
                pass
            st.rerun()
        with st.expander("✏️ Edit"):
            with st.form(f"edit_tx_{t.id}"):
                amount = st.text_input("Amount", value=str(t.amount))
                when = st.date_input("Date", value=t.date.date())
                note = st.text_input("Note", value=t.note or "")
                if st.form_submit_button("Update"):
                    try:
                        run_async(storage.update_transaction(t.id, TransactionUpdate(
                            amount=Decimal(amount),
                            date=datetime.combine(when, datetime.min.time()),
                            note=note,
                        )))
                        st.rerun()
                    except NotFoundError:
                        st.warning("This transaction no longer exists.")
                    except (InvalidOperation, ValueError) as e:
                        st.error(f"Invalid transaction: {e}")


def render_categories_page(ctx: AppContext):
    st.title("🗂️ Categories")
    storage = ctx.budget_storage()
    currency = run_async(storage.get_currency())

    with st.expander("➕ Add category"):
        with st.form("add_category", clear_on_submit=True):
            name = st.text_input("Name")
            kind = st.selectbox("Type", list(TransactionType), format_func=lambda t: t.value.title())
            limit = st.number_input("Monthly limit", min_value=0.0, step=100.0)
            color = st.color_picker("Color", "#4ade80")
            if st.form_submit_button("Save", type="primary"):
                try:
                    run_async(storage.create_category(CategoryCreate(
                        name=name,
                        type=kind,
                        monthly_limit=Decimal(str(limit)),
                        color=color,
                    )))
                    st.success("Category saved")
                except ValueError as e:
                    st.error(f"Invalid category: {e}")

    for c in run_async(storage.list_categories()):
        col1, col2 = st.columns([5, 1])
        limit_text = f" · limit {format_amount(c.monthly_limit, currency)}" if c.monthly_limit else ""
        col1.markdown(f"<span style='color:{c.color}'>●</span> **{c.name}** ({c.type.value}){limit_text}",
                      unsafe_allow_html=True)
        if col2.button("🗑️", key=f"delete_cat_{c.id}"):
            try:
                run_async(storage.delete_category(c.id))
            except NotFoundError:
                pass
            st.rerun()
        with st.expander("✏️ Edit"):
            with st.form(f"edit_cat_{c.id}"):
                name = st.text_input("Name", value=c.name)
                limit = st.number_input("Monthly limit", min_value=0.0, value=float(c.monthly_limit), step=100.0)
                color = st.color_picker("Color", c.color)
                if st.form_submit_button("Update"):
                    try:
                        run_async(storage.update_category(c.id, CategoryUpdate(
                            name=name,
                            monthly_limit=Decimal(str(limit)),
                            color=color,
                        )))
                        st.rerun()
                    except NotFoundError:
                        st.warning("This category no longer exists.")
                    except ValueError as e:
                        st.error(f"Invalid category: {e}")


def render_insights_page(ctx: AppContext):
    st.title("📊 Insights")
    insights = ctx.insights()
    currency = run_async(ctx.budget_storage().get_currency())

    view = st.radio("Period", list(InsightView), horizontal=True,
                    format_func=lambda v: "This Month" if v == InsightView.MONTH else "This Year")

    by_category = run_async(insights.expenses_by_category(view))
    total = sum((item.amount for item in by_category), Decimal("0"))
    st.metric("Total spent", format_amount(total, currency))

    if by_category:
        st.bar_chart(
            [{"category": item.name, "amount": float(item.amount)} for item in by_category],
            x="category",
            y="amount",
        )
    else:
        st.info("No expenses in this period.")

    trend = run_async(insights.monthly_trend())
    if trend:
        st.markdown("### Monthly spending")
        st.bar_chart(
            [{"month": item.month, "amount": float(item.amount)} for item in trend],
            x="month",
            y="amount",
        )


def render_settings_page(ctx: AppContext):
    st.title("⚙️ Settings")
    storage = ctx.budget_storage()

    st.markdown("### Currency")
    current = run_async(storage.get_currency())
    codes = list(CURRENCIES)
    choice = st.selectbox(
        "Currency",
        codes,
        index=codes.index(current) if current in codes else 0,
        format_func=lambda code: f"{CURRENCIES[code].symbol} {CURRENCIES[code].name}",
    )
    if choice != current:
        run_async(storage.set_currency(choice))
        st.rerun()

    st.markdown("### Monthly budget")
    year_month = datetime.now().strftime("%Y-%m")
    budget = run_async(storage.get_monthly_budget(year_month))
    new_budget = st.number_input(f"Budget for {year_month}", min_value=0.0, value=float(budget), step=1000.0)
    if st.button("Save budget"):
        run_async(storage.set_monthly_budget(year_month, Decimal(str(new_budget))))
        st.success("Budget saved")

    st.markdown("### Encrypted export")
    export_pin = st.text_input("Confirm PIN to export", type="password", max_chars=6)
    if st.button("Create export") and export_pin:
        try:
            exported = run_async(ctx.security.export_data(export_pin))
            st.download_button("Download export", exported, file_name="budget_vault_export.json")
        except VerificationFailed:
            st.error("Incorrect PIN")

    st.markdown("### Recent security activity")
    for event in ctx.audit_logger.recent_events(limit=10):
        st.caption(f"{event.timestamp:%d %b %H:%M} · {event.description}")

    st.markdown("---")
    st.markdown("### Reset")
    confirm = st.checkbox("I understand this deletes all data on this device")
    if st.button("Reset app", type="secondary", disabled=not confirm):
        ctx.security.reset()
        st.rerun()

    st.caption("Your data is stored locally on this device.")


if __name__ == "__main__":
    main()
