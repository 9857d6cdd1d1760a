"""
Streamlit Frontend for Subscription Tracker

The presentation shell: renders subscriptions as cards, shows the
spend summary and forwards add/edit/delete to the orchestrator.

DESIGN PRINCIPLES:
1. Session state is the single source of truth for the loaded collection
2. Totals are re-derived after every change to that collection
3. Form errors are shown next to the offending field
4. Store failures are shown, never retried silently
"""

import asyncio
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import streamlit as st

from subtracker.aggregates import is_nearing_renewal, totals_by_category
from subtracker.audit import create_correlation_id
from subtracker.config import get_settings, validate_all_settings
from subtracker.models.subscription import BillingCycle, Subscription
from subtracker.orchestrator import SubscriptionFlow, create_app_components
from subtracker.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Subscription Tracker",
    page_icon="💳",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .renewing-soon {
        color: #dc3545;
        font-weight: bold;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


CYCLE_LABELS = {
    BillingCycle.MONTHLY: "month",
    BillingCycle.YEARLY: "year",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def format_amount(amount: Decimal) -> str:
    """Render an amount at display precision with the configured symbol."""
    app_settings = get_settings().app
    quantum = Decimal(1).scaleb(-app_settings.display_decimal_places)
    rounded = amount.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{app_settings.currency_symbol}{rounded:,}"


def load_subscriptions(flow: SubscriptionFlow, owner: str) -> None:
    """(Re)load the owner's collection into session state."""
    try:
        dashboard = run_async(flow.load(owner, create_correlation_id()))
    except StorageError as e:
        st.error(f"Could not load subscriptions: {e}")
        st.session_state.subscriptions = []
        return
    st.session_state.subscriptions = dashboard.subscriptions
    st.session_state.loaded_owner = owner


def main():
    """Main application entry point."""
    flow, _ = get_components()
    app_settings = get_settings().app

    st.sidebar.title("💳 Subscription Tracker")
    st.sidebar.markdown("---")

    owner = st.sidebar.text_input(
        "Signed in as",
        value=st.session_state.get("owner", app_settings.default_owner),
    ).strip() or app_settings.default_owner
    st.session_state.owner = owner

    if st.session_state.get("loaded_owner") != owner:
        load_subscriptions(flow, owner)

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➕ Add Subscription", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(flow)
    elif page == "➕ Add Subscription":
        render_add_page(flow, owner)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_subscription_form(
    key: str,
    categories: list[str],
    initial: Optional[dict[str, str]] = None,
) -> Optional[dict[str, str]]:
    """
    Render the subscription form.

    Returns the raw text values when submitted, None otherwise.
    Every value is passed on as text; parsing is the validator's job.
    """
    initial = initial or {}
    errors = st.session_state.get(f"{key}_errors", {})

    cycle_options = [cycle.value for cycle in BillingCycle]
    category_options = [""] + categories
    if initial.get("category") and initial["category"] not in category_options:
        category_options.append(initial["category"])

    with st.form(key):
        service_name = st.text_input(
            "Service name *", value=initial.get("service_name", "")
        )
        if "service_name" in errors:
            st.caption(f":red[{errors['service_name']}]")

        price = st.text_input("Price *", value=initial.get("price", ""))
        if "price" in errors:
            st.caption(f":red[{errors['price']}]")

        billing_cycle = st.selectbox(
            "Billing cycle *",
            options=cycle_options,
            index=cycle_options.index(initial.get("billing_cycle", "monthly")),
        )
        if "billing_cycle" in errors:
            st.caption(f":red[{errors['billing_cycle']}]")

        initial_date = initial.get("next_billing_date")
        next_billing_date = st.date_input(
            "Next billing date *",
            value=date.fromisoformat(initial_date) if initial_date else None,
        )
        if "next_billing_date" in errors:
            st.caption(f":red[{errors['next_billing_date']}]")

        category = st.selectbox(
            "Category *",
            options=category_options,
            index=category_options.index(initial.get("category", "")),
            format_func=lambda c: c or "Select…",
        )
        if "category" in errors:
            st.caption(f":red[{errors['category']}]")

        service_url = st.text_input(
            "Service URL", value=initial.get("service_url", "")
        )
        if "service_url" in errors:
            st.caption(f":red[{errors['service_url']}]")

        notes = st.text_area("Notes", value=initial.get("notes", ""))

        submitted = st.form_submit_button("Save", type="primary")

    if not submitted:
        return None

    return {
        "service_name": service_name,
        "price": price,
        "billing_cycle": billing_cycle,
        "next_billing_date": (
            next_billing_date.isoformat() if next_billing_date else ""
        ),
        "category": category,
        "service_url": service_url,
        "notes": notes,
    }


def render_summary(subscriptions: list[Subscription]) -> None:
    """Render the spend summary box."""
    summary = SubscriptionFlow.summarize(subscriptions)

    st.subheader("📈 Spend Summary")
    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("Monthly total")
        st.markdown(
            f'<div class="big-number">{format_amount(summary.total_monthly)}</div>',
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown("Yearly total")
        st.markdown(
            f'<div class="big-number">{format_amount(summary.total_yearly)}</div>',
            unsafe_allow_html=True,
        )
    with col3:
        st.markdown("Subscriptions")
        st.markdown(
            f'<div class="big-number">{summary.subscription_count}</div>',
            unsafe_allow_html=True,
        )

    if subscriptions:
        with st.expander("By category"):
            for category, totals in totals_by_category(subscriptions).items():
                st.markdown(
                    f"**{category}**: {format_amount(totals.total_monthly)}/month, "
                    f"{format_amount(totals.total_yearly)}/year"
                )


def render_card(flow: SubscriptionFlow, subscription: Subscription) -> None:
    """Render one subscription card with edit and delete actions."""
    app_settings = get_settings().app
    renewing = is_nearing_renewal(
        subscription, date.today(), app_settings.renewal_warning_days
    )

    with st.container(border=True):
        st.markdown(f"### {subscription.service_name}")
        st.caption(subscription.category)
        st.markdown(
            f"**{format_amount(subscription.price)}**"
            f" / {CYCLE_LABELS[subscription.billing_cycle]}"
        )

        billing_text = (
            f"Next billing: {subscription.next_billing_date.strftime('%d %B %Y')}"
        )
        if renewing:
            st.markdown(
                f'<span class="renewing-soon">{billing_text} (renewing soon)</span>',
                unsafe_allow_html=True,
            )
        else:
            st.markdown(billing_text)

        if subscription.service_url:
            st.markdown(f"[Open service ↗]({subscription.service_url})")
        if subscription.notes:
            st.caption(subscription.notes)

        with st.expander("✏️ Edit"):
            key = f"edit_{subscription.id}"
            raw = render_subscription_form(
                key,
                app_settings.categories_list,
                initial=flow.validator.to_form(subscription),
            )
            if raw is not None:
                try:
                    result = run_async(flow.update(subscription.id, raw))
                except StorageError as e:
                    st.error(f"Failed to update subscription: {e}")
                else:
                    if result.saved:
                        st.session_state[f"{key}_errors"] = {}
                        st.session_state.subscriptions = [
                            result.subscription if s.id == subscription.id else s
                            for s in st.session_state.subscriptions
                        ]
                        st.toast("Subscription updated")
                    else:
                        st.session_state[f"{key}_errors"] = result.validation.messages()
                    st.rerun()

        if st.button("🗑️ Delete", key=f"delete_{subscription.id}"):
            try:
                run_async(flow.delete(subscription.id))
            except StorageError as e:
                st.error(f"Failed to delete subscription: {e}")
            else:
                st.session_state.subscriptions = [
                    s for s in st.session_state.subscriptions
                    if s.id != subscription.id
                ]
                st.toast("Subscription deleted")
                st.rerun()


def render_dashboard_page(flow: SubscriptionFlow):
    """Render the summary and subscription cards."""
    st.title("📊 Your Subscriptions")

    subscriptions = st.session_state.get("subscriptions", [])
    render_summary(subscriptions)

    st.markdown("---")

    if not subscriptions:
        st.info(
            "📋 Your subscriptions will appear here once you add them. "
            "Use the 'Add Subscription' page to add your first one."
        )
        return

    columns = st.columns(3)
    for idx, subscription in enumerate(subscriptions):
        with columns[idx % 3]:
            render_card(flow, subscription)


def render_add_page(flow: SubscriptionFlow, owner: str):
    """Render the new-subscription form."""
    st.title("➕ Add Subscription")

    raw = render_subscription_form(
        "add_subscription", get_settings().app.categories_list
    )
    if raw is None:
        return

    try:
        result = run_async(flow.create(owner, raw))
    except StorageError as e:
        st.error(f"Failed to save subscription: {e}")
        return

    if result.saved:
        st.session_state.add_subscription_errors = {}
        subscriptions = st.session_state.get("subscriptions", []) + [result.subscription]
        subscriptions.sort(key=lambda s: s.next_billing_date)
        st.session_state.subscriptions = subscriptions
        st.success(f"✅ Saved {result.subscription.service_name}")
    else:
        st.session_state.add_subscription_errors = result.validation.messages()
        st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if not status.get("google_sheets", False):
        st.info("Running on in-memory storage. Data is lost on restart.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
