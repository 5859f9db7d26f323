"""Streamlit page for the weekly budget view.

The page follows a strict fetch -> aggregate -> render pipeline: a budget
document is loaded (uploaded JSON, a saved document, or the REST API),
normalized once, aggregated by :mod:`budget_dashboard.aggregation`, and
rendered.  Only UI toggles live in ``st.session_state``; the API document
cache is kept there too so push events and refreshes can invalidate it.

To run the dashboard from the command line::

    streamlit run budget_dashboard/dashboard.py

or use ``run_dashboard.py`` at the project root.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, time, timezone
from pathlib import Path
from typing import List, Optional

import streamlit as st

# Conditional imports to support execution both as part of a package and
# directly via ``streamlit run budget_dashboard/dashboard.py``.
if __package__:
    from . import config
    from . import visualization as viz
    from .aggregation import BudgetSummary, aggregate, is_overdue, summary_frame
    from .api_client import BudgetApiClient, BudgetApiError
    from .formatting import format_currency, format_percent, format_week_range
    from .models import BudgetValidationError, WeeklyBudget
    from .normalization import normalize_budget_document
    from .realtime import BudgetDocumentCache
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budget_dashboard import config  # type: ignore
    from budget_dashboard import visualization as viz  # type: ignore
    from budget_dashboard.aggregation import BudgetSummary, aggregate, is_overdue, summary_frame  # type: ignore
    from budget_dashboard.api_client import BudgetApiClient, BudgetApiError  # type: ignore
    from budget_dashboard.formatting import format_currency, format_percent, format_week_range  # type: ignore
    from budget_dashboard.models import BudgetValidationError, WeeklyBudget  # type: ignore
    from budget_dashboard.normalization import normalize_budget_document  # type: ignore
    from budget_dashboard.realtime import BudgetDocumentCache  # type: ignore

logger = logging.getLogger(__name__)

SOURCE_UPLOAD = "Upload JSON"
SOURCE_SAVED = "Saved document"
SOURCE_API = "Budget API"


def load_document(file) -> Optional[WeeklyBudget]:
    """Decode and normalize an uploaded or saved budget document.

    Streamlit upload objects and open file handles both work.  Malformed
    documents are reported with ``st.error`` and yield ``None``.
    """
    try:
        raw = json.load(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        st.error(f"Not a valid JSON document: {exc}")
        return None
    try:
        return normalize_budget_document(raw)
    except BudgetValidationError as exc:
        st.error(f"Budget document is malformed: {exc}")
        return None


def list_saved_documents(directory: Optional[Path] = None) -> List[Path]:
    target = directory or config.BUDGETS_DIR
    if not target.exists():
        return []
    return sorted(target.glob('*.json'))


def _document_cache(client: BudgetApiClient) -> BudgetDocumentCache:
    cache = st.session_state.get('budget_cache')
    if cache is None:
        cache = BudgetDocumentCache(client.fetcher())
        st.session_state['budget_cache'] = cache
    return cache


def _api_client() -> BudgetApiClient:
    client = st.session_state.get('api_client')
    if client is None:
        client = BudgetApiClient()
        st.session_state['api_client'] = client
    return client


def load_from_api(budget_id: str) -> Optional[WeeklyBudget]:
    client = _api_client()
    try:
        if not budget_id:
            return normalize_budget_document(client.get_current_budget())
        return _document_cache(client).get(budget_id)
    except BudgetApiError as exc:
        st.error(f"Budget API error: {exc}")
    except BudgetValidationError as exc:
        st.error(f"Budget document is malformed: {exc}")
    return None


def mark_paid(budget: WeeklyBudget, payment_id: str) -> None:
    client = _api_client()
    try:
        client.update_payment_status(budget.id, payment_id, 'paid')
    except BudgetApiError as exc:
        st.error(f"Could not mark payment as paid: {exc}")
        return
    _document_cache(client).invalidate(budget.id)
    logger.info("Marked payment %s paid in budget %s", payment_id, budget.id)


def render_metrics(summary: BudgetSummary, symbol: str) -> None:
    totals = summary.totals
    cols = st.columns(5)
    cols[0].metric("Total budget", format_currency(totals.total_budget, symbol=symbol))
    cols[1].metric("Allocated", format_currency(totals.total_allocated, symbol=symbol))
    cols[2].metric("Scheduled", format_currency(totals.total_scheduled, symbol=symbol))
    cols[3].metric("Spent", format_currency(totals.total_spent, symbol=symbol))
    cols[4].metric(
        "Unallocated",
        format_currency(totals.remaining_budget, symbol=symbol),
        delta="Over budget" if totals.is_over_budget else "On track",
        delta_color="inverse" if totals.is_over_budget else "normal",
    )


def render_warnings(summary: BudgetSummary) -> None:
    for message in summary.warnings:
        st.warning(message)
    for alert in summary.alerts:
        text = f"{alert.name}: {format_percent(alert.percentage_used)} of allocation spent"
        if alert.level == 'exceeded':
            st.error(text)
        else:
            st.info(text)


def render_categories(
    budget: WeeklyBudget,
    summary: BudgetSummary,
    now: datetime,
    symbol: str,
    allow_mark_paid: bool = False,
) -> None:
    expanded = st.session_state.setdefault('expanded_categories', set())
    for category, stats in zip(budget.categories, summary.categories):
        label = (
            f"{category.icon or ''} {stats.name} - "
            f"{format_currency(stats.scheduled, symbol=symbol)} of "
            f"{format_currency(stats.allocated, symbol=symbol)}"
        ).strip()
        show = st.checkbox(label, value=stats.category_id in expanded, key=f"expand-{stats.category_id}")
        if show:
            expanded.add(stats.category_id)
        else:
            expanded.discard(stats.category_id)
            continue

        st.progress(min(float(stats.percentage_used), 100.0) / 100.0)
        if not category.payments:
            st.caption("No payments scheduled")
            continue
        for payment in category.payments:
            overdue = is_overdue(payment, now)
            status = 'overdue' if overdue else payment.status.value
            cols = st.columns([4, 2, 2, 2])
            cols[0].write(payment.name + (" (recurring)" if payment.is_recurring else ""))
            cols[1].write(format_currency(payment.amount, symbol=symbol))
            cols[2].write(f"{payment.scheduled_date:%b %d, %Y}")
            if allow_mark_paid and payment.id and not payment.is_paid:
                if cols[3].button("Mark paid", key=f"pay-{payment.id}"):
                    mark_paid(budget, payment.id)
                    st.rerun()
            else:
                cols[3].write(status)


def main() -> None:
    """Entry point for the Streamlit app."""
    config.configure_logging()
    settings = config.load_settings()
    symbol = settings['currency_symbol']

    st.set_page_config(page_title="Weekly Budget", layout="wide", initial_sidebar_state="expanded")
    st.title("Weekly Budget")

    source = st.sidebar.radio("Budget source", [SOURCE_UPLOAD, SOURCE_SAVED, SOURCE_API])
    as_of = st.sidebar.date_input("Evaluate as of", value=datetime.now(timezone.utc).date())
    now = datetime.combine(as_of, time.min, tzinfo=timezone.utc)

    budget: Optional[WeeklyBudget] = None
    if source == SOURCE_UPLOAD:
        uploaded = st.sidebar.file_uploader("Budget document", type=["json"], accept_multiple_files=False)
        if uploaded is None:
            st.info("Please upload a budget document to begin.")
            st.stop()
        budget = load_document(uploaded)
    elif source == SOURCE_SAVED:
        saved = list_saved_documents()
        if not saved:
            st.info(f"No saved budget documents in {config.BUDGETS_DIR}.")
            st.stop()
        choice = st.sidebar.selectbox("Document", saved, format_func=lambda p: p.stem)
        with choice.open('r', encoding='utf-8') as handle:
            budget = load_document(handle)
    else:
        budget_id = st.sidebar.text_input("Budget id (blank for current week)").strip()
        if st.sidebar.button("Refresh"):
            _document_cache(_api_client()).invalidate(budget_id or None)
        budget = load_from_api(budget_id)

    if budget is None:
        st.stop()

    summary = aggregate(budget, now=now, thresholds=settings['alert_thresholds'])

    st.subheader(format_week_range(budget.week_start_date, budget.week_end_date))
    render_metrics(summary, symbol)
    render_warnings(summary)

    categories_tab, charts_tab = st.tabs(["Categories", "Charts"])
    with categories_tab:
        if not budget.categories:
            st.info("No categories in this budget yet.")
        render_categories(budget, summary, now, symbol, allow_mark_paid=(source == SOURCE_API))
        st.dataframe(summary_frame(summary), use_container_width=True)
    with charts_tab:
        st.plotly_chart(viz.create_allocation_chart(summary), use_container_width=True)
        st.plotly_chart(viz.create_budget_usage_chart(summary), use_container_width=True)
        st.plotly_chart(viz.create_status_pie_chart(budget, now=now), use_container_width=True)


if __name__ == "__main__":
    main()
