"""Plotly visualisation helpers for the budget dashboard.

Each function accepts the aggregated objects produced by
:mod:`budget_dashboard.aggregation` (or the canonical budget itself) and
returns a `plotly.graph_objects.Figure` that Streamlit can render via
``st.plotly_chart``.  Empty input produces an empty figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregation import BudgetSummary, is_overdue, summary_frame
from .models import WeeklyBudget

STATUS_COLORS = {
    'paid': '#2e7d32',
    'pending': '#f9a825',
    'overdue': '#c62828',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_allocation_chart(summary: BudgetSummary, title: str | None = None) -> go.Figure:
    """Grouped bars of allocated, scheduled and spent amounts per category.

    Parameters
    ----------
    summary : BudgetSummary
        Result of :func:`budget_dashboard.aggregation.aggregate`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Grouped bar chart.
    """
    frame = summary_frame(summary)
    if frame.empty:
        return _empty_figure()
    long = frame.melt(
        id_vars='Category',
        value_vars=['Allocated', 'Scheduled', 'Spent'],
        var_name='Metric',
        value_name='Amount',
    )
    fig = px.bar(long, x='Category', y='Amount', color='Metric', barmode='group')
    fig.update_layout(
        title=title or "Allocation vs scheduled vs spent",
        xaxis_title="Category",
        yaxis_title="Amount",
    )
    return fig


def create_budget_usage_chart(summary: BudgetSummary, title: str | None = None) -> go.Figure:
    """Horizontal bars comparing the total budget with allocated, scheduled and spent."""
    totals = summary.totals
    if not summary.categories and not totals.total_budget:
        return _empty_figure()
    df = pd.DataFrame({
        'Metric': ['Budget', 'Allocated', 'Scheduled', 'Spent'],
        'Amount': [
            float(totals.total_budget),
            float(totals.total_allocated),
            float(totals.total_scheduled),
            float(totals.total_spent),
        ],
    })
    fig = px.bar(df, x='Amount', y='Metric', orientation='h')
    if totals.is_over_budget:
        fig.update_traces(marker_color='#c62828')
    fig.update_layout(title=title or "Budget usage", xaxis_title="Amount", yaxis_title="")
    return fig


def create_status_pie_chart(
    budget: WeeklyBudget,
    now: datetime | None = None,
    title: str | None = None,
) -> go.Figure:
    """Pie of payment amounts by display status.

    Pending payments past their date are shown as overdue even when the
    stored status has not caught up.
    """
    amounts: Counter = Counter()
    for _, payment in budget.iter_payments():
        label = 'overdue' if is_overdue(payment, now) else payment.status.value
        amounts[label] += float(payment.amount)
    if not amounts:
        return _empty_figure()
    df = pd.DataFrame({'Status': list(amounts.keys()), 'Amount': list(amounts.values())})
    fig = px.pie(df, names='Status', values='Amount', color='Status', color_discrete_map=STATUS_COLORS)
    fig.update_layout(title=title or "Payments by status")
    return fig
