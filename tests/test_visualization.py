"""Smoke tests for budget_dashboard.visualization."""

from __future__ import annotations

from datetime import datetime, timezone

import plotly.graph_objects as go

from budget_dashboard import visualization as viz
from budget_dashboard.aggregation import aggregate
from budget_dashboard.normalization import normalize_budget_document

NOW = datetime(2024, 3, 7, tzinfo=timezone.utc)


def _budget(categories):
    return normalize_budget_document({
        '_id': 'b1',
        'weekStartDate': '2024-03-04T00:00:00Z',
        'weekEndDate': '2024-03-10T23:59:59Z',
        'totalBudget': 200,
        'categories': categories,
    })


def _populated():
    return _budget([{
        'categoryId': {'_id': 'c1', 'name': 'Food'},
        'allocation': 100,
        'payments': [
            {'_id': 'p1', 'name': 'Shop', 'amount': 60, 'scheduledDate': '2024-03-05', 'status': 'paid'},
            {'_id': 'p2', 'name': 'Late', 'amount': 30, 'scheduledDate': '2024-03-06', 'status': 'pending'},
            {'_id': 'p3', 'name': 'Later', 'amount': 10, 'scheduledDate': '2024-03-09', 'status': 'pending'},
        ],
    }])


def test_allocation_chart_has_one_trace_per_metric():
    fig = viz.create_allocation_chart(aggregate(_populated(), NOW))
    assert isinstance(fig, go.Figure)
    assert sorted(trace.name for trace in fig.data) == ['Allocated', 'Scheduled', 'Spent']


def test_empty_budget_gives_placeholder_figures():
    budget = _budget([])
    summary = aggregate(budget, NOW)
    assert viz.create_allocation_chart(summary).layout.title.text == 'No data to display'
    assert viz.create_status_pie_chart(budget, now=NOW).layout.title.text == 'No data to display'


def test_usage_chart_shows_totals():
    fig = viz.create_budget_usage_chart(aggregate(_populated(), NOW))
    assert list(fig.data[0].x) == [200.0, 100.0, 100.0, 60.0]


def test_status_pie_marks_derived_overdue():
    fig = viz.create_status_pie_chart(_populated(), now=NOW)
    values = dict(zip(fig.data[0].labels, fig.data[0].values))
    assert values == {'paid': 60.0, 'overdue': 30.0, 'pending': 10.0}
