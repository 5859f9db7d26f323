"""Weekly budget aggregation.

Turns a canonical :class:`~budget_dashboard.models.WeeklyBudget` into the
numbers and advisory warnings the dashboard displays.  Every function here
is pure: the input document is never mutated, nothing is cached, and the
same document evaluated at the same ``now`` always yields equal results.

Definitions used throughout:

* ``scheduled`` - sum of all payment amounts in a category, paid or not.
* ``spent`` - sum of payment amounts whose status is ``paid``.
* ``remaining`` - allocation minus scheduled; may be negative.
* ``percentage_used`` - spent over allocation, 0 when the allocation is 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from .models import CategoryAllocation, Payment, PaymentStatus, WeeklyBudget
from .money import ZERO, percentage, sum_money, to_money

DEFAULT_ALERT_THRESHOLDS: Tuple[int, ...] = (80, 100)


@dataclass(frozen=True)
class CategoryStats:
    category_id: str
    name: str
    allocated: Decimal
    scheduled: Decimal
    spent: Decimal
    remaining: Decimal
    percentage_used: Decimal

    @property
    def exceeds_allocation(self) -> bool:
        return self.scheduled > self.allocated


@dataclass(frozen=True)
class BudgetTotals:
    total_budget: Decimal
    total_allocated: Decimal
    total_scheduled: Decimal
    total_spent: Decimal
    remaining_budget: Decimal
    is_over_budget: bool
    efficiency: Decimal


@dataclass(frozen=True)
class CategoryAlert:
    category_id: str
    name: str
    threshold: int
    percentage_used: Decimal
    level: str  # 'warning' below 100%, 'exceeded' at or above


@dataclass(frozen=True)
class BudgetSummary:
    budget_id: Optional[str]
    categories: Tuple[CategoryStats, ...]
    totals: BudgetTotals
    warnings: Tuple[str, ...]
    overdue_payment_ids: Tuple[Optional[str], ...] = field(default_factory=tuple)
    alerts: Tuple[CategoryAlert, ...] = field(default_factory=tuple)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _empty_stats(category_id: str) -> CategoryStats:
    return CategoryStats(category_id, '', ZERO, ZERO, ZERO, ZERO, ZERO)


# ---------------------------------------------------------------------------
# Category and budget level numbers
# ---------------------------------------------------------------------------


def stats_for_category(category: CategoryAllocation) -> CategoryStats:
    """Compute the display numbers for one category allocation."""
    allocated = category.allocated_amount
    scheduled = sum_money(p.amount for p in category.payments)
    spent = sum_money(p.amount for p in category.payments if p.is_paid)
    return CategoryStats(
        category_id=category.category_id,
        name=category.display_name,
        allocated=allocated,
        scheduled=scheduled,
        spent=spent,
        remaining=allocated - scheduled,
        percentage_used=percentage(spent, allocated),
    )


def category_stats(budget: WeeklyBudget, category_id: str) -> CategoryStats:
    """Stats for ``category_id``; an unknown id yields all-zero stats."""
    category = budget.find_category(category_id)
    if category is None:
        return _empty_stats(category_id)
    return stats_for_category(category)


def budget_totals(budget: WeeklyBudget) -> BudgetTotals:
    """Budget-level totals summed over every category."""
    stats = [stats_for_category(c) for c in budget.categories]
    total_allocated = sum_money(s.allocated for s in stats)
    total_scheduled = sum_money(s.scheduled for s in stats)
    total_spent = sum_money(s.spent for s in stats)
    return BudgetTotals(
        total_budget=budget.total_budget,
        total_allocated=total_allocated,
        total_scheduled=total_scheduled,
        total_spent=total_spent,
        remaining_budget=budget.total_budget - total_allocated,
        is_over_budget=total_scheduled > budget.total_budget,
        efficiency=percentage(total_spent, budget.total_budget),
    )


def can_add_payment(budget: WeeklyBudget, category_id: str, amount) -> bool:
    """Whether a new payment of ``amount`` fits in the category's remaining allocation."""
    return category_stats(budget, category_id).remaining >= to_money(amount)


# ---------------------------------------------------------------------------
# Overdue derivation and warnings
# ---------------------------------------------------------------------------


def is_overdue(payment: Payment, now: Optional[datetime] = None) -> bool:
    """Whether a payment should be shown as overdue.

    A stored ``overdue`` status is honoured as-is; a ``pending`` payment
    whose scheduled date has passed is overdue for display only.  Paid
    payments are never overdue.
    """
    if payment.status is PaymentStatus.OVERDUE:
        return True
    if payment.status is not PaymentStatus.PENDING:
        return False
    moment = _as_utc(now) if now is not None else _utcnow()
    return payment.scheduled_date < moment


def overdue_payments(budget: WeeklyBudget, now: Optional[datetime] = None) -> List[Payment]:
    moment = _as_utc(now) if now is not None else _utcnow()
    return [payment for _, payment in budget.iter_payments() if is_overdue(payment, moment)]


def budget_warnings(budget: WeeklyBudget, now: Optional[datetime] = None) -> List[str]:
    """Advisory warnings in a fixed order.

    Category warnings come first (document order), then budget-level
    warnings, then one warning per overdue payment (document order).
    """
    moment = _as_utc(now) if now is not None else _utcnow()
    warnings: List[str] = []

    for category in budget.categories:
        if stats_for_category(category).exceeds_allocation:
            warnings.append(f"Category {category.display_name} exceeds its allocation")

    totals = budget_totals(budget)
    if totals.is_over_budget:
        warnings.append("Scheduled payments exceed the total budget")
    if totals.total_allocated > budget.total_budget:
        warnings.append("Category allocations exceed the total budget")

    for payment in overdue_payments(budget, moment):
        warnings.append(f"Payment {payment.name} is overdue")

    return warnings


def category_alerts(
    budget: WeeklyBudget,
    thresholds: Sequence[int] = DEFAULT_ALERT_THRESHOLDS,
) -> List[CategoryAlert]:
    """Highest spend threshold crossed by each category with an allocation.

    Categories without an allocation never alert; their overspend is
    reported by :func:`budget_warnings` instead.
    """
    ordered = sorted(set(int(t) for t in thresholds), reverse=True)
    alerts: List[CategoryAlert] = []
    for category in budget.categories:
        stats = stats_for_category(category)
        if not stats.allocated:
            continue
        crossed = next((t for t in ordered if stats.percentage_used >= t), None)
        if crossed is None:
            continue
        alerts.append(CategoryAlert(
            category_id=stats.category_id,
            name=stats.name,
            threshold=crossed,
            percentage_used=stats.percentage_used,
            level='exceeded' if crossed >= 100 else 'warning',
        ))
    return alerts


# ---------------------------------------------------------------------------
# Full summary
# ---------------------------------------------------------------------------


def aggregate(
    budget: WeeklyBudget,
    now: Optional[datetime] = None,
    thresholds: Optional[Sequence[int]] = None,
) -> BudgetSummary:
    """Derive everything the weekly budget view displays from one snapshot."""
    moment = _as_utc(now) if now is not None else _utcnow()
    return BudgetSummary(
        budget_id=budget.id,
        categories=tuple(stats_for_category(c) for c in budget.categories),
        totals=budget_totals(budget),
        warnings=tuple(budget_warnings(budget, moment)),
        overdue_payment_ids=tuple(p.id for p in overdue_payments(budget, moment)),
        alerts=tuple(category_alerts(budget, DEFAULT_ALERT_THRESHOLDS if thresholds is None else thresholds)),
    )


def summary_frame(summary: BudgetSummary) -> pd.DataFrame:
    """One row per category, ready for ``st.dataframe`` or charting.

    Monetary columns are floats rounded to cents; the Decimal values stay
    authoritative in the summary itself.
    """
    columns = ['Category', 'Allocated', 'Scheduled', 'Spent', 'Remaining', 'Percent Used', 'Status']
    rows = []
    for stats in summary.categories:
        if stats.exceeds_allocation:
            status = 'Over'
        elif stats.scheduled == stats.allocated and stats.allocated:
            status = 'Full'
        else:
            status = 'Under'
        rows.append({
            'Category': stats.name,
            'Allocated': float(stats.allocated),
            'Scheduled': float(stats.scheduled),
            'Spent': float(stats.spent),
            'Remaining': float(stats.remaining),
            'Percent Used': float(stats.percentage_used),
            'Status': status,
        })
    return pd.DataFrame(rows, columns=columns)
