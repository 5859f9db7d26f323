"""Helpers for budget periods: week boundaries, templates and weekly splits."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Tuple

from .models import PaymentStatus, WeeklyBudget
from .money import CENT, to_money


def week_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """Return the Monday-to-Sunday week containing ``moment``.

    The start is Monday 00:00:00 and the end Sunday 23:59:59.999999, both
    in UTC.  Naive datetimes are taken as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    monday = moment.date() - timedelta(days=moment.weekday())
    start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
    end = datetime.combine(monday + timedelta(days=6), time.max, tzinfo=timezone.utc)
    return start, end


def clone_from_template(template: WeeklyBudget, week_start: datetime) -> WeeklyBudget:
    """Create the next week's budget from an existing one.

    Totals, categories and allocations are copied.  Each payment keeps its
    offset from the start of the week and is reset to pending.  The clone
    has no id or version until the server stores it.
    """
    start, end = week_bounds(week_start)
    shift = start - template.week_start_date

    categories = tuple(
        replace(
            category,
            payments=tuple(
                replace(
                    payment,
                    id=None,
                    scheduled_date=payment.scheduled_date + shift,
                    status=PaymentStatus.PENDING,
                )
                for payment in category.payments
            ),
        )
        for category in template.categories
    )
    return replace(
        template,
        id=None,
        version=None,
        week_start_date=start,
        week_end_date=end,
        categories=categories,
        creation_mode='template',
    )


def split_into_weeks(total, weeks: int) -> List[Decimal]:
    """Spread a period total across ``weeks`` in whole cents.

    Leftover cents go to the earliest weeks so the parts always sum to the
    total exactly.

    Example:
        >>> split_into_weeks(Decimal('100.00'), 3)
        [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
    """
    if weeks <= 0:
        raise ValueError(f"weeks must be positive, got {weeks}")
    amount = to_money(total)
    if amount < 0:
        raise ValueError(f"total must not be negative, got {amount}")
    cents = int(amount / CENT)
    base, extra = divmod(cents, weeks)
    return [(Decimal(base + (1 if index < extra else 0)) * CENT) for index in range(weeks)]
