"""Canonical data model for weekly budget documents.

Documents fetched from the server arrive in several shapes; they are
normalized once by :mod:`budget_dashboard.normalization` into the frozen
dataclasses below and nothing downstream branches on the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .money import ZERO


class BudgetValidationError(ValueError):
    """Raised when a budget document is malformed.

    ``path`` names the offending field, e.g. ``categories[0].payments[2].amount``.
    """

    def __init__(self, message: str, path: str = '') -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PAID = 'paid'
    OVERDUE = 'overdue'


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Payment:
    id: Optional[str]
    name: str
    amount: Decimal
    scheduled_date: datetime
    status: PaymentStatus = PaymentStatus.PENDING
    is_recurring: bool = False
    notes: str = ''

    @property
    def is_paid(self) -> bool:
        return self.status is PaymentStatus.PAID


@dataclass(frozen=True)
class CategoryAllocation:
    category_id: str
    display_name: str
    allocated_amount: Decimal = ZERO
    color: Optional[str] = None
    icon: Optional[str] = None
    payments: Tuple[Payment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class WeeklyBudget:
    id: Optional[str]
    week_start_date: datetime
    week_end_date: datetime
    total_budget: Decimal
    categories: Tuple[CategoryAllocation, ...] = field(default_factory=tuple)
    is_shared_with_household: bool = False
    household_id: Optional[str] = None
    version: Optional[str] = None
    creation_mode: str = 'manual'
    parent_budget_id: Optional[str] = None

    def find_category(self, category_id: str) -> Optional[CategoryAllocation]:
        for category in self.categories:
            if category.category_id == category_id:
                return category
        return None

    def iter_payments(self):
        """Yield ``(category, payment)`` pairs in document order."""
        for category in self.categories:
            for payment in category.payments:
                yield category, payment
