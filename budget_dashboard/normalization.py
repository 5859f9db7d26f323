"""Normalize raw budget documents into the canonical model.

The server returns budget documents in more than one shape: category ids
are sometimes populated objects and sometimes bare ids, flags come in
camelCase or snake_case, and payment dates appear as ``scheduledDate`` or
``dueDate``.  Every variant is resolved here, at the boundary, and the
result is a :class:`~budget_dashboard.models.WeeklyBudget`.

Malformed input raises :class:`~budget_dashboard.models.BudgetValidationError`
naming the offending field.  Nothing is silently coerced to zero except a
missing category allocation, which the server treats as "not yet set".
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .models import (
    BudgetValidationError,
    CategoryAllocation,
    Payment,
    PaymentStatus,
    WeeklyBudget,
)
from .money import ZERO, to_money

logger = logging.getLogger(__name__)

_MISSING = object()

CREATION_MODES = {'manual', 'template', 'smart', 'fromMainBudget'}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """Return the value of the first key present in ``raw``."""
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _ref_id(value: Any) -> Optional[str]:
    """Resolve a reference that may be a bare id or a populated object."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        inner = _pick(value, '_id', 'id', default=None)
        return None if inner is None else str(inner)
    return str(value)


def _money(value: Any, path: str) -> Decimal:
    if value is _MISSING or value is None:
        raise BudgetValidationError("value is required", path)
    try:
        amount = to_money(value)
    except TypeError:
        raise BudgetValidationError(f"expected a number, got {value!r}", path) from None
    except ValueError as exc:
        raise BudgetValidationError(str(exc), path) from None
    if amount < 0:
        raise BudgetValidationError(f"must not be negative, got {amount}", path)
    return amount


def _timestamp(value: Any, path: str) -> datetime:
    if value is _MISSING or value is None:
        raise BudgetValidationError("date is required", path)
    if not isinstance(value, (str, datetime, date)):
        raise BudgetValidationError(f"expected an ISO date, got {value!r}", path)
    try:
        parsed = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError) as exc:
        raise BudgetValidationError(f"unparseable date {value!r}", path) from exc
    if pd.isna(parsed):
        raise BudgetValidationError(f"unparseable date {value!r}", path)
    return parsed.to_pydatetime()


def _flag(value: Any, path: str) -> bool:
    if value is _MISSING or value is None:
        return False
    if not isinstance(value, bool):
        raise BudgetValidationError(f"expected true/false, got {value!r}", path)
    return value


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise BudgetValidationError(f"expected an object, got {type(value).__name__}", path)
    return value


def _sequence(value: Any, path: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise BudgetValidationError(f"expected a list, got {type(value).__name__}", path)
    return value


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------


def normalize_payment(raw: Any, path: str = 'payment') -> Payment:
    """Normalize one embedded payment."""
    raw = _mapping(raw, path)

    name = _pick(raw, 'name', default=None)
    if not isinstance(name, str) or not name.strip():
        raise BudgetValidationError("payment name is required", f"{path}.name")

    status_value = _pick(raw, 'status', default=PaymentStatus.PENDING.value)
    try:
        status = PaymentStatus(status_value)
    except ValueError:
        raise BudgetValidationError(f"unknown status {status_value!r}", f"{path}.status") from None

    notes = _pick(raw, 'notes', default='') or ''
    return Payment(
        id=_ref_id(_pick(raw, '_id', 'id', default=None)),
        name=name.strip(),
        amount=_money(_pick(raw, 'amount'), f"{path}.amount"),
        scheduled_date=_timestamp(
            _pick(raw, 'scheduledDate', 'dueDate', 'scheduled_date'), f"{path}.scheduledDate"
        ),
        status=status,
        is_recurring=_flag(_pick(raw, 'isRecurring', 'is_recurring'), f"{path}.isRecurring"),
        notes=str(notes),
    )


def normalize_category(raw: Any, path: str = 'category') -> CategoryAllocation:
    """Normalize one category allocation with its embedded payments."""
    raw = _mapping(raw, path)

    ref = _pick(raw, 'categoryId', 'category_id', default=None)
    category_id = _ref_id(ref)
    if not category_id:
        raise BudgetValidationError("category id is required", f"{path}.categoryId")
    details: Mapping[str, Any] = ref if isinstance(ref, Mapping) else raw

    display_name = _pick(details, 'name', 'displayName', 'display_name', default=None)
    if not display_name:
        display_name = _pick(raw, 'name', 'displayName', 'display_name', default=None) or 'Category'

    allocation = _pick(raw, 'allocation', 'allocatedAmount', 'allocated_amount', default=None)
    allocated = ZERO if allocation is None else _money(allocation, f"{path}.allocation")

    raw_payments = _pick(raw, 'payments', default=None)
    payments: List[Payment] = []
    if raw_payments is not None:
        for index, item in enumerate(_sequence(raw_payments, f"{path}.payments")):
            payments.append(normalize_payment(item, f"{path}.payments[{index}]"))

    return CategoryAllocation(
        category_id=category_id,
        display_name=str(display_name),
        allocated_amount=allocated,
        color=_pick(details, 'color', default=None),
        icon=_pick(details, 'icon', default=None),
        payments=tuple(payments),
    )


def normalize_budget_document(raw: Any) -> WeeklyBudget:
    """Normalize a weekly budget document as returned by the server.

    Args:
        raw: Decoded JSON object for one budget.

    Returns:
        The canonical, immutable :class:`WeeklyBudget`.

    Raises:
        BudgetValidationError: If a required field is missing or has the
            wrong type.
    """
    raw = _mapping(raw, 'budget')

    raw_categories = _pick(raw, 'categories', default=_MISSING)
    if raw_categories is _MISSING or raw_categories is None:
        raise BudgetValidationError("categories are required", 'categories')
    categories = tuple(
        normalize_category(item, f"categories[{index}]")
        for index, item in enumerate(_sequence(raw_categories, 'categories'))
    )

    seen = set()
    for index, category in enumerate(categories):
        if category.category_id in seen:
            raise BudgetValidationError(
                f"duplicate category {category.category_id!r}", f"categories[{index}].categoryId"
            )
        seen.add(category.category_id)

    creation_mode = _pick(raw, 'creationMode', 'creation_mode', default='manual') or 'manual'
    if creation_mode not in CREATION_MODES:
        raise BudgetValidationError(f"unknown creation mode {creation_mode!r}", 'creationMode')

    version = _pick(raw, 'updatedAt', 'updated_at', 'version', default=None)

    budget = WeeklyBudget(
        id=_ref_id(_pick(raw, '_id', 'id', default=None)),
        week_start_date=_timestamp(_pick(raw, 'weekStartDate', 'week_start_date'), 'weekStartDate'),
        week_end_date=_timestamp(_pick(raw, 'weekEndDate', 'week_end_date'), 'weekEndDate'),
        total_budget=_money(_pick(raw, 'totalBudget', 'total_budget'), 'totalBudget'),
        categories=categories,
        is_shared_with_household=_flag(
            _pick(raw, 'isSharedWithHousehold', 'is_shared_with_household'), 'isSharedWithHousehold'
        ),
        household_id=_ref_id(_pick(raw, 'householdId', 'household_id', default=None)),
        version=None if version is None else str(version),
        creation_mode=creation_mode,
        parent_budget_id=_ref_id(_pick(raw, 'parentBudgetId', 'parent_budget_id', default=None)),
    )
    if budget.week_end_date < budget.week_start_date:
        raise BudgetValidationError("week ends before it starts", 'weekEndDate')

    logger.debug(
        "Normalized budget %s: %d categories, %d payments",
        budget.id,
        len(budget.categories),
        sum(len(c.payments) for c in budget.categories),
    )
    return budget


def normalize_budget_documents(raws: Iterable[Any]) -> List[WeeklyBudget]:
    """Normalize a list response, e.g. from the date-range endpoint."""
    if isinstance(raws, Mapping):
        raise BudgetValidationError("expected a list of budgets", 'budgets')
    return [normalize_budget_document(raw) for raw in raws]
