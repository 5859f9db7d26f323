"""Tests for budget_dashboard.normalization."""

from __future__ import annotations

import copy
from datetime import timezone
from decimal import Decimal

import pytest

from budget_dashboard.models import BudgetValidationError, PaymentStatus
from budget_dashboard.normalization import normalize_budget_document, normalize_budget_documents


def _raw():
    return {
        '_id': 'b1',
        'weekStartDate': '2024-03-04T00:00:00.000Z',
        'weekEndDate': '2024-03-10T23:59:59.999Z',
        'totalBudget': 400,
        'updatedAt': '2024-03-05T10:00:00.000Z',
        'householdId': {'_id': 'h1', 'name': 'Home'},
        'isSharedWithHousehold': True,
        'categories': [
            {
                'categoryId': {'_id': 'c1', 'name': 'Groceries', 'color': '#00ff00', 'icon': 'cart'},
                'allocation': 150.5,
                'payments': [
                    {'_id': 'p1', 'name': ' Market ', 'amount': 20.1, 'scheduledDate': '2024-03-05', 'status': 'paid', 'isRecurring': True},
                ],
            },
            {
                'categoryId': 'c2',
                'name': 'Fuel',
                'allocated_amount': 60,
                'payments': [
                    {'id': 'p2', 'name': 'Gas', 'amount': 45, 'dueDate': '2024-03-06T08:00:00Z', 'is_recurring': False},
                ],
            },
        ],
    }


def test_populated_and_plain_category_ids_normalize_the_same_way():
    budget = normalize_budget_document(_raw())
    groceries, fuel = budget.categories
    assert groceries.category_id == 'c1'
    assert groceries.display_name == 'Groceries'
    assert groceries.color == '#00ff00'
    assert fuel.category_id == 'c2'
    assert fuel.display_name == 'Fuel'
    assert fuel.allocated_amount == Decimal('60.00')


def test_payment_fields_and_aliases():
    budget = normalize_budget_document(_raw())
    market = budget.categories[0].payments[0]
    gas = budget.categories[1].payments[0]
    assert market.name == 'Market'
    assert market.amount == Decimal('20.10')
    assert market.status is PaymentStatus.PAID
    assert market.is_recurring is True
    assert market.scheduled_date.tzinfo is not None
    assert gas.id == 'p2'
    assert gas.status is PaymentStatus.PENDING
    assert gas.scheduled_date.hour == 8


def test_budget_level_fields():
    budget = normalize_budget_document(_raw())
    assert budget.id == 'b1'
    assert budget.total_budget == Decimal('400.00')
    assert budget.household_id == 'h1'
    assert budget.is_shared_with_household is True
    assert budget.version == '2024-03-05T10:00:00.000Z'
    assert budget.week_start_date.utcoffset() == timezone.utc.utcoffset(None)


def test_input_document_is_not_mutated():
    raw = _raw()
    before = copy.deepcopy(raw)
    normalize_budget_document(raw)
    assert raw == before


def test_missing_categories_is_malformed():
    raw = _raw()
    del raw['categories']
    with pytest.raises(BudgetValidationError) as excinfo:
        normalize_budget_document(raw)
    assert excinfo.value.path == 'categories'


def test_empty_categories_is_valid():
    raw = _raw()
    raw['categories'] = []
    assert normalize_budget_document(raw).categories == ()


@pytest.mark.parametrize('amount', ['12.50', None, True, float('nan')])
def test_non_numeric_amount_is_malformed(amount):
    raw = _raw()
    raw['categories'][1]['payments'][0]['amount'] = amount
    with pytest.raises(BudgetValidationError) as excinfo:
        normalize_budget_document(raw)
    assert excinfo.value.path == 'categories[1].payments[0].amount'


@pytest.mark.parametrize('amount', [1e30, 10 ** 30])
def test_out_of_range_amount_is_malformed(amount):
    raw = _raw()
    raw['categories'][1]['payments'][0]['amount'] = amount
    with pytest.raises(BudgetValidationError) as excinfo:
        normalize_budget_document(raw)
    assert excinfo.value.path == 'categories[1].payments[0].amount'


def test_out_of_range_total_budget_is_malformed():
    raw = _raw()
    raw['totalBudget'] = 1e30
    with pytest.raises(BudgetValidationError, match='exceeds the supported maximum') as excinfo:
        normalize_budget_document(raw)
    assert excinfo.value.path == 'totalBudget'


def test_negative_amount_is_malformed():
    raw = _raw()
    raw['categories'][0]['payments'][0]['amount'] = -5
    with pytest.raises(BudgetValidationError):
        normalize_budget_document(raw)


def test_unknown_status_is_malformed():
    raw = _raw()
    raw['categories'][0]['payments'][0]['status'] = 'refunded'
    with pytest.raises(BudgetValidationError, match='unknown status'):
        normalize_budget_document(raw)


def test_unparseable_date_is_malformed():
    raw = _raw()
    raw['categories'][0]['payments'][0]['scheduledDate'] = 'next tuesday-ish'
    with pytest.raises(BudgetValidationError):
        normalize_budget_document(raw)


def test_duplicate_category_is_malformed():
    raw = _raw()
    raw['categories'].append(copy.deepcopy(raw['categories'][0]))
    with pytest.raises(BudgetValidationError, match='duplicate category'):
        normalize_budget_document(raw)


def test_week_end_before_start_is_malformed():
    raw = _raw()
    raw['weekEndDate'] = '2024-03-01T00:00:00Z'
    with pytest.raises(BudgetValidationError):
        normalize_budget_document(raw)


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_budget_document(['not', 'a', 'budget'])


def test_normalize_list_response():
    budgets = normalize_budget_documents([_raw(), _raw()])
    assert len(budgets) == 2
    with pytest.raises(BudgetValidationError):
        normalize_budget_documents(_raw())
