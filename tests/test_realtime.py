"""Tests for budget_dashboard.realtime."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from budget_dashboard.models import BudgetValidationError
from budget_dashboard.realtime import BudgetDocumentCache, EventChannel


def _doc(budget_id='b1', version='v1', amount=40):
    return {
        '_id': budget_id,
        'updatedAt': version,
        'weekStartDate': '2024-03-04T00:00:00Z',
        'weekEndDate': '2024-03-10T23:59:59Z',
        'totalBudget': 100,
        'categories': [{
            'categoryId': 'c1',
            'allocation': 50,
            'payments': [{'_id': 'p1', 'name': 'Phone', 'amount': amount, 'scheduledDate': '2024-03-05', 'status': 'pending'}],
        }],
    }


class FakeServer:
    def __init__(self):
        self.documents = {'b1': _doc(), 'b2': _doc('b2')}
        self.calls = []

    def fetch(self, budget_id):
        self.calls.append(budget_id)
        return self.documents[budget_id]


def test_cache_hits_after_first_fetch():
    server = FakeServer()
    cache = BudgetDocumentCache(server.fetch)
    first = cache.get('b1')
    second = cache.get('b1')
    assert first is second
    assert server.calls == ['b1']
    assert (cache.hits, cache.misses) == (1, 1)
    assert cache.key('b1') == ('b1', 'v1')


def test_budget_updated_with_new_version_refetches():
    server = FakeServer()
    cache = BudgetDocumentCache(server.fetch)
    channel = EventChannel()
    cache.bind(channel)
    cache.get('b1')

    server.documents['b1'] = _doc(version='v2', amount=60)
    channel.publish('budget-updated', {'_id': 'b1', 'updatedAt': 'v2'})
    assert 'b1' not in cache
    assert cache.get('b1').categories[0].payments[0].amount == 60
    assert cache.key('b1') == ('b1', 'v2')


def test_duplicate_event_for_cached_version_is_ignored():
    server = FakeServer()
    cache = BudgetDocumentCache(server.fetch)
    channel = EventChannel()
    cache.bind(channel)
    cache.get('b1')
    channel.publish('budget-updated', {'_id': 'b1', 'updatedAt': 'v1'})
    channel.publish('budget-updated', {'_id': 'b1', 'updatedAt': 'v1'})
    cache.get('b1')
    assert server.calls == ['b1']


def test_budget_deleted_always_drops_entry():
    cache = BudgetDocumentCache(FakeServer().fetch)
    cache.get('b1')
    cache.handle_event('budget-deleted', {'id': 'b1', 'updatedAt': 'v1'})
    assert 'b1' not in cache


def test_transaction_events_invalidate_everything():
    cache = BudgetDocumentCache(FakeServer().fetch)
    cache.get('b1')
    cache.get('b2')
    cache.handle_event('transaction-created', {'amount': 12})
    assert 'b1' not in cache and 'b2' not in cache


def test_unrelated_events_are_ignored():
    cache = BudgetDocumentCache(FakeServer().fetch)
    cache.get('b1')
    cache.handle_event('new-notification', {'_id': 'b1'})
    assert 'b1' in cache


def test_summary_recomputes_from_cached_document():
    server = FakeServer()
    cache = BudgetDocumentCache(server.fetch)
    now = datetime(2024, 3, 7, tzinfo=timezone.utc)
    first = cache.summary('b1', now=now)
    second = cache.summary('b1', now=now)
    assert first == second
    assert first.warnings == ('Payment Phone is overdue',)
    assert server.calls == ['b1']


def test_malformed_fetch_is_not_cached():
    server = FakeServer()
    server.documents['bad'] = {'_id': 'bad'}
    cache = BudgetDocumentCache(server.fetch)
    with pytest.raises(BudgetValidationError):
        cache.get('bad')
    assert 'bad' not in cache


def test_channel_isolates_failing_handlers():
    channel = EventChannel()
    received = []

    def broken(event, payload):
        raise RuntimeError('boom')

    channel.subscribe('budget-updated', broken)
    channel.subscribe('budget-updated', lambda event, payload: received.append(payload))
    delivered = channel.publish('budget-updated', {'_id': 'b1'})
    assert delivered == 1
    assert received == [{'_id': 'b1'}]


def test_unsubscribe_stops_delivery():
    channel = EventChannel()
    received = []

    def handler(event, payload):
        received.append(event)

    channel.subscribe('budget-created', handler)
    channel.unsubscribe('budget-created', handler)
    assert channel.publish('budget-created') == 0
    assert received == []
