"""Push-event channel and versioned document cache.

The server pushes named events (``budget-updated``, ``transaction-created``
and so on) whenever shared data changes.  :class:`BudgetDocumentCache` keeps
the last fetched canonical document per budget id together with its
version, and drops entries when a relevant event arrives so the next read
refetches.  Delivery is not assumed to be exactly-once: an event repeating
the cached version is ignored.

The cache stores documents only.  Aggregates are recomputed from the
cached document on every :meth:`BudgetDocumentCache.summary` call.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .aggregation import BudgetSummary, aggregate
from .models import WeeklyBudget
from .normalization import normalize_budget_document

logger = logging.getLogger(__name__)

BUDGET_CREATED = 'budget-created'
BUDGET_UPDATED = 'budget-updated'
BUDGET_DELETED = 'budget-deleted'
TRANSACTION_CREATED = 'transaction-created'
TRANSACTION_UPDATED = 'transaction-updated'
TRANSACTION_DELETED = 'transaction-deleted'
CATEGORY_UPDATED = 'category-updated'

BUDGET_EVENTS = (BUDGET_CREATED, BUDGET_UPDATED, BUDGET_DELETED)
GLOBAL_EVENTS = (TRANSACTION_CREATED, TRANSACTION_UPDATED, TRANSACTION_DELETED, CATEGORY_UPDATED)

Handler = Callable[[str, Mapping[str, Any]], None]
Fetcher = Callable[[str], Mapping[str, Any]]


class EventChannel:
    """Synchronous in-process fan-out of named server events."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: str, payload: Optional[Mapping[str, Any]] = None) -> int:
        """Deliver ``event`` to its handlers in subscription order.

        A handler that raises is logged and skipped so one broken listener
        cannot starve the others.

        Returns:
            Number of handlers that completed without raising.
        """
        delivered = 0
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(event, payload or {})
            except Exception:
                logger.exception("Handler %r failed for event %s", handler, event)
                continue
            delivered += 1
        return delivered


@dataclass(frozen=True)
class _Entry:
    version: Optional[str]
    document: WeeklyBudget


def _payload_id(payload: Mapping[str, Any]) -> Optional[str]:
    for key in ('_id', 'id', 'budgetId'):
        value = payload.get(key)
        if value:
            return str(value)
    return None


def _payload_version(payload: Mapping[str, Any]) -> Optional[str]:
    value = payload.get('updatedAt', payload.get('version'))
    return None if value is None else str(value)


class BudgetDocumentCache:
    """Cache of canonical budget documents keyed by (id, version)."""

    def __init__(self, fetcher: Fetcher) -> None:
        self._fetcher = fetcher
        self._entries: Dict[str, _Entry] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, budget_id: str) -> bool:
        return budget_id in self._entries

    def key(self, budget_id: str):
        """Return the ``(id, version)`` key currently cached, or ``None``."""
        entry = self._entries.get(budget_id)
        return None if entry is None else (budget_id, entry.version)

    def get(self, budget_id: str) -> WeeklyBudget:
        """Return the cached document, fetching and normalizing on a miss."""
        entry = self._entries.get(budget_id)
        if entry is not None:
            self.hits += 1
            return entry.document
        self.misses += 1
        document = normalize_budget_document(self._fetcher(budget_id))
        self._entries[budget_id] = _Entry(document.version, document)
        logger.debug("Cached budget %s at version %s", budget_id, document.version)
        return document

    def invalidate(self, budget_id: Optional[str] = None) -> None:
        """Drop one cached document, or all of them when ``budget_id`` is None."""
        if budget_id is None:
            self._entries.clear()
        else:
            self._entries.pop(budget_id, None)

    def handle_event(self, event: str, payload: Mapping[str, Any]) -> None:
        if event in GLOBAL_EVENTS:
            logger.debug("Event %s invalidates all cached budgets", event)
            self.invalidate()
            return
        if event not in BUDGET_EVENTS:
            return
        budget_id = _payload_id(payload)
        if budget_id is None:
            self.invalidate()
            return
        entry = self._entries.get(budget_id)
        if entry is None:
            return
        version = _payload_version(payload)
        if event != BUDGET_DELETED and version is not None and version == entry.version:
            logger.debug("Ignoring %s for budget %s: version %s already cached", event, budget_id, version)
            return
        self.invalidate(budget_id)

    def bind(self, channel: EventChannel, events: Sequence[str] = BUDGET_EVENTS + GLOBAL_EVENTS) -> None:
        """Subscribe :meth:`handle_event` to ``events`` on ``channel``."""
        for event in events:
            channel.subscribe(event, self.handle_event)

    def summary(
        self,
        budget_id: str,
        now: Optional[datetime] = None,
        thresholds: Optional[Sequence[int]] = None,
    ) -> BudgetSummary:
        """Fetch (or reuse) the document and aggregate it."""
        return aggregate(self.get(budget_id), now=now, thresholds=thresholds)
