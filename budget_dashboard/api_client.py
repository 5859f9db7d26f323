"""Thin REST client for weekly budget documents.

Only the read endpoints the dashboard needs, plus the explicit
mark-paid/status update.  Responses are returned as decoded JSON; callers
pass them through :func:`~budget_dashboard.normalization.normalize_budget_document`.
No retries happen here.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .config import API_BASE_URL, API_TOKEN, load_settings
from .models import PaymentStatus

logger = logging.getLogger(__name__)

BUDGET_PATH = "/api/weekly-budget"


class BudgetApiError(Exception):
    """Raised when the budget API cannot be reached or returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get('error'):
        return str(body['error'])
    return response.reason_phrase


def _iso(value: Union[date, datetime, str]) -> str:
    return value if isinstance(value, str) else value.isoformat()


class BudgetApiClient:
    """Synchronous client for the ``/api/weekly-budget`` endpoints."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {'Accept': 'application/json'}
        if token:
            headers['Authorization'] = f"Bearer {token}"
        if timeout is None:
            timeout = float(load_settings()['request_timeout'])
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "BudgetApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BudgetApiError(f"Could not reach budget API: {exc}") from exc
        if response.is_error:
            message = _error_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise BudgetApiError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise BudgetApiError("Budget API returned invalid JSON", response.status_code) from exc

    def get_current_budget(self) -> Dict[str, Any]:
        """Budget for the week containing today (the server creates it if needed)."""
        return self._request('GET', f"{BUDGET_PATH}/current")

    def get_budget(self, budget_id: str) -> Dict[str, Any]:
        return self._request('GET', f"{BUDGET_PATH}/{budget_id}")

    def get_budgets_in_range(
        self,
        start: Union[date, datetime, str],
        end: Union[date, datetime, str],
    ) -> List[Dict[str, Any]]:
        """Budgets whose week overlaps ``start`` through ``end``."""
        result = self._request(
            'GET',
            f"{BUDGET_PATH}/range",
            params={'startDate': _iso(start), 'endDate': _iso(end)},
        )
        if not isinstance(result, list):
            raise BudgetApiError("Expected a list of budgets from the range endpoint")
        return result

    def update_payment_status(
        self,
        budget_id: str,
        payment_id: str,
        status: Union[PaymentStatus, str],
    ) -> Dict[str, Any]:
        """Persist a status change such as marking a payment paid."""
        value = PaymentStatus(status).value
        return self._request(
            'PATCH',
            f"{BUDGET_PATH}/{budget_id}/payment/{payment_id}/status",
            json={'status': value},
        )

    def fetcher(self) -> Callable[[str], Dict[str, Any]]:
        """Adapter for :class:`~budget_dashboard.realtime.BudgetDocumentCache`."""
        return self.get_budget
