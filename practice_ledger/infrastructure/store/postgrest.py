"""DataStore backed by the hosted backend's REST API"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from practice_ledger.config import settings
from practice_ledger.domain.exceptions import DataStoreError
from practice_ledger.infrastructure.observability.metrics import store_error_counter
from practice_ledger.infrastructure.store.base import Filter, Row

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    """Encode a value for query strings and JSON bodies"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _filter_param(f: Filter) -> Tuple[str, str]:
    if f.op == "is":
        return f.column, f"is.{'null' if f.value is None else _encode(f.value)}"
    return f.column, f"{f.op}.{_encode(f.value)}"


def _encode_row(row: Row) -> Dict[str, Any]:
    return {
        key: (value if isinstance(value, bool) else _encode(value))
        for key, value in row.items()
    }


class PostgrestDataStore:
    """
    Client for the REST interface in front of the hosted tables.

    Requests are authorised with the service role key; callers are
    responsible for scoping every query with a user_id filter.
    """

    backend = "postgrest"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_service_role_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> httpx.Response:
        headers = self.headers
        if prefer:
            headers["Prefer"] = prefer

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}/rest/v1/{table}",
                    params=params,
                    json=json,
                    headers=headers,
                )
                response.raise_for_status()
                return response

            except httpx.TimeoutException as e:
                store_error_counter.labels(backend=self.backend).inc()
                raise DataStoreError(f"Data store timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                store_error_counter.labels(backend=self.backend).inc()
                logger.error(f"Data store {method} {table} failed: {e.response.status_code} {e.response.text}")
                raise DataStoreError(f"Data store error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                store_error_counter.labels(backend=self.backend).inc()
                raise DataStoreError(f"Data store unreachable: {e}") from e

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        params = [("select", "*")] + [_filter_param(f) for f in filters]
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        response = await self._request("GET", table, params=params)
        return response.json()

    async def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        if not rows:
            return []
        response = await self._request(
            "POST", table, json=[_encode_row(row) for row in rows], prefer="return=representation"
        )
        return response.json()

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        response = await self._request(
            "PATCH",
            table,
            params=[_filter_param(f) for f in filters],
            json=_encode_row(values),
            prefer="return=representation",
        )
        return response.json()

    async def delete(self, table: str, filters: Sequence[Filter]) -> int:
        response = await self._request(
            "DELETE", table, params=[_filter_param(f) for f in filters], prefer="return=representation"
        )
        return len(response.json())
