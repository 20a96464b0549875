"""
Supabase (PostgREST) store client.

Used endpoints, all under `{SUPABASE_URL}/rest/v1/{table}`:
- GET     select / count (Prefer: count=exact, read from Content-Range)
- POST    insert, or upsert with `on_conflict` + resolution=merge-duplicates
- PATCH   update
- DELETE  delete

Error bodies look like {"code": "42P01", "message": "...", "details": ..., "hint": ...}.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Sequence

import httpx

from .store import Filters, Order, Row, StoreError, StoreErrorKind, as_rows

logger = logging.getLogger(__name__)


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{'true' if value else 'false'}"
    return f"eq.{value}"


def _filter_params(filters: Filters | None) -> list[tuple[str, str]]:
    return [(column, _filter_value(value)) for column, value in (filters or {}).items()]


def _order_param(order: Sequence[Order]) -> str:
    return ",".join(f"{o.column}.{'asc' if o.ascending else 'desc'}" for o in order)


def _parse_total(content_range: str | None) -> int:
    # "0-9/42" or "*/0"
    if not content_range or "/" not in content_range:
        return 0
    total = content_range.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else 0


class PostgrestStore:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base_url = (base_url or "").strip().rstrip("/")
        if not base_url or not api_key:
            raise ValueError("PostgrestStore requires base_url and api_key.")
        if api_key.startswith("sb_publishable_"):
            logger.warning(
                "store_publishable_key: requests are subject to RLS; "
                "use the service_role key in SUPABASE_SERVICE_KEY for server operations"
            )
        self._client = httpx.AsyncClient(
            base_url=f"{base_url}/rest/v1",
            timeout=timeout_s,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = {"Prefer": prefer} if prefer else None
        content = json.dumps(payload, default=str) if payload is not None else None
        try:
            resp = await self._client.request(
                method,
                f"/{table}",
                params=params,
                content=content,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise StoreError(
                f"Store request timed out: {method} {table}",
                kind=StoreErrorKind.TIMEOUT,
            ) from exc
        except httpx.TransportError as exc:
            raise StoreError(
                f"Store is unreachable: {exc}",
                kind=StoreErrorKind.UNAVAILABLE,
            ) from exc

        if resp.status_code >= 400:
            raise self._error_from_response(resp)
        return resp

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> StoreError:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            # Avoid dumping huge bodies; include a small snippet.
            return StoreError(f"Store request failed: {resp.status_code} {resp.text[:300]}")
        details = data.get("details")
        hint = data.get("hint")
        return StoreError.from_code(
            data.get("code"),
            str(data.get("message") or f"Store request failed: {resp.status_code}"),
            details=str(details) if details is not None else None,
            hint=str(hint) if hint is not None else None,
        )

    @staticmethod
    def _rows(resp: httpx.Response) -> list[Row]:
        if not resp.content:
            return []
        data = resp.json()
        if isinstance(data, dict):
            return [data]
        return list(data or [])

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Filters | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Row]:
        params = [("select", columns or "*")] + _filter_params(filters)
        if order:
            params.append(("order", _order_param(order)))
        if limit is not None:
            params.append(("limit", str(int(limit))))
        if offset:
            params.append(("offset", str(int(offset))))
        resp = await self._request("GET", table, params=params)
        return self._rows(resp)

    async def count(self, table: str, *, filters: Filters | None = None) -> int:
        params = [("select", "*"), ("limit", "0")] + _filter_params(filters)
        resp = await self._request("GET", table, params=params, prefer="count=exact")
        return _parse_total(resp.headers.get("content-range"))

    async def insert(self, table: str, rows: Row | Iterable[Row]) -> list[Row]:
        resp = await self._request(
            "POST",
            table,
            payload=as_rows(rows),
            prefer="return=representation",
        )
        return self._rows(resp)

    async def update(self, table: str, values: Row, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update() requires at least one filter.")
        resp = await self._request(
            "PATCH",
            table,
            params=_filter_params(filters),
            payload=dict(values),
            prefer="return=representation",
        )
        return self._rows(resp)

    async def delete(self, table: str, *, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("delete() requires at least one filter.")
        resp = await self._request(
            "DELETE",
            table,
            params=_filter_params(filters),
            prefer="return=representation",
        )
        return self._rows(resp)

    async def upsert(
        self,
        table: str,
        rows: Row | Iterable[Row],
        *,
        on_conflict: Sequence[str],
    ) -> list[Row]:
        resp = await self._request(
            "POST",
            table,
            params=[("on_conflict", ",".join(on_conflict))],
            payload=as_rows(rows),
            prefer="resolution=merge-duplicates,return=representation",
        )
        return self._rows(resp)
