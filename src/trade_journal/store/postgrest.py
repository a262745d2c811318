from __future__ import annotations

import logging
from typing import Any

import httpx

from trade_journal.store import StoreError
from trade_journal.types import TradePayload

logger = logging.getLogger(__name__)


class PostgrestTradeStore:
    """Trades stored in a Supabase/PostgREST table, accessed over its REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        table: str = "trades",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._table = table
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Prefer": "return=representation",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            resp = await self._client.request(method, f"/{self._table}", params=params, json=json)
        except httpx.HTTPError as e:
            raise StoreError(str(e) or e.__class__.__name__) from e
        if resp.status_code >= 400:
            raise StoreError(_error_message(resp))
        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as e:
            raise StoreError(f"Unexpected response from trade store: {e}") from e
        if isinstance(data, dict):
            return [data]
        return list(data)

    async def list_trades(self) -> list[dict[str, Any]]:
        return await self._request("GET", params={"select": "*", "order": "trade_date.desc"})

    async def get_trade(self, trade_id: str) -> dict[str, Any] | None:
        rows = await self._request("GET", params={"select": "*", "id": f"eq.{trade_id}"})
        return rows[0] if rows else None

    async def insert_trade(self, payload: TradePayload) -> dict[str, Any]:
        rows = await self._request("POST", json=payload.to_row())
        if not rows:
            raise StoreError("Insert returned no row")
        return rows[0]

    async def update_trade(self, trade_id: str, payload: TradePayload) -> dict[str, Any]:
        rows = await self._request("PATCH", params={"id": f"eq.{trade_id}"}, json=payload.to_row())
        if len(rows) != 1:
            raise StoreError(f"No trade found with id {trade_id}")
        return rows[0]

    async def delete_trade(self, trade_id: str) -> bool:
        rows = await self._request("DELETE", params={"id": f"eq.{trade_id}"})
        if not rows:
            logger.warning("delete matched no rows", extra={"trade_id": trade_id})
        return bool(rows)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text.strip()}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {resp.status_code}"
