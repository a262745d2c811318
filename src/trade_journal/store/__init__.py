from __future__ import annotations

from typing import Any, Protocol

from trade_journal.settings import Settings
from trade_journal.types import TradePayload


class StoreError(Exception):
    """A storage call failed; ``str(exc)`` is safe to show to the user."""


class TradeStore(Protocol):
    async def list_trades(self) -> list[dict[str, Any]]: ...

    async def get_trade(self, trade_id: str) -> dict[str, Any] | None: ...

    async def insert_trade(self, payload: TradePayload) -> dict[str, Any]: ...

    async def update_trade(self, trade_id: str, payload: TradePayload) -> dict[str, Any]: ...

    async def delete_trade(self, trade_id: str) -> bool: ...

    async def aclose(self) -> None: ...


def build_store(settings: Settings) -> TradeStore:
    if settings.store_backend == "postgrest":
        from trade_journal.store.postgrest import PostgrestTradeStore

        if not settings.postgrest_configured():
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the postgrest store")
        return PostgrestTradeStore(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key,
            table=settings.supabase_table,
            timeout_seconds=settings.http_timeout_seconds,
        )

    from trade_journal.store.sql import SqlTradeStore

    return SqlTradeStore(database_url=settings.database_url)


__all__ = ["StoreError", "TradeStore", "build_store"]
