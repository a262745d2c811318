from functools import lru_cache

from starlette.requests import Request

from trade_journal.settings import Settings
from trade_journal.store import TradeStore, build_store


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def open_store(settings: Settings) -> TradeStore:
    """Build the configured trade store and create tables where that applies."""
    store = build_store(settings)
    init = getattr(store, "init", None)
    if init is not None:
        await init()
    return store


def get_store(request: Request) -> TradeStore:
    """Return the store opened at startup."""
    return request.app.state.store
