from dataclasses import asdict, replace
from typing import Optional, Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.db import get_settings, get_store
from app.core.logger import get_logger
from trade_journal.aggregation import has_active_filters, paginate, preview_pnl, view
from trade_journal.formatting import delete_prompt, stat_cards
from trade_journal.normalize import normalize_row, normalize_rows
from trade_journal.settings import Settings
from trade_journal.store import StoreError, TradeStore
from trade_journal.types import PAGE_SIZES, DirectionFilter, FilterSpec, SortKey, TradeForm
from trade_journal.validation import TradeValidationError, build_payload

logger = get_logger("API")


router = APIRouter()


class TradePayloadIn(BaseModel):
    pair: str = ""
    direction: str = "Long"
    strategy: str = ""
    entry_price: Union[str, float] = ""
    exit_price: Union[str, float] = ""
    position_size: Union[str, float] = ""
    date: Optional[str] = None
    sentiment: Optional[str] = None

    def to_form(self) -> TradeForm:
        form = TradeForm(
            pair=self.pair,
            direction=self.direction,
            strategy=self.strategy,
            entry_price=str(self.entry_price),
            exit_price=str(self.exit_price),
            position_size=str(self.position_size),
            sentiment=self.sentiment or "",
        )
        if self.date is not None:
            form = replace(form, date=self.date)
        return form


class PreviewPayload(BaseModel):
    direction: str = "Long"
    entry_price: Union[str, float] = ""
    exit_price: Union[str, float] = ""
    position_size: Union[str, float] = ""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@router.get("/api/trades")
async def list_trades(
    pair: str = "",
    strategy: str = "",
    direction: DirectionFilter = "All",
    start_date: str = "",
    end_date: str = "",
    sort: SortKey = "date-desc",
    page_size: Optional[int] = None,
    show_all: bool = False,
    store: TradeStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if page_size is None:
        page_size = settings.default_page_size
    if page_size not in PAGE_SIZES:
        return _error(400, f"page_size must be one of {list(PAGE_SIZES)}")
    try:
        rows = await store.list_trades()
    except StoreError as exc:
        logger.error(f"Failed to load trades: {exc}")
        return _error(502, str(exc))

    filters = FilterSpec(
        pair=pair,
        strategy=strategy,
        direction=direction,
        start_date=start_date,
        end_date=end_date,
    )
    displayed, stats = view(normalize_rows(rows), filters, sort)
    page = paginate(displayed, page_size=page_size, show_all=show_all)
    return {
        "trades": [asdict(t) for t in page.trades],
        "stats": asdict(stats),
        "cards": [asdict(c) for c in stat_cards(stats)],
        "total": page.total,
        "has_more": page.has_more,
        "has_active_filters": has_active_filters(filters),
    }


@router.post("/api/trades")
async def create_trade(payload: TradePayloadIn, store: TradeStore = Depends(get_store)):
    try:
        trade_payload = build_payload(payload.to_form())
    except TradeValidationError as exc:
        return _error(400, str(exc))
    try:
        row = await store.insert_trade(trade_payload)
    except StoreError as exc:
        logger.error(f"Failed to create trade: {exc}")
        return _error(502, str(exc))
    trade = normalize_row(row)
    logger.info(f"Logged {trade.direction} {trade.pair} trade {trade.id}")
    return {"ok": True, "trade": asdict(trade)}


@router.put("/api/trades/{trade_id}")
async def update_trade(
    trade_id: str,
    payload: TradePayloadIn,
    store: TradeStore = Depends(get_store),
):
    try:
        trade_payload = build_payload(payload.to_form())
    except TradeValidationError as exc:
        return _error(400, str(exc))
    try:
        row = await store.update_trade(trade_id, trade_payload)
    except StoreError as exc:
        logger.error(f"Failed to update trade {trade_id}: {exc}")
        return _error(502, str(exc))
    logger.info(f"Updated trade {trade_id}")
    return {"ok": True, "trade": asdict(normalize_row(row))}


@router.delete("/api/trades/{trade_id}")
async def delete_trade(
    trade_id: str,
    confirm: bool = False,
    store: TradeStore = Depends(get_store),
):
    if not confirm:
        try:
            row = await store.get_trade(trade_id)
        except StoreError as exc:
            return _error(502, str(exc))
        if row is None:
            return _error(404, f"No trade found with id {trade_id}")
        trade = normalize_row(row)
        prompt = delete_prompt(trade.pair, trade.date)
        return JSONResponse(status_code=409, content={"ok": False, "confirm": prompt})
    try:
        deleted = await store.delete_trade(trade_id)
    except StoreError as exc:
        logger.error(f"Failed to delete trade {trade_id}: {exc}")
        return _error(502, str(exc))
    if not deleted:
        logger.warning(f"Attempted to delete unknown trade: {trade_id}")
        return _error(404, f"No trade found with id {trade_id}")
    logger.info(f"Deleted trade {trade_id}")
    return {"ok": True, "id": trade_id}


@router.post("/api/trades/preview")
async def preview_trade(payload: PreviewPayload):
    return {
        "pnl": preview_pnl(
            payload.direction,
            str(payload.entry_price),
            str(payload.exit_price),
            str(payload.position_size),
        )
    }
