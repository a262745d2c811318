from __future__ import annotations

import asyncio
import csv
import logging
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from pathlib import Path
from typing import Optional, TypeVar

import typer

from trade_journal.aggregation import paginate, preview_pnl, view
from trade_journal.formatting import format_date, format_pnl, stat_cards
from trade_journal.journal import TradeJournal
from trade_journal.logging_utils import configure_logging
from trade_journal.normalize import normalize_rows
from trade_journal.settings import Settings
from trade_journal.state import EditForm, OpenCreate, OpenEdit
from trade_journal.store import StoreError, TradeStore, build_store
from trade_journal.types import PAGE_SIZES, SORT_KEYS, FilterSpec, Trade

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("trade_journal")

T = TypeVar("T")

_ENV_TEMPLATE = """\
# Storage backend: sql | postgrest
STORE_BACKEND=sql
DATABASE_URL=sqlite+aiosqlite:///trade_journal.db

# Supabase REST (only for STORE_BACKEND=postgrest)
SUPABASE_URL=
SUPABASE_KEY=
SUPABASE_TABLE=trades

DEFAULT_PAGE_SIZE=5
LOG_LEVEL=INFO
"""


def _load_settings() -> Settings:
    settings = Settings()
    configure_logging(settings)
    return settings


def _with_store(settings: Settings, fn: Callable[[TradeStore], Awaitable[T]]) -> T:
    async def _run() -> T:
        store = build_store(settings)
        try:
            return await fn(store)
        finally:
            await store.aclose()

    try:
        return asyncio.run(_run())
    except StoreError as e:
        logger.error(f"store call failed: {e}", extra={"backend": settings.store_backend})
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


def _filters(
    pair: str, strategy: str, direction: str, start: str, end: str
) -> FilterSpec:
    if direction not in ("All", "Long", "Short"):
        raise typer.BadParameter("direction must be All, Long or Short", param_hint="--direction")
    return FilterSpec(
        pair=pair,
        strategy=strategy,
        direction=direction,  # type: ignore[arg-type]
        start_date=start,
        end_date=end,
    )


def _check_sort(sort: str) -> None:
    if sort not in SORT_KEYS:
        raise typer.BadParameter(f"sort must be one of {', '.join(SORT_KEYS)}", param_hint="--sort")


def _write_trades_csv(*, path: Path, trades: list[Trade]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "id",
                "trade_date",
                "pair",
                "direction",
                "strategy",
                "entry_price",
                "exit_price",
                "position_size",
                "pnl",
                "sentiment",
            ]
        )
        for t in trades:
            writer.writerow(
                [
                    t.id,
                    t.date,
                    t.pair,
                    t.direction,
                    t.strategy,
                    str(t.entry_price),
                    str(t.exit_price),
                    str(t.position_size),
                    str(t.profit_loss),
                    t.sentiment,
                ]
            )


def _trade_line(t: Trade) -> str:
    return (
        f"{t.id}  {format_date(t.date)}  {t.pair}  {t.direction}  {t.strategy}  "
        f"{t.entry_price} -> {t.exit_price} x {t.position_size}  {format_pnl(t.profit_loss)}"
        + (f"  | {t.sentiment}" if t.sentiment else "")
    )


@app.command()
def config_init(
    path: Path = typer.Option(Path(".env"), help="Path to write a starter .env file."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite if exists."),
) -> None:
    """
    Create a starter `.env` file.
    """
    if path.exists() and not overwrite:
        raise typer.Exit(code=1)
    path.write_text(_ENV_TEMPLATE, encoding="utf-8")
    typer.echo(f"Wrote {path}")


@app.command()
def show_config() -> None:
    settings = _load_settings()
    redacted = settings.model_dump()
    redacted["supabase_key"] = "***" if redacted["supabase_key"] else ""
    logger.info("loaded_config", extra={"backend": settings.store_backend})
    typer.echo(redacted)


@app.command()
def health() -> None:
    """
    Check that the trade store answers and report how many trades it holds.
    """
    settings = _load_settings()
    rows = _with_store(settings, lambda store: store.list_trades())
    typer.echo({"ok": True, "backend": settings.store_backend, "trades": len(rows)})


@app.command()
def trades(
    pair: str = typer.Option("", help="Case-insensitive pair substring."),
    strategy: str = typer.Option("", help="Case-insensitive strategy substring."),
    direction: str = typer.Option("All", help="All | Long | Short"),
    start: str = typer.Option("", help="Earliest trade date (inclusive)."),
    end: str = typer.Option("", help="Latest trade date (inclusive)."),
    sort: str = typer.Option("date-desc", help="Sort key, e.g. pnl-desc."),
    page_size: Optional[int] = typer.Option(None, help="5, 10 or 20."),
    show_all: bool = typer.Option(False, "--all", help="Show every matching trade."),
) -> None:
    """
    List logged trades.
    """
    settings = _load_settings()
    filters = _filters(pair, strategy, direction, start, end)
    _check_sort(sort)
    size = page_size or settings.default_page_size
    if size not in PAGE_SIZES:
        raise typer.BadParameter("page size must be 5, 10 or 20", param_hint="--page-size")

    rows = _with_store(settings, lambda store: store.list_trades())
    displayed, _ = view(normalize_rows(rows), filters, sort)  # type: ignore[arg-type]
    page = paginate(displayed, page_size=size, show_all=show_all)
    if not page.trades:
        typer.echo("No trades match.")
        return
    for t in page.trades:
        typer.echo(_trade_line(t))
    if page.has_more and not show_all:
        typer.echo(f"Showing {len(page.trades)} of {page.total}. Use --all to list every trade.")


@app.command()
def stats(
    pair: str = typer.Option("", help="Case-insensitive pair substring."),
    strategy: str = typer.Option("", help="Case-insensitive strategy substring."),
    direction: str = typer.Option("All", help="All | Long | Short"),
    start: str = typer.Option("", help="Earliest trade date (inclusive)."),
    end: str = typer.Option("", help="Latest trade date (inclusive)."),
) -> None:
    """
    Print summary statistics over the filtered trades.
    """
    settings = _load_settings()
    filters = _filters(pair, strategy, direction, start, end)
    rows = _with_store(settings, lambda store: store.list_trades())
    _, summary = view(normalize_rows(rows), filters)
    for card in stat_cards(summary):
        typer.echo(f"{card.label}: {card.value} ({card.change})")
    typer.echo(asdict(summary))


@app.command()
def add(
    pair: str = typer.Option(..., help="Instrument, e.g. BTC/USDT."),
    direction: str = typer.Option("Long", help="Long | Short"),
    strategy: str = typer.Option(..., help="Strategy label."),
    entry: str = typer.Option(..., help="Entry price."),
    exit_: str = typer.Option(..., "--exit", help="Exit price."),
    size: str = typer.Option(..., help="Position size (> 0)."),
    date: Optional[str] = typer.Option(None, help="Trade date, YYYY-MM-DD. Defaults to today."),
    sentiment: str = typer.Option("", help="Free-text note."),
) -> None:
    """
    Log a new trade.
    """
    settings = _load_settings()
    fields = {
        "pair": pair,
        "direction": direction,
        "strategy": strategy,
        "entry_price": entry,
        "exit_price": exit_,
        "position_size": size,
        "sentiment": sentiment,
    }
    if date is not None:
        fields["date"] = date

    async def _run(store: TradeStore) -> TradeJournal:
        journal = TradeJournal(store=store)
        journal.dispatch(OpenCreate())
        for name, value in fields.items():
            journal.dispatch(EditForm(name, value))
        await journal.submit()
        return journal

    journal = _with_store(settings, _run)
    if journal.state.notice:
        typer.echo(f"Error: {journal.state.notice}", err=True)
        raise typer.Exit(code=1)
    created = journal.state.trades[0]
    typer.echo(_trade_line(created))


@app.command()
def edit(
    trade_id: str = typer.Argument(..., help="Identifier of the trade to replace."),
    pair: Optional[str] = typer.Option(None),
    direction: Optional[str] = typer.Option(None),
    strategy: Optional[str] = typer.Option(None),
    entry: Optional[str] = typer.Option(None),
    exit_: Optional[str] = typer.Option(None, "--exit"),
    size: Optional[str] = typer.Option(None),
    date: Optional[str] = typer.Option(None),
    sentiment: Optional[str] = typer.Option(None),
) -> None:
    """
    Edit a trade. Options left out keep their current value.
    """
    settings = _load_settings()
    changes = {
        "pair": pair,
        "direction": direction,
        "strategy": strategy,
        "entry_price": entry,
        "exit_price": exit_,
        "position_size": size,
        "date": date,
        "sentiment": sentiment,
    }

    async def _run(store: TradeStore) -> Optional[TradeJournal]:
        journal = TradeJournal(store=store)
        await journal.load()
        if journal.state.error:
            raise StoreError(journal.state.error)
        if journal.state.find(trade_id) is None:
            return None
        journal.dispatch(OpenEdit(trade_id))
        for name, value in changes.items():
            if value is not None:
                journal.dispatch(EditForm(name, value))
        await journal.submit()
        return journal

    journal = _with_store(settings, _run)
    if journal is None:
        typer.echo(f"Error: No trade found with id {trade_id}", err=True)
        raise typer.Exit(code=1)
    if journal.state.notice:
        typer.echo(f"Error: {journal.state.notice}", err=True)
        raise typer.Exit(code=1)
    updated = journal.state.find(trade_id)
    if updated is not None:
        typer.echo(_trade_line(updated))


@app.command()
def delete(
    trade_id: str = typer.Argument(..., help="Identifier of the trade to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete a trade after confirmation.
    """
    settings = _load_settings()

    async def _run(store: TradeStore) -> tuple[TradeJournal, bool]:
        journal = TradeJournal(store=store)
        await journal.load()
        if journal.state.error:
            raise StoreError(journal.state.error)
        prompt = journal.request_delete(trade_id)
        confirmed = yes or typer.confirm(prompt, default=False)
        deleted = await journal.confirm_delete(confirmed)
        return journal, deleted

    journal, deleted = _with_store(settings, _run)
    if deleted:
        typer.echo(f"Deleted {trade_id}")
        return
    if journal.state.notice:
        typer.echo(f"Error: {journal.state.notice}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Cancelled.")


@app.command()
def preview(
    entry: str = typer.Option(..., help="Entry price."),
    exit_: str = typer.Option(..., "--exit", help="Exit price."),
    size: str = typer.Option(..., help="Position size."),
    direction: str = typer.Option("Long", help="Long | Short"),
) -> None:
    """
    Show the profit/loss a trade would record, without saving it.
    """
    pnl = preview_pnl(direction, entry, exit_, size)
    typer.echo("PnL: --" if pnl is None else f"PnL: {format_pnl(pnl)}")


@app.command()
def export(
    path: Path = typer.Option(Path("build/trades.csv"), help="CSV file to write."),
    pair: str = typer.Option("", help="Case-insensitive pair substring."),
    strategy: str = typer.Option("", help="Case-insensitive strategy substring."),
    direction: str = typer.Option("All", help="All | Long | Short"),
    start: str = typer.Option("", help="Earliest trade date (inclusive)."),
    end: str = typer.Option("", help="Latest trade date (inclusive)."),
    sort: str = typer.Option("date-desc", help="Sort key, e.g. pnl-desc."),
) -> None:
    """
    Export the filtered, sorted trades to CSV.
    """
    settings = _load_settings()
    filters = _filters(pair, strategy, direction, start, end)
    _check_sort(sort)
    rows = _with_store(settings, lambda store: store.list_trades())
    displayed, _ = view(normalize_rows(rows), filters, sort)  # type: ignore[arg-type]
    _write_trades_csv(path=path, trades=displayed)
    typer.echo(f"Wrote {len(displayed)} trades to {path}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """
    Run the web journal.
    """
    import uvicorn

    uvicorn.run("app.main:app", host=host, port=port, reload=reload)
