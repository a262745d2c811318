from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from trade_journal.types import (
    PAGE_SIZES,
    FilterSpec,
    Page,
    SortKey,
    Statistics,
    Trade,
)

_EARLIEST = datetime.min.replace(tzinfo=UTC)


def calculate_pnl(direction: str, entry_price: float, exit_price: float, size: float) -> float:
    difference = exit_price - entry_price if direction == "Long" else entry_price - exit_price
    return difference * size


def _parse_strict(value: str) -> Optional[float]:
    try:
        number = float(value.strip())
    except (AttributeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def preview_pnl(direction: str, entry_price: str, exit_price: str, size: str) -> Optional[float]:
    """Advisory profit/loss for a form that has not been submitted yet.

    Unlike stored values, bad input is not treated as zero: the result is
    None when either price does not parse, or the size does not parse or is
    not positive.
    """
    entry = _parse_strict(entry_price)
    exit_ = _parse_strict(exit_price)
    qty = _parse_strict(size)
    if entry is None or exit_ is None or qty is None or qty <= 0:
        return None
    return calculate_pnl(direction, entry, exit_, qty)


def parse_when(value: str) -> Optional[datetime]:
    s = (value or "").strip()
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def has_active_filters(filters: FilterSpec) -> bool:
    return (
        filters.direction != "All"
        or bool(filters.pair.strip())
        or bool(filters.strategy.strip())
        or bool(filters.start_date)
        or bool(filters.end_date)
    )


def _matches(trade: Trade, filters: FilterSpec, start: Optional[datetime], end: Optional[datetime]) -> bool:
    pair = filters.pair.strip().lower()
    if pair and pair not in trade.pair.lower():
        return False
    strategy = filters.strategy.strip().lower()
    if strategy and strategy not in trade.strategy.lower():
        return False
    if filters.direction != "All" and trade.direction != filters.direction:
        return False
    if start is not None or end is not None:
        when = parse_when(trade.date)
        # A trade whose own date does not parse is not excluded by the range.
        if when is not None:
            if start is not None and when < start:
                return False
            if end is not None and when > end:
                return False
    return True


def filter_trades(trades: Iterable[Trade], filters: FilterSpec) -> list[Trade]:
    start = parse_when(filters.start_date)
    end = parse_when(filters.end_date)
    return [t for t in trades if _matches(t, filters, start, end)]


def _date_key(trade: Trade) -> datetime:
    return parse_when(trade.date) or _EARLIEST


def sort_trades(trades: Iterable[Trade], sort_key: SortKey = "date-desc") -> list[Trade]:
    # sorted() is stable, including with reverse=True.
    if sort_key == "date-asc":
        return sorted(trades, key=_date_key)
    if sort_key == "pnl-desc":
        return sorted(trades, key=lambda t: t.profit_loss, reverse=True)
    if sort_key == "pnl-asc":
        return sorted(trades, key=lambda t: t.profit_loss)
    if sort_key == "size-desc":
        return sorted(trades, key=lambda t: t.position_size, reverse=True)
    if sort_key == "size-asc":
        return sorted(trades, key=lambda t: t.position_size)
    return sorted(trades, key=_date_key, reverse=True)


def compute_statistics(trades: Sequence[Trade]) -> Statistics:
    total = len(trades)
    net = sum((t.profit_loss for t in trades), 0.0)
    wins = sum(1 for t in trades if t.profit_loss > 0)
    longs = sum(1 for t in trades if t.direction == "Long")
    if total:
        win_rate = int(
            (Decimal(wins) * Decimal(100) / Decimal(total)).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
        )
        average = net / total
    else:
        win_rate = 0
        average = 0.0
    return Statistics(
        total_trades=total,
        net_profit_loss=net,
        winning_trades=wins,
        losing_trades=total - wins,
        win_rate=win_rate,
        average_profit_loss=average,
        long_count=longs,
        short_count=total - longs,
    )


def view(
    trades: Iterable[Trade],
    filters: FilterSpec,
    sort_key: SortKey = "date-desc",
) -> tuple[list[Trade], Statistics]:
    filtered = filter_trades(trades, filters)
    return sort_trades(filtered, sort_key), compute_statistics(filtered)


def paginate(trades: Sequence[Trade], *, page_size: int, show_all: bool = False) -> Page:
    if page_size not in PAGE_SIZES:
        raise ValueError(f"page_size must be one of {PAGE_SIZES}")
    has_more = len(trades) > page_size
    visible = list(trades) if show_all or not has_more else list(trades[:page_size])
    return Page(trades=visible, total=len(trades), has_more=has_more)
