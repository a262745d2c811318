from __future__ import annotations

import math
from typing import Optional

from trade_journal.aggregation import calculate_pnl, parse_when
from trade_journal.types import DIRECTIONS, TradeForm, TradePayload


class TradeValidationError(ValueError):
    """The trade form cannot be submitted as entered."""


def _parse(value: str) -> Optional[float]:
    try:
        number = float(value.strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def build_payload(form: TradeForm) -> TradePayload:
    """Validate the form and build the row sent to the store.

    Profit/loss is always recomputed here from direction, prices and size.
    """
    if not form.pair.strip():
        raise TradeValidationError("Please enter a trading pair.")
    if not form.strategy.strip():
        raise TradeValidationError("Please enter a strategy name.")
    if form.direction not in DIRECTIONS:
        raise TradeValidationError("Direction must be Long or Short.")

    entry = _parse(form.entry_price)
    exit_ = _parse(form.exit_price)
    size = _parse(form.position_size)
    if entry is None or exit_ is None:
        raise TradeValidationError("Please enter valid numeric values for entry and exit price.")
    if size is None or size <= 0:
        raise TradeValidationError("Please enter a position size greater than zero.")
    if parse_when(form.date) is None:
        raise TradeValidationError("Please enter a valid trade date.")

    return TradePayload(
        pair=form.pair.strip(),
        direction=form.direction,  # type: ignore[arg-type]
        strategy=form.strategy.strip(),
        entry_price=entry,
        exit_price=exit_,
        position_size=size,
        pnl=calculate_pnl(form.direction, entry, exit_, size),
        sentiment=form.sentiment if form.sentiment.strip() else None,
        trade_date=form.date.strip(),
    )
