from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from trade_journal.types import Trade

logger = logging.getLogger(__name__)


def coerce_number(value: Any) -> float:
    """Permissive numeric coercion for stored values.

    Numbers pass through, text is parsed as a decimal number, anything else
    (absent, unparseable, non-finite) becomes 0.0. Never raises.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else 0.0
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            logger.debug("unparseable numeric value %r coerced to 0", value)
            return 0.0
        return number if math.isfinite(number) else 0.0
    return 0.0


def _coerce_date(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def normalize_row(row: Mapping[str, Any]) -> Trade:
    direction = "Short" if row.get("direction") == "Short" else "Long"
    return Trade(
        id=str(row.get("id") or ""),
        pair=str(row.get("pair") or ""),
        direction=direction,
        strategy=str(row.get("strategy") or ""),
        entry_price=coerce_number(row.get("entry_price")),
        exit_price=coerce_number(row.get("exit_price")),
        position_size=coerce_number(row.get("position_size")),
        profit_loss=coerce_number(row.get("pnl")),
        date=_coerce_date(row.get("trade_date")),
        sentiment=str(row.get("sentiment") or ""),
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> list[Trade]:
    return [normalize_row(row) for row in rows]
