from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional

Direction = Literal["Long", "Short"]
DirectionFilter = Literal["Long", "Short", "All"]
SortKey = Literal["date-desc", "date-asc", "pnl-desc", "pnl-asc", "size-desc", "size-asc"]

DIRECTIONS: tuple[Direction, ...] = ("Long", "Short")
SORT_KEYS: tuple[SortKey, ...] = (
    "date-desc",
    "date-asc",
    "pnl-desc",
    "pnl-asc",
    "size-desc",
    "size-asc",
)
DEFAULT_SORT_KEY: SortKey = "date-desc"
PAGE_SIZES: tuple[int, ...] = (5, 10, 20)


@dataclass(frozen=True)
class Trade:
    id: str
    pair: str
    direction: Direction
    strategy: str
    entry_price: float
    exit_price: float
    position_size: float
    profit_loss: float
    date: str
    sentiment: str = ""


@dataclass(frozen=True)
class FilterSpec:
    pair: str = ""
    strategy: str = ""
    direction: DirectionFilter = "All"
    start_date: str = ""
    end_date: str = ""


@dataclass(frozen=True)
class Statistics:
    total_trades: int
    net_profit_loss: float
    winning_trades: int
    losing_trades: int
    win_rate: int
    average_profit_loss: float
    long_count: int
    short_count: int


@dataclass(frozen=True)
class Page:
    trades: list[Trade]
    total: int
    has_more: bool


def _today() -> str:
    return date.today().isoformat()


@dataclass(frozen=True)
class TradeForm:
    # Raw form input; every field is text until validated.
    pair: str = ""
    direction: str = "Long"
    strategy: str = ""
    entry_price: str = ""
    exit_price: str = ""
    position_size: str = ""
    date: str = field(default_factory=_today)
    sentiment: str = ""

    @classmethod
    def from_trade(cls, trade: Trade) -> TradeForm:
        return cls(
            pair=trade.pair,
            direction=trade.direction,
            strategy=trade.strategy,
            entry_price=_num_text(trade.entry_price),
            exit_price=_num_text(trade.exit_price),
            position_size=_num_text(trade.position_size),
            date=trade.date,
            sentiment=trade.sentiment,
        )


@dataclass(frozen=True)
class TradePayload:
    pair: str
    direction: Direction
    strategy: str
    entry_price: float
    exit_price: float
    position_size: float
    pnl: float
    sentiment: Optional[str]
    trade_date: str

    def to_row(self) -> dict[str, object]:
        return {
            "pair": self.pair,
            "direction": self.direction,
            "strategy": self.strategy,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "position_size": self.position_size,
            "pnl": self.pnl,
            "sentiment": self.sentiment,
            "trade_date": self.trade_date,
        }


def _num_text(value: float) -> str:
    # 61250.0 -> "61250", 0.5 -> "0.5"
    if value == int(value):
        return str(int(value))
    return repr(value)
