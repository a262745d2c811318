from __future__ import annotations

from dataclasses import dataclass

from trade_journal.aggregation import parse_when
from trade_journal.types import Statistics


@dataclass(frozen=True)
class StatCard:
    label: str
    value: str
    change: str
    positive: bool


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_pnl(value: float) -> str:
    prefix = "+" if value >= 0 else "-"
    return f"{prefix}{format_currency(abs(value))}"


def format_date(value: str) -> str:
    """'2025-01-05' -> 'Jan 5, 2025'; unparseable text is returned as is."""
    parsed = parse_when(value)
    if parsed is None:
        return value
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def stat_cards(stats: Statistics) -> list[StatCard]:
    return [
        StatCard(
            label="Net PnL",
            value=format_pnl(stats.net_profit_loss),
            change="Above breakeven" if stats.net_profit_loss >= 0 else "Below breakeven",
            positive=stats.net_profit_loss >= 0,
        ),
        StatCard(
            label="Win Rate",
            value=f"{stats.win_rate}%",
            change=f"{stats.winning_trades} wins · {stats.losing_trades} losses",
            positive=stats.win_rate >= 50,
        ),
        StatCard(
            label="Trades Logged",
            value=str(stats.total_trades),
            change=f"{stats.long_count} long · {stats.short_count} short",
            positive=stats.total_trades > 0,
        ),
        StatCard(
            label="Avg PnL / Trade",
            value=format_pnl(stats.average_profit_loss),
            change="Profitable setups" if stats.average_profit_loss >= 0 else "Review exits",
            positive=stats.average_profit_loss >= 0,
        ),
    ]


def delete_prompt(pair: str | None, trade_date: str | None) -> str:
    if pair is None or trade_date is None:
        return "Delete this trade? This cannot be undone."
    return f"Delete trade {pair} on {format_date(trade_date)}? This cannot be undone."
