from trade_journal.aggregation import compute_statistics
from trade_journal.formatting import delete_prompt, format_currency, format_date, format_pnl, stat_cards


def test_format_currency() -> None:
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-80) == "-$80.00"


def test_format_pnl_is_signed() -> None:
    assert format_pnl(925) == "+$925.00"
    assert format_pnl(-1600) == "-$1,600.00"
    assert format_pnl(0) == "+$0.00"


def test_format_date() -> None:
    assert format_date("2025-01-05") == "Jan 5, 2025"
    assert format_date("not a date") == "not a date"


def test_delete_prompt() -> None:
    assert delete_prompt("BTC/USDT", "2025-01-05") == (
        "Delete trade BTC/USDT on Jan 5, 2025? This cannot be undone."
    )
    assert delete_prompt(None, None) == "Delete this trade? This cannot be undone."


def test_stat_cards_for_empty_journal() -> None:
    cards = stat_cards(compute_statistics([]))
    assert [c.label for c in cards] == ["Net PnL", "Win Rate", "Trades Logged", "Avg PnL / Trade"]
    assert cards[0].value == "+$0.00"
    assert cards[1].value == "0%"
    assert cards[1].positive is False
    assert cards[2].change == "0 long · 0 short"
