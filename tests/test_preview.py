from trade_journal.aggregation import preview_pnl
from trade_journal.normalize import coerce_number


def test_preview_matches_formula() -> None:
    assert preview_pnl("Long", "61250", "63100", "0.5") == 925.0
    assert preview_pnl("Short", "3120", "3040", "20") == 1600.0


def test_preview_is_undefined_for_bad_prices() -> None:
    assert preview_pnl("Long", "", "63100", "0.5") is None
    assert preview_pnl("Long", "61250", "abc", "0.5") is None


def test_preview_is_undefined_for_bad_size() -> None:
    assert preview_pnl("Long", "100", "110", "") is None
    assert preview_pnl("Long", "100", "110", "0") is None
    assert preview_pnl("Long", "100", "110", "-1") is None


def test_preview_and_stored_coercion_stay_distinct() -> None:
    # The same bad text is zero when stored but undefined in the preview.
    assert coerce_number("abc") == 0.0
    assert preview_pnl("Long", "abc", "110", "1") is None
