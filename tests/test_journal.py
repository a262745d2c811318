import asyncio
from typing import Any

from trade_journal.journal import TradeJournal
from trade_journal.state import EditForm, Mode, OpenCreate, OpenEdit
from trade_journal.store import StoreError
from trade_journal.types import TradePayload


def _row(trade_id: str, day: str, pair: str = "BTC/USDT") -> dict[str, Any]:
    return {
        "id": trade_id,
        "pair": pair,
        "direction": "Long",
        "strategy": "Breakout",
        "entry_price": "100",
        "exit_price": "110",
        "pnl": "10",
        "position_size": "1",
        "sentiment": None,
        "trade_date": day,
    }


class _MemoryStore:
    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows = list(rows or [])
        self.fail_with: str | None = None
        self.calls: list[str] = []
        self._next = 100

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise StoreError(self.fail_with)

    async def list_trades(self) -> list[dict[str, Any]]:
        self._maybe_fail("list")
        return sorted(self.rows, key=lambda r: r["trade_date"], reverse=True)

    async def insert_trade(self, payload: TradePayload) -> dict[str, Any]:
        self._maybe_fail("insert")
        self._next += 1
        row = {"id": str(self._next), **payload.to_row()}
        self.rows.append(row)
        return row

    async def update_trade(self, trade_id: str, payload: TradePayload) -> dict[str, Any]:
        self._maybe_fail("update")
        row = {"id": trade_id, **payload.to_row()}
        self.rows = [row if r["id"] == trade_id else r for r in self.rows]
        return row

    async def delete_trade(self, trade_id: str) -> bool:
        self._maybe_fail("delete")
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["id"] != trade_id]
        return len(self.rows) < before

    async def aclose(self) -> None:
        return


def _four_rows() -> list[dict[str, Any]]:
    return [_row(str(i), f"2025-01-0{i}") for i in range(1, 5)]


def _fill(journal: TradeJournal, **fields: str) -> None:
    for name, value in fields.items():
        journal.dispatch(EditForm(name, value))


def test_load_normalizes_rows() -> None:
    journal = TradeJournal(store=_MemoryStore(_four_rows()))
    asyncio.run(journal.load())
    assert [t.id for t in journal.state.trades] == ["4", "3", "2", "1"]
    assert journal.state.trades[0].entry_price == 100.0
    assert journal.state.trades[0].sentiment == ""
    assert journal.state.is_loading is False


def test_load_failure_sets_error() -> None:
    store = _MemoryStore(_four_rows())
    store.fail_with = "permission denied for table trades"
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    assert journal.state.error == "permission denied for table trades"
    assert journal.state.trades == ()


def test_create_trade_computes_pnl() -> None:
    store = _MemoryStore()
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    journal.dispatch(OpenCreate())
    _fill(
        journal,
        pair="BTC/USDT",
        strategy="Breakout",
        entry_price="61250",
        exit_price="63100",
        position_size="0.5",
        date="2025-01-05",
    )
    assert asyncio.run(journal.submit()) is True
    assert journal.state.mode is Mode.IDLE
    assert journal.state.trades[0].profit_loss == 925.0
    assert store.rows[0]["pnl"] == 925.0
    assert store.rows[0]["sentiment"] is None


def test_validation_failure_skips_store() -> None:
    store = _MemoryStore()
    journal = TradeJournal(store=store)
    journal.dispatch(OpenCreate())
    _fill(journal, pair="BTC/USDT", strategy="Breakout", entry_price="1", exit_price="2", position_size="0")
    assert asyncio.run(journal.submit()) is False
    assert journal.state.notice == "Please enter a position size greater than zero."
    assert journal.state.mode is Mode.CREATING
    assert store.calls == []


def test_edit_replaces_trade_and_keeps_id() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    journal.dispatch(OpenEdit("2"))
    _fill(journal, direction="Short", entry_price="3120", exit_price="3040", position_size="20")
    assert asyncio.run(journal.submit()) is True
    edited = journal.state.find("2")
    assert edited is not None
    assert edited.direction == "Short"
    assert edited.profit_loss == 1600.0
    assert len(journal.state.trades) == 4


def test_failed_update_leaves_trades_unchanged() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    before = journal.state.trades
    journal.dispatch(OpenEdit("1"))
    _fill(journal, pair="ETH/USDT")
    store.fail_with = "duplicate key value"
    assert asyncio.run(journal.submit()) is False
    assert journal.state.trades == before
    assert journal.state.notice == "duplicate key value"
    assert journal.state.mode is Mode.EDITING


def test_failed_insert_keeps_form_open() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    before = journal.state.trades
    journal.dispatch(OpenCreate())
    _fill(
        journal,
        pair="SOL/USDT",
        strategy="Scalp",
        entry_price="100",
        exit_price="110",
        position_size="1",
        date="2025-01-09",
    )
    store.fail_with = "connection reset"
    assert asyncio.run(journal.submit()) is False
    assert journal.state.trades == before
    assert journal.state.notice == "connection reset"
    assert journal.state.mode is Mode.CREATING
    assert journal.state.form.pair == "SOL/USDT"
    assert store.rows == _four_rows()


def test_delete_requires_confirmation() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    prompt = journal.request_delete("3")
    assert prompt == "Delete trade BTC/USDT on Jan 3, 2025? This cannot be undone."
    assert asyncio.run(journal.confirm_delete(False)) is False
    assert "delete" not in store.calls
    assert len(journal.state.trades) == 4

    journal.request_delete("3")
    assert asyncio.run(journal.confirm_delete(True)) is True
    assert [t.id for t in journal.state.trades] == ["4", "2", "1"]


def test_deleting_unknown_id_leaves_four_trades() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    before = journal.state.trades
    journal.request_delete("does-not-exist")
    assert asyncio.run(journal.confirm_delete(True)) is False
    assert journal.state.trades == before
    assert len(journal.state.trades) == 4
    assert journal.state.notice == "No trade found with id does-not-exist"


def test_failed_delete_surfaces_message() -> None:
    store = _MemoryStore(_four_rows())
    journal = TradeJournal(store=store)
    asyncio.run(journal.load())
    store.fail_with = "connection reset"
    journal.request_delete("1")
    assert asyncio.run(journal.confirm_delete(True)) is False
    assert journal.state.notice == "connection reset"
    assert len(journal.state.trades) == 4
