from __future__ import annotations

import logging
from typing import Optional

from trade_journal.normalize import normalize_row, normalize_rows
from trade_journal.state import (
    Action,
    AppState,
    CancelDelete,
    DeleteFailed,
    DeleteSucceeded,
    JournalView,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    Mode,
    Notify,
    RequestDelete,
    SubmitFailed,
    SubmitStarted,
    SubmitSucceeded,
    confirmation_prompt,
    reduce,
    select_view,
)
from trade_journal.store import StoreError, TradeStore
from trade_journal.validation import TradeValidationError, build_payload

logger = logging.getLogger(__name__)


class TradeJournal:
    """Runs store calls and feeds their outcome through the reducer.

    A failed store call never changes the trade collection; its message
    becomes ``state.notice`` (or ``state.error`` for the initial load).
    """

    def __init__(self, *, store: TradeStore, state: Optional[AppState] = None) -> None:
        self._store = store
        self.state = state or AppState()

    def dispatch(self, action: Action) -> AppState:
        self.state = reduce(self.state, action)
        return self.state

    def view(self) -> JournalView:
        return select_view(self.state)

    async def load(self) -> None:
        self.dispatch(LoadStarted())
        try:
            rows = await self._store.list_trades()
        except StoreError as e:
            logger.error(f"Failed to load trades: {e}")
            self.dispatch(LoadFailed(str(e) or "Failed to load trades."))
            return
        self.dispatch(LoadSucceeded(tuple(normalize_rows(rows))))
        logger.info(f"Loaded {len(self.state.trades)} trades")

    async def submit(self) -> bool:
        if self.state.mode not in (Mode.CREATING, Mode.EDITING):
            raise ValueError(f"no open form to submit (mode={self.state.mode.value})")
        try:
            payload = build_payload(self.state.form)
        except TradeValidationError as e:
            self.dispatch(Notify(str(e)))
            return False

        editing_id = self.state.editing_id
        self.dispatch(SubmitStarted())
        try:
            if editing_id is not None:
                row = await self._store.update_trade(editing_id, payload)
            else:
                row = await self._store.insert_trade(payload)
        except StoreError as e:
            logger.error(f"Failed to save trade: {e}", extra={"trade_id": editing_id})
            self.dispatch(SubmitFailed(str(e) or "Failed to save trade. Please try again."))
            return False

        self.dispatch(SubmitSucceeded(normalize_row(row)))
        return True

    def request_delete(self, trade_id: str) -> str:
        """Start the delete confirmation and return the prompt to show."""
        self.dispatch(RequestDelete(trade_id))
        return confirmation_prompt(self.state) or ""

    async def confirm_delete(self, confirmed: bool) -> bool:
        trade_id = self.state.pending_delete_id
        if trade_id is None:
            return False
        if not confirmed:
            self.dispatch(CancelDelete())
            return False
        try:
            deleted = await self._store.delete_trade(trade_id)
        except StoreError as e:
            logger.error(f"Failed to delete trade: {e}", extra={"trade_id": trade_id})
            self.dispatch(DeleteFailed(str(e) or "Failed to delete trade. Please try again."))
            return False
        if not deleted:
            self.dispatch(DeleteFailed(f"No trade found with id {trade_id}"))
            return False
        self.dispatch(DeleteSucceeded(trade_id))
        return True
