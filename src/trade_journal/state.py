"""Application state for the journal UI.

The whole UI state lives in one frozen ``AppState``. Every change goes
through ``reduce(state, action)``, which returns a new state and never
touches the store; the async side lives in ``trade_journal.journal``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional, Union

from trade_journal.aggregation import (
    has_active_filters,
    paginate,
    preview_pnl,
    sort_trades,
    view,
)
from trade_journal.formatting import StatCard, delete_prompt, stat_cards
from trade_journal.types import (
    DEFAULT_SORT_KEY,
    PAGE_SIZES,
    SORT_KEYS,
    FilterSpec,
    Page,
    SortKey,
    Statistics,
    Trade,
    TradeForm,
)


class Mode(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    EDITING = "editing"
    SUBMITTING = "submitting"


@dataclass(frozen=True)
class AppState:
    trades: tuple[Trade, ...] = ()
    is_loading: bool = True
    error: Optional[str] = None
    notice: Optional[str] = None
    mode: Mode = Mode.IDLE
    editing_id: Optional[str] = None
    form: TradeForm = field(default_factory=TradeForm)
    filters: FilterSpec = field(default_factory=FilterSpec)
    sort_key: SortKey = DEFAULT_SORT_KEY
    page_size: int = 5
    show_all: bool = False
    pending_delete_id: Optional[str] = None

    def find(self, trade_id: str) -> Optional[Trade]:
        for trade in self.trades:
            if trade.id == trade_id:
                return trade
        return None


@dataclass(frozen=True)
class LoadStarted:
    pass


@dataclass(frozen=True)
class LoadSucceeded:
    trades: tuple[Trade, ...]


@dataclass(frozen=True)
class LoadFailed:
    message: str


@dataclass(frozen=True)
class OpenCreate:
    pass


@dataclass(frozen=True)
class OpenEdit:
    trade_id: str


@dataclass(frozen=True)
class EditForm:
    name: str
    value: str


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class SubmitStarted:
    pass


@dataclass(frozen=True)
class SubmitSucceeded:
    trade: Trade


@dataclass(frozen=True)
class SubmitFailed:
    message: str


@dataclass(frozen=True)
class Notify:
    message: str


@dataclass(frozen=True)
class DismissNotice:
    pass


@dataclass(frozen=True)
class SetFilter:
    name: str
    value: str


@dataclass(frozen=True)
class ResetFilters:
    pass


@dataclass(frozen=True)
class SetSort:
    sort_key: SortKey


@dataclass(frozen=True)
class SetPageSize:
    page_size: int


@dataclass(frozen=True)
class ToggleShowAll:
    pass


@dataclass(frozen=True)
class RequestDelete:
    trade_id: str


@dataclass(frozen=True)
class CancelDelete:
    pass


@dataclass(frozen=True)
class DeleteSucceeded:
    trade_id: str


@dataclass(frozen=True)
class DeleteFailed:
    message: str


Action = Union[
    LoadStarted,
    LoadSucceeded,
    LoadFailed,
    OpenCreate,
    OpenEdit,
    EditForm,
    Cancel,
    SubmitStarted,
    SubmitSucceeded,
    SubmitFailed,
    Notify,
    DismissNotice,
    SetFilter,
    ResetFilters,
    SetSort,
    SetPageSize,
    ToggleShowAll,
    RequestDelete,
    CancelDelete,
    DeleteSucceeded,
    DeleteFailed,
]

_FILTER_FIELDS = {f.name for f in fields(FilterSpec)}
_FORM_FIELDS = {f.name for f in fields(TradeForm)}


def _by_date_desc(trades: list[Trade]) -> tuple[Trade, ...]:
    return tuple(sort_trades(trades, "date-desc"))


def _close_form(state: AppState) -> AppState:
    return replace(state, mode=Mode.IDLE, editing_id=None, form=TradeForm())


def reduce(state: AppState, action: Action) -> AppState:
    if isinstance(action, LoadStarted):
        return replace(state, is_loading=True)
    if isinstance(action, LoadSucceeded):
        return replace(
            state,
            trades=_by_date_desc(list(action.trades)),
            is_loading=False,
            error=None,
        )
    if isinstance(action, LoadFailed):
        return replace(state, is_loading=False, error=action.message)

    if isinstance(action, OpenCreate):
        return replace(state, mode=Mode.CREATING, editing_id=None, form=TradeForm())
    if isinstance(action, OpenEdit):
        trade = state.find(action.trade_id)
        if trade is None:
            raise KeyError(action.trade_id)
        return replace(
            state,
            mode=Mode.EDITING,
            editing_id=trade.id,
            form=TradeForm.from_trade(trade),
        )
    if isinstance(action, EditForm):
        if action.name not in _FORM_FIELDS:
            raise KeyError(action.name)
        return replace(state, form=replace(state.form, **{action.name: action.value}))
    if isinstance(action, Cancel):
        if state.mode is Mode.SUBMITTING:
            return state
        return _close_form(state)

    if isinstance(action, SubmitStarted):
        if state.mode not in (Mode.CREATING, Mode.EDITING):
            raise ValueError(f"cannot submit from {state.mode.value}")
        return replace(state, mode=Mode.SUBMITTING)
    if isinstance(action, SubmitSucceeded):
        if state.editing_id is not None:
            editing_id = state.editing_id
            trades = [action.trade if t.id == editing_id else t for t in state.trades]
        else:
            trades = [action.trade, *state.trades]
        return _close_form(replace(state, trades=_by_date_desc(trades)))
    if isinstance(action, SubmitFailed):
        mode = Mode.EDITING if state.editing_id is not None else Mode.CREATING
        return replace(state, mode=mode, notice=action.message)

    if isinstance(action, Notify):
        return replace(state, notice=action.message)
    if isinstance(action, DismissNotice):
        return replace(state, notice=None)

    if isinstance(action, SetFilter):
        if action.name not in _FILTER_FIELDS:
            raise KeyError(action.name)
        filters = replace(state.filters, **{action.name: action.value})
        return replace(state, filters=filters, show_all=False)
    if isinstance(action, ResetFilters):
        return replace(state, filters=FilterSpec(), show_all=False)
    if isinstance(action, SetSort):
        if action.sort_key not in SORT_KEYS:
            raise ValueError(f"unknown sort key: {action.sort_key}")
        return replace(state, sort_key=action.sort_key)
    if isinstance(action, SetPageSize):
        if action.page_size not in PAGE_SIZES:
            raise ValueError(f"page_size must be one of {PAGE_SIZES}")
        return replace(state, page_size=action.page_size)
    if isinstance(action, ToggleShowAll):
        return replace(state, show_all=not state.show_all)

    if isinstance(action, RequestDelete):
        return replace(state, pending_delete_id=action.trade_id)
    if isinstance(action, CancelDelete):
        return replace(state, pending_delete_id=None)
    if isinstance(action, DeleteSucceeded):
        trades = tuple(t for t in state.trades if t.id != action.trade_id)
        return replace(state, trades=trades, pending_delete_id=None)
    if isinstance(action, DeleteFailed):
        return replace(state, pending_delete_id=None, notice=action.message)

    raise TypeError(f"unsupported action: {action!r}")


@dataclass(frozen=True)
class JournalView:
    page: Page
    stats: Statistics
    cards: list[StatCard]
    has_active_filters: bool
    preview: Optional[float]


def select_preview(state: AppState) -> Optional[float]:
    form = state.form
    return preview_pnl(form.direction, form.entry_price, form.exit_price, form.position_size)


def select_view(state: AppState) -> JournalView:
    displayed, stats = view(state.trades, state.filters, state.sort_key)
    return JournalView(
        page=paginate(displayed, page_size=state.page_size, show_all=state.show_all),
        stats=stats,
        cards=stat_cards(stats),
        has_active_filters=has_active_filters(state.filters),
        preview=select_preview(state),
    )


def confirmation_prompt(state: AppState) -> Optional[str]:
    if state.pending_delete_id is None:
        return None
    trade = state.find(state.pending_delete_id)
    if trade is None:
        return delete_prompt(None, None)
    return delete_prompt(trade.pair, trade.date)
