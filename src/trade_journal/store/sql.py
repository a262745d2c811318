from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import Field, SQLModel, col, select

from trade_journal.store import StoreError
from trade_journal.types import TradePayload

logger = logging.getLogger(__name__)

_ROW_FIELDS = (
    "id",
    "pair",
    "direction",
    "strategy",
    "entry_price",
    "exit_price",
    "pnl",
    "position_size",
    "sentiment",
    "trade_date",
)


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TradeRecord(SQLModel, table=True):
    __tablename__ = "trades"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=36)
    pair: str = Field(max_length=50)
    direction: str = Field(max_length=10)
    strategy: str = Field(max_length=100)
    entry_price: float
    exit_price: float
    position_size: float
    pnl: float
    sentiment: Optional[str] = Field(default=None)
    trade_date: str = Field(max_length=32, index=True)
    created_at: datetime = Field(default_factory=_utcnow)


def _to_row(record: TradeRecord) -> dict[str, Any]:
    data = record.model_dump()
    return {key: data[key] for key in _ROW_FIELDS}


class SqlTradeStore:
    def __init__(
        self,
        *,
        database_url: str = "sqlite+aiosqlite:///trade_journal.db",
        engine: AsyncEngine | None = None,
    ) -> None:
        self._engine = engine or create_async_engine(database_url, echo=False, future=True)
        self._sessions = async_sessionmaker(bind=self._engine, expire_on_commit=False)
        self._ready = False

    async def init(self) -> None:
        """Create tables if needed."""
        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._ready = True

    async def _ensure_ready(self) -> None:
        if not self._ready:
            await self.init()

    async def aclose(self) -> None:
        await self._engine.dispose()

    async def list_trades(self) -> list[dict[str, Any]]:
        try:
            await self._ensure_ready()
            async with self._sessions() as session:
                result = await session.execute(
                    select(TradeRecord).order_by(col(TradeRecord.trade_date).desc())
                )
                return [_to_row(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load trades: {e}") from e

    async def get_trade(self, trade_id: str) -> dict[str, Any] | None:
        try:
            await self._ensure_ready()
            async with self._sessions() as session:
                record = await session.get(TradeRecord, trade_id)
                return None if record is None else _to_row(record)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load trade: {e}") from e

    async def insert_trade(self, payload: TradePayload) -> dict[str, Any]:
        try:
            await self._ensure_ready()
            async with self._sessions() as session:
                record = TradeRecord(**payload.to_row())
                session.add(record)
                await session.commit()
                await session.refresh(record)
                logger.info("trade inserted", extra={"trade_id": record.id})
                return _to_row(record)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save trade: {e}") from e

    async def update_trade(self, trade_id: str, payload: TradePayload) -> dict[str, Any]:
        try:
            await self._ensure_ready()
            async with self._sessions() as session:
                record = await session.get(TradeRecord, trade_id)
                if record is None:
                    raise StoreError(f"No trade found with id {trade_id}")
                for key, value in payload.to_row().items():
                    setattr(record, key, value)
                session.add(record)
                await session.commit()
                await session.refresh(record)
                logger.info("trade updated", extra={"trade_id": trade_id})
                return _to_row(record)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save trade: {e}") from e

    async def delete_trade(self, trade_id: str) -> bool:
        try:
            await self._ensure_ready()
            async with self._sessions() as session:
                record = await session.get(TradeRecord, trade_id)
                if record is None:
                    return False
                await session.delete(record)
                await session.commit()
                logger.info("trade deleted", extra={"trade_id": trade_id})
                return True
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete trade: {e}") from e
