"""Natural-key upsert primitives shared by every writer."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

import structlog
from gridline_core.time import utc_now
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=SQLModel)


class UpsertEngine:
    """
    Select-then-write upserts keyed on natural keys.

    Works identically on SQLite and PostgreSQL. Key columns whose value is
    ``None`` are matched with ``IS NULL``, so a null point is a key value like
    any other. Callers own the transaction; rows are flushed, never committed.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize engine with database session.

        Args:
            session: Async database session
        """
        self.session = session
        self.inserted = 0
        self.updated = 0

    async def find(self, model: type[ModelT], natural_key: Mapping[str, Any]) -> ModelT | None:
        """Return the row matching every key column, if any."""
        query = select(model)
        for column_name, value in natural_key.items():
            column = getattr(model, column_name)
            query = query.where(column.is_(None) if value is None else column == value)

        result = await self.session.execute(query)
        return result.scalars().first()

    async def upsert(
        self,
        model: type[ModelT],
        natural_key: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> ModelT:
        """
        Insert a row or overwrite every given field of the existing one.

        Args:
            model: Table model class
            natural_key: Column values identifying the logical row
            values: Non-key column values; last write wins

        Returns:
            The inserted or updated row

        Example:
            line = await engine.upsert(
                BettingLine,
                {"game_id": game.id, "bookmaker": "fanduel"},
                {"moneyline_home": -150, "moneyline_away": 130, "last_updated": now},
            )
        """
        existing = await self.find(model, natural_key)
        if existing is not None:
            return await self.update(existing, values)
        return await self.insert(model, {**natural_key, **values})

    async def insert(self, model: type[ModelT], values: Mapping[str, Any]) -> ModelT:
        """Unconditional insert for tables without a natural key."""
        row = model(**values)
        self.session.add(row)
        await self.session.flush()
        self.inserted += 1
        return row

    async def update(self, row: ModelT, values: Mapping[str, Any]) -> ModelT:
        """Overwrite fields of an already-loaded row and refresh ``updated_at``."""
        for column_name, value in values.items():
            setattr(row, column_name, value)
        if hasattr(row, "updated_at"):
            row.updated_at = utc_now()

        await self.session.flush()
        self.updated += 1
        return row

    async def ensure(
        self,
        model: type[ModelT],
        natural_key: Mapping[str, Any],
        values: Mapping[str, Any],
    ) -> ModelT:
        """
        Insert if absent; otherwise fill only the fields that are currently null.

        Non-null stored values are never overwritten.
        """
        existing = await self.find(model, natural_key)
        if existing is None:
            return await self.insert(model, {**natural_key, **values})

        missing = {
            column_name: value
            for column_name, value in values.items()
            if value is not None and getattr(existing, column_name) is None
        }
        if missing:
            return await self.update(existing, missing)
        return existing
