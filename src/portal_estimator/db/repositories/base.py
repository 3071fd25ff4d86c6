"""Base Repository Pattern for the estimator.

Provides generic async CRUD operations; the store repositories extend
it with estimation queries.
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal_estimator.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic base repository with async CRUD operations.

    Usage:
        class TicketRepository(BaseRepository[TicketModel]):
            def __init__(self, session: AsyncSession):
                super().__init__(TicketModel, session)
    """

    def __init__(self, model: type[ModelT], session: AsyncSession):
        self._model = model
        self._session = session

    # ========================================================================
    # Basic CRUD Operations
    # ========================================================================

    async def get(self, id: UUID | str) -> ModelT | None:
        """Get a single record by ID; malformed ids find nothing."""
        if isinstance(id, str):
            try:
                id = UUID(id)
            except ValueError:
                return None

        stmt = select(self._model).where(self._model.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, obj_in: ModelT) -> ModelT:
        """Add a record and flush to obtain generated values."""
        self._session.add(obj_in)
        await self._session.flush()
        await self._session.refresh(obj_in)
        return obj_in

    async def create_multi(self, objs_in: list[ModelT]) -> list[ModelT]:
        self._session.add_all(objs_in)
        await self._session.flush()
        for obj in objs_in:
            await self._session.refresh(obj)
        return objs_in

    # ========================================================================
    # Query Helpers
    # ========================================================================

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self._model)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def find_one(self, **filters: Any) -> ModelT | None:
        """Find a single record by column equality filters."""
        stmt = select(self._model)
        for field, value in filters.items():
            if hasattr(self._model, field):
                stmt = stmt.where(getattr(self._model, field) == value)

        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_by(self, key: str, value: Any, fields: dict[str, Any]) -> ModelT:
        """Update the record whose ``key`` column equals ``value``, or create it.

        Args:
            key: Unique column name
            value: Key value
            fields: Column values to write

        Returns:
            The written model instance
        """
        db_obj = await self.find_one(**{key: value})
        if db_obj is None:
            return await self.create(self._model(**{key: value}, **fields))

        for field, field_value in fields.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, field_value)

        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj
