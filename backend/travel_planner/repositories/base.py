"""
Table repository: the persistence client used by every route.

Provides select / insert / update / delete with equality filters, ordering
and column projection over a single SQLAlchemy model. Rows are returned as
plain dictionaries so route handlers can shape JSON responses directly.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from travel_planner.core.exceptions import ConflictError, NotFoundError
from travel_planner.models.base import ModelMixin

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _is_unique_violation(error: IntegrityError) -> bool:
    text = str(error.orig).lower()
    return "unique" in text or "duplicate" in text


class TableRepository:
    """
    Repository for a single table.

    Subclasses set ``model`` and ``not_found_message`` and add domain
    queries on top of the generic operations.

    Attributes:
        session: SQLAlchemy async session for database operations
    """

    model: Type[ModelMixin]
    not_found_message = "The requested data was not found"

    def __init__(self, session: AsyncSession):
        self.session = session

    def _column(self, name: str):
        try:
            return self.model.__table__.columns[name]
        except KeyError:
            raise ValueError(f"Unknown column '{name}' on {self.model.__tablename__}") from None

    def _conditions(self, filters: Optional[Mapping[str, Any]]) -> list:
        return [self._column(name) == value for name, value in (filters or {}).items()]

    async def select(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        columns: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """
        Select rows matching all ``filters`` (column == value).

        Args:
            filters: Column/value equality filters
            order_by: Column to sort by
            descending: Sort direction
            columns: Optional projection; defaults to all public columns
            limit: Optional maximum number of rows

        Returns:
            List of row dictionaries
        """
        if columns:
            stmt = select(*[self._column(name) for name in columns])
        else:
            stmt = select(self.model)

        stmt = stmt.where(*self._conditions(filters))

        if order_by:
            column = self._column(order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        if columns:
            return [dict(row._mapping) for row in result.all()]
        return [obj.to_dict() for obj in result.scalars().all()]

    async def select_one(
        self,
        filters: Mapping[str, Any],
        columns: Optional[Iterable[str]] = None,
    ) -> Row:
        """
        Select exactly one row.

        Raises:
            NotFoundError: If no row matches
        """
        rows = await self.select(filters, columns=columns, limit=1)
        if not rows:
            raise NotFoundError(self.not_found_message)
        return rows[0]

    async def insert(self, values: Mapping[str, Any]) -> Row:
        """
        Insert a row and return it with generated fields populated.

        Raises:
            ConflictError: If a unique constraint is violated
        """
        obj = self.model(**values)
        self.session.add(obj)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if _is_unique_violation(e):
                logger.warning(
                    "Unique constraint violated on insert",
                    extra={"table": self.model.__tablename__},
                )
                raise ConflictError("Data already exists") from e
            raise
        await self.session.refresh(obj)
        return obj.to_dict()

    async def _get_instance(self, filters: Mapping[str, Any]):
        stmt = select(self.model).where(*self._conditions(filters)).limit(1)
        result = await self.session.execute(stmt)
        obj = result.scalar_one_or_none()
        if obj is None:
            raise NotFoundError(self.not_found_message)
        return obj

    async def update(self, filters: Mapping[str, Any], values: Mapping[str, Any]) -> Row:
        """
        Update the row matching ``filters`` and return it.

        Raises:
            NotFoundError: If no row matches
            ConflictError: If a unique constraint is violated
        """
        obj = await self._get_instance(filters)
        for name, value in values.items():
            self._column(name)
            setattr(obj, name, value)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise ConflictError("Data already exists") from e
            raise
        await self.session.refresh(obj)
        return obj.to_dict()

    async def delete(self, filters: Mapping[str, Any]) -> int:
        """
        Delete rows matching ``filters``.

        Returns:
            Number of rows removed
        """
        conditions = self._conditions(filters)
        if not conditions:
            raise ValueError("Refusing to delete without filters")
        result = await self.session.execute(delete(self.model).where(*conditions))
        return result.rowcount or 0
