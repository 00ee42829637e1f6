"""Generic base DAO — bulk insert and count helpers."""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vulnmatch.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    async def bulk_create(self, session: AsyncSession, items: list[dict[str, Any]]) -> list[ModelT]:
        """Insert multiple rows in a single flush.

        After flush, primary keys (``id``) are available via RETURNING.
        """
        objs = [self.model(**vals) for vals in items]
        session.add_all(objs)
        await session.flush()
        return objs

    async def count(self, session: AsyncSession, query: Select | None = None) -> int:
        """Return the row count for *query*, or total rows if query is None."""
        if query is None:
            query = select(func.count()).select_from(self.model.__table__)
        else:
            query = select(func.count()).select_from(query.subquery())

        result = await session.execute(query)
        return result.scalar_one()
