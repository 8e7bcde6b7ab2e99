from __future__ import annotations

from typing import Any, Iterable, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Executable, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository:
    """
    Base class for repositories: statement helpers plus add/commit on the shared session.

    Note:
      Row-level authorization is enforced by the store; repositories only build queries.
      Services own the transaction and decide when to commit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def scalar(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """First column of the first row, e.g. a SUM or COUNT."""
        result = await self.execute(statement, params)
        return result.scalar()

    # PUBLIC_INTERFACE
    async def get_locked(self, model: Type[T], row_id: UUID) -> Optional[T]:
        """
        Load a row by primary key with SELECT ... FOR UPDATE.

        The lock is held until the caller commits, so balances read afterwards and the
        write that depends on them see the same row.
        """
        stmt = select(model).where(model.id == row_id).with_for_update()
        return await self.scalar_one_or_none(stmt)

    async def commit(self) -> None:
        await self.session.commit()

    async def add_all(self, entities: Iterable[Any]) -> None:
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        self.session.add(entity)
