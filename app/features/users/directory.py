"""
User directory port and its SQLAlchemy adapter.

The access-control core never opens a session itself: every check receives
a UserDirectory explicitly, so it can run against the database in a request
or against an in-memory fake in tests.
"""
from dataclasses import dataclass
from typing import Any, Protocol
from sqlalchemy import select, func, and_, or_, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.hierarchy.errors import DenialReason, NotFound, PermissionDenied
from app.features.hierarchy.roles import Role, UserRecord
from app.features.users.models import User


@dataclass(frozen=True)
class UserFilter:
    """
    Conjunction of optional constraints over the ownership fields.

    Unset fields do not constrain. An empty tl_ids matches nothing.
    """
    roles: frozenset[Role] | None = None
    manager_id: str | None = None
    tl_ids: frozenset[str] | None = None

    def matches(self, record: UserRecord) -> bool:
        if self.roles is not None and record.role not in self.roles:
            return False
        if self.manager_id is not None and record.manager_id != self.manager_id:
            return False
        if self.tl_ids is not None and record.tl_id not in self.tl_ids:
            return False
        return True


def with_roles(*roles: Role, **kwargs) -> UserFilter:
    return UserFilter(roles=frozenset(roles), **kwargs)


class UserDirectory(Protocol):
    """Narrow read/write interface over the user store."""

    async def find_by_id(self, user_id: str) -> UserRecord | None: ...

    async def find_where(self, *filters: UserFilter) -> list[UserRecord]:
        """Records matching any of the filters; every record when none are given."""
        ...

    async def count_where(self, *filters: UserFilter) -> int: ...

    async def add(self, fields: dict[str, Any]) -> UserRecord: ...

    async def update(self, user_id: str, changes: dict[str, Any]) -> UserRecord: ...

    async def delete(self, user_id: str) -> None: ...


def _filter_clause(user_filter: UserFilter):
    conditions = []
    if user_filter.roles is not None:
        conditions.append(User.role.in_(list(user_filter.roles)))
    if user_filter.manager_id is not None:
        conditions.append(User.manager_id == user_filter.manager_id)
    if user_filter.tl_ids is not None:
        conditions.append(User.tl_id.in_(list(user_filter.tl_ids)))
    return and_(*conditions) if conditions else true()


class SqlUserDirectory:
    """UserDirectory backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _where(self, stmt, filters: tuple[UserFilter, ...]):
        if filters:
            stmt = stmt.where(or_(*(_filter_clause(f) for f in filters)))
        return stmt

    async def get_model(self, user_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_appwrite_id(self, appwrite_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.appwrite_id == appwrite_id))
        return result.scalar_one_or_none()

    async def get_models(self, user_ids: list[str]) -> list[User]:
        if not user_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)).order_by(User.id))
        return list(result.scalars().all())

    async def find_models(self, *filters: UserFilter) -> list[User]:
        stmt = self._where(select(User), filters).order_by(User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_id(self, user_id: str) -> UserRecord | None:
        user = await self.get_model(user_id)
        return UserRecord.model_validate(user) if user is not None else None

    async def find_where(self, *filters: UserFilter) -> list[UserRecord]:
        return [UserRecord.model_validate(user) for user in await self.find_models(*filters)]

    async def count_where(self, *filters: UserFilter) -> int:
        stmt = self._where(select(func.count()).select_from(User), filters)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def add(self, fields: dict[str, Any]) -> UserRecord:
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return UserRecord.model_validate(user)

    async def update(self, user_id: str, changes: dict[str, Any]) -> UserRecord:
        user = await self.get_model(user_id)
        if user is None:
            raise NotFound(user_id)
        for key, value in changes.items():
            setattr(user, key, value)
        await self.db.flush()
        await self.db.refresh(user)
        return UserRecord.model_validate(user)

    async def delete(self, user_id: str) -> None:
        """
        Delete a record.

        Ownership foreign keys are ON DELETE RESTRICT, so a dependent added
        after the permission check still blocks the delete. The session is
        rolled back in that case.
        """
        user = await self.get_model(user_id)
        if user is None:
            return
        await self.db.delete(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise PermissionDenied(DenialReason.TARGET_HAS_DEPENDENTS)
