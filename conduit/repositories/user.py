import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from conduit.errors import ConflictError, NotFoundError
from conduit.models import User
from conduit.repositories.base import SqlRepository, storage_errors, unique_violation_field

logger = logging.getLogger(__name__)

_UNIQUE_FIELDS = ("email", "username")


class UserRepository(ABC):
    """Persistence contract for users."""

    @abstractmethod
    async def create(self, email: str, username: str, password_hash: str) -> User:
        """Insert a user; ``ConflictError`` names the taken field."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> User:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User:
        ...

    @abstractmethod
    async def get_by_username(self, username: str) -> User:
        ...

    @abstractmethod
    async def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        """Users keyed by id; unknown ids are simply absent."""

    @abstractmethod
    async def update(self, user: User, changes: dict[str, Any]) -> User:
        """Apply column *changes*; ``ConflictError`` on a taken email/username."""


class SqlUserRepository(SqlRepository, UserRepository):

    async def create(self, email: str, username: str, password_hash: str) -> User:
        with storage_errors("user", "create", username=username):
            # Advisory: the unique constraints below are the real arbiter.
            await self._ensure_available({"email": email, "username": username})

            user = User(email=email, username=username, password_hash=password_hash)
            try:
                async with self.session.begin_nested():
                    self.session.add(user)
                    await self.session.flush()
            except IntegrityError as exc:
                field = unique_violation_field(exc, _UNIQUE_FIELDS)
                if field is None:
                    raise
                raise ConflictError(field) from exc
        return user

    async def get_by_id(self, user_id: int) -> User:
        return await self._get_one(User.id == user_id, key=user_id)

    async def get_by_email(self, email: str) -> User:
        return await self._get_one(User.email == email, key=email)

    async def get_by_username(self, username: str) -> User:
        return await self._get_one(User.username == username, key=username)

    async def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = set(user_ids)
        if not ids:
            return {}
        with storage_errors("user", "get_many", count=len(ids)):
            result = await self.session.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def update(self, user: User, changes: dict[str, Any]) -> User:
        with storage_errors("user", "update", user_id=user.id):
            unique_changes = {
                field: changes[field]
                for field in _UNIQUE_FIELDS
                if field in changes and changes[field] != getattr(user, field)
            }
            await self._ensure_available(unique_changes, exclude_id=user.id)

            try:
                async with self.session.begin_nested():
                    for field, value in changes.items():
                        setattr(user, field, value)
                    await self.session.flush()
            except IntegrityError as exc:
                field = unique_violation_field(exc, _UNIQUE_FIELDS)
                if field is None:
                    raise
                raise ConflictError(field) from exc
        return user

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_one(self, condition, key) -> User:
        with storage_errors("user", "get", key=key):
            result = await self.session.execute(select(User).where(condition))
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user")
        return user

    async def _ensure_available(self, values: dict[str, str], exclude_id: int | None = None) -> None:
        """Raise ``ConflictError`` for the first of *values* another user holds."""
        for field in _UNIQUE_FIELDS:
            if field not in values:
                continue
            column = getattr(User, field)
            q = select(User.id).where(column == values[field])
            if exclude_id is not None:
                q = q.where(User.id != exclude_id)
            taken = (await self.session.execute(q.limit(1))).scalar_one_or_none()
            if taken is not None:
                raise ConflictError(field)
