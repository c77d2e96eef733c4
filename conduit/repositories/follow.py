"""
Follow-edge repository.

Edges are existence facts: creating an existing edge and removing a
missing one both succeed without changing anything.  The composite
primary key, not the pre-check, decides concurrent inserts.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from conduit.errors import ValidationError
from conduit.models import Follow
from conduit.repositories.base import SqlRepository, is_unique_violation, storage_errors

logger = logging.getLogger(__name__)


class FollowRepository(ABC):
    """Persistence contract for follower -> following edges."""

    @abstractmethod
    async def create(self, follower_id: int, following_id: int) -> None:
        """Idempotent; self-follow raises ``ValidationError``."""

    @abstractmethod
    async def remove(self, follower_id: int, following_id: int) -> None:
        """Idempotent."""

    @abstractmethod
    async def exists(self, follower_id: int | None, following_id: int) -> bool:
        """``False`` without a round trip when there is no follower."""

    @abstractmethod
    async def exists_bulk(self, follower_id: int | None, following_ids: Iterable[int]) -> dict[int, bool]:
        """One round trip for any number of targets; none for no follower or no targets."""


class SqlFollowRepository(SqlRepository, FollowRepository):

    async def create(self, follower_id: int, following_id: int) -> None:
        if follower_id == following_id:
            raise ValidationError.single("profile", "cannot follow yourself")

        with storage_errors("follow", "create", follower_id=follower_id, following_id=following_id):
            if await self.exists(follower_id, following_id):
                logger.debug("Already following follower_id=%s following_id=%s", follower_id, following_id)
                return
            try:
                async with self.session.begin_nested():
                    self.session.add(Follow(follower_id=follower_id, following_id=following_id))
                    await self.session.flush()
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                # Lost a race with an identical insert; the edge exists.
                logger.debug("Concurrent follow absorbed follower_id=%s following_id=%s", follower_id, following_id)

    async def remove(self, follower_id: int, following_id: int) -> None:
        with storage_errors("follow", "remove", follower_id=follower_id, following_id=following_id):
            result = await self.session.execute(
                delete(Follow).where(
                    Follow.follower_id == follower_id,
                    Follow.following_id == following_id,
                )
            )
        if result.rowcount == 0:
            logger.debug("Was not following follower_id=%s following_id=%s", follower_id, following_id)

    async def exists(self, follower_id: int | None, following_id: int) -> bool:
        if not follower_id or not following_id:
            return False
        with storage_errors("follow", "exists", follower_id=follower_id, following_id=following_id):
            result = await self.session.execute(
                select(Follow.follower_id)
                .where(Follow.follower_id == follower_id, Follow.following_id == following_id)
                .limit(1)
            )
        return result.scalar_one_or_none() is not None

    async def exists_bulk(self, follower_id: int | None, following_ids: Iterable[int]) -> dict[int, bool]:
        flags = {target: False for target in following_ids}
        if not follower_id or not flags:
            return flags
        with storage_errors("follow", "exists_bulk", follower_id=follower_id, count=len(flags)):
            result = await self.session.execute(
                select(Follow.following_id).where(
                    Follow.follower_id == follower_id,
                    Follow.following_id.in_(flags.keys()),
                )
            )
        for target in result.scalars().all():
            flags[target] = True
        return flags
