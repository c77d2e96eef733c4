import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from conduit.models import Favorite
from conduit.repositories.base import SqlRepository, is_unique_violation, storage_errors

logger = logging.getLogger(__name__)


class FavoriteRepository(ABC):
    """Persistence contract for user -> article favorite edges."""

    @abstractmethod
    async def create(self, user_id: int, article_id: int) -> None:
        """Idempotent."""

    @abstractmethod
    async def remove(self, user_id: int, article_id: int) -> None:
        """Idempotent."""

    @abstractmethod
    async def exists(self, user_id: int | None, article_id: int) -> bool:
        ...

    @abstractmethod
    async def exists_bulk(self, user_id: int | None, article_ids: Iterable[int]) -> dict[int, bool]:
        ...

    @abstractmethod
    async def count(self, article_id: int) -> int:
        ...

    @abstractmethod
    async def count_bulk(self, article_ids: Iterable[int]) -> dict[int, int]:
        ...


class SqlFavoriteRepository(SqlRepository, FavoriteRepository):

    async def create(self, user_id: int, article_id: int) -> None:
        with storage_errors("favorite", "create", user_id=user_id, article_id=article_id):
            if await self.exists(user_id, article_id):
                logger.debug("Already favorited user_id=%s article_id=%s", user_id, article_id)
                return
            try:
                async with self.session.begin_nested():
                    self.session.add(Favorite(user_id=user_id, article_id=article_id))
                    await self.session.flush()
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                logger.debug("Concurrent favorite absorbed user_id=%s article_id=%s", user_id, article_id)

    async def remove(self, user_id: int, article_id: int) -> None:
        with storage_errors("favorite", "remove", user_id=user_id, article_id=article_id):
            result = await self.session.execute(
                delete(Favorite).where(
                    Favorite.user_id == user_id,
                    Favorite.article_id == article_id,
                )
            )
        if result.rowcount == 0:
            logger.debug("Was not favorited user_id=%s article_id=%s", user_id, article_id)

    async def exists(self, user_id: int | None, article_id: int) -> bool:
        if not user_id or not article_id:
            return False
        with storage_errors("favorite", "exists", user_id=user_id, article_id=article_id):
            result = await self.session.execute(
                select(Favorite.user_id)
                .where(Favorite.user_id == user_id, Favorite.article_id == article_id)
                .limit(1)
            )
        return result.scalar_one_or_none() is not None

    async def exists_bulk(self, user_id: int | None, article_ids: Iterable[int]) -> dict[int, bool]:
        flags = {article_id: False for article_id in article_ids}
        if not user_id or not flags:
            return flags
        with storage_errors("favorite", "exists_bulk", user_id=user_id, count=len(flags)):
            result = await self.session.execute(
                select(Favorite.article_id).where(
                    Favorite.user_id == user_id,
                    Favorite.article_id.in_(flags.keys()),
                )
            )
        for article_id in result.scalars().all():
            flags[article_id] = True
        return flags

    async def count(self, article_id: int) -> int:
        counts = await self.count_bulk([article_id])
        return counts[article_id]

    async def count_bulk(self, article_ids: Iterable[int]) -> dict[int, int]:
        counts = {article_id: 0 for article_id in article_ids}
        if not counts:
            return counts
        with storage_errors("favorite", "count", count=len(counts)):
            result = await self.session.execute(
                select(Favorite.article_id, func.count())
                .where(Favorite.article_id.in_(counts.keys()))
                .group_by(Favorite.article_id)
            )
        for article_id, n in result.all():
            counts[article_id] = n
        return counts
