"""
Article repository - articles, their tag links and the tag vocabulary.

Query notes
-----------
- Single-article and page reads load the author with ``joinedload`` and the
  tags with ``selectinload``, so a page costs the same number of statements
  whatever its size.  ``unique()`` is required after ``joinedload``.
- ``populate_existing`` makes re-reads inside one session return fresh
  state (tags and author) for objects already in the identity map.
- Writes that touch more than one row run inside a SAVEPOINT so a failure
  leaves neither the article nor partial tag links behind.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload, selectinload

from conduit.errors import ConflictError, NotFoundError
from conduit.models import Article, Comment, Favorite, Follow, Tag, User
from conduit.repositories.base import SqlRepository, storage_errors, unique_violation_field

logger = logging.getLogger(__name__)


class ArticleRepository(ABC):
    """Persistence contract for articles and tags."""

    @abstractmethod
    async def create(
        self,
        author_id: int,
        slug: str,
        title: str,
        description: str,
        body: str,
        tag_names: Sequence[str] = (),
    ) -> Article:
        """Insert the article with its tag links as one unit."""

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Article:
        ...

    @abstractmethod
    async def get_by_id(self, article_id: int) -> Article:
        ...

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        ...

    @abstractmethod
    async def update(
        self, article: Article, changes: dict[str, Any], tag_names: Sequence[str] | None = None
    ) -> Article:
        """Apply column *changes*; replace the tag set when *tag_names* is given."""

    @abstractmethod
    async def delete(self, article: Article) -> None:
        """Delete the article with its comments, favorites and tag links."""

    @abstractmethod
    async def find_all(
        self,
        tag: str | None = None,
        author: str | None = None,
        favorited_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Article], int]:
        """Newest-first page plus the total number of matching articles."""

    @abstractmethod
    async def feed(self, follower_id: int, limit: int = 20, offset: int = 0) -> tuple[list[Article], int]:
        """Articles by authors *follower_id* follows, newest first."""

    @abstractmethod
    async def all_tags(self) -> list[str]:
        ...


def _article_query():
    return (
        select(Article)
        .options(joinedload(Article.author), selectinload(Article.tags))
        .execution_options(populate_existing=True)
    )


def _newest_first(q):
    return q.order_by(Article.created_at.desc(), Article.id.desc())


class SqlArticleRepository(SqlRepository, ArticleRepository):

    async def create(
        self,
        author_id: int,
        slug: str,
        title: str,
        description: str,
        body: str,
        tag_names: Sequence[str] = (),
    ) -> Article:
        with storage_errors("article", "create", slug=slug, author_id=author_id):
            try:
                async with self.session.begin_nested():
                    article = Article(
                        slug=slug,
                        title=title,
                        description=description,
                        body=body,
                        author_id=author_id,
                    )
                    article.tags = await self._get_or_create_tags(tag_names)
                    self.session.add(article)
                    await self.session.flush()
            except IntegrityError as exc:
                field = unique_violation_field(exc, ("slug", "name"))
                if field is None:
                    raise
                logger.info("Article insert collided on %s (slug=%s)", field, slug)
                raise ConflictError("slug" if field == "slug" else "tag") from exc

        return await self.get_by_id(article.id)

    async def get_by_slug(self, slug: str) -> Article:
        return await self._get_one(Article.slug == slug, key=slug)

    async def get_by_id(self, article_id: int) -> Article:
        return await self._get_one(Article.id == article_id, key=article_id)

    async def slug_exists(self, slug: str) -> bool:
        with storage_errors("article", "slug_exists", slug=slug):
            result = await self.session.execute(
                select(Article.id).where(Article.slug == slug).limit(1)
            )
        return result.scalar_one_or_none() is not None

    async def update(
        self, article: Article, changes: dict[str, Any], tag_names: Sequence[str] | None = None
    ) -> Article:
        article_id = article.id
        with storage_errors("article", "update", article_id=article_id):
            try:
                async with self.session.begin_nested():
                    for field, value in changes.items():
                        setattr(article, field, value)
                    if tag_names is not None:
                        article.tags = await self._get_or_create_tags(tag_names)
                    await self.session.flush()
            except IntegrityError as exc:
                field = unique_violation_field(exc, ("slug", "name"))
                if field is None:
                    raise
                logger.info("Article update collided on %s (article_id=%s)", field, article_id)
                raise ConflictError("slug" if field == "slug" else "tag") from exc

        return await self.get_by_id(article_id)

    async def delete(self, article: Article) -> None:
        article_id = article.id
        with storage_errors("article", "delete", article_id=article_id):
            # The schema cascades too; explicit deletes keep the outcome the
            # same on stores where FK enforcement is off.  Tag links go with
            # the loaded ``tags`` collection when the ORM deletes the row.
            await self.session.execute(delete(Comment).where(Comment.article_id == article_id))
            await self.session.execute(delete(Favorite).where(Favorite.article_id == article_id))
            await self.session.delete(article)
            await self.session.flush()

    async def find_all(
        self,
        tag: str | None = None,
        author: str | None = None,
        favorited_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Article], int]:
        conditions = []
        if tag is not None:
            conditions.append(Article.tags.any(Tag.name == tag))
        if author is not None:
            conditions.append(Article.author.has(User.username == author))
        if favorited_by is not None:
            favorited_ids = (
                select(Favorite.article_id)
                .join(User, User.id == Favorite.user_id)
                .where(User.username == favorited_by)
            )
            conditions.append(Article.id.in_(favorited_ids))

        return await self._page("list", conditions, limit, offset)

    async def feed(self, follower_id: int, limit: int = 20, offset: int = 0) -> tuple[list[Article], int]:
        followed_ids = select(Follow.following_id).where(Follow.follower_id == follower_id)
        return await self._page("feed", [Article.author_id.in_(followed_ids)], limit, offset)

    async def all_tags(self) -> list[str]:
        with storage_errors("tag", "list"):
            result = await self.session.execute(select(Tag.name).order_by(Tag.name))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_one(self, condition, key) -> Article:
        with storage_errors("article", "get", key=key):
            result = await self.session.execute(_article_query().where(condition))
            article = result.unique().scalar_one_or_none()
        if article is None:
            raise NotFoundError("article")
        return article

    async def _page(self, operation: str, conditions: list, limit: int, offset: int) -> tuple[list[Article], int]:
        """COUNT over the filtered set, then the requested page."""
        with storage_errors("article", operation, limit=limit, offset=offset):
            count_q = select(func.count(Article.id)).where(*conditions)
            total: int = (await self.session.execute(count_q)).scalar_one()

            page_q = _newest_first(_article_query().where(*conditions)).limit(limit).offset(offset)
            result = await self.session.execute(page_q)
            articles = list(result.unique().scalars().all())
        return articles, total

    async def _get_or_create_tags(self, tag_names: Sequence[str]) -> list[Tag]:
        """
        Return Tag rows for *tag_names* in the given order, inserting the
        missing ones inside the caller's SAVEPOINT.
        """
        if not tag_names:
            return []
        result = await self.session.execute(select(Tag).where(Tag.name.in_(tag_names)))
        existing = {tag.name: tag for tag in result.scalars().all()}

        tags: list[Tag] = []
        for name in tag_names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                self.session.add(tag)
                existing[name] = tag
            tags.append(tag)
        await self.session.flush()
        return tags
