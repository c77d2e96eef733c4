import logging
from abc import ABC, abstractmethod

from sqlalchemy import select
from sqlalchemy.orm import joinedload

from conduit.errors import NotFoundError
from conduit.models import Comment
from conduit.repositories.base import SqlRepository, storage_errors

logger = logging.getLogger(__name__)


class CommentRepository(ABC):
    """Persistence contract for comments."""

    @abstractmethod
    async def create(self, article_id: int, author_id: int, body: str) -> Comment:
        ...

    @abstractmethod
    async def get_by_id(self, comment_id: int) -> Comment:
        ...

    @abstractmethod
    async def list_for_article(self, article_id: int) -> list[Comment]:
        """Comments on the article, newest first, authors loaded."""

    @abstractmethod
    async def delete(self, comment: Comment) -> None:
        ...


class SqlCommentRepository(SqlRepository, CommentRepository):

    async def create(self, article_id: int, author_id: int, body: str) -> Comment:
        comment = Comment(article_id=article_id, author_id=author_id, body=body)
        with storage_errors("comment", "create", article_id=article_id, author_id=author_id):
            self.session.add(comment)
            await self.session.flush()
        return comment

    async def get_by_id(self, comment_id: int) -> Comment:
        with storage_errors("comment", "get", comment_id=comment_id):
            result = await self.session.execute(select(Comment).where(Comment.id == comment_id))
            comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("comment")
        return comment

    async def list_for_article(self, article_id: int) -> list[Comment]:
        q = (
            select(Comment)
            .where(Comment.article_id == article_id)
            .options(joinedload(Comment.author))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        with storage_errors("comment", "list", article_id=article_id):
            result = await self.session.execute(q)
        return list(result.unique().scalars().all())

    async def delete(self, comment: Comment) -> None:
        with storage_errors("comment", "delete", comment_id=comment.id):
            await self.session.delete(comment)
            await self.session.flush()
