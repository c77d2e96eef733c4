"""
Comment service: comments scoped to an existing article.

Design notes
------------
- The article is resolved first on every path, so an unknown slug is
  reported as article ``NotFoundError`` before anything else.
- Deletion checks, in order: the article exists, the comment exists *on
  that article*, the requestor wrote it.  A comment id that belongs to a
  different article is reported as comment ``NotFoundError``.
"""
import logging

from conduit.errors import ForbiddenError, NotFoundError, ValidationError
from conduit.repositories.article import ArticleRepository
from conduit.repositories.comment import CommentRepository
from conduit.repositories.follow import FollowRepository
from conduit.repositories.user import UserRepository
from conduit.schemas import CommentCreate, CommentResponse
from conduit.services.assembly import to_comment_response

logger = logging.getLogger(__name__)


class CommentService:

    def __init__(
        self,
        comments: CommentRepository,
        articles: ArticleRepository,
        users: UserRepository,
        follows: FollowRepository,
    ) -> None:
        self.comments = comments
        self.articles = articles
        self.users = users
        self.follows = follows

    async def create_comment(self, slug: str, author_id: int, data: CommentCreate) -> CommentResponse:
        body = data.body.strip()
        if not body:
            raise ValidationError.single("body", "can't be blank")

        article = await self.articles.get_by_slug(slug)
        author = await self.users.get_by_id(author_id)
        comment = await self.comments.create(article.id, author_id, body)
        logger.info("Created comment id=%s on article id=%s by user_id=%s", comment.id, article.id, author_id)
        # Nobody follows themselves.
        return to_comment_response(comment, author, following=False)

    async def list_comments(self, slug: str, viewer_id: int | None = None) -> list[CommentResponse]:
        article = await self.articles.get_by_slug(slug)
        comments = await self.comments.list_for_article(article.id)
        following = await self.follows.exists_bulk(viewer_id, {c.author_id for c in comments})
        return [
            to_comment_response(comment, comment.author, following[comment.author_id])
            for comment in comments
        ]

    async def delete_comment(self, slug: str, comment_id: int, requestor_id: int) -> None:
        article = await self.articles.get_by_slug(slug)
        comment = await self.comments.get_by_id(comment_id)
        if comment.article_id != article.id:
            raise NotFoundError("comment")
        if comment.author_id != requestor_id:
            logger.warning("Denied delete of comment id=%s to user_id=%s", comment_id, requestor_id)
            raise ForbiddenError("comment", "delete")

        await self.comments.delete(comment)
        logger.info("Deleted comment id=%s on article id=%s", comment_id, article.id)
