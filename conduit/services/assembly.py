"""
Read assembly: ORM rows -> response models with viewer-relative fields.

A page of articles is assembled with a fixed number of statements no
matter how many articles it holds:

- authors and tags arrive already loaded by the article repository;
- favorite counts come from one grouped COUNT;
- the viewer's favorites and follows are one ``IN`` query each, and no
  query at all for an anonymous viewer.
"""
from collections.abc import Sequence

from conduit.models import Article, Comment, User
from conduit.repositories.favorite import FavoriteRepository
from conduit.repositories.follow import FollowRepository
from conduit.schemas import ArticleResponse, CommentResponse, Profile


def to_profile(user: User, following: bool = False) -> Profile:
    return Profile(
        username=user.username,
        bio=user.bio or "",
        image=user.image or "",
        following=following,
    )


def to_article_response(
    article: Article, favorited: bool, favorites_count: int, following: bool
) -> ArticleResponse:
    return ArticleResponse(
        slug=article.slug,
        title=article.title,
        description=article.description,
        body=article.body,
        tag_list=[tag.name for tag in article.tags],
        created_at=article.created_at,
        updated_at=article.updated_at,
        favorited=favorited,
        favorites_count=favorites_count,
        author=to_profile(article.author, following),
    )


def to_comment_response(comment: Comment, author: User, following: bool = False) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        author=to_profile(author, following),
    )


class ArticleAssembler:
    """Turns loaded ``Article`` rows into ``ArticleResponse`` for one viewer."""

    def __init__(self, favorites: FavoriteRepository, follows: FollowRepository) -> None:
        self.favorites = favorites
        self.follows = follows

    async def one(self, article: Article, viewer_id: int | None) -> ArticleResponse:
        (response,) = await self.many([article], viewer_id)
        return response

    async def many(self, articles: Sequence[Article], viewer_id: int | None) -> list[ArticleResponse]:
        if not articles:
            return []
        article_ids = [article.id for article in articles]
        counts = await self.favorites.count_bulk(article_ids)
        favorited = await self.favorites.exists_bulk(viewer_id, article_ids)
        following = await self.follows.exists_bulk(viewer_id, {article.author_id for article in articles})

        return [
            to_article_response(
                article,
                favorited=favorited[article.id],
                favorites_count=counts[article.id],
                following=following[article.author_id],
            )
            for article in articles
        ]
