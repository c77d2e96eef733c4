"""
Favorite subsystem.

``favoritesCount`` is never stored; every response recounts the edges, so
it always equals the number of distinct users who favorited the article.
"""
import logging
from collections.abc import Iterable

from conduit.repositories.article import ArticleRepository
from conduit.repositories.favorite import FavoriteRepository
from conduit.schemas import ArticleResponse
from conduit.services.assembly import ArticleAssembler

logger = logging.getLogger(__name__)


class FavoriteService:

    def __init__(
        self,
        articles: ArticleRepository,
        favorites: FavoriteRepository,
        assembler: ArticleAssembler,
    ) -> None:
        self.articles = articles
        self.favorites = favorites
        self.assembler = assembler

    async def favorite_article(self, user_id: int, slug: str) -> ArticleResponse:
        article = await self.articles.get_by_slug(slug)
        await self.favorites.create(user_id, article.id)
        logger.info("User id=%s favorited article id=%s", user_id, article.id)
        return await self.assembler.one(article, user_id)

    async def unfavorite_article(self, user_id: int, slug: str) -> ArticleResponse:
        article = await self.articles.get_by_slug(slug)
        await self.favorites.remove(user_id, article.id)
        logger.info("User id=%s unfavorited article id=%s", user_id, article.id)
        return await self.assembler.one(article, user_id)

    async def is_favorited(self, user_id: int | None, article_id: int) -> bool:
        return await self.favorites.exists(user_id, article_id)

    async def favorited_bulk(self, user_id: int | None, article_ids: Iterable[int]) -> dict[int, bool]:
        return await self.favorites.exists_bulk(user_id, article_ids)
