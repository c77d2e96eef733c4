from fastapi import APIRouter, Body, Depends

from conduit.dependencies import (
    PaginationParams,
    get_article_filters,
    get_article_service,
    get_current_user_id,
    get_favorite_service,
    get_optional_user_id,
)
from conduit.schemas import ArticleCreate, ArticleEnvelope, ArticleFilters, ArticleList, ArticleUpdate
from conduit.services.article_service import ArticleService
from conduit.services.favorite_service import FavoriteService

router = APIRouter(prefix="/api/articles", tags=["articles"])

@router.get("", response_model=ArticleList)
async def list_articles(
    filters: ArticleFilters = Depends(get_article_filters),
    viewer_id: int | None = Depends(get_optional_user_id),
    service: ArticleService = Depends(get_article_service),
):
    return await service.list_articles(filters, viewer_id)

# Registered before "/{slug}" so "feed" is not taken for a slug.
@router.get("/feed", response_model=ArticleList)
async def feed(
    pagination: PaginationParams = Depends(),
    user_id: int = Depends(get_current_user_id),
    service: ArticleService = Depends(get_article_service),
):
    return await service.get_feed(user_id, pagination.to_pagination())

@router.post("", status_code=201, response_model=ArticleEnvelope)
async def create_article(
    article: ArticleCreate = Body(..., embed=True),
    user_id: int = Depends(get_current_user_id),
    service: ArticleService = Depends(get_article_service),
):
    return ArticleEnvelope(article=await service.create_article(user_id, article))

@router.get("/{slug}", response_model=ArticleEnvelope)
async def get_article(
    slug: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    service: ArticleService = Depends(get_article_service),
):
    return ArticleEnvelope(article=await service.get_article(slug, viewer_id))

@router.put("/{slug}", response_model=ArticleEnvelope)
async def update_article(
    slug: str,
    article: ArticleUpdate = Body(..., embed=True),
    user_id: int = Depends(get_current_user_id),
    service: ArticleService = Depends(get_article_service),
):
    return ArticleEnvelope(article=await service.update_article(slug, user_id, article))

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    service: ArticleService = Depends(get_article_service),
):
    await service.delete_article(slug, user_id)

@router.post("/{slug}/favorite", response_model=ArticleEnvelope)
async def favorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    service: FavoriteService = Depends(get_favorite_service),
):
    return ArticleEnvelope(article=await service.favorite_article(user_id, slug))

@router.delete("/{slug}/favorite", response_model=ArticleEnvelope)
async def unfavorite_article(
    slug: str,
    user_id: int = Depends(get_current_user_id),
    service: FavoriteService = Depends(get_favorite_service),
):
    return ArticleEnvelope(article=await service.unfavorite_article(user_id, slug))
