from fastapi import APIRouter, Depends

from conduit.dependencies import get_article_service
from conduit.schemas import TagListEnvelope
from conduit.services.article_service import ArticleService

router = APIRouter(prefix="/api/tags", tags=["tags"])

@router.get("", response_model=TagListEnvelope)
async def list_tags(service: ArticleService = Depends(get_article_service)):
    return TagListEnvelope(tags=await service.get_tags())
