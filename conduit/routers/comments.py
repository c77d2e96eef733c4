from fastapi import APIRouter, Body, Depends

from conduit.dependencies import get_comment_service, get_current_user_id, get_optional_user_id
from conduit.schemas import CommentCreate, CommentEnvelope, CommentListEnvelope
from conduit.services.comment_service import CommentService

router = APIRouter(prefix="/api/articles/{slug}/comments", tags=["comments"])

@router.get("", response_model=CommentListEnvelope)
async def list_comments(
    slug: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    service: CommentService = Depends(get_comment_service),
):
    return CommentListEnvelope(comments=await service.list_comments(slug, viewer_id))

@router.post("", status_code=201, response_model=CommentEnvelope)
async def add_comment(
    slug: str,
    comment: CommentCreate = Body(..., embed=True),
    user_id: int = Depends(get_current_user_id),
    service: CommentService = Depends(get_comment_service),
):
    return CommentEnvelope(comment=await service.create_comment(slug, user_id, comment))

@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    slug: str,
    comment_id: int,
    user_id: int = Depends(get_current_user_id),
    service: CommentService = Depends(get_comment_service),
):
    await service.delete_comment(slug, comment_id, user_id)
