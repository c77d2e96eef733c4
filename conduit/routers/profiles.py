from fastapi import APIRouter, Depends

from conduit.dependencies import get_current_user_id, get_optional_user_id, get_profile_service
from conduit.schemas import ProfileEnvelope
from conduit.services.profile_service import ProfileService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    viewer_id: int | None = Depends(get_optional_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return ProfileEnvelope(profile=await service.get_profile(username, viewer_id))

@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow(
    username: str,
    user_id: int = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return ProfileEnvelope(profile=await service.follow_user(user_id, username))

@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow(
    username: str,
    user_id: int = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
):
    return ProfileEnvelope(profile=await service.unfollow_user(user_id, username))
