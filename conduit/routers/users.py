from fastapi import APIRouter, Body, Depends

from conduit.dependencies import get_auth_service, get_current_user_id
from conduit.schemas import UserCreate, UserEnvelope, UserLogin, UserUpdate
from conduit.services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["users"])

@router.post("/users", status_code=201, response_model=UserEnvelope)
async def register(
    user: UserCreate = Body(..., embed=True),
    service: AuthService = Depends(get_auth_service),
):
    return UserEnvelope(user=await service.register(user))

@router.post("/users/login", response_model=UserEnvelope)
async def login(
    user: UserLogin = Body(..., embed=True),
    service: AuthService = Depends(get_auth_service),
):
    return UserEnvelope(user=await service.login(user.email, user.password))

@router.get("/user", response_model=UserEnvelope)
async def current_user(
    user_id: int = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    return UserEnvelope(user=await service.get_current_user(user_id))

@router.put("/user", response_model=UserEnvelope)
async def update_current_user(
    user: UserUpdate = Body(..., embed=True),
    user_id: int = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    return UserEnvelope(user=await service.update_user(user_id, user))
