"""
Profile and follow-graph service.

Follow and unfollow are idempotent and return the profile with the
post-operation ``following`` value, so callers need no second read.
"""
import logging

from conduit.errors import NotFoundError, ValidationError
from conduit.models import User
from conduit.repositories.follow import FollowRepository
from conduit.repositories.user import UserRepository
from conduit.schemas import Profile
from conduit.services.assembly import to_profile

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(self, users: UserRepository, follows: FollowRepository) -> None:
        self.users = users
        self.follows = follows

    async def get_profile(self, username: str, viewer_id: int | None = None) -> Profile:
        user = await self._resolve(username)
        following = await self.follows.exists(viewer_id, user.id)
        return to_profile(user, following)

    async def follow_user(self, follower_id: int, username: str) -> Profile:
        user = await self._resolve(username)
        if user.id == follower_id:
            logger.warning("Rejected self-follow by user_id=%s", follower_id)
            raise ValidationError.single("profile", "cannot follow yourself")

        await self.follows.create(follower_id, user.id)
        logger.info("User id=%s follows user id=%s", follower_id, user.id)
        return to_profile(user, following=True)

    async def unfollow_user(self, follower_id: int, username: str) -> Profile:
        user = await self._resolve(username)
        await self.follows.remove(follower_id, user.id)
        logger.info("User id=%s unfollowed user id=%s", follower_id, user.id)
        return to_profile(user, following=False)

    async def _resolve(self, username: str) -> User:
        try:
            return await self.users.get_by_username(username)
        except NotFoundError as exc:
            raise NotFoundError("profile") from exc
