"""
FastAPI dependencies: viewer identity, list parameters and service wiring.

All repositories in one request share the session yielded by ``get_db``
(FastAPI caches a dependency per request), so one request is one
transaction.
"""
import logging

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.config import settings
from conduit.database import get_db
from conduit.errors import UnauthenticatedError
from conduit.repositories import (
    SqlArticleRepository,
    SqlCommentRepository,
    SqlFavoriteRepository,
    SqlFollowRepository,
    SqlUserRepository,
)
from conduit.schemas import ArticleFilters, Pagination
from conduit.services.article_service import ArticleService
from conduit.services.assembly import ArticleAssembler
from conduit.services.auth_service import AuthService
from conduit.services.comment_service import CommentService
from conduit.services.favorite_service import FavoriteService
from conduit.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

_TOKEN_SCHEMES = ("token", "bearer")


# ---------------------------------------------------------------------------
# Viewer identity
# ---------------------------------------------------------------------------

def _extract_token(authorization: str | None) -> str | None:
    """Return the token from ``Token <jwt>`` / ``Bearer <jwt>``, else None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() not in _TOKEN_SCHEMES or not token:
        return None
    return token


async def get_current_user_id(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> int:
    """
    Mandatory auth: a missing or invalid token is ``UnauthenticatedError``.

    The token subject must still name a stored user.
    """
    token = _extract_token(authorization)
    if token is None:
        raise UnauthenticatedError("missing authorization token")
    user_id = AuthService.validate_token(token)
    if user_id not in await SqlUserRepository(db).get_many([user_id]):
        logger.warning("Rejected token for missing user_id=%s", user_id)
        raise UnauthenticatedError("unknown user")
    return user_id


async def get_optional_user_id(authorization: str | None = Header(None)) -> int | None:
    """Optional auth: any token problem means an anonymous viewer."""
    token = _extract_token(authorization)
    if token is None:
        return None
    try:
        return AuthService.validate_token(token)
    except UnauthenticatedError as exc:
        logger.debug("Ignoring unusable token on optional-auth route: %s", exc.reason)
        return None


# ---------------------------------------------------------------------------
# List parameters
# ---------------------------------------------------------------------------

def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class PaginationParams:
    """
    Reusable dependency that parses ``limit`` / ``offset`` query values.

    Both arrive as raw strings; absent or unparseable values fall back to
    ``settings.DEFAULT_PAGE_SIZE`` and 0.  Range clamping is the article
    service's job, so out-of-range integers pass through untouched.
    """

    def __init__(
        self,
        limit: str | None = Query(None, description="Page size (capped by the server)."),
        offset: str | None = Query(None, description="Number of articles to skip."),
    ) -> None:
        self.limit = _parse_int(limit, settings.DEFAULT_PAGE_SIZE)
        self.offset = _parse_int(offset, 0)

    def to_pagination(self) -> Pagination:
        return Pagination(limit=self.limit, offset=self.offset)


def get_article_filters(
    pagination: PaginationParams = Depends(),
    tag: str | None = Query(None),
    author: str | None = Query(None),
    favorited: str | None = Query(None),
) -> ArticleFilters:
    return ArticleFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        tag=tag,
        author=author,
        favorited=favorited,
    )


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

def _assembler(db: AsyncSession) -> ArticleAssembler:
    return ArticleAssembler(SqlFavoriteRepository(db), SqlFollowRepository(db))


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(SqlUserRepository(db))


def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(SqlUserRepository(db), SqlFollowRepository(db))


def get_article_service(db: AsyncSession = Depends(get_db)) -> ArticleService:
    return ArticleService(SqlArticleRepository(db), _assembler(db))


def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(SqlArticleRepository(db), SqlFavoriteRepository(db), _assembler(db))


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(
        SqlCommentRepository(db),
        SqlArticleRepository(db),
        SqlUserRepository(db),
        SqlFollowRepository(db),
    )
