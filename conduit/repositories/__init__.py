from conduit.repositories.article import ArticleRepository, SqlArticleRepository
from conduit.repositories.comment import CommentRepository, SqlCommentRepository
from conduit.repositories.favorite import FavoriteRepository, SqlFavoriteRepository
from conduit.repositories.follow import FollowRepository, SqlFollowRepository
from conduit.repositories.user import SqlUserRepository, UserRepository

__all__ = [
    "ArticleRepository",
    "CommentRepository",
    "FavoriteRepository",
    "FollowRepository",
    "SqlArticleRepository",
    "SqlCommentRepository",
    "SqlFavoriteRepository",
    "SqlFollowRepository",
    "SqlUserRepository",
    "UserRepository",
]
