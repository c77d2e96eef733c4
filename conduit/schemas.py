from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire (``tagList``, ``favoritesCount``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- User ---

class UserCreate(CamelModel):
    # Missing fields default to blank so the service reports them as
    # field-level validation errors instead of a schema error.
    username: str = ""
    email: str = ""
    password: str = ""


class UserLogin(CamelModel):
    email: str = ""
    password: str = ""


class UserUpdate(CamelModel):
    """
    Partial update: only keys present in the request are applied.

    Presence is read from ``model_fields_set``; an omitted key and an
    explicit empty string are different things.
    """

    email: str | None = None
    username: str | None = None
    password: str | None = None
    bio: str | None = None
    image: str | None = None


class UserResponse(CamelModel):
    email: str
    token: str
    username: str
    bio: str
    image: str


class Profile(CamelModel):
    username: str
    bio: str
    image: str
    following: bool = False


# --- Article ---

class ArticleCreate(CamelModel):
    title: str = ""
    description: str = ""
    body: str = ""
    tag_list: list[str] = Field(default_factory=list)


class ArticleUpdate(CamelModel):
    title: str | None = None
    description: str | None = None
    body: str | None = None
    tag_list: list[str] | None = None


class ArticleResponse(CamelModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    favorited: bool = False
    favorites_count: int = 0
    author: Profile


class ArticleList(CamelModel):
    articles: list[ArticleResponse]
    articles_count: int


# --- Comment ---

class CommentCreate(CamelModel):
    body: str = ""


class CommentResponse(CamelModel):
    id: int
    body: str
    created_at: datetime
    updated_at: datetime
    author: Profile


# --- Listing ---

class Pagination(CamelModel):
    limit: int = 20
    offset: int = 0


class ArticleFilters(Pagination):
    """Conjunctive filters; ``None`` means no constraint on that dimension."""

    tag: str | None = None
    author: str | None = None
    favorited: str | None = None


# --- Response envelopes ---

class UserEnvelope(CamelModel):
    user: UserResponse


class ProfileEnvelope(CamelModel):
    profile: Profile


class ArticleEnvelope(CamelModel):
    article: ArticleResponse


class CommentEnvelope(CamelModel):
    comment: CommentResponse


class CommentListEnvelope(CamelModel):
    comments: list[CommentResponse]


class TagListEnvelope(CamelModel):
    tags: list[str]
