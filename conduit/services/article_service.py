"""
Content service: article lifecycle, listings, feed and tags.

Design notes
------------
- Mutations load the article first and authorize second, so a missing
  article is always ``NotFoundError`` and never ``ForbiddenError``.
- Slugs come from ``unique_slug``, which only reduces collisions.  A slug
  taken between the check and the insert surfaces as
  ``ConflictError("slug")`` from the repository; the write is retried with
  a fresh candidate up to ``settings.SLUG_MAX_ATTEMPTS`` times.
- Page size is clamped here, not in the transport layer: ``limit <= 0``
  means the default, anything above the cap is silently reduced.
- Responses are assembled by ``ArticleAssembler`` with a constant number
  of queries per page.
"""
import logging

from conduit.config import settings
from conduit.errors import ConflictError, ForbiddenError, ValidationError
from conduit.repositories.article import ArticleRepository
from conduit.schemas import ArticleCreate, ArticleFilters, ArticleList, ArticleResponse, ArticleUpdate, Pagination
from conduit.services.assembly import ArticleAssembler
from conduit.services.slug import unique_slug

logger = logging.getLogger(__name__)

BLANK = "can't be blank"
_CONTENT_FIELDS = ("title", "description", "body")
# Largest offset a signed 64-bit OFFSET clause accepts.
MAX_OFFSET = 2**63 - 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clamp_pagination(limit: int, offset: int) -> tuple[int, int]:
    """Return *limit* and *offset* forced into the served range."""
    if limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    limit = min(limit, settings.MAX_PAGE_SIZE)
    return limit, min(max(offset, 0), MAX_OFFSET)


def normalize_tags(tag_names: list[str] | None) -> list[str]:
    """Trim, drop blanks and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in tag_names or []:
        name = name.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


class ArticleService:

    def __init__(self, articles: ArticleRepository, assembler: ArticleAssembler) -> None:
        self.articles = articles
        self.assembler = assembler

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_article(self, author_id: int, data: ArticleCreate) -> ArticleResponse:
        errors = ValidationError()
        for field in _CONTENT_FIELDS:
            if not getattr(data, field).strip():
                errors.add(field, BLANK)
        if errors.has_errors:
            raise errors

        tag_names = normalize_tags(data.tag_list)
        attempts = settings.SLUG_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            slug = await unique_slug(self.articles, data.title)
            try:
                article = await self.articles.create(
                    author_id=author_id,
                    slug=slug,
                    title=data.title,
                    description=data.description,
                    body=data.body,
                    tag_names=tag_names,
                )
                break
            except ConflictError as exc:
                # A tag row created by a concurrent writer is found on the next pass.
                if exc.field not in ("slug", "tag") or attempt == attempts:
                    raise
                logger.info("%s taken concurrently, retrying (attempt %d/%d)", exc.field, attempt, attempts)

        logger.info("Created article id=%s slug=%s author_id=%s", article.id, article.slug, author_id)
        return await self.assembler.one(article, author_id)

    async def update_article(self, slug: str, requestor_id: int, data: ArticleUpdate) -> ArticleResponse:
        """
        Apply the present fields of *data* to the requestor's own article.

        A title change regenerates the slug; the article's current slug is
        exempt from the collision check.  A present ``tagList`` replaces the
        tag set (``null`` clears it).
        """
        article = await self.articles.get_by_slug(slug)
        self._authorize(article.author_id, requestor_id, "update", slug)

        article_id = article.id
        current_slug = article.slug
        present = data.model_fields_set

        errors = ValidationError()
        changes: dict[str, str] = {}
        for field in _CONTENT_FIELDS:
            if field not in present:
                continue
            value = getattr(data, field)
            if value is None or not value.strip():
                errors.add(field, BLANK)
            else:
                changes[field] = value
        if errors.has_errors:
            raise errors

        tag_names = normalize_tags(data.tag_list) if "tag_list" in present else None
        new_title = changes.get("title") if changes.get("title") != article.title else None

        attempts = settings.SLUG_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            if new_title is not None:
                changes["slug"] = await unique_slug(self.articles, new_title, exempt=current_slug)
            try:
                article = await self.articles.update(article, changes, tag_names)
                break
            except ConflictError as exc:
                retryable = exc.field == "tag" or (exc.field == "slug" and new_title is not None)
                if not retryable or attempt == attempts:
                    raise
                logger.info("%s taken concurrently, retrying (attempt %d/%d)", exc.field, attempt, attempts)
                # The rolled-back SAVEPOINT expired the instance; reload it.
                article = await self.articles.get_by_id(article_id)

        logger.info("Updated article id=%s slug=%s", article_id, article.slug)
        return await self.assembler.one(article, requestor_id)

    async def delete_article(self, slug: str, requestor_id: int) -> None:
        article = await self.articles.get_by_slug(slug)
        self._authorize(article.author_id, requestor_id, "delete", slug)

        await self.articles.delete(article)
        logger.info("Deleted article slug=%s by user_id=%s", slug, requestor_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_article(self, slug: str, viewer_id: int | None = None) -> ArticleResponse:
        article = await self.articles.get_by_slug(slug)
        return await self.assembler.one(article, viewer_id)

    async def list_articles(self, filters: ArticleFilters, viewer_id: int | None = None) -> ArticleList:
        limit, offset = clamp_pagination(filters.limit, filters.offset)
        articles, total = await self.articles.find_all(
            tag=filters.tag,
            author=filters.author,
            favorited_by=filters.favorited,
            limit=limit,
            offset=offset,
        )
        return ArticleList(
            articles=await self.assembler.many(articles, viewer_id),
            articles_count=total,
        )

    async def get_feed(self, viewer_id: int, pagination: Pagination) -> ArticleList:
        limit, offset = clamp_pagination(pagination.limit, pagination.offset)
        articles, total = await self.articles.feed(viewer_id, limit=limit, offset=offset)
        return ArticleList(
            articles=await self.assembler.many(articles, viewer_id),
            articles_count=total,
        )

    async def get_tags(self) -> list[str]:
        return await self.articles.all_tags()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _authorize(author_id: int, requestor_id: int, action: str, slug: str) -> None:
        if author_id != requestor_id:
            logger.warning("Denied %s of article slug=%s to user_id=%s", action, slug, requestor_id)
            raise ForbiddenError("article", action)
