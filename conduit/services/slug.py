"""
Slug derivation for articles.

``slugify`` is pure.  ``unique_slug`` asks the repository which candidates
are free, so its answer is advisory: two concurrent writers can pick the
same candidate, and the unique index on ``articles.slug`` decides.  The
article service retries on the resulting ``ConflictError``.
"""
import re
import secrets
import unicodedata

from conduit.repositories.article import ArticleRepository

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

# Titles with no usable characters (all symbols or emoji) still need a slug.
FALLBACK_SLUG = "article"

# Numbered candidates tried before switching to a random suffix.
MAX_NUMBERED_SUFFIX = 999


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase ASCII slug derived from *text*."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-") or FALLBACK_SLUG


def random_suffix() -> str:
    return secrets.token_hex(4)


async def unique_slug(articles: ArticleRepository, title: str, exempt: str | None = None) -> str:
    """
    Return the first free slug among ``base``, ``base-1`` ... ``base-999``,
    falling back to ``base-<8 hex chars>``.

    *exempt* is the caller's own current slug; it never counts as taken,
    so re-saving an article under its existing title keeps its slug.
    """
    base = slugify(title)
    for n in range(MAX_NUMBERED_SUFFIX + 1):
        candidate = base if n == 0 else f"{base}-{n}"
        if candidate == exempt or not await articles.slug_exists(candidate):
            return candidate
    return f"{base}-{random_suffix()}"
