"""
Helpers shared by the SQLAlchemy repositories.

Repositories translate store-level outcomes into domain errors:

- a uniqueness violation becomes ``ConflictError`` (or a no-op for
  idempotent edges), decided by the repository that knows the column;
- a missing row becomes ``NotFoundError``;
- anything else from SQLAlchemy becomes a logged ``StorageError`` with the
  original exception chained.
"""
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.errors import StorageError

logger = logging.getLogger(__name__)


class SqlRepository:
    """Base for repositories bound to a request-scoped ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session


@contextmanager
def storage_errors(entity: str, operation: str, **context) -> Iterator[None]:
    """Wrap unclassified SQLAlchemy failures in a logged ``StorageError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "Storage failure entity=%s operation=%s context=%r: %s",
            entity,
            operation,
            context,
            exc.__class__.__name__,
            exc_info=exc,
        )
        raise StorageError(entity, operation, **context) from exc


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for UNIQUE / primary-key violations on SQLite and PostgreSQL."""
    message = str(exc.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def unique_violation_field(exc: IntegrityError, fields: Iterable[str]) -> str | None:
    """
    Return which of *fields* a uniqueness violation refers to.

    SQLite reports ``UNIQUE constraint failed: users.email``; PostgreSQL
    reports ``Key (email)=(...) already exists`` or names the constraint
    (``ix_users_email``, ``users_email_key``).
    """
    if not is_unique_violation(exc):
        return None
    message = str(exc.orig).lower()
    for field in fields:
        if (
            f".{field}" in message
            or f"({field})" in message
            or f"_{field}_key" in message
            or f"_{field}\"" in message
        ):
            return field
    return None
