"""
Domain errors.

Every failure the service layer reports is one of the classes below.  Each
carries a ``kind`` tag so the transport layer can map it to a response with
a plain dictionary lookup instead of inspecting messages.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"
    STORAGE = "storage"


class DomainError(Exception):
    """Base class for all errors raised by repositories and services."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def field_errors(self) -> dict[str, list[str]]:
        """Field -> messages view used to build error response bodies."""
        return {"body": [self.message]}


class ValidationError(DomainError):
    """Caller-supplied input broke a business rule."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: dict[str, list[str]] | None = None) -> None:
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in (errors or {}).items()}
        super().__init__("validation failed")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, []).append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __str__(self) -> str:
        for field, messages in self.errors.items():
            return f"validation failed: {field} {messages[0]}"
        return self.message

    def field_errors(self) -> dict[str, list[str]]:
        return self.errors


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")

    def field_errors(self) -> dict[str, list[str]]:
        return {self.entity: ["not found"]}


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is already taken")

    def field_errors(self) -> dict[str, list[str]]:
        return {self.field: ["has already been taken"]}


class ForbiddenError(DomainError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, entity: str, action: str) -> None:
        self.entity = entity
        self.action = action
        super().__init__(f"not allowed to {action} this {entity}")

    def field_errors(self) -> dict[str, list[str]]:
        return {self.entity: ["forbidden"]}


class UnauthenticatedError(DomainError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, reason: str = "missing or invalid token") -> None:
        self.reason = reason
        super().__init__(reason)

    def field_errors(self) -> dict[str, list[str]]:
        return {"token": [self.reason]}


class InvalidCredentialsError(UnauthenticatedError):
    """Login failed; deliberately silent about which credential was wrong."""

    def __init__(self) -> None:
        super().__init__("invalid email or password")

    def field_errors(self) -> dict[str, list[str]]:
        return {"email or password": ["is invalid"]}


class StorageError(DomainError):
    """
    Unclassified store failure.

    The driver exception is chained as ``__cause__``; the message itself
    only names the entity and operation so nothing internal leaks out.
    """

    kind = ErrorKind.STORAGE

    def __init__(self, entity: str, operation: str, **context) -> None:
        self.entity = entity
        self.operation = operation
        self.context = context
        super().__init__(f"storage failure during {operation} on {entity}")

    def field_errors(self) -> dict[str, list[str]]:
        return {"server": ["internal error"]}
