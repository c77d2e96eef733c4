"""
Identity service: registration, login, tokens and self-update.

Design notes
------------
- Emails are stored trimmed and lower-cased; usernames are trimmed.  Both
  are unique, and the repository reports which one collided.
- Login never says which credential was wrong: an unknown email and a bad
  password both raise ``InvalidCredentialsError``.
- Every authenticated read or update of the current user returns a freshly
  issued token (sliding expiry).
"""
import logging

from conduit.errors import InvalidCredentialsError, NotFoundError, ValidationError
from conduit.models import User
from conduit.repositories.user import UserRepository
from conduit.schemas import UserCreate, UserResponse, UserUpdate
from conduit.security import (
    BCRYPT_MAX_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

BLANK = "can't be blank"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _check_password(password: str, errors: ValidationError) -> None:
    if not password.strip():
        errors.add("password", BLANK)
    elif len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        errors.add("password", f"is too long (maximum is {BCRYPT_MAX_BYTES} bytes)")


class AuthService:

    def __init__(self, users: UserRepository) -> None:
        self.users = users

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    @staticmethod
    def generate_token(user_id: int) -> str:
        return create_access_token(user_id)

    @staticmethod
    def validate_token(token: str) -> int:
        """Return the user id carried by *token*; ``UnauthenticatedError`` otherwise."""
        return decode_access_token(token)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def register(self, data: UserCreate) -> UserResponse:
        """
        Create an account and return it with a token.

        All blank fields are reported together; a taken email or username
        raises ``ConflictError`` naming the field.
        """
        email = _normalize_email(data.email)
        username = data.username.strip()

        errors = ValidationError()
        if not username:
            errors.add("username", BLANK)
        if not email:
            errors.add("email", BLANK)
        _check_password(data.password, errors)
        if errors.has_errors:
            raise errors

        user = await self.users.create(email, username, hash_password(data.password))
        logger.info("Registered user id=%s username=%s", user.id, user.username)
        return self._response(user)

    async def login(self, email: str, password: str) -> UserResponse:
        try:
            user = await self.users.get_by_email(_normalize_email(email))
        except NotFoundError as exc:
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError() from exc

        if not verify_password(password, user.password_hash):
            logger.info("Login failed: bad password for user id=%s", user.id)
            raise InvalidCredentialsError()

        return self._response(user)

    async def get_current_user(self, user_id: int) -> UserResponse:
        user = await self.users.get_by_id(user_id)
        return self._response(user)

    async def update_user(self, user_id: int, data: UserUpdate) -> UserResponse:
        """
        Apply only the fields present in *data*.

        A present email, username or password must not be blank; a present
        ``null`` bio or image clears it.
        """
        user = await self.users.get_by_id(user_id)
        present = data.model_fields_set

        errors = ValidationError()
        changes: dict[str, str] = {}

        if "email" in present:
            email = _normalize_email(data.email or "")
            if not email:
                errors.add("email", BLANK)
            changes["email"] = email
        if "username" in present:
            username = (data.username or "").strip()
            if not username:
                errors.add("username", BLANK)
            changes["username"] = username
        if "password" in present:
            _check_password(data.password or "", errors)
            if not errors.errors.get("password"):
                changes["password_hash"] = hash_password(data.password)
        for field in ("bio", "image"):
            if field in present:
                changes[field] = getattr(data, field) or ""

        if errors.has_errors:
            raise errors

        if changes:
            user = await self.users.update(user, changes)
            logger.info("Updated user id=%s fields=%s", user_id, sorted(changes))
        return self._response(user)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _response(self, user: User) -> UserResponse:
        return UserResponse(
            email=user.email,
            token=self.generate_token(user.id),
            username=user.username,
            bio=user.bio or "",
            image=user.image or "",
        )
