"""
Password hashing and bearer-token primitives.

Passwords are hashed with bcrypt (salted, cost from ``settings.BCRYPT_ROUNDS``).
Tokens are HS256 JWTs signed with ``settings.SECRET_KEY`` carrying the user
id as ``sub`` plus ``iat`` and ``exp`` claims.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from conduit.config import settings
from conduit.errors import UnauthenticatedError

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of *password* against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password.
        return False


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Verify *token* and return the user id it was issued for.

    Raises ``UnauthenticatedError`` for a bad signature, an algorithm other
    than ``settings.JWT_ALGORITHM``, an expired token, or a missing or
    non-numeric subject.
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise UnauthenticatedError("token has expired") from exc
    except JWTError as exc:
        raise UnauthenticatedError("invalid token") from exc

    subject = claims.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise UnauthenticatedError("invalid token subject") from exc
    if user_id <= 0:
        raise UnauthenticatedError("invalid token subject")
    return user_id
