"""Token signing/verification and password hashing."""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from conduit.config import settings
from conduit.errors import UnauthenticatedError
from conduit.security import create_access_token, decode_access_token, hash_password, verify_password


def _sign(claims: dict, key: str | None = None, algorithm: str | None = None) -> str:
    return jwt.encode(claims, key or settings.SECRET_KEY, algorithm=algorithm or settings.JWT_ALGORITHM)


def _claims(sub="7", exp_delta: timedelta = timedelta(minutes=5)) -> dict:
    now = datetime.now(timezone.utc)
    claims = {"iat": int(now.timestamp()), "exp": int((now + exp_delta).timestamp())}
    if sub is not None:
        claims["sub"] = sub
    return claims


def test_token_round_trip():
    token = create_access_token(42)
    assert decode_access_token(token) == 42


def test_token_carries_standard_claims():
    claims = jwt.get_unverified_claims(create_access_token(5))
    assert claims["sub"] == "5"
    assert claims["exp"] > claims["iat"]
    expected_lifetime = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert abs((claims["exp"] - claims["iat"]) - expected_lifetime) <= 1


def test_expired_token_rejected():
    token = create_access_token(1, expires_delta=timedelta(seconds=-10))
    with pytest.raises(UnauthenticatedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.reason == "token has expired"


def test_wrong_signature_rejected():
    token = _sign(_claims(), key="some-other-secret")
    with pytest.raises(UnauthenticatedError) as exc_info:
        decode_access_token(token)
    assert exc_info.value.reason == "invalid token"


def test_wrong_algorithm_rejected():
    """A token signed with the right key but another algorithm is refused."""
    token = _sign(_claims(), algorithm="HS512")
    with pytest.raises(UnauthenticatedError):
        decode_access_token(token)


@pytest.mark.parametrize("sub", [None, "abc", "0", "-3"])
def test_bad_subject_rejected(sub):
    with pytest.raises(UnauthenticatedError):
        decode_access_token(_sign(_claims(sub=sub)))


def test_garbage_token_rejected():
    with pytest.raises(UnauthenticatedError):
        decode_access_token("definitely.not.ajwt")


def test_password_hash_and_verify():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_password_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_verify_against_malformed_hash_is_false():
    assert verify_password("anything", "not-a-bcrypt-hash") is False
