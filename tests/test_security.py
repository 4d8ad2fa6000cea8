from datetime import datetime, timedelta, timezone

import pytest

from common.exceptions import AuthenticationError
from common.security import (
    hash_password, verify_password, create_token, decode_token, extract_bearer_token,
)

CLAIMS = {"user_id": 7, "username": "alice", "is_admin": False, "is_approved": True}
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("password", ["secret123", "pässwörd-ünïcode", "long-pass-" * 5])
def test_password_hash_verifies(password):
    hashed = hash_password(password, rounds=4)
    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password(password + "!", hashed)


def test_password_hashes_are_salted():
    assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)


def test_verify_password_rejects_garbage_hash():
    assert verify_password("secret123", "not-a-bcrypt-hash") is False
    assert verify_password("", hash_password("secret123", rounds=4)) is False


def test_token_round_trip_claims():
    token = create_token(CLAIMS, ttl_seconds=60, now=T0)
    claims = decode_token(token, now=T0 + timedelta(seconds=1))
    assert claims.user_id == 7
    assert claims.username == "alice"
    assert claims.is_admin is False
    assert claims.is_approved is True
    assert claims.exp - claims.iat == 60


def test_token_valid_until_expiry_boundary():
    token = create_token(CLAIMS, ttl_seconds=60, now=T0)
    decode_token(token, now=T0 + timedelta(seconds=59))
    with pytest.raises(AuthenticationError):
        decode_token(token, now=T0 + timedelta(seconds=60))
    with pytest.raises(AuthenticationError):
        decode_token(token, now=T0 + timedelta(hours=1))


def test_tampered_token_rejected():
    token = create_token(CLAIMS, ttl_seconds=60, now=T0)
    header, payload, signature = token.split(".")
    flipped = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
    with pytest.raises(AuthenticationError) as exc:
        decode_token(f"{header}.{payload}.{flipped}", now=T0)
    assert exc.value.message == "Invalid or expired token"


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_malformed_token_rejected(token):
    with pytest.raises(AuthenticationError):
        decode_token(token, now=T0)


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc.def", "abc.def"),
    ("bearer xyz", "xyz"),
    ("Basic abc", None),
    ("Bearer", None),
    ("Bearer a b", None),
    (None, None),
])
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected
