# tests/test_security.py
import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from auth_service.errors import TokenExpiredError, TokenInvalidError
from auth_service.utils import (
    ALGORITHM,
    create_access_token,
    get_password_hash,
    verify_access_token,
    verify_password,
)

CLAIMS = {"user_id": "u-42", "email": "jane@example.com", "name": "Jane"}


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def test_hash_is_salted_and_one_way():
    first = get_password_hash("s3cret")
    second = get_password_hash("s3cret")

    assert first != "s3cret"
    assert first != second
    assert verify_password("s3cret", first)
    assert verify_password("s3cret", second)


def test_hash_rejects_other_password():
    hashed = get_password_hash("s3cret")

    assert not verify_password("s3cret ", hashed)
    assert not verify_password("S3cret", hashed)


def test_token_round_trip():
    token = create_access_token(CLAIMS)

    payload = verify_access_token(token)

    assert {k: payload[k] for k in CLAIMS} == CLAIMS
    assert payload["exp"] - payload["iat"] == 3600
    assert token.count(".") == 2


def test_expired_token_is_rejected():
    token = create_access_token(CLAIMS, expires_delta=timedelta(seconds=-1))

    with pytest.raises(TokenExpiredError):
        verify_access_token(token)


def test_tampered_payload_is_rejected():
    header, payload, signature = create_access_token(CLAIMS).split(".")
    claims = jwt.get_unverified_claims(f"{header}.{payload}.{signature}")
    forged = _b64({**claims, "user_id": "someone-else"})

    with pytest.raises(TokenInvalidError) as excinfo:
        verify_access_token(f"{header}.{forged}.{signature}")
    assert not isinstance(excinfo.value, TokenExpiredError)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({**CLAIMS, "exp": 4102444800}, "not-the-server-secret", algorithm=ALGORITHM)

    with pytest.raises(TokenInvalidError):
        verify_access_token(token)


def test_token_without_identity_claims_is_rejected():
    token = create_access_token({"user_id": "u-42"})

    with pytest.raises(TokenInvalidError):
        verify_access_token(token)
