"""Utility functions for the auth service: password hashing and JWT handling."""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from passlib.context import CryptContext
from jose import ExpiredSignatureError, JWTError, jwt
from dotenv import load_dotenv

from .errors import TokenExpiredError, TokenInvalidError

load_dotenv()

logger = logging.getLogger(__name__)

# --- Security settings ---
SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not SECRET_KEY:
    logger.warning("JWT_SECRET_KEY is not set. Falling back to an insecure development key.")
    SECRET_KEY = "insecure_development_key_change_me"

ALGORITHM = "HS256"

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

# Claims a session token must carry
TOKEN_CLAIMS = ("user_id", "email", "name")


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a plaintext password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hashes a plaintext password with a salted bcrypt digest."""
    return pwd_context.hash(password)

# --- JWT helpers ---
def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issues a signed session token.

    Args:
        data: Identity claims to embed, e.g. {'user_id': ..., 'email': ..., 'name': ...}.
        expires_delta: Token lifetime. Defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        The encoded JWT string.
    """
    to_encode = data.copy()
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"iat": issued_at, "exp": issued_at + expires_delta})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def verify_access_token(token: str) -> Dict:
    """
    Checks the signature and expiry of a session token.

    This is the only path that proves a token is authentic. Anything that
    grants access to user data must go through it.

    Raises:
        TokenExpiredError: the current time is at or past 'exp'.
        TokenInvalidError: bad signature, malformed token or missing claims.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.warning("Token verification failed: token has expired.")
        raise TokenExpiredError()
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise TokenInvalidError()

    exp = payload.get("exp")
    if exp is None:
        raise TokenInvalidError()
    # The instant 'exp' itself already counts as expired
    if datetime.now(timezone.utc) >= datetime.fromtimestamp(exp, tz=timezone.utc):
        logger.warning("Token verification failed: token has expired.")
        raise TokenExpiredError()

    if any(not payload.get(claim) for claim in TOKEN_CLAIMS):
        logger.warning("Token verification failed: identity claims missing.")
        raise TokenInvalidError()

    return payload
