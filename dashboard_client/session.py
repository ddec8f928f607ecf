"""Client-side session handling: token storage and display-only token decoding."""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from jose import JWTError, jwt
from pydantic import ValidationError

from .errors import TokenFormatError
from .schemas import UserProfile

logger = logging.getLogger(__name__)


def decode_unverified(token: str) -> Dict:
    """
    Reads the claims of a session token WITHOUT checking its signature or expiry.

    For displaying "who am I" only. Never use the result to decide access to
    anything; the server verifies tokens on every user-scoped request.

    Raises:
        TokenFormatError: the token is not a parseable JWT.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as e:
        raise TokenFormatError(f"Malformed session token: {e}") from e


def profile_from_token(token: str) -> UserProfile:
    claims = decode_unverified(token)
    try:
        return UserProfile(
            name=claims.get("name", ""),
            user_id=claims.get("user_id", ""),
            email=claims.get("email", ""),
        )
    except ValidationError as e:
        raise TokenFormatError(f"Unexpected identity claims in session token: {e}") from e


class TokenStore:
    """
    Keeps the session token in a file so it survives restarts.
    Clearing the file is the whole of "logging out".
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        token = self.path.read_text(encoding="utf-8").strip()
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        logger.info(f"Session token stored at {self.path}")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
