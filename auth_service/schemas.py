"""Pydantic schemas for request and response bodies of the auth service."""

from typing import Annotated, Optional

from pydantic import BaseModel, Field, ConfigDict, StringConstraints

# Identity fields must be present and non-blank
IdentityStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# --- User schemas ---

class UserCreate(BaseModel):
    """Data required to register a new user."""
    name: IdentityStr = Field(..., max_length=100)
    user_id: IdentityStr = Field(..., max_length=64)
    email: IdentityStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, description="bcrypt only uses the first 72 bytes")


class UserLogin(BaseModel):
    email: IdentityStr
    password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    """Public profile projection. Never includes the password hash."""
    name: str
    user_id: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# --- Token schemas ---

class LoginResponse(BaseModel):
    """Returned after a successful login."""
    token: str
    user: UserPublic


class TokenPayload(BaseModel):
    """Claims of a verified session token."""
    user_id: str
    email: str
    name: str
    iat: Optional[int] = None
    exp: Optional[int] = None
