"""Registration and login flows of the auth service."""

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from . import crud, schemas
from .errors import ConflictError, InvalidCredentialsError
from .models import User
from .utils import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


def register_user(db: Session, user_in: schemas.UserCreate) -> User:
    """
    Creates a user unless the email or user_id is already taken.

    Raises ConflictError without revealing which identifier collided.
    """
    logger.info(f"Registration attempt for email: {user_in.email}")
    existing = crud.get_user_by_email_or_user_id(db, user_in.email, user_in.user_id)
    if existing:
        logger.warning(f"Registration failed: email {user_in.email} or user_id {user_in.user_id} already exists.")
        raise ConflictError()

    new_user = User(
        name=user_in.name,
        user_id=user_in.user_id,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
    )
    user = crud.create_user(db, new_user)
    logger.info(f"User created with user_id: {user.user_id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> Tuple[str, User]:
    """
    Checks the credentials and issues a session token.

    Returns the token and the user. Unknown email and wrong password raise the
    same InvalidCredentialsError.
    """
    logger.info(f"Login attempt for user: {email}")
    user = crud.get_user_by_email(db, email)

    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed for user: {email}")
        raise InvalidCredentialsError()

    token_data = {
        "user_id": user.user_id,
        "email": user.email,
        "name": user.name,
    }
    access_token = create_access_token(data=token_data)
    logger.info(f"Login successful for user_id: {user.user_id}")
    return access_token, user
