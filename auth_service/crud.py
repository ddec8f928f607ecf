"""Credential store: queries and inserts against the 'users' table."""

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import ConflictError, StorageError
from .models import User

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    try:
        return db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        logger.error(f"Database error looking up user by email: {e}", exc_info=True)
        raise StorageError()


def get_user_by_email_or_user_id(db: Session, email: str, user_id: str) -> Optional[User]:
    """Returns any user holding either identifier."""
    try:
        return db.query(User).filter(or_(User.email == email, User.user_id == user_id)).first()
    except SQLAlchemyError as e:
        logger.error(f"Database error looking up user by email/user_id: {e}", exc_info=True)
        raise StorageError()


def create_user(db: Session, user: User) -> User:
    """
    Persists a new user.

    The UNIQUE constraints on email and user_id are the final arbiter when two
    registrations race: the losing insert is rolled back and reported as a
    conflict, so no partial row is ever visible.
    """
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        logger.warning(f"Insert rejected by uniqueness constraint for email: {user.email}")
        raise ConflictError()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during user creation for email {user.email}: {e}", exc_info=True)
        raise StorageError()
    return user
