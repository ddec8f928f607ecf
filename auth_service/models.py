"""SQLAlchemy model for the 'users' table."""

from sqlalchemy import Column, Integer, String

from .db import Base


class User(Base):
    """
    Identity record of a dashboard user.
    Stores the credentials used at login; the password only as a bcrypt hash.
    """
    __tablename__ = "users"

    # Internal row id, never exposed to clients
    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False)

    # External handle; transactions reference users through it
    user_id = Column(String(64), unique=True, index=True, nullable=False)

    # Login key
    email = Column(String(255), unique=True, index=True, nullable=False)

    hashed_password = Column(String(255), nullable=False)
