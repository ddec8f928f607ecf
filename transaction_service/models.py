"""SQLAlchemy model for the 'transactions' table."""

from sqlalchemy import Column, Integer, String, Float, DateTime

from .db import Base


class Transaction(Base):
    """
    A single revenue or expense entry.
    Rows are written by external tooling; this service only reads them.
    """
    __tablename__ = "transactions"

    # Numeric id supplied by the producer, not autoincremented here
    id = Column(Integer, primary_key=True, autoincrement=False)

    date = Column(DateTime, nullable=False, index=True)

    # Magnitude only; direction comes from the category
    amount = Column(Float, nullable=False)

    category = Column(String(20), nullable=False)  # revenue, expense
    status = Column(String(20), nullable=False)    # paid, pending

    # External handle of the owning user (users.user_id in the auth service)
    user_id = Column(String(64), nullable=False, index=True)

    user_profile = Column(String(500), nullable=True)
