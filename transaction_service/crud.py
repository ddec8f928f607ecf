"""Read-only queries over the 'transactions' table."""

from typing import List

from sqlalchemy.orm import Session

from .models import Transaction


def list_all(db: Session) -> List[Transaction]:
    """Every transaction in the store, regardless of owner."""
    return db.query(Transaction).order_by(Transaction.id).all()


def list_for_user(db: Session, user_id: str) -> List[Transaction]:
    return db.query(Transaction).filter(Transaction.user_id == user_id).order_by(Transaction.id).all()
