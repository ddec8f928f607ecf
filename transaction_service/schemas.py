"""Pydantic schemas for the transaction service."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionResponse(BaseModel):
    """A transaction as returned to clients. 'date' serialises to ISO 8601."""
    id: int
    date: datetime
    amount: float
    category: str
    status: str
    user_id: str
    user_profile: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
