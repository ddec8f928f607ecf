"""Pydantic models for the dashboard's computed view."""

from typing import Dict, List

from pydantic import BaseModel, computed_field


class UserProfile(BaseModel):
    """Display identity read from the session token."""
    name: str
    user_id: str
    email: str


class Totals(BaseModel):
    revenue: float = 0.0
    expenses: float = 0.0

    @computed_field
    @property
    def balance(self) -> float:
        return self.revenue - self.expenses

    # No separate savings model yet; savings mirror the balance
    @computed_field
    @property
    def savings(self) -> float:
        return self.balance


class MonthBucket(BaseModel):
    """Income and expenses of one calendar month, all years merged."""
    index: int  # 0 = January
    month: str  # short month name
    income: float = 0.0
    expenses: float = 0.0

    @computed_field
    @property
    def savings(self) -> float:
        return self.income - self.expenses


class DashboardView(BaseModel):
    """Everything the dashboard pages render, recomputed on every load."""
    totals: Totals
    monthly: List[MonthBucket]
    top_savings: List[MonthBucket]
    recent: List[Dict]
    table: List[Dict]
    breakdown: List[Dict]
