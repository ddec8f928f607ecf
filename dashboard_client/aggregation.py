"""
Aggregation engine for the dashboard.

Pure functions over one user's transactions (plain mappings as returned by the
API). Nothing here raises on bad input: a missing or malformed amount counts as
zero, an unknown category or status contributes to no total, and an
unparseable date is left out of the monthly buckets and sorts last by recency.
"""

import calendar
import enum
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .schemas import DashboardView, MonthBucket, Totals

RECENT_LIMIT = 3
TABLE_LIMIT = 10
TOP_SAVINGS_LIMIT = 3

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


class Category(str, enum.Enum):
    REVENUE = "revenue"
    EXPENSE = "expense"
    UNKNOWN = "unknown"


class Status(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"
    UNKNOWN = "unknown"


def _parse_enum(enum_cls, value: Any):
    if isinstance(value, str):
        try:
            return enum_cls(value.lower())
        except ValueError:
            pass
    return enum_cls.UNKNOWN


def parse_category(value: Any) -> Category:
    """Case-insensitive; anything other than revenue/expense is UNKNOWN."""
    return _parse_enum(Category, value)


def parse_status(value: Any) -> Status:
    return _parse_enum(Status, value)


def parse_amount(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def parse_date(value: Any) -> Optional[datetime]:
    """ISO 8601 string or datetime to an aware UTC datetime; None if unusable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# --- Totals ---

def compute_totals(transactions: Iterable[Mapping]) -> Totals:
    revenue = 0.0
    expenses = 0.0
    for tx in transactions:
        category = parse_category(tx.get("category"))
        if category is Category.REVENUE:
            revenue += parse_amount(tx.get("amount"))
        elif category is Category.EXPENSE:
            expenses += parse_amount(tx.get("amount"))
    return Totals(revenue=revenue, expenses=expenses)


def revenue_expense_breakdown(transactions: Iterable[Mapping]) -> List[Dict]:
    """Two-slice data for the revenue vs expenses pie chart."""
    totals = compute_totals(transactions)
    return [
        {"name": "Revenue", "value": totals.revenue},
        {"name": "Expenses", "value": totals.expenses},
    ]


# --- Monthly series ---

def monthly_series(transactions: Iterable[Mapping]) -> List[MonthBucket]:
    """
    Twelve buckets, January first, keyed on the month component only.
    March 2023 and March 2024 both land in bucket 2.
    """
    buckets = [MonthBucket(index=i, month=calendar.month_abbr[i + 1]) for i in range(12)]
    for tx in transactions:
        date = parse_date(tx.get("date"))
        if date is None:
            continue
        bucket = buckets[date.month - 1]
        category = parse_category(tx.get("category"))
        if category is Category.REVENUE:
            bucket.income += parse_amount(tx.get("amount"))
        elif category is Category.EXPENSE:
            bucket.expenses += parse_amount(tx.get("amount"))
    return buckets


def top_months_by_savings(buckets: List[MonthBucket], n: int = TOP_SAVINGS_LIMIT) -> List[MonthBucket]:
    """
    Months with the highest savings, best first.
    Ties keep calendar order; months without activity are still eligible.
    """
    return sorted(buckets, key=lambda b: b.savings, reverse=True)[:n]


# --- Rankings and table ---

def _recency_key(tx: Mapping) -> datetime:
    return parse_date(tx.get("date")) or _UNDATED


def recent_transactions(transactions: Iterable[Mapping], n: int = RECENT_LIMIT) -> List[Dict]:
    """Newest first; equal dates keep their input order."""
    return sorted(transactions, key=_recency_key, reverse=True)[:n]


def format_amount(value: Any) -> str:
    """Amount as the table shows it: 100 rather than 100.0."""
    amount = parse_amount(value)
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


def format_date(value: Any) -> str:
    """en-US short date, e.g. 3/15/2024."""
    date = parse_date(value)
    if date is None:
        return ""
    return f"{date.month}/{date.day}/{date.year}"


def matches_query(tx: Mapping, query: str) -> bool:
    needle = query.lower()
    haystack = (
        str(tx.get("category") or ""),
        str(tx.get("status") or ""),
        format_amount(tx.get("amount")),
        format_date(tx.get("date")),
    )
    return any(needle in field.lower() for field in haystack)


def filter_transactions(transactions: Iterable[Mapping], query: str = "", status: str = "All") -> List[Dict]:
    """
    Case-insensitive substring search over category, status, amount and date,
    optionally narrowed to one status ("All", "paid" or "pending").
    Input order is preserved.
    """
    wanted_status = None if not status or status.lower() == "all" else status.lower()
    result = []
    for tx in transactions:
        if wanted_status is not None and str(tx.get("status") or "").lower() != wanted_status:
            continue
        if query and not matches_query(tx, query):
            continue
        result.append(tx)
    return result


def table_view(transactions: Iterable[Mapping], query: str = "", n: int = TABLE_LIMIT) -> List[Dict]:
    """Rows of the dashboard table: filtered, newest first, first n."""
    return recent_transactions(filter_transactions(transactions, query), n)


# --- Display ---

def format_currency(amount: float) -> str:
    """$1,234.50 or -$1,234.50. The only place amounts get rounded."""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def build_dashboard(transactions: Iterable[Mapping], query: str = "") -> DashboardView:
    transactions = list(transactions)
    monthly = monthly_series(transactions)
    return DashboardView(
        totals=compute_totals(transactions),
        monthly=monthly,
        top_savings=top_months_by_savings(monthly),
        recent=recent_transactions(transactions),
        table=table_view(transactions, query),
        breakdown=revenue_expense_breakdown(transactions),
    )
