"""Client side of the finance dashboard: API access, session handling and aggregates."""

from .client import DashboardClient
from .errors import ApiError, DashboardClientError, NetworkError, TokenFormatError
from .session import TokenStore, decode_unverified

__all__ = [
    "DashboardClient",
    "TokenStore",
    "decode_unverified",
    "DashboardClientError",
    "NetworkError",
    "ApiError",
    "TokenFormatError",
]
