"""Async HTTP client for the dashboard, talking to the API gateway."""

import json
import logging
from typing import Dict, List, Optional

import httpx

from . import aggregation
from .errors import ApiError, NetworkError
from .schemas import DashboardView, UserProfile
from .session import TokenStore, profile_from_token

logger = logging.getLogger(__name__)


class DashboardClient:
    """
    Logs in, remembers the session token and loads the current user's data.

    Every call is a single attempt: transport failures surface as NetworkError
    and HTTP errors as ApiError carrying the server's message.
    """

    def __init__(self, base_url: str, token_store: TokenStore, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(base_url=self.base_url, transport=self._transport) as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.RequestError as exc:
                logger.error(f"{method} {path} failed: {exc}")
                raise NetworkError()

        if response.is_error:
            try:
                message = response.json().get("message") or response.reason_phrase
            except (json.JSONDecodeError, AttributeError):
                message = response.reason_phrase
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            raise ApiError(response.status_code, message)
        return response

    # --- Account ---

    async def register(self, name: str, user_id: str, email: str, password: str) -> str:
        response = await self._request(
            "POST",
            "/api/users/register",
            json={"name": name, "user_id": user_id, "email": email, "password": password},
        )
        return response.json()["message"]

    async def login(self, email: str, password: str) -> UserProfile:
        """Stores the issued token and returns the identity it carries."""
        response = await self._request("POST", "/api/users/login", json={"email": email, "password": password})
        token = response.json()["token"]
        self.token_store.save(token)
        return profile_from_token(token)

    def current_user(self) -> Optional[UserProfile]:
        """Identity for display, read from the stored token without verifying it."""
        token = self.token_store.load()
        if token is None:
            return None
        return profile_from_token(token)

    def logout(self) -> None:
        # Only the local copy goes away; the token itself stays valid until it expires
        self.token_store.clear()

    # --- Data ---

    async def fetch_transactions(self) -> List[Dict]:
        """The current user's transactions. Empty when nobody is logged in."""
        token = self.token_store.load()
        if token is None:
            return []
        user = profile_from_token(token)
        response = await self._request("GET", "/api/transactions", headers={"Authorization": f"Bearer {token}"})
        return [tx for tx in response.json() if tx.get("user_id") == user.user_id]

    async def load_dashboard(self, query: str = "") -> DashboardView:
        transactions = await self.fetch_transactions()
        return aggregation.build_dashboard(transactions, query)
