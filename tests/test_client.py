# tests/test_client.py
import json
from datetime import timedelta

import httpx
import pytest

from auth_service.utils import create_access_token
from dashboard_client import (
    ApiError,
    DashboardClient,
    NetworkError,
    TokenFormatError,
    TokenStore,
    decode_unverified,
)

pytestmark = pytest.mark.anyio

ME = {"user_id": "u-1", "email": "me@example.com", "name": "Me"}


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / "session" / "token")


def make_client(token_store, handler):
    return DashboardClient("http://gateway", token_store, transport=httpx.MockTransport(handler))


# --- decode_unverified ---

async def test_decode_unverified_reads_claims_of_expired_token():
    token = create_access_token(ME, expires_delta=timedelta(seconds=-30))

    claims = decode_unverified(token)

    assert {k: claims[k] for k in ME} == ME


async def test_decode_unverified_rejects_garbage():
    with pytest.raises(TokenFormatError):
        decode_unverified("definitely-not-a-token")


async def test_non_string_identity_claim_is_a_token_format_error(token_store):
    token_store.save(create_access_token({**ME, "name": 5}))
    client = make_client(token_store, lambda request: pytest.fail("no request expected"))

    with pytest.raises(TokenFormatError):
        client.current_user()


# --- Login / logout ---

async def test_login_stores_token_and_returns_profile(token_store):
    token = create_access_token(ME)
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"token": token, "user": ME})

    client = make_client(token_store, handler)
    profile = await client.login("me@example.com", "pw")

    assert seen["body"] == {"email": "me@example.com", "password": "pw"}
    assert profile.model_dump() == ME
    assert token_store.load() == token
    assert client.current_user().user_id == "u-1"


async def test_login_failure_carries_server_message(token_store):
    client = make_client(token_store, lambda request: httpx.Response(400, json={"message": "Invalid credentials"}))

    with pytest.raises(ApiError) as excinfo:
        await client.login("me@example.com", "bad")

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Invalid credentials"
    assert token_store.load() is None


async def test_network_failure_is_not_retried(token_store):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(token_store, handler)

    with pytest.raises(NetworkError) as excinfo:
        await client.login("me@example.com", "pw")

    assert str(excinfo.value) == "Network error"
    assert len(calls) == 1


async def test_logout_only_forgets_token(token_store):
    token_store.save(create_access_token(ME))
    client = make_client(token_store, lambda request: httpx.Response(500))

    client.logout()

    assert client.current_user() is None
    assert token_store.load() is None


# --- Transactions ---

async def test_fetch_transactions_sends_token_and_keeps_own_rows(token_store):
    token = create_access_token(ME)
    token_store.save(token)
    rows = [
        {"id": 1, "user_id": "u-1", "amount": 10, "category": "revenue", "status": "paid", "date": "2024-01-01T00:00:00"},
        {"id": 2, "user_id": "u-2", "amount": 99, "category": "revenue", "status": "paid", "date": "2024-01-02T00:00:00"},
    ]
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["path"] = request.url.path
        return httpx.Response(200, json=rows)

    client = make_client(token_store, handler)
    result = await client.fetch_transactions()

    assert seen == {"auth": f"Bearer {token}", "path": "/api/transactions"}
    assert [tx["id"] for tx in result] == [1]


async def test_fetch_transactions_without_session(token_store):
    client = make_client(token_store, lambda request: pytest.fail("no request expected"))

    assert await client.fetch_transactions() == []


# --- End to end through the gateway ---

async def test_dashboard_end_to_end(patched_gateway, token_store, new_user, make_transactions, sample_rows):
    client = DashboardClient("http://gateway", token_store, transport=httpx.ASGITransport(app=patched_gateway))

    message = await client.register(**new_user)
    assert message == "User registered successfully"

    profile = await client.login(new_user["email"], new_user["password"])
    assert profile.user_id == new_user["user_id"]

    make_transactions(new_user["user_id"], sample_rows)
    make_transactions("someone_else", sample_rows)

    view = await client.load_dashboard()

    assert view.totals.revenue == 100
    assert view.totals.expenses == 40
    assert view.totals.balance == 60
    assert view.monthly[2].income == 100
    assert view.monthly[3].expenses == 40
    assert [tx["amount"] for tx in view.recent] == [40, 100]
