# tests/conftest.py
import itertools
import os
import tempfile
import uuid
from datetime import datetime

# Services read their configuration at import time
_DB_DIR = tempfile.mkdtemp(prefix="finance-dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'dashboard.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["AUTH_SERVICE_URL"] = "http://auth-service"
os.environ["TRANSACTION_SERVICE_URL"] = "http://transaction-service"

import httpx
import pytest
from fastapi.testclient import TestClient

from auth_service import main as auth_main
from gateway_service import main as gateway_main
from transaction_service import main as transaction_main
from transaction_service.db import SessionLocal as TransactionSession
from transaction_service.models import Transaction

TEST_PASSWORD = "password123"

_transaction_ids = itertools.count(1)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def new_user():
    """Unique registration payload, so tests never collide with each other."""
    suffix = uuid.uuid4().hex[:12]
    return {
        "name": f"Test User {suffix}",
        "user_id": f"user_{suffix}",
        "email": f"testuser_{suffix}@example.com",
        "password": TEST_PASSWORD,
    }


@pytest.fixture
def auth_client():
    return TestClient(auth_main.app)


@pytest.fixture
def transaction_client():
    return TestClient(transaction_main.app)


@pytest.fixture
def registered_user(auth_client, new_user):
    r = auth_client.post("/register", json=new_user)
    assert r.status_code == 201, r.text
    return new_user


@pytest.fixture
def make_transactions():
    """
    Inserts transactions straight into the store (there is no create endpoint)
    and removes them afterwards.
    """
    created_ids = []

    def _make(user_id, rows):
        db = TransactionSession()
        try:
            for row in rows:
                tx = Transaction(
                    id=next(_transaction_ids),
                    date=row["date"],
                    amount=row["amount"],
                    category=row["category"],
                    status=row.get("status", "paid"),
                    user_id=user_id,
                    user_profile=row.get("user_profile"),
                )
                db.add(tx)
                created_ids.append(tx.id)
            db.commit()
        finally:
            db.close()

    yield _make

    db = TransactionSession()
    try:
        db.query(Transaction).filter(Transaction.id.in_(created_ids)).delete(synchronize_session=False)
        db.commit()
    finally:
        db.close()


@pytest.fixture
def sample_rows():
    return [
        {"date": datetime(2024, 3, 15), "amount": 100.0, "category": "Revenue", "status": "Paid"},
        {"date": datetime(2024, 4, 2), "amount": 40.0, "category": "expense", "status": "pending"},
    ]


@pytest.fixture
def patched_gateway(monkeypatch):
    """Routes the gateway's internal calls to the in-process services."""
    client = httpx.AsyncClient(mounts={
        "http://auth-service": httpx.ASGITransport(app=auth_main.app),
        "http://transaction-service": httpx.ASGITransport(app=transaction_main.app),
    })
    monkeypatch.setattr(gateway_main, "client", client)
    return gateway_main.app


@pytest.fixture
def gateway_client(patched_gateway):
    return TestClient(patched_gateway)


@pytest.fixture
def auth_headers(gateway_client, registered_user):
    r = gateway_client.post(
        "/api/users/login",
        json={"email": registered_user["email"], "password": registered_user["password"]},
    )
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}
