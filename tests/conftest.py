"""Shared fixtures.

Midtrans is replaced by an httpx.MockTransport so the real client code
(auth, URLs, error decoding) runs without network access. The database is
an in-memory SQLite shared through a StaticPool.
"""
import json
from typing import Any, Callable, Optional

import httpx
import pytest

from core.config import DatabaseSettings, Settings
from core.settings import MidtransSettings
from infrastructure.database import Database
from infrastructure.external.payments.midtrans_client import MidtransClient
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from main import create_app


SERVER_KEY = "SB-Mid-server-test-key-0123456789"
CLIENT_KEY = "SB-Mid-client-test-key-0123456789"


class FakeMidtrans:
    """Records gateway calls and answers them from configurable handlers."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.snap_handler: Callable[[httpx.Request], httpx.Response] = self._default_snap
        self.statuses: dict[str, dict[str, Any]] = {}
        self.status_http_code = 200

    @staticmethod
    def _default_snap(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            201,
            json={
                "token": "snap-token-123",
                "redirect_url": "https://app.sandbox.midtrans.com/snap/v4/redirection/snap-token-123",
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/snap/v1/transactions":
            return self.snap_handler(request)
        if path.startswith("/v2/") and path.endswith("/status"):
            lookup = path[len("/v2/"):-len("/status")]
            body = self.statuses.get(lookup)
            if body is None:
                body = {
                    "status_code": "404",
                    "status_message": "Transaction doesn't exist.",
                    "id": "ff6b0e0f-test",
                }
            return httpx.Response(self.status_http_code, json=body)
        return httpx.Response(404, json={"status_message": "unknown path"})

    def snap_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == "/snap/v1/transactions"]

    def set_status(
        self,
        transaction_id: str,
        transaction_status: str,
        fraud_status: Optional[str] = None,
        *,
        lookup: Optional[str] = None,
    ) -> None:
        body = {
            "status_code": "200",
            "status_message": "Success, transaction is found",
            "transaction_id": "9aed5972-5b6a-401e-894b-a32c91ed1a3a",
            "order_id": transaction_id,
            "gross_amount": "50000.00",
            "transaction_status": transaction_status,
        }
        if fraud_status is not None:
            body["fraud_status"] = fraud_status
        if transaction_status == "expire":
            body["status_code"] = "407"
            body["status_message"] = "Success, transaction is found"
        self.statuses[lookup or transaction_id] = body


@pytest.fixture
def midtrans_settings() -> MidtransSettings:
    return MidtransSettings(server_key=SERVER_KEY, client_key=CLIENT_KEY)


@pytest.fixture
def settings(midtrans_settings) -> Settings:
    return Settings(
        _env_file=None,
        FRONTEND_URL="https://shop.example.com",
        midtrans=midtrans_settings,
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
    )


@pytest.fixture
def fake_midtrans() -> FakeMidtrans:
    return FakeMidtrans()


@pytest.fixture
async def gateway(midtrans_settings, fake_midtrans):
    client = MidtransClient(midtrans_settings, transport=httpx.MockTransport(fake_midtrans.handler))
    yield client
    await client.aclose()


@pytest.fixture
async def database(settings):
    db = Database(settings.database)
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.dispose()


@pytest.fixture
def uow_factory(database):
    return lambda: SQLAlchemyUnitOfWork(database.session_factory)


@pytest.fixture
def app(settings, gateway, database):
    return create_app(settings, gateway=gateway, database=database)


@pytest.fixture
async def client(app):
    # ASGITransport does not run the lifespan; tables come from the database fixture
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
