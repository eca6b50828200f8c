import httpx
import pytest

from domain.payment.entity import PaymentStatus


ORDER = {
    "orderId": "ORD1",
    "amount": 50000,
    "customerName": "Budi",
    "orderItems": [{"name": "Mie Ayam", "price": 25000, "quantity": 2}],
}


@pytest.mark.asyncio
async def test_create_transaction_success(client, fake_midtrans):
    resp = await client.post("/create-transaction", json=ORDER)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["token"] == "snap-token-123"
    assert data["redirect_url"].startswith("https://app.sandbox.midtrans.com/")
    assert data["order_id"].startswith("ORD1-")
    assert data["order_id"][len("ORD1-"):].isdigit()

    [payload] = fake_midtrans.snap_payloads()
    assert payload["transaction_details"]["order_id"] == data["order_id"]
    assert payload["item_details"][0]["id"] == "mie-ayam"


@pytest.mark.asyncio
async def test_create_transaction_missing_fields(client, fake_midtrans):
    resp = await client.post("/create-transaction", json={"orderId": "ORD1"})

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Incomplete data. Make sure orderId, amount, customerName, and orderItems are filled in.",
    }
    assert fake_midtrans.requests == []


@pytest.mark.asyncio
async def test_create_transaction_negative_amount(client, fake_midtrans):
    resp = await client.post("/create-transaction", json={**ORDER, "amount": -100})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Amount must be a positive number"
    assert fake_midtrans.requests == []


@pytest.mark.asyncio
async def test_create_transaction_invalid_json(client, fake_midtrans):
    resp = await client.post(
        "/create-transaction",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert fake_midtrans.requests == []


@pytest.mark.asyncio
async def test_create_transaction_relays_gateway_status(client, fake_midtrans):
    fake_midtrans.snap_handler = lambda request: httpx.Response(
        400, json={"error_messages": ["Invalid amount"]}
    )

    resp = await client.post("/create-transaction", json=ORDER)

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Invalid amount",
        "details": {"error_messages": ["Invalid amount"]},
    }


@pytest.mark.asyncio
async def test_create_transaction_network_failure_is_generic_500(client, fake_midtrans):
    def boom(request):
        raise httpx.ConnectError("dns failure for app.sandbox.midtrans.com", request=request)

    fake_midtrans.snap_handler = boom

    resp = await client.post("/create-transaction", json=ORDER)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}


@pytest.mark.asyncio
async def test_create_transaction_unexpected_exception_is_generic_500(app, client, monkeypatch):
    async def explode(body):
        raise RuntimeError("secret stack detail")

    monkeypatch.setattr(app.state.transaction_initiator, "initiate", explode)

    resp = await client.post("/create-transaction", json=ORDER)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}
    assert "secret" not in resp.text


@pytest.mark.asyncio
async def test_create_transaction_unconfigured_gateway(app, client, fake_midtrans, monkeypatch):
    monkeypatch.setattr(app.state.payment_gateway._config, "server_key", "Mid-server-XXXX")

    resp = await client.post("/create-transaction", json=ORDER)

    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert "not configured" in resp.json()["message"]
    assert fake_midtrans.requests == []


@pytest.mark.asyncio
async def test_notification_success_records_status(client, fake_midtrans, uow_factory):
    fake_midtrans.set_status("ORD1-1700000000500", "settlement")

    resp = await client.post(
        "/midtrans-notification",
        json={"order_id": "ORD1-1700000000500", "transaction_status": "settlement", "status_code": "200"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Notification processed successfully"}
    async with uow_factory() as uow:
        record = await uow.payment_status_repository.get_by_transaction_id("ORD1-1700000000500")
    assert record.status is PaymentStatus.PAID


@pytest.mark.asyncio
async def test_notification_redelivery_answers_200_each_time(client, fake_midtrans):
    fake_midtrans.set_status("ORD1-1700000000500", "capture", "accept")
    notification = {"order_id": "ORD1-1700000000500", "transaction_status": "capture"}

    first = await client.post("/midtrans-notification", json=notification)
    second = await client.post("/midtrans-notification", json=notification)

    assert first.status_code == second.status_code == 200


@pytest.mark.asyncio
async def test_notification_unverifiable_returns_500(client):
    resp = await client.post("/midtrans-notification", json={"order_id": "UNKNOWN-1"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Transaction doesn't exist."


@pytest.mark.asyncio
async def test_notification_invalid_json_returns_500(client):
    resp = await client.post(
        "/midtrans-notification",
        content=b"not-json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 500
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    resp = await client.post("/create-transaction", json={}, headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"
