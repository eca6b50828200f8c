import pytest

from application.services.notification_service import NotificationReconciler
from domain.common.exceptions import PaymentStatusAlreadyExistsException, VerificationFailedException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PaymentStatus, PaymentStatusRecord
from domain.payment.repository import PaymentStatusRepository


TX_ID = "ORD1-1700000000500"
GATEWAY_TX_ID = "9aed5972-5b6a-401e-894b-a32c91ed1a3a"


@pytest.fixture
def reconciler(gateway, uow_factory):
    return NotificationReconciler(gateway, uow_factory)


async def _stored(uow_factory, transaction_id=TX_ID):
    async with uow_factory() as uow:
        return await uow.payment_status_repository.get_by_transaction_id(transaction_id)


@pytest.mark.asyncio
async def test_settlement_is_recorded_as_paid(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "settlement")

    result = await reconciler.reconcile({"order_id": TX_ID, "transaction_status": "settlement"})

    assert result.transaction_id == TX_ID
    assert result.status is PaymentStatus.PAID
    assert result.changed is True

    record = await _stored(uow_factory)
    assert record.status is PaymentStatus.PAID
    assert record.order_id == "ORD1"
    assert record.transaction_status == "settlement"
    assert record.gateway_transaction_id == GATEWAY_TX_ID


@pytest.mark.asyncio
async def test_lookup_prefers_gateway_transaction_id(reconciler, fake_midtrans):
    fake_midtrans.set_status(TX_ID, "capture", "accept", lookup=GATEWAY_TX_ID)

    result = await reconciler.reconcile({"transaction_id": GATEWAY_TX_ID, "order_id": "ignored"})

    assert result.transaction_id == TX_ID
    assert result.status is PaymentStatus.PAID
    [request] = fake_midtrans.requests
    assert request.url.path == f"/v2/{GATEWAY_TX_ID}/status"


@pytest.mark.asyncio
async def test_body_claims_are_not_trusted(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "pending")

    result = await reconciler.reconcile(
        {"order_id": TX_ID, "transaction_status": "settlement", "fraud_status": "accept"}
    )

    assert result.status is PaymentStatus.PENDING
    assert (await _stored(uow_factory)).status is PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_redelivery_is_idempotent(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "settlement")
    notification = {"order_id": TX_ID, "transaction_status": "settlement"}

    first = await reconciler.reconcile(notification)
    second = await reconciler.reconcile(notification)

    assert first.status is second.status is PaymentStatus.PAID
    assert first.changed is True
    assert second.changed is False
    # each delivery re-verifies with the gateway
    assert len(fake_midtrans.requests) == 2


@pytest.mark.asyncio
async def test_capture_then_settlement_refreshes_stored_fields(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "capture", "accept")
    await reconciler.reconcile({"order_id": TX_ID})

    fake_midtrans.set_status(TX_ID, "settlement")
    result = await reconciler.reconcile({"order_id": TX_ID})

    assert result.status is PaymentStatus.PAID
    assert result.changed is True
    record = await _stored(uow_factory)
    assert record.status is PaymentStatus.PAID
    assert record.transaction_status == "settlement"
    assert record.fraud_status is None


@pytest.mark.asyncio
async def test_paid_is_not_regressed_by_late_pending(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "settlement")
    await reconciler.reconcile({"order_id": TX_ID})

    fake_midtrans.set_status(TX_ID, "pending")
    result = await reconciler.reconcile({"order_id": TX_ID})

    assert result.changed is False
    assert (await _stored(uow_factory)).status is PaymentStatus.PAID


@pytest.mark.asyncio
async def test_pending_moves_to_failed_on_expiry(reconciler, fake_midtrans, uow_factory):
    fake_midtrans.set_status(TX_ID, "pending")
    await reconciler.reconcile({"order_id": TX_ID})

    fake_midtrans.set_status(TX_ID, "expire")
    result = await reconciler.reconcile({"order_id": TX_ID})

    assert result.status is PaymentStatus.FAILED
    assert result.changed is True
    assert (await _stored(uow_factory)).status is PaymentStatus.FAILED


@pytest.mark.asyncio
async def test_unknown_transaction_fails_verification(reconciler, uow_factory):
    with pytest.raises(VerificationFailedException, match="doesn't exist"):
        await reconciler.reconcile({"order_id": "NOPE-1"})
    assert await _stored(uow_factory, "NOPE-1") is None


@pytest.mark.asyncio
async def test_gateway_http_error_fails_verification(reconciler, fake_midtrans):
    fake_midtrans.set_status(TX_ID, "settlement")
    fake_midtrans.status_http_code = 401

    with pytest.raises(VerificationFailedException):
        await reconciler.reconcile({"order_id": TX_ID})


@pytest.mark.asyncio
async def test_notification_without_identifiers_fails(reconciler, fake_midtrans):
    with pytest.raises(VerificationFailedException, match="missing transaction_id"):
        await reconciler.reconcile({"transaction_status": "settlement"})
    assert fake_midtrans.requests == []


@pytest.mark.parametrize("payload", [None, [], "settlement"])
@pytest.mark.asyncio
async def test_non_object_payload_fails(reconciler, payload):
    with pytest.raises(VerificationFailedException):
        await reconciler.reconcile(payload)


class _RacingRepository(PaymentStatusRepository):
    """First insert loses to a concurrent writer that stored a pending row."""

    def __init__(self, rows):
        self.rows = rows
        self.conflicts = 0

    async def get_by_transaction_id(self, transaction_id):
        return self.rows.get(transaction_id)

    async def create(self, record):
        if self.conflicts == 0:
            self.conflicts += 1
            self.rows[record.transaction_id] = PaymentStatusRecord(
                transaction_id=record.transaction_id,
                order_id=record.order_id,
                status=PaymentStatus.PENDING,
            )
            raise PaymentStatusAlreadyExistsException(record.transaction_id)
        self.rows[record.transaction_id] = record
        return record

    async def update(self, record):
        self.rows[record.transaction_id] = record
        return record


class _InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, repo):
        super().__init__()
        self._repo = repo

    async def __aenter__(self):
        self.payment_status_repository = self._repo
        return self

    async def commit(self):
        self._committed = True

    async def rollback(self):
        self._committed = False


@pytest.mark.asyncio
async def test_concurrent_insert_is_merged(gateway, fake_midtrans):
    repo = _RacingRepository({})
    reconciler = NotificationReconciler(gateway, lambda: _InMemoryUnitOfWork(repo))
    fake_midtrans.set_status(TX_ID, "settlement")

    result = await reconciler.reconcile({"order_id": TX_ID})

    assert result.status is PaymentStatus.PAID
    assert result.changed is True
    assert repo.conflicts == 1
    assert repo.rows[TX_ID].status is PaymentStatus.PAID
