import logging

import pytest

from payverify.database.purchases import CreditPack, PurchaseStore
from payverify.integrations.clients.mocks.flutterwave import FlutterwaveMockClient
from payverify.integrations.contracts.interfaces import (
    MobileMoneyChargeRequest,
    PaymentMethod,
    ProviderType,
    PurchaseStatus,
)
from payverify.integrations.contracts.payments import InitiatePaymentRequest, validate_initiate_request
from payverify.payments.service import (
    PaymentInitiationError,
    PaymentsService,
    PaymentValidationError,
    PurchaseNotFoundError,
)


def _request(**overrides):
    fields = dict(
        amount=10_000.0,
        email="pro@example.com",
        phone_number="+237 677 00 00 00",
        name="Awa Ngono",
        provider_id="prov-1",
        provider_type=ProviderType.SALON,
        pack_id="pack-pro",
        payment_method=PaymentMethod.ORANGE_MONEY,
    )
    fields.update(overrides)
    return InitiatePaymentRequest(**fields)


@pytest.mark.asyncio
async def test_initiate_records_pending_purchase_with_pack_credits(service, store):
    response = await service.initiate_payment(_request())

    purchase = store.find_purchase_by_transaction_id(response.transaction_id)
    assert purchase is not None
    assert purchase.payment_status is PurchaseStatus.PENDING
    assert purchase.credits_amount == 50
    assert purchase.flutterwave_tx_ref == response.tx_ref
    assert response.tx_ref.startswith("tx-")
    assert response.status == "pending"
    assert "#150*50#" in response.message


@pytest.mark.asyncio
async def test_initiate_sends_operator_network_to_gateway(service, gateway):
    response = await service.initiate_payment(_request(payment_method=PaymentMethod.MTN_MOMO))
    transaction = await gateway.verify_transaction(response.transaction_id)
    assert transaction.raw["network"] == "MTN"


@pytest.mark.asyncio
async def test_initiate_rejects_invalid_request(service):
    with pytest.raises(PaymentValidationError) as excinfo:
        await service.initiate_payment(_request(amount=0, phone_number="12"))
    assert any("amount" in e for e in excinfo.value.errors)
    assert any("phone_number" in e for e in excinfo.value.errors)


@pytest.mark.asyncio
async def test_initiate_with_unknown_pack_records_zero_credits(service, store):
    response = await service.initiate_payment(_request(pack_id="pack-gone"))
    assert store.find_purchase_by_transaction_id(response.transaction_id).credits_amount == 0


@pytest.mark.asyncio
async def test_initiate_gateway_refusal(store):
    service = PaymentsService(gateway=FlutterwaveMockClient(accept_charges=False), store=store)
    with pytest.raises(PaymentInitiationError):
        await service.initiate_payment(_request())


@pytest.mark.asyncio
async def test_verify_pending_then_success_credits_once(service, gateway, store):
    response = await service.initiate_payment(_request())
    transaction_id = response.transaction_id

    assert (await service.verify_payment(transaction_id))["status"] == "pending"

    gateway.complete(transaction_id)
    result = await service.verify_payment(transaction_id)
    assert result["status"] == "success"
    assert result["creditsAdded"] == 50
    assert store.get_balance("prov-1", ProviderType.SALON).balance == 50

    again = await service.verify_payment(transaction_id)
    assert again["status"] == "already_completed"
    assert store.get_balance("prov-1", ProviderType.SALON).balance == 50

    ledger = store.list_transactions("prov-1")
    assert len(ledger) == 1
    assert ledger[0].transaction_type == "PURCHASE"
    assert (ledger[0].balance_before, ledger[0].balance_after) == (0, 50)


@pytest.mark.asyncio
async def test_verify_reports_gateway_failure(service, gateway):
    response = await service.initiate_payment(_request())
    gateway.fail(response.transaction_id)

    assert (await service.verify_payment(response.transaction_id))["status"] == "failed"


@pytest.mark.asyncio
async def test_verify_successful_charge_without_purchase(service, gateway):
    charge = await gateway.charge_mobile_money(
        MobileMoneyChargeRequest(
            tx_ref="tx-orphan",
            amount=500.0,
            currency="XAF",
            network="MTN",
            email="x@example.com",
            phone_number="677000000",
            fullname="X",
        )
    )
    gateway.complete(charge.transaction_id)

    with pytest.raises(PurchaseNotFoundError):
        await service.verify_payment(charge.transaction_id)


@pytest.mark.asyncio
async def test_verify_logs_amount_mismatch(service, gateway, caplog):
    response = await service.initiate_payment(_request())
    gateway.complete(response.transaction_id, amount=9_000.0)

    with caplog.at_level(logging.WARNING):
        result = await service.verify_payment(response.transaction_id)

    assert result["status"] == "success"
    assert "Amount mismatch" in caplog.text


@pytest.mark.asyncio
async def test_manual_completion_is_idempotent(service, store):
    response = await service.initiate_payment(_request())

    first = await service.manually_complete_payment(response.transaction_id)
    second = await service.manually_complete_payment(response.transaction_id)

    assert first["status"] == "success"
    assert "TEST MODE" in first["message"]
    assert second["status"] == "already_completed"
    assert store.get_balance("prov-1", ProviderType.SALON).balance == 50

    # gateway still says pending, but the purchase is already settled
    assert (await service.verify_payment(response.transaction_id))["status"] == "already_completed"


@pytest.mark.asyncio
async def test_manual_completion_unknown_transaction(service):
    with pytest.raises(PurchaseNotFoundError):
        await service.manually_complete_payment("does-not-exist")


@pytest.mark.asyncio
async def test_webhook_completes_successful_charges(service, gateway, store):
    response = await service.initiate_payment(_request())
    gateway.complete(response.transaction_id)

    result = await service.handle_webhook(
        "charge.completed", {"id": int(response.transaction_id), "status": "successful"}
    )

    assert result["status"] == "success"
    assert store.get_balance("prov-1", ProviderType.SALON).balance == 50


@pytest.mark.asyncio
async def test_webhook_ignores_other_events(service):
    assert (await service.handle_webhook("transfer.completed", {"status": "successful"}))["status"] == "ignored"
    assert (await service.handle_webhook("charge.completed", {"status": "failed"}))["status"] == "ignored"


@pytest.mark.asyncio
async def test_webhook_for_unknown_transaction_reports_error(service):
    result = await service.handle_webhook("charge.completed", {"id": 1, "status": "successful"})
    assert result["status"] == "error"


@pytest.mark.parametrize("phone", ["677-00-00-00", "677.00.00.00", "+237 (677) 000 000", "237677000000"])
def test_phone_number_separators_are_accepted(phone):
    assert validate_initiate_request(_request(phone_number=phone)) == []


@pytest.mark.parametrize("phone", ["", "67700000", "6770000000", "677-OO-00-00"])
def test_phone_number_must_be_nine_digits(phone):
    errors = validate_initiate_request(_request(phone_number=phone))
    assert any("phone_number" in e for e in errors)


@pytest.mark.asyncio
async def test_inactive_pack_records_zero_credits(gateway):
    store = PurchaseStore(packs=[CreditPack(id="pack-old", name="Old", price=500.0, credits=5, active=False)])
    service = PaymentsService(gateway=gateway, store=store)

    response = await service.initiate_payment(_request(pack_id="pack-old"))

    assert store.find_purchase_by_transaction_id(response.transaction_id).credits_amount == 0
