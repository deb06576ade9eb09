import json

import httpx
import pytest

from payverify.integrations.clients.mocks.flutterwave import FlutterwaveMockClient
from payverify.integrations.clients.mocks.verification import ScriptedVerificationClient
from payverify.integrations.clients.real_http.flutterwave import RealFlutterwaveClient
from payverify.integrations.clients.real_http.verification import RealVerificationClient
from payverify.integrations.contracts.interfaces import (
    GatewayStatus,
    MobileMoneyChargeRequest,
    VerificationStatus,
)
from payverify.integrations.policy.response_wrappers import IntegrationResponseError


def _charge_request(**overrides):
    fields = dict(
        tx_ref="tx-1700000000000-42",
        amount=10_000.0,
        currency="XAF",
        network="MTN",
        email="pro@example.com",
        phone_number="677000000",
        fullname="Awa Ngono",
        meta={"pack_id": "pack-pro"},
    )
    fields.update(overrides)
    return MobileMoneyChargeRequest(**fields)


@pytest.mark.asyncio
async def test_real_verification_client_calls_verify_endpoint():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"status": "success", "creditsAdded": 50})

    client = RealVerificationClient(
        base_url="http://api.test/",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )
    result = await client.verify("4800001")

    assert seen["url"] == "http://api.test/payments/verify/4800001"
    assert seen["auth"] == "Bearer secret"
    assert result.status is VerificationStatus.SUCCESS
    assert result.credits_added == 50


@pytest.mark.asyncio
async def test_real_verification_client_raises_on_server_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "boom"}))
    client = RealVerificationClient(base_url="http://api.test", transport=transport)

    with pytest.raises(httpx.HTTPStatusError):
        await client.verify("4800001")


@pytest.mark.asyncio
async def test_real_verification_client_requires_base_url(monkeypatch):
    monkeypatch.delenv("PAYMENTS_API_URL", raising=False)
    with pytest.raises(ValueError):
        await RealVerificationClient().verify("4800001")


@pytest.mark.asyncio
async def test_scripted_client_replays_then_repeats_last():
    client = ScriptedVerificationClient(["pending", {"status": "already_completed"}])

    first = await client.verify("tx-1")
    second = await client.verify("tx-1")
    third = await client.verify("tx-1")

    assert first.status is VerificationStatus.PENDING
    assert second.status is VerificationStatus.ALREADY_COMPLETED
    assert third.status is VerificationStatus.ALREADY_COMPLETED
    assert client.call_count == 3


@pytest.mark.asyncio
async def test_scripted_client_raises_scripted_errors():
    client = ScriptedVerificationClient([TimeoutError, "success"], repeat_last=False)

    with pytest.raises(TimeoutError):
        await client.verify("tx-1")
    assert (await client.verify("tx-1")).status is VerificationStatus.SUCCESS
    assert (await client.verify("tx-1")).status is VerificationStatus.PENDING


@pytest.mark.asyncio
async def test_real_flutterwave_charge_posts_mobile_money_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["type"] = request.url.params.get("type")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"status": "success", "message": "Charge initiated", "data": {"id": 4800777, "tx_ref": seen["body"]["tx_ref"], "status": "pending"}},
        )

    client = RealFlutterwaveClient(secret_key="FLWSECK-test", transport=httpx.MockTransport(handler))
    response = await client.charge_mobile_money(_charge_request())

    assert seen["path"] == "/v3/charges"
    assert seen["type"] == "mobile_money_franco"
    assert seen["body"]["network"] == "MTN"
    assert response.transaction_id == "4800777"
    assert response.status is GatewayStatus.PENDING


@pytest.mark.asyncio
async def test_real_flutterwave_verify_transaction():
    def handler(request):
        assert request.url.path == "/v3/transactions/4800777/verify"
        return httpx.Response(
            200,
            json={"status": "success", "data": {"id": 4800777, "tx_ref": "tx-1", "status": "successful", "amount": 10000, "currency": "XAF"}},
        )

    client = RealFlutterwaveClient(secret_key="FLWSECK-test", transport=httpx.MockTransport(handler))
    transaction = await client.verify_transaction("4800777")

    assert transaction.status is GatewayStatus.SUCCESSFUL
    assert transaction.tx_ref == "tx-1"


@pytest.mark.asyncio
async def test_real_flutterwave_requires_secret_key(monkeypatch):
    monkeypatch.delenv("FLUTTERWAVE_SECRET_KEY", raising=False)
    with pytest.raises(ValueError):
        await RealFlutterwaveClient().verify_transaction("1")


@pytest.mark.asyncio
async def test_flutterwave_mock_lifecycle(gateway):
    charge = await gateway.charge_mobile_money(_charge_request())
    assert charge.status is GatewayStatus.PENDING

    assert (await gateway.verify_transaction(charge.transaction_id)).status is GatewayStatus.PENDING
    gateway.complete(charge.transaction_id)
    assert (await gateway.verify_transaction(charge.transaction_id)).status is GatewayStatus.SUCCESSFUL


@pytest.mark.asyncio
async def test_flutterwave_mock_unknown_transaction_raises(gateway):
    with pytest.raises(IntegrationResponseError):
        await gateway.verify_transaction("999")


@pytest.mark.asyncio
async def test_flutterwave_mock_refusing_charges():
    with pytest.raises(IntegrationResponseError):
        await FlutterwaveMockClient(accept_charges=False).charge_mobile_money(_charge_request())


@pytest.mark.asyncio
async def test_real_verification_client_encodes_transaction_id():
    seen = {}

    def handler(request):
        seen["raw_path"] = request.url.raw_path
        seen["query"] = request.url.query
        return httpx.Response(200, json={"status": "pending"})

    client = RealVerificationClient(base_url="http://api.test", transport=httpx.MockTransport(handler))
    result = await client.verify("tx/42?x=1")

    assert seen["raw_path"] == b"/payments/verify/tx%2F42%3Fx%3D1"
    assert seen["query"] == b""
    assert result.transaction_id == "tx/42?x=1"


@pytest.mark.asyncio
async def test_real_flutterwave_verify_encodes_transaction_id():
    seen = {}

    def handler(request):
        seen["raw_path"] = request.url.raw_path
        return httpx.Response(200, json={"status": "success", "data": {"id": 1, "tx_ref": "tx-1", "status": "pending"}})

    client = RealFlutterwaveClient(secret_key="FLWSECK-test", transport=httpx.MockTransport(handler))
    await client.verify_transaction("48#00")

    assert seen["raw_path"] == b"/v3/transactions/48%2300/verify"
