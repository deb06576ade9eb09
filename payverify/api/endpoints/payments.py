import logging
import os
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from payverify.database.purchases import PurchaseStore
from payverify.integrations.clients.mocks.flutterwave import FlutterwaveMockClient
from payverify.integrations.clients.real_http.flutterwave import RealFlutterwaveClient
from payverify.integrations.contracts.interfaces import PaymentMethod, ProviderType
from payverify.integrations.contracts.payments import InitiatePaymentRequest
from payverify.integrations.policy.response_wrappers import IntegrationResponseError
from payverify.payments.service import (
    PaymentInitiationError,
    PaymentsService,
    PaymentValidationError,
    PurchaseNotFoundError,
)

logger = logging.getLogger(__name__)

api = APIRouter()
payments_api = api


class PaymentInitiateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float
    email: str
    phone_number: str = Field(..., alias="phoneNumber")
    name: str = ""
    provider_id: str = Field(..., alias="providerId")
    provider_type: ProviderType = Field(default=ProviderType.THERAPIST, alias="providerType")
    pack_id: str = Field(..., alias="packId")
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    currency: str = "XAF"


class FlutterwaveWebhookBody(BaseModel):
    event: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


def _should_use_real_integrations() -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return bool(os.getenv("FLUTTERWAVE_SECRET_KEY"))


def _select_gateway():
    if _should_use_real_integrations() and os.getenv("FLUTTERWAVE_SECRET_KEY"):
        return RealFlutterwaveClient()
    return FlutterwaveMockClient()


_service: Optional[PaymentsService] = None


def get_payments_service() -> PaymentsService:
    global _service
    if _service is None:
        _service = PaymentsService(gateway=_select_gateway(), store=PurchaseStore())
        logger.info("Payments service using %s", type(_service.gateway).__name__)
    return _service


@api.post("/initiate", tags=["Payments"])
async def initiate_payment(
    body: PaymentInitiateBody,
    service: PaymentsService = Depends(get_payments_service),
):
    request = InitiatePaymentRequest(
        amount=body.amount,
        email=body.email,
        phone_number=body.phone_number,
        name=body.name,
        provider_id=body.provider_id,
        provider_type=body.provider_type,
        pack_id=body.pack_id,
        payment_method=body.payment_method,
        currency=body.currency,
    )
    try:
        response = await service.initiate_payment(request)
    except PaymentValidationError as e:
        raise HTTPException(status_code=400, detail={"message": "Invalid payment request", "errors": e.errors}) from e
    except PaymentInitiationError as e:
        raise HTTPException(status_code=502, detail={"message": str(e), "payload": e.payload}) from e

    return {
        "transactionId": response.transaction_id,
        "txRef": response.tx_ref,
        "status": response.status,
        "message": response.message,
    }


@api.get("/verify/{transaction_id}", tags=["Payments"])
async def verify_payment(
    transaction_id: str,
    service: PaymentsService = Depends(get_payments_service),
):
    try:
        return await service.verify_payment(transaction_id)
    except PurchaseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except IntegrationResponseError as e:
        raise HTTPException(
            status_code=502,
            detail={"message": str(e), "stage": "gateway_verification", "payload": e.payload},
        ) from e
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail={"message": f"Gateway unreachable: {e}"}) from e


@api.post("/test/complete/{transaction_id}", tags=["Payments"])
async def test_complete_payment(
    transaction_id: str,
    service: PaymentsService = Depends(get_payments_service),
):
    try:
        return await service.manually_complete_payment(transaction_id)
    except PurchaseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@api.post("/webhook/flutterwave", tags=["Payments"])
async def flutterwave_webhook(
    body: FlutterwaveWebhookBody,
    service: PaymentsService = Depends(get_payments_service),
):
    return await service.handle_webhook(body.event, body.data)
