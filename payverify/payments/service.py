"""
Credit-pack payments service.

Initiates mobile money charges through the gateway, records pending credit
purchases, and reconciles them on verification, crediting the provider once.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, List, Optional

import httpx

from payverify.database.purchases import CreditPurchase, PurchaseStore
from payverify.integrations.contracts.interfaces import (
    GatewayStatus,
    MobileMoneyChargeRequest,
    MobileMoneyGateway,
    PurchaseStatus,
    VerificationStatus,
)
from payverify.integrations.contracts.payments import (
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    operator_for,
    validate_initiate_request,
)
from payverify.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)

PURCHASE_REASON = "PURCHASE"


class PaymentValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class PaymentInitiationError(RuntimeError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class PurchaseNotFoundError(ValueError):
    pass


def new_tx_ref() -> str:
    return f"tx-{int(time.time() * 1000)}-{random.randint(0, 999_999)}"


def purchase_to_dict(purchase: CreditPurchase) -> Dict[str, Any]:
    return {
        "id": purchase.id,
        "provider_id": purchase.provider_id,
        "provider_type": purchase.provider_type.value,
        "pack_id": purchase.pack_id,
        "credits_amount": purchase.credits_amount,
        "price_paid": purchase.price_paid,
        "payment_method": purchase.payment_method,
        "payment_provider": purchase.payment_provider,
        "flutterwave_transaction_id": purchase.flutterwave_transaction_id,
        "flutterwave_tx_ref": purchase.flutterwave_tx_ref,
        "payment_status": purchase.payment_status.value,
        "created_at": purchase.created_at.isoformat(),
        "completed_at": purchase.completed_at.isoformat() if purchase.completed_at else None,
    }


class PaymentsService:
    def __init__(self, gateway: MobileMoneyGateway, store: PurchaseStore) -> None:
        self.gateway = gateway
        self.store = store

    async def initiate_payment(self, request: InitiatePaymentRequest) -> InitiatePaymentResponse:
        errors = validate_initiate_request(request)
        if errors:
            raise PaymentValidationError(errors)

        tx_ref = new_tx_ref()
        operator = operator_for(request.payment_method)
        charge_request = MobileMoneyChargeRequest(
            tx_ref=tx_ref,
            amount=request.amount,
            currency=request.currency,
            network=operator.network,
            email=request.email,
            phone_number=request.phone_number,
            fullname=request.name,
            meta={
                "provider_id": request.provider_id,
                "provider_type": request.provider_type.value,
                "pack_id": request.pack_id,
            },
        )

        try:
            charge = await self.gateway.charge_mobile_money(charge_request)
        except IntegrationResponseError as exc:
            logger.error("Payment initiation failed for tx_ref=%s: %s", tx_ref, exc)
            raise PaymentInitiationError(f"Payment initiation failed: {exc}", payload=exc.payload) from exc
        except httpx.HTTPError as exc:
            logger.error("Payment initiation failed for tx_ref=%s: %s", tx_ref, exc)
            raise PaymentInitiationError(f"Payment initiation failed: {exc}") from exc

        pack = self.store.get_pack(request.pack_id)
        if pack is None:
            logger.error("Pack %s not found; recording purchase with 0 credits", request.pack_id)
        total_credits = pack.total_credits if pack else 0
        logger.info("Total credits to be added for tx_ref=%s: %d", tx_ref, total_credits)

        self.store.create_purchase(
            provider_id=request.provider_id,
            provider_type=request.provider_type,
            pack_id=request.pack_id,
            credits_amount=total_credits,
            price_paid=request.amount,
            payment_method=request.payment_method.value,
            flutterwave_transaction_id=charge.transaction_id,
            flutterwave_tx_ref=tx_ref,
            payment_status=PurchaseStatus.PENDING,
            payment_data=charge.raw,
        )

        return InitiatePaymentResponse(
            transaction_id=charge.transaction_id,
            tx_ref=tx_ref,
            status=charge.status.value,
            message=f"Please confirm the payment on your phone ({operator.ussd_code} on {operator.name})",
        )

    async def verify_payment(self, transaction_id: str) -> Dict[str, Any]:
        transaction = await self.gateway.verify_transaction(transaction_id)
        logger.info("Payment %s status from gateway: %s", transaction_id, transaction.status.value)

        if transaction.status is GatewayStatus.SUCCESSFUL:
            purchase = self.store.find_purchase_by_tx_ref(transaction.tx_ref)
            if purchase is None:
                purchase = self.store.find_purchase_by_transaction_id(transaction_id)
            if purchase is None:
                logger.error("Purchase not found for transaction %s or tx_ref %s", transaction_id, transaction.tx_ref)
                raise PurchaseNotFoundError("Purchase record not found")

            if purchase.payment_status is PurchaseStatus.COMPLETED:
                return self._result(VerificationStatus.ALREADY_COMPLETED, transaction_id, purchase)

            if purchase.price_paid != transaction.amount:
                logger.warning("Amount mismatch for tx %s: expected %s, got %s",
                               transaction.tx_ref, purchase.price_paid, transaction.amount)

            credits_added = self._complete(purchase, payment_data=transaction.raw)
            return self._result(VerificationStatus.SUCCESS, transaction_id, purchase, credits_added)

        if transaction.status is GatewayStatus.FAILED:
            return {"status": VerificationStatus.FAILED.value, "transactionId": transaction_id, "data": transaction.raw}

        purchase = self.store.find_purchase_by_transaction_id(transaction_id)
        if purchase is not None and purchase.payment_status is PurchaseStatus.COMPLETED:
            return self._result(VerificationStatus.ALREADY_COMPLETED, transaction_id, purchase)
        return {"status": VerificationStatus.PENDING.value, "transactionId": transaction_id, "data": transaction.raw}

    async def manually_complete_payment(self, transaction_id: str) -> Dict[str, Any]:
        """Test mode: complete a purchase without asking the gateway."""
        purchase = self.store.find_purchase_by_transaction_id(transaction_id)
        if purchase is None:
            raise PurchaseNotFoundError("Purchase not found")

        if purchase.payment_status is PurchaseStatus.COMPLETED:
            return self._result(VerificationStatus.ALREADY_COMPLETED, transaction_id, purchase)

        credits_added = self._complete(purchase)
        logger.info("[TEST] Manually completed payment %s", transaction_id)
        result = self._result(VerificationStatus.SUCCESS, transaction_id, purchase, credits_added)
        result["message"] = "Payment manually completed (TEST MODE)"
        return result

    async def handle_webhook(self, event: Optional[str], data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        data = data or {}
        if event != "charge.completed" or data.get("status") != "successful":
            return {"status": "ignored", "message": "Event not processed"}

        transaction_id = data.get("id")
        if transaction_id is None:
            return {"status": "error", "message": "Webhook payload has no transaction id"}
        try:
            await self.verify_payment(str(transaction_id))
        except (PurchaseNotFoundError, IntegrationResponseError, httpx.HTTPError) as exc:
            logger.error("Webhook processing error for %s: %s", transaction_id, exc)
            return {"status": "error", "message": str(exc)}
        return {"status": "success", "message": "Payment processed"}

    def _complete(self, purchase: CreditPurchase, payment_data: Optional[Dict[str, Any]] = None) -> int:
        self.store.mark_purchase_completed(purchase.id, payment_data=payment_data)
        if purchase.credits_amount > 0:
            self.store.add_credits(
                purchase.provider_id,
                purchase.provider_type,
                purchase.credits_amount,
                PURCHASE_REASON,
                reference_id=purchase.id,
            )
            logger.info("Credited %d credits to provider %s", purchase.credits_amount, purchase.provider_id)
        return purchase.credits_amount

    @staticmethod
    def _result(
        status: VerificationStatus,
        transaction_id: str,
        purchase: CreditPurchase,
        credits_added: Optional[int] = None,
    ) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": status.value,
            "transactionId": transaction_id,
            "purchase": purchase_to_dict(purchase),
        }
        if credits_added is not None:
            result["creditsAdded"] = credits_added
        return result
