"""
Real Flutterwave HTTP client.

Used when FLUTTERWAVE_SECRET_KEY is configured.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from payverify.integrations.contracts.interfaces import (
    GatewayTransaction,
    MobileMoneyChargeRequest,
    MobileMoneyChargeResponse,
    MobileMoneyGateway,
)
from payverify.integrations.policy.response_wrappers import (
    normalize_charge_response,
    normalize_gateway_transaction,
)

logger = logging.getLogger(__name__)


class RealFlutterwaveClient(MobileMoneyGateway):
    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.secret_key = secret_key or os.getenv("FLUTTERWAVE_SECRET_KEY", "")
        self.base_url = (base_url or os.getenv("FLUTTERWAVE_API_URL", "https://api.flutterwave.com")).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.secret_key:
            raise ValueError("FLUTTERWAVE_SECRET_KEY is not configured.")
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def charge_mobile_money(self, request: MobileMoneyChargeRequest) -> MobileMoneyChargeResponse:
        payload: Dict[str, Any] = {
            "tx_ref": request.tx_ref,
            "amount": request.amount,
            "currency": request.currency,
            "network": request.network,
            "email": request.email,
            "phone_number": request.phone_number,
            "fullname": request.fullname,
            "meta": request.meta,
        }

        url = f"{self.base_url}/v3/charges"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(
                url,
                params={"type": "mobile_money_franco"},
                json=payload,
                headers=self._headers(),
            )
            if response.is_error:
                logger.error("[FLUTTERWAVE] Charge failed tx_ref=%s status=%s body=%s",
                             request.tx_ref, response.status_code, response.text)
            response.raise_for_status()
            data = response.json() if response.content else {}

        normalized = normalize_charge_response(data, fallback_tx_ref=request.tx_ref)
        return MobileMoneyChargeResponse(
            transaction_id=normalized.transaction_id,
            tx_ref=normalized.tx_ref,
            status=normalized.status,
            message=normalized.message,
            raw=normalized.raw,
        )

    async def verify_transaction(self, transaction_id: str) -> GatewayTransaction:
        url = f"{self.base_url}/v3/transactions/{quote(str(transaction_id), safe='')}/verify"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.get(url, headers=self._headers())
            response.raise_for_status()
            data = response.json() if response.content else {}

        normalized = normalize_gateway_transaction(data, transaction_id=transaction_id)
        logger.info("[FLUTTERWAVE] Transaction %s status=%s", transaction_id, normalized.status.value)
        return GatewayTransaction(
            transaction_id=normalized.transaction_id,
            tx_ref=normalized.tx_ref,
            status=normalized.status,
            amount=normalized.amount,
            currency=normalized.currency,
            raw=normalized.raw,
        )
