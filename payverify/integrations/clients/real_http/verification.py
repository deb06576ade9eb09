"""
Real verify-endpoint HTTP client.

Calls the marketplace API's GET /payments/verify/{transaction_id} on behalf of
the poller.
"""

from __future__ import annotations

import os
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from payverify.integrations.contracts.interfaces import PaymentStatusVerifier, VerifyResult
from payverify.integrations.policy.response_wrappers import normalize_verify_response


class RealVerificationClient(PaymentStatusVerifier):
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        verify_path: Optional[str] = None,
        timeout_seconds: float = 2.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("PAYMENTS_API_URL", "")).rstrip("/")
        self.api_key = api_key or os.getenv("PAYMENTS_API_KEY", "")
        self.verify_path = verify_path or os.getenv("PAYMENTS_VERIFY_PATH", "/payments/verify/{transaction_id}")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def verify(self, transaction_id: str) -> VerifyResult:
        if not self.base_url:
            raise ValueError("PAYMENTS_API_URL is not configured.")

        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["X-API-KEY"] = self.api_key

        path = self.verify_path.format(transaction_id=quote(str(transaction_id), safe=""))
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.get(url, headers=headers)
            response.raise_for_status()
            data = response.json() if response.content else {}

        normalized = normalize_verify_response(data, transaction_id=transaction_id)

        return VerifyResult(
            transaction_id=normalized.transaction_id,
            status=normalized.status,
            raw_status=normalized.raw_status,
            credits_added=normalized.credits_added,
            raw=normalized.raw,
        )
