"""
Flutterwave mobile money (MOCK client).

⚠️  This is a mock implementation for development and testing.
    Charges are held in memory as pending until ``complete`` or ``fail`` is
    called (by a test, or by the test-complete endpoint).
"""

import itertools
import logging
from typing import Dict, Optional

from payverify.integrations.contracts.interfaces import (
    GatewayStatus,
    GatewayTransaction,
    MobileMoneyChargeRequest,
    MobileMoneyChargeResponse,
    MobileMoneyGateway,
)
from payverify.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)


class FlutterwaveMockClient(MobileMoneyGateway):
    """
    Mock Flutterwave client.

    Parameters
    ----------
    accept_charges : bool
        If False, every charge is refused the way the gateway refuses an
        invalid request. Default True.
    first_transaction_id : int
        Flutterwave uses numeric transaction ids; the mock hands them out
        sequentially from here.
    """

    def __init__(self, accept_charges: bool = True, first_transaction_id: int = 4_800_000):
        self._accept_charges = accept_charges
        self._ids = itertools.count(first_transaction_id)

        # In-memory store (reset on restart)
        self._transactions: Dict[str, GatewayTransaction] = {}

        logger.info("[FLUTTERWAVE MOCK] Client initialised (accept_charges=%s)", accept_charges)

    # ------------------------------------------------------------------
    # Gateway interface
    # ------------------------------------------------------------------

    async def charge_mobile_money(self, request: MobileMoneyChargeRequest) -> MobileMoneyChargeResponse:
        logger.info("[FLUTTERWAVE MOCK] Charging tx_ref=%s amount=%s %s network=%s",
                    request.tx_ref, request.amount, request.currency, request.network)

        if not self._accept_charges:
            raise IntegrationResponseError(
                "Charge refused by gateway.",
                payload={"status": "error", "message": "Charge refused by gateway.", "data": None},
            )

        transaction_id = str(next(self._ids))
        self._transactions[transaction_id] = GatewayTransaction(
            transaction_id=transaction_id,
            tx_ref=request.tx_ref,
            status=GatewayStatus.PENDING,
            amount=request.amount,
            currency=request.currency,
            raw={"network": request.network, "phone_number": request.phone_number, "meta": request.meta},
        )
        return MobileMoneyChargeResponse(
            transaction_id=transaction_id,
            tx_ref=request.tx_ref,
            status=GatewayStatus.PENDING,
            message="Charge initiated",
            raw={"status": "success", "data": {"id": transaction_id, "tx_ref": request.tx_ref, "status": "pending"}},
        )

    async def verify_transaction(self, transaction_id: str) -> GatewayTransaction:
        transaction = self._transactions.get(str(transaction_id))
        if transaction is None:
            raise IntegrationResponseError(
                "No transaction was found for this id",
                payload={"status": "error", "transaction_id": transaction_id},
            )
        return transaction

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    def complete(self, transaction_id: str, amount: Optional[float] = None) -> GatewayTransaction:
        transaction = self._require(transaction_id)
        transaction.status = GatewayStatus.SUCCESSFUL
        if amount is not None:
            transaction.amount = amount
        logger.info("[FLUTTERWAVE MOCK] Transaction %s → successful", transaction_id)
        return transaction

    def fail(self, transaction_id: str) -> GatewayTransaction:
        transaction = self._require(transaction_id)
        transaction.status = GatewayStatus.FAILED
        logger.info("[FLUTTERWAVE MOCK] Transaction %s → failed", transaction_id)
        return transaction

    def _require(self, transaction_id: str) -> GatewayTransaction:
        transaction = self._transactions.get(str(transaction_id))
        if transaction is None:
            raise ValueError(f"[FLUTTERWAVE MOCK] Transaction '{transaction_id}' not found.")
        return transaction
