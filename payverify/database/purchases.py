"""
Lightweight in-memory store for credit packs, credit purchases and provider
credit balances.

Mirrors the tables the payments service reads and writes (credit_packs,
credit_purchases, provider_credits, credit_transactions) so the API can run
without a database. It is NOT intended for production use.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from payverify.integrations.contracts.interfaces import ProviderType, PurchaseStatus


@dataclass
class CreditPack:
    id: str
    name: str
    price: float
    credits: int
    bonus_credits: int = 0
    active: bool = True

    @property
    def total_credits(self) -> int:
        return (self.credits or 0) + (self.bonus_credits or 0)


@dataclass
class CreditPurchase:
    id: str
    provider_id: str
    provider_type: ProviderType
    pack_id: str
    credits_amount: int
    price_paid: float
    payment_method: str
    payment_provider: str = "flutterwave"
    flutterwave_transaction_id: Optional[str] = None
    flutterwave_tx_ref: Optional[str] = None
    payment_status: PurchaseStatus = PurchaseStatus.PENDING
    payment_data: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None


@dataclass
class ProviderCredits:
    provider_id: str
    provider_type: ProviderType
    balance: int = 0
    total_earned: int = 0


@dataclass
class CreditTransaction:
    id: str
    provider_id: str
    provider_type: ProviderType
    amount: int
    transaction_type: str
    balance_before: int
    balance_after: int
    reference_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


DEFAULT_PACKS: List[CreditPack] = [
    CreditPack(id="pack-starter", name="Starter", price=2_500.0, credits=10),
    CreditPack(id="pack-pro", name="Pro", price=10_000.0, credits=45, bonus_credits=5),
    CreditPack(id="pack-premium", name="Premium", price=20_000.0, credits=100, bonus_credits=20),
]


class PurchaseStore:
    """
    In-memory stand-in for the hosted tables behind the payments service.
    """

    def __init__(self, packs: Optional[List[CreditPack]] = None) -> None:
        self._packs: Dict[str, CreditPack] = {p.id: p for p in (packs if packs is not None else DEFAULT_PACKS)}
        self._purchases: Dict[str, CreditPurchase] = {}
        self._credits: Dict[Tuple[str, str], ProviderCredits] = {}
        self._transactions: List[CreditTransaction] = []

    # ------------------------------------------------------------------ #
    # Packs
    # ------------------------------------------------------------------ #
    def get_pack(self, pack_id: str) -> Optional[CreditPack]:
        pack = self._packs.get(pack_id)
        return pack if pack is not None and pack.active else None

    # ------------------------------------------------------------------ #
    # Purchases
    # ------------------------------------------------------------------ #
    def create_purchase(self, **fields: Any) -> CreditPurchase:
        purchase = CreditPurchase(id=str(uuid.uuid4()), **fields)
        self._purchases[purchase.id] = purchase
        return purchase

    def find_purchase_by_tx_ref(self, tx_ref: str) -> Optional[CreditPurchase]:
        if not tx_ref:
            return None
        return next((p for p in self._purchases.values() if p.flutterwave_tx_ref == tx_ref), None)

    def find_purchase_by_transaction_id(self, transaction_id: str) -> Optional[CreditPurchase]:
        return next(
            (p for p in self._purchases.values() if p.flutterwave_transaction_id == str(transaction_id)),
            None,
        )

    def mark_purchase_completed(
        self,
        purchase_id: str,
        payment_data: Optional[Dict[str, Any]] = None,
    ) -> CreditPurchase:
        purchase = self._purchases[purchase_id]
        purchase.payment_status = PurchaseStatus.COMPLETED
        purchase.completed_at = datetime.utcnow()
        if payment_data is not None:
            purchase.payment_data = payment_data
        return purchase

    # ------------------------------------------------------------------ #
    # Provider credits
    # ------------------------------------------------------------------ #
    def get_balance(self, provider_id: str, provider_type: ProviderType) -> ProviderCredits:
        key = (provider_id, ProviderType(provider_type).value)
        if key not in self._credits:
            self._credits[key] = ProviderCredits(provider_id=provider_id, provider_type=ProviderType(provider_type))
        return self._credits[key]

    def add_credits(
        self,
        provider_id: str,
        provider_type: ProviderType,
        amount: int,
        reason: str,
        reference_id: Optional[str] = None,
    ) -> int:
        """Credit a provider and record the ledger entry. Returns the new balance."""
        credits = self.get_balance(provider_id, provider_type)
        before = credits.balance
        credits.balance = before + amount
        credits.total_earned += amount
        self._transactions.append(
            CreditTransaction(
                id=str(uuid.uuid4()),
                provider_id=provider_id,
                provider_type=ProviderType(provider_type),
                amount=amount,
                transaction_type=reason,
                balance_before=before,
                balance_after=credits.balance,
                reference_id=reference_id,
            )
        )
        return credits.balance

    def list_transactions(self, provider_id: str) -> List[CreditTransaction]:
        return [t for t in self._transactions if t.provider_id == provider_id]
