from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VerificationStatus(str, Enum):
    """Status values reported by GET /payments/verify/{transaction_id}."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    ALREADY_COMPLETED = "already_completed"


class PaymentMethod(str, Enum):
    ORANGE_MONEY = "orange_money"
    MTN_MOMO = "mtn_momo"


class ProviderType(str, Enum):
    THERAPIST = "therapist"
    SALON = "salon"


class GatewayStatus(str, Enum):
    """Transaction status as seen by the payment gateway."""
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class PaymentVerification:
    transaction_id: str
    payment_method: PaymentMethod
    phone_number: str = ""
    amount: float = 0.0
    pack_name: Optional[str] = None


@dataclass
class VerifyResult:
    transaction_id: str
    status: VerificationStatus
    raw_status: Optional[str] = None
    credits_added: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)
    received_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MobileMoneyChargeRequest:
    tx_ref: str
    amount: float
    currency: str
    network: str                         # ORANGE / MTN
    email: str
    phone_number: str
    fullname: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MobileMoneyChargeResponse:
    transaction_id: str
    tx_ref: str
    status: GatewayStatus
    message: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayTransaction:
    transaction_id: str
    tx_ref: str
    status: GatewayStatus
    amount: float
    currency: str
    raw: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract client interfaces
# ---------------------------------------------------------------------------

class PaymentStatusVerifier(ABC):
    """Client side of the verify call used by the poller."""

    @abstractmethod
    async def verify(self, transaction_id: str) -> VerifyResult:
        """Fetch the current status of a payment.

        Raises on transport/server errors; the poller treats those as
        transient lookup errors.
        """


class MobileMoneyGateway(ABC):
    """Every mobile money gateway client must implement this interface."""

    @abstractmethod
    async def charge_mobile_money(self, request: MobileMoneyChargeRequest) -> MobileMoneyChargeResponse:
        """Push a mobile money collection prompt to the subscriber's phone."""

    @abstractmethod
    async def verify_transaction(self, transaction_id: str) -> GatewayTransaction:
        """Look up a previously charged transaction."""
