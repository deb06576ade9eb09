import re
from dataclasses import dataclass
from typing import Dict, List

from .interfaces import PaymentMethod, ProviderType

"""
Payment contracts.

Defines the expected request/response structures for the mobile money
credit-pack flow, e.g.:
- initiating a payment
- verifying a payment

These contracts are shared by:
- clients/mocks/* (fake responses for development/testing)
- clients/real_http/* (real API calls)
"""

# ---------------------------------------------------------------------------
# Operator details
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperatorInfo:
    name: str
    network: str                         # network code sent to the gateway
    ussd_code: str                       # dialled by the subscriber to approve


OPERATORS: Dict[PaymentMethod, OperatorInfo] = {
    PaymentMethod.ORANGE_MONEY: OperatorInfo(name="Orange Money", network="ORANGE", ussd_code="#150*50#"),
    PaymentMethod.MTN_MOMO: OperatorInfo(name="MTN Mobile Money", network="MTN", ussd_code="*126#"),
}


def operator_for(method: PaymentMethod) -> OperatorInfo:
    return OPERATORS[PaymentMethod(method)]


# ---------------------------------------------------------------------------
# Initiation
# ---------------------------------------------------------------------------


@dataclass
class InitiatePaymentRequest:
    amount: float
    email: str
    phone_number: str
    name: str
    provider_id: str
    provider_type: ProviderType
    pack_id: str
    payment_method: PaymentMethod
    currency: str = "XAF"


@dataclass
class InitiatePaymentResponse:
    transaction_id: str
    tx_ref: str
    status: str
    message: str


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_initiate_request(request: InitiatePaymentRequest) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the request is valid.
    """
    errors: List[str] = []

    if request.amount is None or request.amount <= 0:
        errors.append("amount must be greater than zero")
    if not request.email:
        errors.append("email is required")
    if not request.provider_id:
        errors.append("provider_id is required")
    if not request.pack_id:
        errors.append("pack_id is required")
    if not request.currency:
        errors.append("currency is required")
    if request.payment_method not in OPERATORS:
        errors.append(f"payment_method '{request.payment_method}' is not a mobile money method")

    # Cameroonian subscriber number: 9 digits, optional +237 prefix and separators
    phone = re.sub(r"[\s.\-()]", "", request.phone_number or "").lstrip("+")
    if phone.startswith("237"):
        phone = phone[3:]
    if len(phone) != 9 or not phone.isdigit():
        errors.append(f"phone_number '{request.phone_number}' does not look valid")

    return errors
