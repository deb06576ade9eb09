"""
Integrations layer.
This package contains all code used to communicate with external systems:
- the marketplace API verify endpoint (polled after a mobile money payment)
- the Flutterwave mobile money gateway (charges and transaction lookups)

Key rule:
- The poller and the payments service MUST NOT call external APIs directly.
- They call integration clients (under payverify/integrations/clients).
- We use MOCK clients during development and swap to REAL_HTTP clients when credentials are configured.
"""

from .contracts.interfaces import (
    GatewayStatus,
    GatewayTransaction,
    MobileMoneyChargeRequest,
    MobileMoneyChargeResponse,
    MobileMoneyGateway,
    PaymentMethod,
    PaymentStatusVerifier,
    PaymentVerification,
    ProviderType,
    PurchaseStatus,
    VerificationStatus,
    VerifyResult,
)
from .contracts.payments import (
    OPERATORS,
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    OperatorInfo,
    operator_for,
    validate_initiate_request,
)

__all__ = [
    # interfaces
    "GatewayStatus", "GatewayTransaction", "MobileMoneyChargeRequest",
    "MobileMoneyChargeResponse", "MobileMoneyGateway", "PaymentMethod",
    "PaymentStatusVerifier", "PaymentVerification", "ProviderType",
    "PurchaseStatus", "VerificationStatus", "VerifyResult",
    # payments
    "OPERATORS", "InitiatePaymentRequest", "InitiatePaymentResponse",
    "OperatorInfo", "operator_for",
    "validate_initiate_request",
]
