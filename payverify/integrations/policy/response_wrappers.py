from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from payverify.integrations.contracts.interfaces import GatewayStatus, VerificationStatus


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class VerifyResponseModel(BaseModel):
    transaction_id: str
    status: VerificationStatus
    raw_status: Optional[str] = None
    credits_added: Optional[int] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class ChargeResponseModel(BaseModel):
    transaction_id: str
    tx_ref: str
    status: GatewayStatus
    message: str
    raw: Dict[str, Any] = Field(default_factory=dict)


class GatewayTransactionModel(BaseModel):
    transaction_id: str
    tx_ref: str
    status: GatewayStatus
    amount: float
    currency: str
    raw: Dict[str, Any] = Field(default_factory=dict)


def normalize_verify_response(raw: Any, *, transaction_id: str) -> VerifyResponseModel:
    """Normalize a verify endpoint body.

    Unknown or missing status values mean the payment is still pending.
    """
    if not isinstance(raw, dict):
        raise IntegrationResponseError(f"Verify response must be a JSON object; got {type(raw).__name__}.")

    raw_status = raw.get("status")
    credits = raw.get("creditsAdded", raw.get("credits_added"))

    return _build_model(
        VerifyResponseModel,
        {
            "transaction_id": transaction_id,
            "status": _map_verification_status(raw_status),
            "raw_status": None if raw_status is None else str(raw_status),
            "credits_added": _coerce_optional_int(credits),
            "raw": raw,
        },
        raw,
    )


def normalize_charge_response(raw: Dict[str, Any], *, fallback_tx_ref: str) -> ChargeResponseModel:
    if str(raw.get("status", "")).strip().lower() != "success":
        raise IntegrationResponseError(
            str(_first_non_empty(raw, "message", default="Gateway refused the mobile money charge")),
            payload=raw,
        )
    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    transaction_id = _first_non_empty(data, "id", "transaction_id", "flw_ref")
    tx_ref = str(_first_non_empty(data, "tx_ref", default=fallback_tx_ref))

    return _build_model(
        ChargeResponseModel,
        {
            "transaction_id": str(transaction_id),
            "tx_ref": tx_ref,
            "status": _map_gateway_status(data.get("status")),
            "message": str(_first_non_empty(raw, "message", default="Charge initiated")),
            "raw": raw,
        },
        raw,
    )


def normalize_gateway_transaction(raw: Dict[str, Any], *, transaction_id: str) -> GatewayTransactionModel:
    data = raw.get("data") if isinstance(raw.get("data"), dict) else None
    if data is None:
        raise IntegrationResponseError("Gateway transaction response has no data object.", payload=raw)

    return _build_model(
        GatewayTransactionModel,
        {
            "transaction_id": str(_first_non_empty(data, "id", default=transaction_id)),
            "tx_ref": str(_first_non_empty(data, "tx_ref", default="")),
            "status": _map_gateway_status(data.get("status")),
            "amount": _coerce_amount(_first_non_empty(data, "amount", "charged_amount", default=0)),
            "currency": str(_first_non_empty(data, "currency", default="XAF")).upper(),
            "raw": raw,
        },
        raw,
    )


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _coerce_amount(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid amount: {value!r}") from exc


def _coerce_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _map_verification_status(raw_status: Any) -> VerificationStatus:
    value = str(raw_status or "").strip().lower()
    try:
        return VerificationStatus(value)
    except ValueError:
        return VerificationStatus.PENDING


def _map_gateway_status(raw_status: Any) -> GatewayStatus:
    value = str(raw_status or "").strip().lower()
    mapping = {
        "successful": GatewayStatus.SUCCESSFUL,
        "success": GatewayStatus.SUCCESSFUL,
        "completed": GatewayStatus.SUCCESSFUL,
        "failed": GatewayStatus.FAILED,
        "cancelled": GatewayStatus.FAILED,
        "error": GatewayStatus.FAILED,
    }
    return mapping.get(value, GatewayStatus.PENDING)


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
