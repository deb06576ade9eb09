"""
Verification state machine.

PENDING is the only non-terminal state. SUCCESS and FAILED absorb every
event, so a late verify result can never move a finished flow.
"""

from enum import Enum
from typing import Optional

from payverify.integrations.contracts.interfaces import VerificationStatus


class PollState(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class PollEvent(str, Enum):
    VERIFIED_SUCCESS = "verified_success"
    VERIFIED_ALREADY_COMPLETED = "verified_already_completed"
    VERIFIED_FAILED = "verified_failed"
    VERIFIED_PENDING = "verified_pending"
    LOOKUP_ERROR = "lookup_error"
    CEILING_ELAPSED = "ceiling_elapsed"
    ERROR_LIMIT_REACHED = "error_limit_reached"


class FailureReason(str, Enum):
    REPORTED = "reported"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"


TERMINAL_STATES = frozenset({PollState.SUCCESS, PollState.FAILED})

_TRANSITIONS = {
    PollEvent.VERIFIED_SUCCESS: PollState.SUCCESS,
    PollEvent.VERIFIED_ALREADY_COMPLETED: PollState.SUCCESS,
    PollEvent.VERIFIED_FAILED: PollState.FAILED,
    PollEvent.CEILING_ELAPSED: PollState.FAILED,
    PollEvent.ERROR_LIMIT_REACHED: PollState.FAILED,
}

_FAILURE_REASONS = {
    PollEvent.VERIFIED_FAILED: FailureReason.REPORTED,
    PollEvent.CEILING_ELAPSED: FailureReason.TIMEOUT,
    PollEvent.ERROR_LIMIT_REACHED: FailureReason.UNREACHABLE,
}

_STATUS_EVENTS = {
    VerificationStatus.SUCCESS: PollEvent.VERIFIED_SUCCESS,
    VerificationStatus.ALREADY_COMPLETED: PollEvent.VERIFIED_ALREADY_COMPLETED,
    VerificationStatus.FAILED: PollEvent.VERIFIED_FAILED,
    VerificationStatus.PENDING: PollEvent.VERIFIED_PENDING,
}

MESSAGES = {
    PollEvent.VERIFIED_PENDING: "Verifying your payment...",
    PollEvent.VERIFIED_SUCCESS: "Payment successful! Your credits have been added.",
    PollEvent.VERIFIED_ALREADY_COMPLETED: "Payment already completed! Your credits have been added.",
    PollEvent.VERIFIED_FAILED: "The payment failed. Please try again.",
    PollEvent.CEILING_ELAPSED: "Payment verification timed out. Please try again.",
    PollEvent.ERROR_LIMIT_REACHED: "We could not reach the payment service. Please try again.",
}

TITLES = {
    PollState.PENDING: "Payment in progress",
    PollState.SUCCESS: "Payment successful!",
    PollState.FAILED: "Payment failed",
}

CONNECTION_WARNING = "We are having trouble reaching the payment service. Still checking..."


def is_terminal(state: PollState) -> bool:
    return state in TERMINAL_STATES


def event_for_status(status: VerificationStatus) -> PollEvent:
    return _STATUS_EVENTS.get(status, PollEvent.VERIFIED_PENDING)


def transition(state: PollState, event: PollEvent) -> PollState:
    """Return the state reached from ``state`` on ``event``."""
    if is_terminal(state):
        return state
    return _TRANSITIONS.get(event, state)


def failure_reason(event: PollEvent) -> Optional[FailureReason]:
    return _FAILURE_REASONS.get(event)


def message_for(event: PollEvent) -> Optional[str]:
    return MESSAGES.get(event)
