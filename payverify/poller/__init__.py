"""
Payment verification poller.

Usage:
    async with PaymentVerificationPoller(verification, verifier, on_navigate=go) as poller:
        snapshot = await poller.wait()
"""

from .clock import Clock, LoopClock
from .poller import PaymentVerificationPoller, PollSnapshot
from .state_machine import FailureReason, PollEvent, PollState, transition

__all__ = [
    "Clock",
    "LoopClock",
    "PaymentVerificationPoller",
    "PollSnapshot",
    "FailureReason",
    "PollEvent",
    "PollState",
    "transition",
]
