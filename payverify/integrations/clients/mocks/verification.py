"""
Verify endpoint (MOCK client).

Replays a scripted sequence of verify outcomes so the poller can be driven
without a running API. Each script entry is one of:
- a status string / VerificationStatus ("pending", "success", ...)
- a dict, returned as the raw JSON body
- an exception instance or class, raised to simulate a lookup error
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

from payverify.integrations.contracts.interfaces import (
    PaymentStatusVerifier,
    VerificationStatus,
    VerifyResult,
)
from payverify.integrations.policy.response_wrappers import normalize_verify_response

logger = logging.getLogger(__name__)


class ScriptedVerificationClient(PaymentStatusVerifier):
    """
    Mock verify client.

    Parameters
    ----------
    script : iterable
        Outcomes returned in order, one per call.
    repeat_last : bool
        Once the script is exhausted, keep returning its last entry. When
        False, exhausted scripts answer "pending". Default True.
    clock : callable, optional
        Returns the current time; when given, call times are recorded in
        ``call_times``.
    """

    def __init__(
        self,
        script: Iterable[Any] = ("pending",),
        repeat_last: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._script: List[Any] = list(script)
        self._repeat_last = repeat_last
        self._clock = clock
        self.calls: List[str] = []
        self.call_times: List[float] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _next_entry(self) -> Any:
        index = len(self.calls) - 1
        if index < len(self._script):
            return self._script[index]
        if self._repeat_last and self._script:
            return self._script[-1]
        return VerificationStatus.PENDING

    async def verify(self, transaction_id: str) -> VerifyResult:
        self.calls.append(transaction_id)
        if self._clock is not None:
            self.call_times.append(self._clock())

        entry = self._next_entry()
        if isinstance(entry, type) and issubclass(entry, BaseException):
            entry = entry("scripted lookup error")
        if isinstance(entry, BaseException):
            logger.debug("[VERIFY MOCK] Call %d for %s raises %r", self.call_count, transaction_id, entry)
            raise entry

        if isinstance(entry, dict):
            body = entry
        else:
            body = {"status": getattr(entry, "value", entry)}

        normalized = normalize_verify_response(body, transaction_id=transaction_id)
        logger.debug("[VERIFY MOCK] Call %d for %s → %s", self.call_count, transaction_id, normalized.status.value)
        return VerifyResult(
            transaction_id=normalized.transaction_id,
            status=normalized.status,
            raw_status=normalized.raw_status,
            credits_added=normalized.credits_added,
            raw=normalized.raw,
        )
