"""
Payment verification poller.

Resolves a just-initiated mobile money payment to a terminal outcome by
asking the verify endpoint on a fixed interval until it reports success or
failure, or until the ceiling elapses.

One asyncio task owns the whole lifecycle (checks, interval waits, the
ceiling and the post-success navigation delay) and every wait goes through
the same Clock, so the ceiling is measured on the ticks' own time base and
cancelling that one task tears everything down.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from payverify.integrations.contracts.interfaces import (
    PaymentMethod,
    PaymentStatusVerifier,
    PaymentVerification,
    VerificationStatus,
)
from payverify.integrations.contracts.payments import OperatorInfo, operator_for
from payverify.poller.clock import Clock, LoopClock
from payverify.poller.state_machine import (
    CONNECTION_WARNING,
    MESSAGES,
    TITLES,
    FailureReason,
    PollEvent,
    PollState,
    event_for_status,
    failure_reason,
    is_terminal,
    message_for,
    transition,
)
from payverify.utils.config_loader import PollingConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollSnapshot:
    transaction_id: str
    state: PollState
    title: str
    message: str
    warning: Optional[str]
    last_status: Optional[VerificationStatus]
    polling_count: int
    consecutive_errors: int
    elapsed: float
    failure_reason: Optional[FailureReason]
    navigated: bool


class PaymentVerificationPoller:
    """
    Poll the verify endpoint for one transaction.

    Parameters
    ----------
    verification : PaymentVerification
        Transaction id plus display-only payment details.
    verifier : PaymentStatusVerifier
        Client performing the verify call.
    config : PollingConfig, optional
        Interval, ceiling, navigation delay and error thresholds.
    clock : Clock, optional
        Time source for every wait. Defaults to event-loop time.
    destination : str
        Passed to ``on_navigate`` once the success screen has been shown.
    on_navigate : callable, optional
        Called (sync or async) with ``destination`` after a successful
        payment and the navigation delay.
    on_change : callable, optional
        Called with a PollSnapshot whenever state, message or warning change.
    """

    def __init__(
        self,
        verification: PaymentVerification,
        verifier: PaymentStatusVerifier,
        *,
        config: Optional[PollingConfig] = None,
        clock: Optional[Clock] = None,
        destination: str = "ContractorDashboard",
        on_navigate: Optional[Callable[[str], Any]] = None,
        on_change: Optional[Callable[[PollSnapshot], Any]] = None,
    ) -> None:
        if not verification.transaction_id or not str(verification.transaction_id).strip():
            raise ValueError("transaction_id is required")
        verification = replace(verification, payment_method=PaymentMethod(verification.payment_method))

        self.verification = verification
        self._verifier = verifier
        self._config = config or PollingConfig()
        self._clock = clock or LoopClock()
        self._destination = destination
        self._on_navigate = on_navigate
        self._on_change = on_change

        self.state = PollState.PENDING
        self.message = MESSAGES[PollEvent.VERIFIED_PENDING]
        self.warning: Optional[str] = None
        self.last_status: Optional[VerificationStatus] = None
        self.polling_count = 0
        self.consecutive_errors = 0
        self.failure_reason: Optional[FailureReason] = None
        self.navigated = False

        self._started_at: Optional[float] = None
        self._deadline: Optional[float] = None
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def transaction_id(self) -> str:
        return self.verification.transaction_id

    @property
    def operator(self) -> OperatorInfo:
        return operator_for(self.verification.payment_method)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule ``run`` on the running loop and return its task."""
        if self._task is not None or self._started_at is not None:
            raise RuntimeError(f"Poller for {self.transaction_id} was already started")
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Tear down: cancels pending waits, any in-flight verify call and a pending navigation."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[POLLER] Stopped %s in state %s after %d checks",
                    self.transaction_id, self.state.value, self.polling_count)

    async def wait(self) -> PollSnapshot:
        if self._task is None:
            raise RuntimeError("Poller has not been started")
        return await self._task

    async def __aenter__(self) -> "PaymentVerificationPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def run(self) -> PollSnapshot:
        """Poll until a terminal state, then navigate away on success."""
        if self._started_at is not None:
            raise RuntimeError(f"Poller for {self.transaction_id} was already started")

        interval = self._config.interval_seconds
        self._started_at = self._clock.now()
        self._deadline = self._started_at + self._config.ceiling_seconds
        logger.info("[POLLER] Verifying %s via %s (every %ss, ceiling %ss)",
                    self.transaction_id, self.operator.name, interval, self._config.ceiling_seconds)

        tick = 0
        while True:
            await self._check()
            if is_terminal(self.state):
                break
            if self._clock.now() >= self._deadline:
                self._apply(PollEvent.CEILING_ELAPSED)
                break

            tick += 1
            while self._started_at + tick * interval <= self._clock.now():
                tick += 1
            next_tick = self._started_at + tick * interval

            if next_tick >= self._deadline:
                await self._clock.sleep(self._deadline - self._clock.now())
                self._apply(PollEvent.CEILING_ELAPSED)
                break
            await self._clock.sleep(next_tick - self._clock.now())

        if self.state is PollState.SUCCESS:
            await self._navigate_later()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def _check(self) -> None:
        self.polling_count += 1
        attempt = self.polling_count
        try:
            result = await asyncio.wait_for(
                self._verifier.verify(self.transaction_id),
                timeout=self._config.request_timeout_seconds,
            )
        except Exception as exc:
            if is_terminal(self.state):
                return
            # The payment record may not exist yet right after initiation.
            self._record_error(exc, attempt)
            return

        if is_terminal(self.state):
            logger.debug("[POLLER] Ignoring result for finished %s", self.transaction_id)
            return
        if self._clock.now() >= self._deadline:
            logger.info("[POLLER] Discarding %s result for %s that arrived after the ceiling",
                        result.status.value, self.transaction_id)
            return

        self.last_status = result.status
        if self.consecutive_errors:
            self.consecutive_errors = 0
            if self.warning is not None:
                self.warning = None
                self._notify()

        event = event_for_status(result.status)
        if event is PollEvent.VERIFIED_PENDING:
            logger.debug("[POLLER] %s still pending (check %d, raw status %r)",
                         self.transaction_id, attempt, result.raw_status)
        self._apply(event)

    def _record_error(self, exc: Exception, attempt: int) -> None:
        self.consecutive_errors += 1
        logger.warning("[POLLER] Lookup error for %s (check %d, %d in a row): %s",
                       self.transaction_id, attempt, self.consecutive_errors, exc)

        limit = self._config.fail_after_errors
        if limit is not None and self.consecutive_errors >= limit:
            self._apply(PollEvent.ERROR_LIMIT_REACHED)
            return
        if self.consecutive_errors >= self._config.warn_after_errors and self.warning is None:
            self.warning = CONNECTION_WARNING
            self._notify()

    def _apply(self, event: PollEvent) -> None:
        new_state = transition(self.state, event)
        if new_state is self.state:
            return

        self.state = new_state
        self.failure_reason = failure_reason(event)
        self.message = message_for(event) or self.message
        self.warning = None
        logger.info("[POLLER] %s → %s on %s after %d checks (%.1fs)",
                    self.transaction_id, new_state.value, event.value, self.polling_count, self.elapsed)
        self._notify()

    async def _navigate_later(self) -> None:
        await self._clock.sleep(self._config.navigation_delay_seconds)
        self.navigated = True
        logger.info("[POLLER] Leaving verification of %s for %s", self.transaction_id, self._destination)
        if self._on_navigate is not None:
            outcome = self._on_navigate(self._destination)
            if hasattr(outcome, "__await__"):
                await outcome
        self._notify()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock.now() - self._started_at

    def snapshot(self) -> PollSnapshot:
        return PollSnapshot(
            transaction_id=self.transaction_id,
            state=self.state,
            title=TITLES[self.state],
            message=self.message,
            warning=self.warning,
            last_status=self.last_status,
            polling_count=self.polling_count,
            consecutive_errors=self.consecutive_errors,
            elapsed=self.elapsed,
            failure_reason=self.failure_reason,
            navigated=self.navigated,
        )

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
