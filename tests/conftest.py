"""Pytest fixtures for poller, client and payments tests."""

import asyncio

import pytest

from payverify.database.purchases import PurchaseStore
from payverify.integrations.clients.mocks.flutterwave import FlutterwaveMockClient
from payverify.integrations.contracts.interfaces import PaymentMethod, PaymentVerification
from payverify.payments.service import PaymentsService
from payverify.poller.clock import Clock


async def settle(rounds: int = 20) -> None:
    """Let ready tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualClock(Clock):
    """Virtual clock: sleepers only wake when the test advances time."""

    def __init__(self) -> None:
        self._now = 0.0
        self._sleepers = []

    def now(self) -> float:
        return self._now

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        entry = (self._now + max(delay, 0.0), future)
        self._sleepers.append(entry)
        try:
            await future
        finally:
            if entry in self._sleepers:
                self._sleepers.remove(entry)

    @property
    def pending(self) -> int:
        return len(self._sleepers)

    def jump(self, seconds: float) -> None:
        """Move time without waking anyone (a slow call in flight)."""
        self._now += seconds

    async def advance(self, seconds: float) -> None:
        target = self._now + seconds
        await settle()
        while True:
            due = [s for s in self._sleepers if s[0] <= target + 1e-9]
            if not due:
                break
            entry = min(due, key=lambda s: s[0])
            self._sleepers.remove(entry)
            self._now = max(self._now, entry[0])
            if not entry[1].done():
                entry[1].set_result(None)
            await settle()
        self._now = max(self._now, target)
        await settle()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def verification():
    return PaymentVerification(
        transaction_id="4800001",
        payment_method=PaymentMethod.MTN_MOMO,
        phone_number="677000000",
        amount=10_000.0,
    )


@pytest.fixture
def gateway():
    return FlutterwaveMockClient()


@pytest.fixture
def store():
    return PurchaseStore()


@pytest.fixture
def service(gateway, store):
    return PaymentsService(gateway=gateway, store=store)
