"""Time source shared by every wait the poller makes."""

import asyncio
from abc import ABC, abstractmethod


class Clock(ABC):
    @abstractmethod
    def now(self) -> float:
        """Monotonic seconds."""

    @abstractmethod
    async def sleep(self, delay: float) -> None:
        """Suspend for ``delay`` seconds of this clock's time."""


class LoopClock(Clock):
    """Event-loop time; the clock ``asyncio.sleep`` itself is scheduled on."""

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(max(delay, 0.0))
