import asyncio
import logging


logger = logging.getLogger(__name__)


class ConcurrencyGate:
    """Counting permit pool bounding how many units are in flight.

    Wraps ``asyncio.Semaphore`` (FIFO wake-up order, so no waiter starves)
    and records current and peak occupancy for reporting and tests.
    """

    def __init__(self, capacity: int, name: str = "") -> None:
        assert capacity >= 1
        self.capacity = capacity
        self.name = name
        self._sema = asyncio.Semaphore(capacity)
        self.in_flight = 0
        self.peak = 0
        logger.debug(f"Created gate '{name}': capacity={capacity}")

    async def acquire(self) -> None:
        await self._sema.acquire()
        self.in_flight += 1
        if self.in_flight > self.peak:
            self.peak = self.in_flight
        logger.debug(f"Gate '{self.name}' acquired ({self.in_flight}/{self.capacity})")

    def release(self) -> None:
        if self.in_flight <= 0:
            raise RuntimeError(f"Gate '{self.name}' released more times than acquired")
        self.in_flight -= 1
        self._sema.release()
        logger.debug(f"Gate '{self.name}' released ({self.in_flight}/{self.capacity})")
