"""
Health Service

Time-windowed cache of toolchain availability.

Probing the toolchain costs a process spawn (or a library load), so the
last answer is reused for `ttl_seconds`. At most one refresh runs at a
time: while it is in flight, callers that already have a stale answer get
it immediately, and only callers with no answer at all wait for the probe.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from leo_executor.domain.ports import IHealthPort
from leo_executor.domain.value_objects import HealthStatus
from leo_executor.infrastructure.logging import get_logger

logger = get_logger(__name__)

Probe = Callable[[], Awaitable[HealthStatus]]


class HealthCache(IHealthPort):
    """
    Read-mostly availability cache owned by whoever builds the coordinator.

    Implements IHealthPort.
    """

    def __init__(
        self,
        probe: Probe,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            probe: Coroutine function returning a fresh HealthStatus
            ttl_seconds: How long an answer stays fresh
            clock: Monotonic time source (injectable for tests)
        """
        self._probe = probe
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._status: Optional[HealthStatus] = None
        self._fetched_at: float = 0.0
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def cached(self) -> Optional[HealthStatus]:
        return self._status

    def is_fresh(self) -> bool:
        return self._status is not None and (self._clock() - self._fetched_at) < self._ttl_seconds

    def invalidate(self) -> None:
        """Force the next call to probe again."""
        self._fetched_at = float("-inf")

    async def get_status(self) -> HealthStatus:
        if self.is_fresh():
            return self._status

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh())

        if self._status is not None:
            # Serve stale while the single refresh runs in the background
            return self._status

        return await asyncio.shield(self._refresh_task)

    async def refresh(self) -> HealthStatus:
        """Probe now, sharing any refresh already in flight."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh())
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> HealthStatus:
        try:
            status = await self._probe()
        except Exception as e:
            logger.error("Health probe raised", error=str(e), exc_info=True)
            status = HealthStatus(
                available=False,
                message=f"Health check failed: {e}",
                checked_at=self._clock(),
            )

        if self._status is None or status.available != self._status.available:
            logger.info("Toolchain availability changed", available=status.available, message=status.message)
        self._status = status
        self._fetched_at = self._clock()
        return status
