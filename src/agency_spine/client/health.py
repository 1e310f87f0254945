"""Periodic store-health polling for connectivity indicators."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from agency_spine.core.logging import get_logger

from .cache import ResourceClient

logger = get_logger(__name__)

DEFAULT_HEALTH_INTERVAL = 30.0

HealthCallback = Callable[[bool], Awaitable[None] | None]


class HealthMonitor:
    """Poll ``ResourceClient.check_store_health`` on a fixed interval.

    ``healthy`` is ``None`` until the first probe completes. ``on_change``
    is called (sync or async) whenever the reported state flips.
    """

    def __init__(
        self,
        client: ResourceClient,
        *,
        interval: float = DEFAULT_HEALTH_INTERVAL,
        on_change: HealthCallback | None = None,
    ):
        self._client = client
        self._interval = interval
        self._on_change = on_change
        self._task: asyncio.Task | None = None
        self._checked = asyncio.Event()
        self.healthy: bool | None = None
        self.last_checked: datetime | None = None
        self.checks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> bool:
        """Run one probe and record it."""
        healthy = await self._client.check_store_health()
        changed = healthy != self.healthy
        self.healthy = healthy
        self.last_checked = datetime.now(timezone.utc)
        self.checks += 1
        self._checked.set()

        if changed:
            logger.info("store_health_changed", healthy=healthy)
            if self._on_change is not None:
                maybe = self._on_change(healthy)
                if asyncio.iscoroutine(maybe):
                    await maybe
        return healthy

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def wait_for_check(self) -> bool:
        """Wait until at least one probe has completed."""
        await self._checked.wait()
        return bool(self.healthy)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def __aenter__(self) -> HealthMonitor:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()


__all__ = [
    "DEFAULT_HEALTH_INTERVAL",
    "HealthMonitor",
]
