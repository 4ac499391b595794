"""Fixed-cadence poll loop for the commentary source."""

from __future__ import annotations

import asyncio
import logging

from matchcast.scheduler.service import BroadcastScheduler
from matchcast.services.event_source import EventSourceError

LOGGER = logging.getLogger("Poller")


class EventSourcePoller:
    """Polls the source, one request at a time.

    The next tick is scheduled only after the previous one finished, success or
    failure, so there is never more than one request outstanding. While the
    console is not broadcasting or not configured, ticks are fast no-ops.
    """

    def __init__(
        self,
        scheduler: BroadcastScheduler,
        *,
        interval: float = 1.0,
        config_retry: float = 1.0,
    ) -> None:
        self.scheduler = scheduler
        self.interval = interval
        self.config_retry = config_retry
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run())
        LOGGER.info(f"Poll loop started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        LOGGER.info("Poll loop stopped")

    async def run(self) -> None:
        while True:
            try:
                delay = await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                LOGGER.exception(f"Poll tick failed unexpectedly: {e}")
                delay = self.interval
            await asyncio.sleep(delay)

    async def tick(self) -> float:
        """Run one poll; return the delay before the next tick."""
        request = self.scheduler.prepare_poll()
        if request is None:
            return self.config_retry

        try:
            batch = await self.scheduler.client.poll(request.url, request.payload)
        except EventSourceError as e:
            LOGGER.debug(f"Poll #{request.sequence} failed: {e}")
            self.scheduler.record_poll_failure(request, e)
        else:
            self.scheduler.apply_poll_result(request, batch)
        return self.interval
