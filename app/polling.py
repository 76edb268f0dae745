"""
Fixed-interval polling.

One timer task fires every `interval` seconds and runs `on_poll` as its own
task. Ticks are serialized: if the previous tick is still in flight when the
timer fires, that tick is skipped rather than overlapped, so results always
arrive in fetch order.

A failing tick is logged and the timer keeps going; the next tick is the
retry.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import config
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class PollingService:
    def __init__(
        self,
        interval: float,
        on_poll: Callable[[], Awaitable[None]],
        name: str = "PollingService",
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.interval = float(interval)
        self.on_poll = on_poll
        self.name = name
        self._timer: Optional[asyncio.Task] = None
        self._tick: Optional[asyncio.Task] = None
        self.ticks_run = 0
        self.ticks_skipped = 0

    @property
    def is_polling(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def tick_in_flight(self) -> bool:
        return self._tick is not None and not self._tick.done()

    def start(self) -> bool:
        """Start the timer. Returns False (and does nothing) if already polling."""
        if self.is_polling:
            logger.warning(f"[{self.name}] Polling already running")
            return False
        logger.info(f"[{self.name}] Polling every {self.interval * 1000:.0f}ms")
        self._timer = asyncio.create_task(self._run())
        return True

    def stop(self) -> None:
        """Cancel the timer. Safe to call when never started; an in-flight tick finishes."""
        if self._timer is None:
            return
        if not self._timer.done():
            self._timer.cancel()
        self._timer = None
        logger.info(f"[{self.name}] Polling stopped")

    async def aclose(self) -> None:
        """Stop and wait for the in-flight tick, if any."""
        timer = self._timer
        self.stop()
        if timer is not None:
            try:
                await timer
            except asyncio.CancelledError:
                pass
        if self._tick is not None:
            await asyncio.gather(self._tick, return_exceptions=True)
            self._tick = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.tick_in_flight:
                self.ticks_skipped += 1
                logger.debug(f"[{self.name}] Previous tick still running, skipping")
                continue
            self._tick = asyncio.create_task(self._run_tick())

    async def _run_tick(self) -> None:
        self.ticks_run += 1
        try:
            await self.on_poll()
        except Exception as e:
            logger.error(f"[{self.name}] Poll failed: {e}")
