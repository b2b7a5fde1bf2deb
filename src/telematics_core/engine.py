"""
Base periodic analysis engine
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from telematics_core import metrics

logger = structlog.get_logger(__name__)


class PeriodicEngine(ABC):
    """Runs ``tick`` on a fixed interval in an asyncio task.

    Ticks are synchronous, so cancelling the task in ``stop`` only ever lands
    on the sleep between ticks and a running tick always completes.
    """

    name = "engine"
    # Tick before the first sleep instead of after it
    tick_on_start = False

    def __init__(self):
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @abstractmethod
    def interval_seconds(self) -> float:
        """Delay before the next tick."""

    @abstractmethod
    def tick(self) -> None:
        """Compute and publish one analysis result."""

    def on_start(self) -> None:
        pass

    def on_stop(self) -> None:
        pass

    async def start(self) -> None:
        """Start the periodic loop; a second call is a no-op."""
        if self._running:
            logger.debug("Engine already running", engine=self.name)
            return

        self._running = True
        self.on_start()
        self._task = asyncio.create_task(self.run(), name=f"{self.name}-loop")
        logger.info("Engine started", engine=self.name)

    async def stop(self) -> None:
        """Stop scheduling ticks."""
        if not self._running:
            logger.debug("Engine not running", engine=self.name)
            return

        self._running = False
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        self.on_stop()
        logger.info("Engine stopped", engine=self.name)

    async def run(self) -> None:
        """Main analysis loop"""
        if self.tick_on_start:
            self.run_tick()

        while self._running:
            await asyncio.sleep(self.interval_seconds())
            if not self._running:
                break
            self.run_tick()

    def run_tick(self) -> bool:
        """Run one tick, logging and swallowing internal faults."""
        start = time.perf_counter()
        try:
            self.tick()
        except Exception as e:
            metrics.tick_failures.labels(engine=self.name).inc()
            logger.error("Analysis tick failed", engine=self.name, error=str(e), exc_info=True)
            return False
        finally:
            metrics.ticks_total.labels(engine=self.name).inc()
            metrics.tick_duration.labels(engine=self.name).observe(time.perf_counter() - start)
        return True
