from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .models import BatchState
from .scenario import Scenario
from .session import MeasurementSession

logger = logging.getLogger(__name__)


class RepeatBatchController:
    """Fires one scenario ``count`` times at a fixed cadence.

    Pacing is wall-clock from each send, not from each reply. When the device
    is slower than the interval, the session's in-flight guard turns the
    next dispatch into a no-op instead of queueing it.
    """

    def __init__(
        self,
        session: MeasurementSession,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._session = session
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self.batch: Optional[BatchState] = None
        self.sent = 0

    @property
    def running(self) -> bool:
        return self.batch is not None

    def start(self, scenario: Optional[Scenario], count: int, interval_ms: float) -> bool:
        if self._session.busy:
            logger.info("Batch refused: a request or batch is already in flight")
            return False
        if scenario is None or count < 1:
            return False

        self._session.state.batch_in_flight = True
        self._cancel_requested = False
        self.sent = 0
        self.batch = BatchState(scenario=scenario, remaining=count, interval_ms=float(interval_ms))
        self._task = asyncio.create_task(self._run(self.batch), name="repeat_batch")
        logger.info("Batch started: count=%d interval=%sms", count, interval_ms)
        return True

    def cancel(self) -> bool:
        """Stop after the pending wait; a request already sent still gets its reply."""
        if not self.running:
            return False
        self._cancel_requested = True
        logger.info("Batch cancel requested (remaining=%d)", self.batch.remaining if self.batch else 0)
        return True

    def close(self) -> None:
        """Tear down immediately, dropping the pending timer."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._release()

    async def wait(self) -> None:
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _release(self) -> None:
        self._session.state.batch_in_flight = False
        self.batch = None

    async def _run(self, batch: BatchState) -> None:
        try:
            while True:
                if self._session.dispatch_batched(batch.scenario):
                    self.sent += 1

                await self._sleep(batch.interval_ms / 1000.0)

                batch.remaining -= 1
                if batch.remaining <= 0 or self._cancel_requested:
                    break
        except asyncio.CancelledError:
            logger.info("Batch torn down")
            raise
        finally:
            if self.batch is batch:
                self._release()
            logger.info("Batch finished: sent=%d skipped_remaining=%d", self.sent, max(batch.remaining, 0))
