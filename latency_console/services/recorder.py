from __future__ import annotations
import asyncio
import logging
from typing import Optional

from ..domain.interfaces import Repository
from ..domain.models import MeasurementRecord

logger = logging.getLogger(__name__)


class MeasurementRecorder:
    """Appends finished measurements to the repository off the event callbacks."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._queue: asyncio.Queue[Optional[MeasurementRecord]] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self.written = 0

    def submit(self, record: MeasurementRecord) -> None:
        self._queue.put_nowait(record)

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="measurement_recorder")

    async def stop(self) -> None:
        if self._task:
            # sentinel lets queued records drain first
            self._queue.put_nowait(None)
            await self._task
            self._task = None

    async def _run(self) -> None:
        logger.info("Recorder loop started")
        while True:
            record = await self._queue.get()
            if record is None:
                break
            try:
                await self._repo.insert_measurement(record)
                self.written += 1
            except Exception as e:
                logger.exception("Failed to record measurement: %s", e)
        logger.info("Recorder loop stopped")
