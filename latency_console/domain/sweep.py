from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple

from .interfaces import SweepSurface
from .models import Axis, SweepPhase, SweepState

logger = logging.getLogger(__name__)

BLACK = "black"
WHITE = "white"


class CalibrationSweep:
    """Locates the light sensor on screen by sweeping a white band over black.

    The band moves along X until the sensor reports light above the
    threshold, then along Y. Sensor readings trail the redraw by one
    telemetry tick, so the tick right after every redraw is thrown away.
    """

    def __init__(
        self,
        surface: SweepSurface,
        threshold: float,
        step: int,
        tick_ms: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._surface = surface
        self._threshold = threshold
        self._step = step
        self._tick_s = tick_ms / 1000.0
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

        self.phase = SweepPhase.IDLE
        self.state: Optional[SweepState] = None
        self.last_light_level = 0.0
        self.found_x: Optional[int] = None
        self.result: Optional[Tuple[int, int]] = None

    @property
    def running(self) -> bool:
        return self.state is not None

    def on_light_level(self, avg: float) -> None:
        self.last_light_level = avg

    def find(self) -> None:
        """Start a sweep on the event loop, restarting one already running."""
        self.start()
        self._task = asyncio.create_task(self._run(), name="calibration_sweep")

    def start(self) -> None:
        if self.running or self._task is not None:
            logger.info("Restarting calibration sweep")
            self.cancel()
        self.phase = SweepPhase.IDLE
        self.found_x = None
        self.result = None
        self._begin_axis(Axis.X)

    def cancel(self) -> bool:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        was_running = self.running
        if was_running:
            self.state = None
            self.phase = SweepPhase.IDLE
            logger.info("Calibration sweep cancelled")
        return was_running

    async def wait(self) -> None:
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def tick(self) -> SweepPhase:
        st = self.state
        if st is None:
            return self.phase

        if st.cooldown_armed:
            # reading still reflects the frame before the last redraw
            st.cooldown_armed = False
            return self.phase

        if self.last_light_level > self._threshold:
            self._axis_found(st)
            return self.phase

        extent = self._surface.width if st.axis is Axis.X else self._surface.height
        if st.position >= extent:
            logger.info("%s sweep finished without crossing %.3f", st.axis.value, self._threshold)
            self.state = None
            self.phase = SweepPhase.NOT_FOUND
            return self.phase

        self._advance(st)
        return self.phase

    async def _run(self) -> None:
        try:
            while self.state is not None:
                await self._sleep(self._tick_s)
                self.tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Calibration sweep error: %s", e)
            self.state = None
            self.phase = SweepPhase.NOT_FOUND

    def _begin_axis(self, axis: Axis) -> None:
        self._surface.fill(0, 0, self._surface.width, self._surface.height, BLACK)
        # a reading left over from the previous pass can't count as a crossing
        self.last_light_level = 0.0
        self.state = SweepState(axis=axis, position=0, step=self._step, cooldown_armed=True)
        self.phase = SweepPhase.SWEEP_X if axis is Axis.X else SweepPhase.SWEEP_Y

    def _advance(self, st: SweepState) -> None:
        w, h, pos, step = self._surface.width, self._surface.height, st.position, st.step
        if st.axis is Axis.X:
            if pos > 0:
                self._surface.fill(pos - step, 0, step, h, BLACK)
            self._surface.fill(pos, 0, step, h, WHITE)
        else:
            if pos > 0:
                self._surface.fill(0, pos - step, w, step, BLACK)
            self._surface.fill(0, pos, w, step, WHITE)
        st.position = pos + step
        st.cooldown_armed = True

    def _axis_found(self, st: SweepState) -> None:
        if st.axis is Axis.X:
            self.found_x = st.position
            logger.info("Sensor found at x=%d", st.position)
            self._begin_axis(Axis.Y)
            return

        x, y = self.found_x or 0, st.position
        self.result = (x, y)
        self.state = None
        self.phase = SweepPhase.FOUND
        self._surface.fill(0, 0, self._surface.width, self._surface.height, BLACK)
        self._surface.mark(x, y)
        logger.info("Sensor found at (%d, %d)", x, y)
