from __future__ import annotations
import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..core.config import settings
from ..domain.batch import RepeatBatchController
from ..domain.interfaces import TelemetryDisplay, Transport
from ..domain.messages import (
    BackgroundLightLevel,
    MeasurementMessage,
    ProtocolError,
    StatusMessage,
    parse_inbound,
    send_hid_report,
    start_monitoring,
    status_request,
    stop_monitoring,
)
from ..domain.scenario import Scenario, parse_scenario
from ..domain.session import MeasurementSession
from ..domain.statistics import LatencySummary, summarize
from ..domain.sweep import CalibrationSweep
from .display import CanvasSurface
from .monitor import BackgroundMonitor
from .recorder import MeasurementRecorder
from .views import View, ViewSwitcher

logger = logging.getLogger(__name__)


ScenarioInput = Union[str, Mapping[str, Any], Scenario]


class ConsoleService:
    """Wires the device channel to the measure, monitor and calibration logic."""

    def __init__(
        self,
        transport: Transport,
        display: TelemetryDisplay,
        surface: CanvasSurface,
        recorder: Optional[MeasurementRecorder] = None,
    ) -> None:
        self._transport = transport
        self.display = display
        self.surface = surface
        self.recorder = recorder

        self.session = MeasurementSession(
            transport,
            display,
            on_record=recorder.submit if recorder is not None else None,
        )
        self.batch = RepeatBatchController(self.session)
        self.sweep = CalibrationSweep(
            surface,
            threshold=settings.sweep_threshold,
            step=settings.sweep_step,
            tick_ms=settings.sweep_tick_ms,
        )
        self.monitor = BackgroundMonitor(settings.monitor_points)
        self.last_status: Optional[StatusMessage] = None
        self.dropped_messages = 0

        self.views = ViewSwitcher(
            {
                "status": View("status"),
                "monitor": View(
                    "monitor",
                    activate=self._start_monitoring,
                    deactivate=self._leave_monitor,
                    wants_telemetry=True,
                ),
                "remote": View("remote"),
                "measure": View("measure", deactivate=self.batch.close),
                "calibration": View(
                    "calibration",
                    activate=self._start_monitoring,
                    deactivate=self._leave_calibration,
                    wants_telemetry=True,
                ),
            }
        )

        transport.subscribe(self._on_message)
        transport.subscribe_to_open(self._on_open)

    @property
    def transport_open(self) -> bool:
        return self._transport.is_open

    async def start(self) -> None:
        try:
            await self._transport.open()
        except ConnectionError as e:
            logger.error("Device channel unavailable: %s", e)

    async def stop(self) -> None:
        self.batch.close()
        self.sweep.cancel()
        await self._transport.close()

    # --- Measure ---

    def measure(self, raw: ScenarioInput) -> bool:
        return self.session.dispatch(parse_scenario(raw))

    def start_batch(
        self,
        raw: ScenarioInput,
        count: Optional[int] = None,
        interval_ms: Optional[float] = None,
    ) -> bool:
        scenario = parse_scenario(raw)
        return self.batch.start(
            scenario,
            count if count is not None else settings.batch_count,
            interval_ms if interval_ms is not None else settings.batch_interval_ms,
        )

    def cancel_batch(self) -> bool:
        return self.batch.cancel()

    def enough(self) -> int:
        return len(self.session.enough())

    def summary(self) -> LatencySummary:
        return summarize(self.session.state.outcomes)

    # --- Remote / status ---

    def send_hid(self, report: Any) -> bool:
        return self._transport.send(send_hid_report(report))

    def refresh_status(self) -> bool:
        return self._transport.send(status_request())

    # --- Calibration ---

    def find_sensor(self) -> None:
        self.views.switch("calibration")
        self.sweep.find()

    def cancel_sweep(self) -> bool:
        return self.sweep.cancel()

    # --- Channel callbacks ---

    def _on_open(self) -> None:
        active = self.views.active
        if active is not None and active.wants_telemetry:
            self._transport.send(start_monitoring())

    def _on_message(self, raw: Dict[str, Any]) -> None:
        try:
            msg = parse_inbound(raw)
        except ProtocolError as e:
            self.dropped_messages += 1
            logger.warning("%s", e)
            return

        if isinstance(msg, MeasurementMessage):
            self.session.on_result(msg)
        elif isinstance(msg, BackgroundLightLevel):
            if self.views.is_active("monitor"):
                self.monitor.on_light_level(msg.avg)
            elif self.views.is_active("calibration"):
                self.sweep.on_light_level(msg.avg)
        elif isinstance(msg, StatusMessage):
            self.last_status = msg

    # --- View hooks ---

    def _start_monitoring(self) -> None:
        if self._transport.is_open:
            self._transport.send(start_monitoring())

    def _stop_monitoring(self) -> None:
        if self._transport.is_open:
            self._transport.send(stop_monitoring())

    def _leave_monitor(self) -> None:
        self._stop_monitoring()
        self.monitor.clear()

    def _leave_calibration(self) -> None:
        self.sweep.cancel()
        self._stop_monitoring()
