from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..core.timeutil import now_utc, us_to_ms
from .interfaces import TelemetryDisplay, Transport
from .messages import MeasurementMessage
from .models import ChangePoint, MeasurementRecord, MeasurementView, Sample
from .scenario import Scenario

logger = logging.getLogger(__name__)

_GOLDEN = 0.6180339887498949


def sequence_jitter(index: int) -> float:
    """Scatter y-value for the index-th change point.

    Points at the same delay would overlap on the scatter plot; spreading them
    along the golden-ratio sequence keeps them distinct and evenly spaced.
    The value carries no measurement meaning.
    """
    return ((index + 1) * _GOLDEN) % 1.0


@dataclass
class SessionState:
    request_in_flight: bool = False
    batch_in_flight: bool = False
    last_scenario_json: str = ""
    scenario_is_new: bool = False
    scenario_duration_ms: float = 0.0
    history: List[ChangePoint] = field(default_factory=list)
    outcomes: List[Optional[float]] = field(default_factory=list)
    archived: List[Tuple[ChangePoint, ...]] = field(default_factory=list)
    last_view: Optional[MeasurementView] = None
    skipped: int = 0


class MeasurementSession:
    """Sends one scenario at a time and turns replies into display series.

    There is no request id on the wire: with at most one measure request
    outstanding, the next measurement message belongs to it.
    """

    def __init__(
        self,
        transport: Transport,
        display: TelemetryDisplay,
        on_record: Optional[Callable[[MeasurementRecord], None]] = None,
    ) -> None:
        self._transport = transport
        self._display = display
        self._on_record = on_record
        self.state = SessionState()

    @property
    def busy(self) -> bool:
        return self.state.request_in_flight or self.state.batch_in_flight

    def dispatch(self, scenario: Optional[Scenario]) -> bool:
        if self.state.batch_in_flight:
            logger.info("dispatch refused: a batch is running")
            return False
        return self._dispatch(scenario)

    def dispatch_batched(self, scenario: Optional[Scenario]) -> bool:
        """Dispatch on behalf of the batch controller holding the batch lock."""
        return self._dispatch(scenario)

    def _dispatch(self, scenario: Optional[Scenario]) -> bool:
        if scenario is None:
            return False

        # check and set below must not be split by an await
        if self.state.request_in_flight:
            self.state.skipped += 1
            logger.debug("dispatch skipped: request already in flight")
            return False

        if not self._transport.is_open:
            logger.error("Transport closed, measure request dropped")
            return False

        self.state.request_in_flight = True
        if not self._transport.send(scenario.to_message()):
            self.state.request_in_flight = False
            logger.error("Measure request not accepted by the transport")
            return False

        # only a scenario that actually went out replaces the current one
        scenario_json = scenario.serialize()
        if scenario_json != self.state.last_scenario_json:
            self.state.scenario_is_new = True
            self.state.last_scenario_json = scenario_json
            self.state.scenario_duration_ms = float(scenario.duration_ms)
            self._display.clear_measurement()
            logger.info("New scenario (duration=%dms)", scenario.duration_ms)
        return True

    def on_result(self, msg: MeasurementMessage) -> Optional[MeasurementView]:
        if not self.state.request_in_flight:
            logger.warning("Stray measurement with no request in flight, ignoring")
            return None

        self.state.request_in_flight = False

        if self.state.scenario_is_new:
            self.state.scenario_is_new = False
            self.state.history.clear()
            self.state.outcomes.clear()

        series = tuple(
            Sample(offset_ms=us_to_ms(us), level_percent=level / msg.max_light_level * 100.0)
            for us, level in msg.light_levels
        )
        change_ms = us_to_ms(msg.change_us) if msg.change_us is not None else None

        self.state.outcomes.append(change_ms)
        if change_ms is not None:
            self.state.history.append(
                ChangePoint(change_ms=change_ms, jitter=sequence_jitter(len(self.state.history)))
            )

        view = MeasurementView(
            series=series,
            change_ms=change_ms,
            history=tuple(self.state.history),
            x_max_ms=self.state.scenario_duration_ms,
        )
        self.state.last_view = view
        self._display.show_measurement(view)

        if change_ms is None:
            logger.info("Measurement: %d samples, no change detected", len(series))
        else:
            logger.info("Measurement: %d samples, change at %.3fms", len(series), change_ms)

        if self._on_record is not None:
            self._on_record(
                MeasurementRecord(
                    ts_utc=now_utc(),
                    scenario_json=self.state.last_scenario_json,
                    max_light_level=msg.max_light_level,
                    n_samples=len(series),
                    change_ms=change_ms,
                )
            )
        return view

    def enough(self) -> Tuple[ChangePoint, ...]:
        """Archive the scatter history as a finished run and start over."""
        snapshot = tuple(self.state.history)
        self.state.archived.insert(0, snapshot)
        self.state.history.clear()
        self.state.outcomes.clear()
        self.state.last_view = None
        self._display.clear_measurement()
        logger.info("Archived run with %d change points", len(snapshot))
        return snapshot
