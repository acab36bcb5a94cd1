from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .scenario import Scenario


@dataclass(frozen=True)
class Sample:
    offset_ms: float
    level_percent: float


@dataclass(frozen=True)
class ChangePoint:
    change_ms: float
    jitter: float  # scatter-plot y value, presentation only


@dataclass(frozen=True)
class MeasurementView:
    series: Tuple[Sample, ...]
    change_ms: Optional[float]
    history: Tuple[ChangePoint, ...]
    x_max_ms: float


@dataclass(frozen=True)
class MeasurementRecord:
    ts_utc: datetime
    scenario_json: str
    max_light_level: float
    n_samples: int
    change_ms: Optional[float]


class Axis(str, Enum):
    X = "x"
    Y = "y"


class SweepPhase(str, Enum):
    IDLE = "idle"
    SWEEP_X = "sweep_x"
    SWEEP_Y = "sweep_y"
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass
class SweepState:
    axis: Axis
    position: int
    step: int
    cooldown_armed: bool = True


@dataclass
class BatchState:
    scenario: Scenario
    remaining: int
    interval_ms: float
