from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .hid import InputReport


class ProtocolError(RuntimeError):
    """Raised when an inbound message doesn't match any known shape."""


class MeasurementMessage(BaseModel):
    type: Literal["measurement"] = "measurement"
    # (offset_us, raw_level), offsets relative to the start report
    light_levels: List[Tuple[float, float]]
    max_light_level: float = Field(gt=0)
    change_us: Optional[float] = None

    @field_validator("light_levels")
    @classmethod
    def _monotonic(cls, levels: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
        for (prev, _), (cur, _) in zip(levels, levels[1:]):
            if cur < prev:
                raise ValueError("light_levels offsets must be non-decreasing")
        return levels


class BackgroundLightLevel(BaseModel):
    type: Literal["background_light_level"] = "background_light_level"
    avg: float = Field(ge=0)


class Version(BaseModel):
    hardware: int
    firmware: int


class StatusMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["status"] = "status"
    version: Optional[Version] = None
    max_light_level: Optional[float] = None


InboundMessage = Annotated[
    Union[MeasurementMessage, BackgroundLightLevel, StatusMessage],
    Field(discriminator="type"),
]

_inbound = TypeAdapter(InboundMessage)


def parse_inbound(data: Any) -> Union[MeasurementMessage, BackgroundLightLevel, StatusMessage]:
    try:
        return _inbound.validate_python(data)
    except ValidationError as e:
        raise ProtocolError(f"Unrecognised device message: {e}") from e


# --- Outbound ---

def status_request() -> Dict[str, Any]:
    return {"type": "status"}


def start_monitoring() -> Dict[str, Any]:
    return {"type": "start_monitoring"}


def stop_monitoring() -> Dict[str, Any]:
    return {"type": "stop_monitoring"}


_report = TypeAdapter(InputReport)


def send_hid_report(report: Any) -> Dict[str, Any]:
    return {"type": "send_hid_report", "hid_report": _report.dump_python(report, mode="json")}
