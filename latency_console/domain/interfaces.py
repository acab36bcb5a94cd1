from __future__ import annotations
from typing import Any, Callable, Dict, Protocol, runtime_checkable
from .models import MeasurementRecord, MeasurementView


Message = Dict[str, Any]


@runtime_checkable
class Transport(Protocol):
    is_open: bool

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    def send(self, message: Message) -> bool:
        ...

    def subscribe(self, listener: Callable[[Message], None]) -> None:
        ...

    def subscribe_to_open(self, listener: Callable[[], None]) -> None:
        ...


@runtime_checkable
class TelemetryDisplay(Protocol):
    def show_measurement(self, view: MeasurementView) -> None:
        ...

    def clear_measurement(self) -> None:
        ...


@runtime_checkable
class SweepSurface(Protocol):
    width: int
    height: int

    def fill(self, x: int, y: int, w: int, h: int, color: str) -> None:
        ...

    def mark(self, x: int, y: int) -> None:
        ...


@runtime_checkable
class Repository(Protocol):
    async def init(self) -> None:
        ...

    async def insert_measurement(self, record: MeasurementRecord) -> None:
        ...

    async def query_measurements(self, limit: int) -> list[MeasurementRecord]:
        ...
