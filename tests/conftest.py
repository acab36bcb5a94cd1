from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from latency_console.domain.scenario import PRESET_SCENARIOS, Scenario
from latency_console.domain.session import MeasurementSession
from latency_console.services.display import LiveTelemetry


class FakeTransport:
    def __init__(self, is_open: bool = True) -> None:
        self.is_open = is_open
        self.sent: List[Dict[str, Any]] = []
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []
        self._open_listeners: List[Callable[[], None]] = []

    async def open(self) -> None:
        self.is_open = True
        for listener in self._open_listeners:
            listener()

    async def close(self) -> None:
        self.is_open = False

    def send(self, message: Dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        self._listeners.append(listener)

    def subscribe_to_open(self, listener: Callable[[], None]) -> None:
        self._open_listeners.append(listener)

    def deliver(self, msg: Dict[str, Any]) -> None:
        for listener in self._listeners:
            listener(msg)

    def sent_of(self, kind: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m.get("type") == kind]


class FakeClock:
    """Replacement for asyncio.sleep that returns at once and records the waits."""

    def __init__(self, on_sleep: Optional[Callable[[int], None]] = None) -> None:
        self.sleeps: List[float] = []
        self.on_sleep = on_sleep

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))
        await asyncio.sleep(0)


def measurement_msg(change_us: Optional[float] = 150_000, max_level: float = 1000) -> Dict[str, Any]:
    levels = [[0, 10], [1000, 10], [150_000, 900]]
    return {
        "type": "measurement",
        "light_levels": levels,
        "max_light_level": max_level,
        "change_us": change_us,
    }


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def display() -> LiveTelemetry:
    return LiveTelemetry()


@pytest.fixture()
def session(transport: FakeTransport, display: LiveTelemetry) -> MeasurementSession:
    return MeasurementSession(transport, display)


@pytest.fixture()
def type_a() -> Scenario:
    return PRESET_SCENARIOS["type_a"]


@pytest.fixture()
def doom() -> Scenario:
    return PRESET_SCENARIOS["doom"]
