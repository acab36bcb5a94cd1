from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..services.display import CanvasSurface

logger = logging.getLogger(__name__)


@dataclass
class SimDeviceConfig:
    max_light_level: int = 1000
    dark_level: float = 10.0
    bright_level: float = 900.0
    noise: float = 3.0
    sample_period_us: int = 1000
    latency_ms: float = 60.0
    jitter_ms: float = 15.0
    # background telemetry, as a 0..1 fraction
    monitor_period_s: float = 0.02
    bg_dark: float = 0.02
    bg_bright: float = 0.85
    bg_noise: float = 0.01
    hardware: int = 1
    firmware: int = 1


class SimulatedDevice:
    """In-process stand-in for the device bridge.

    Answers ``measure`` with a dark-to-bright light curve once the scenario
    duration has elapsed, ``status`` with a version, and streams background
    light levels at ~50Hz while monitoring. With a canvas attached, the
    background level follows the colour under the simulated sensor.
    """

    def __init__(
        self,
        cfg: Optional[SimDeviceConfig] = None,
        surface: Optional[CanvasSurface] = None,
        sensor_xy: Tuple[int, int] = (0, 0),
    ) -> None:
        self.cfg = cfg or SimDeviceConfig()
        self.surface = surface
        self.sensor_xy = sensor_xy
        self.is_open = False
        self.sent: List[Dict[str, Any]] = []
        self.monitoring = False
        self._monitor_task: Optional[asyncio.Task] = None
        self._timers: Set[asyncio.TimerHandle] = set()
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []
        self._open_listeners: List[Callable[[], None]] = []

    async def open(self) -> None:
        self.is_open = True
        logger.info("Simulated device connected")
        for listener in list(self._open_listeners):
            listener()

    async def close(self) -> None:
        self.is_open = False
        self._stop_monitoring()
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        self._listeners.append(listener)

    def subscribe_to_open(self, listener: Callable[[], None]) -> None:
        self._open_listeners.append(listener)

    def send(self, message: Dict[str, Any]) -> bool:
        if not self.is_open:
            logger.error("Simulated device closed, %s message can't be sent", message.get("type"))
            return False

        self.sent.append(message)
        kind = message.get("type")

        if kind == "measure":
            delay_s = float(message.get("duration_ms", 0)) / 1000.0
            self._schedule(delay_s, self.measurement(message))
        elif kind == "status":
            self._schedule(0.0, self.status())
        elif kind == "start_monitoring":
            if self._monitor_task is None:
                self.monitoring = True
                self._monitor_task = asyncio.create_task(self._monitor_loop(), name="sim_monitor")
        elif kind == "stop_monitoring":
            self._stop_monitoring()
        elif kind == "send_hid_report":
            logger.info("SIM HID report: %s", message.get("hid_report"))
        else:
            logger.warning("Simulated device ignoring %r", kind)
        return True

    def measurement(self, scenario: Dict[str, Any]) -> Dict[str, Any]:
        cfg = self.cfg
        duration_us = int(scenario.get("duration_ms", 0)) * 1000
        change_at_us = max(1.0, random.gauss(cfg.latency_ms, cfg.jitter_ms)) * 1000.0

        levels: List[List[float]] = []
        change_us: Optional[int] = None
        for t in range(0, duration_us + 1, cfg.sample_period_us):
            bright = t >= change_at_us
            if bright and change_us is None:
                change_us = t
            base = cfg.bright_level if bright else cfg.dark_level
            levels.append([t, max(0.0, base + random.uniform(-cfg.noise, cfg.noise))])

        return {
            "type": "measurement",
            "light_levels": levels,
            "max_light_level": cfg.max_light_level,
            "change_us": change_us,
        }

    def status(self) -> Dict[str, Any]:
        return {
            "type": "status",
            "version": {"hardware": self.cfg.hardware, "firmware": self.cfg.firmware},
            "max_light_level": self.cfg.max_light_level,
        }

    def background_level(self) -> float:
        cfg = self.cfg
        lit = self.surface is not None and self.surface.color_at(*self.sensor_xy) == "white"
        base = cfg.bg_bright if lit else cfg.bg_dark
        return max(0.0, base + random.uniform(-cfg.bg_noise, cfg.bg_noise))

    def _schedule(self, delay_s: float, msg: Dict[str, Any]) -> None:
        handle: Optional[asyncio.TimerHandle] = None

        def fire() -> None:
            self._timers.discard(handle)
            self._emit(msg)

        handle = asyncio.get_running_loop().call_later(delay_s, fire)
        self._timers.add(handle)

    def _stop_monitoring(self) -> None:
        self.monitoring = False
        if self._monitor_task is not None:
            self._monitor_task.cancel()
            self._monitor_task = None

    async def _monitor_loop(self) -> None:
        while self.monitoring:
            self._emit({"type": "background_light_level", "avg": self.background_level()})
            await asyncio.sleep(self.cfg.monitor_period_s)

    def _emit(self, msg: Dict[str, Any]) -> None:
        if not self.is_open:
            return
        for listener in list(self._listeners):
            try:
                listener(msg)
            except Exception as e:
                logger.exception("Message listener failed: %s", e)
