from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import latency_console.api.routes as routes_module

from .domain.interfaces import Transport
from .drivers.device_sim import SimDeviceConfig, SimulatedDevice
from .drivers.ws_transport import WebSocketTransport
from .services.console import ConsoleService
from .services.display import CanvasSurface, LiveTelemetry
from .services.recorder import MeasurementRecorder
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


# --- Singletons ---
display = LiveTelemetry()
surface = CanvasSurface(settings.sweep_width, settings.sweep_height)
repo = SQLiteRepository(settings.sqlite_path)


def build_transport() -> Transport:
    if settings.device_mode.lower() == "ws":
        return WebSocketTransport(settings.device_ws_url)

    # default to sim
    return SimulatedDevice(
        SimDeviceConfig(latency_ms=settings.sim_latency_ms, jitter_ms=settings.sim_jitter_ms),
        surface=surface,
        sensor_xy=(settings.sim_sensor_x, settings.sim_sensor_y),
    )


recorder: MeasurementRecorder | None = None
console: ConsoleService | None = None


def get_console() -> ConsoleService:
    assert console is not None
    return console


def get_display() -> LiveTelemetry:
    return display


def get_repo() -> SQLiteRepository:
    return repo


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s (device_mode=%s)", settings.app_name, settings.device_mode)

    global recorder, console
    await repo.init()
    if settings.record_measurements:
        recorder = MeasurementRecorder(repo)
        await recorder.start()

    console = ConsoleService(
        transport=build_transport(),
        display=display,
        surface=surface,
        recorder=recorder,
    )
    await console.start()

    try:
        yield
    finally:
        if console:
            await console.stop()

        if recorder:
            await recorder.stop()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_console] = get_console
app.dependency_overrides[routes_module.get_display] = get_display
app.dependency_overrides[routes_module.get_repo] = get_repo

app.include_router(api_router, prefix="/api")


def run() -> None:
    import uvicorn

    uvicorn.run("latency_console.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
