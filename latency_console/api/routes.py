from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..core.timeutil import now_local
from ..domain.models import MeasurementView
from ..domain.scenario import PRESET_SCENARIOS, ScenarioError
from ..services.console import ConsoleService
from ..services.display import LiveTelemetry
from ..services.views import VIEW_SLUGS
from ..storage.sqlite_repo import SQLiteRepository
from .schemas import BatchRequest, HidReportRequest, MeasureRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real singletons via app.dependency_overrides.
def get_console() -> ConsoleService:  # overridden in main
    raise RuntimeError("Console dependency not configured")

def get_display() -> LiveTelemetry:  # overridden in main
    raise RuntimeError("Display dependency not configured")

def get_repo() -> SQLiteRepository:  # overridden in main
    raise RuntimeError("Repo dependency not configured")


def _view_json(view: MeasurementView | None) -> dict | None:
    if view is None:
        return None
    return {
        "series": [[s.offset_ms, s.level_percent] for s in view.series],
        "change_ms": view.change_ms,
        "history": [[p.change_ms, p.jitter] for p in view.history],
        "x_max_ms": view.x_max_ms,
    }


@router.get("/live")
async def get_live(console: ConsoleService = Depends(get_console)):
    active = console.views.active
    batch = console.batch.batch
    return {
        "app": settings.app_name,
        "device_mode": settings.device_mode,
        "now_local": now_local().isoformat(),
        "transport_open": console.transport_open,
        "view": active.slug if active else None,
        "measure": {
            "request_in_flight": console.session.state.request_in_flight,
            "batch_in_flight": console.session.state.batch_in_flight,
            "batch_remaining": batch.remaining if batch else None,
            "skipped": console.session.state.skipped,
        },
        "calibration": {
            "phase": console.sweep.phase.value,
            "result": console.sweep.result,
        },
        "dropped_messages": console.dropped_messages,
    }


@router.post("/views/{slug}")
async def switch_view(slug: str, console: ConsoleService = Depends(get_console)):
    try:
        console.views.switch(slug)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown view: {slug}, expected one of {', '.join(VIEW_SLUGS)}")
    return {"ok": True, "view": slug}


# --- Status ---
@router.get("/status")
async def get_status(console: ConsoleService = Depends(get_console)):
    st = console.last_status
    return {"status": st.model_dump() if st else None}


@router.post("/status/refresh")
async def refresh_status(console: ConsoleService = Depends(get_console)):
    return {"ok": console.refresh_status()}


# --- Monitor ---
@router.get("/monitor")
async def get_monitor(console: ConsoleService = Depends(get_console)):
    return {
        "active": console.views.is_active("monitor"),
        "levels": console.monitor.levels(),
    }


# --- Remote ---
@router.post("/remote/hid")
async def remote_hid(req: HidReportRequest, console: ConsoleService = Depends(get_console)):
    return {"ok": console.send_hid(req.hid_report)}


# --- Measure ---
@router.get("/measure/presets")
async def measure_presets():
    return {name: s.to_message() for name, s in PRESET_SCENARIOS.items()}


@router.get("/measure")
async def get_measure(
    console: ConsoleService = Depends(get_console),
    display: LiveTelemetry = Depends(get_display),
):
    return {
        "visible": display.visible,
        "version": display.version,
        "current": _view_json(display.current),
        "archived": [[[p.change_ms, p.jitter] for p in run] for run in console.session.state.archived],
    }


@router.post("/measure")
async def measure(req: MeasureRequest, console: ConsoleService = Depends(get_console)):
    try:
        dispatched = console.measure(req.scenario)
    except ScenarioError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": dispatched}


@router.post("/measure/batch")
async def measure_batch(req: BatchRequest, console: ConsoleService = Depends(get_console)):
    try:
        started = console.start_batch(req.scenario, req.count, req.interval_ms)
    except ScenarioError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": started}


@router.post("/measure/batch/cancel")
async def measure_batch_cancel(console: ConsoleService = Depends(get_console)):
    return {"ok": console.cancel_batch()}


@router.post("/measure/enough")
async def measure_enough(console: ConsoleService = Depends(get_console)):
    return {"ok": True, "archived_points": console.enough()}


@router.get("/measure/summary")
async def measure_summary(console: ConsoleService = Depends(get_console)):
    return asdict(console.summary())


@router.get("/measurements")
async def measurements(
    limit: int = 500,
    repo: SQLiteRepository = Depends(get_repo),
):
    rows = await repo.query_measurements(limit=min(max(1, limit), 20000))
    return {
        "rows": [
            {
                "ts_utc": m.ts_utc.isoformat(),
                "scenario": m.scenario_json,
                "max_light_level": m.max_light_level,
                "n_samples": m.n_samples,
                "change_ms": m.change_ms,
            }
            for m in rows
        ],
    }


# --- Calibration ---
@router.get("/calibration")
async def get_calibration(console: ConsoleService = Depends(get_console)):
    st = console.sweep.state
    return {
        "phase": console.sweep.phase.value,
        "axis": st.axis.value if st else None,
        "position": st.position if st else None,
        "found_x": console.sweep.found_x,
        "result": console.sweep.result,
        "last_light_level": console.sweep.last_light_level,
    }


@router.post("/calibration/find")
async def calibration_find(console: ConsoleService = Depends(get_console)):
    console.find_sensor()
    return {"ok": True, "phase": console.sweep.phase.value}


@router.post("/calibration/cancel")
async def calibration_cancel(console: ConsoleService = Depends(get_console)):
    return {"ok": console.cancel_sweep()}


@router.get("/calibration/canvas")
async def calibration_canvas(console: ConsoleService = Depends(get_console)):
    return console.surface.snapshot()
