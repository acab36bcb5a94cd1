from __future__ import annotations
from dataclasses import asdict, dataclass
from typing import List, Optional, Tuple

from ..domain.models import MeasurementView


class LiveTelemetry:
    """Holds what the measure charts currently show; the web UI polls it."""

    def __init__(self) -> None:
        self.current: Optional[MeasurementView] = None
        self.visible = False
        self.version = 0

    def show_measurement(self, view: MeasurementView) -> None:
        self.current = view
        self.visible = True
        self.version += 1

    def clear_measurement(self) -> None:
        self.current = None
        self.visible = False
        self.version += 1


@dataclass(frozen=True)
class FillOp:
    x: int
    y: int
    w: int
    h: int
    color: str

    def contains(self, px: int, py: int) -> bool:
        return self.x <= px < self.x + self.w and self.y <= py < self.y + self.h


class CanvasSurface:
    """In-memory calibration canvas.

    Keeps the fills drawn since the last full-surface fill, which is enough
    to redraw it client-side or to look up the colour under a point.
    """

    def __init__(self, width: int, height: int, background: str = "black") -> None:
        self.width = width
        self.height = height
        self._background = background
        self.ops: List[FillOp] = []
        self.marker: Optional[Tuple[int, int]] = None
        self.version = 0

    def fill(self, x: int, y: int, w: int, h: int, color: str) -> None:
        if x <= 0 and y <= 0 and x + w >= self.width and y + h >= self.height:
            self._background = color
            self.ops.clear()
            self.marker = None
        else:
            self.ops.append(FillOp(x, y, w, h, color))
        self.version += 1

    def mark(self, x: int, y: int) -> None:
        self.marker = (x, y)
        self.version += 1

    def color_at(self, x: int, y: int) -> str:
        for op in reversed(self.ops):
            if op.contains(x, y):
                return op.color
        return self._background

    def snapshot(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "background": self._background,
            "ops": [asdict(op) for op in self.ops],
            "marker": self.marker,
            "version": self.version,
        }
