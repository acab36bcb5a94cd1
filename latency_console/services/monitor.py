from __future__ import annotations
from collections import deque
from typing import Optional


class BackgroundMonitor:
    """Rolling window of background light levels, in percent."""

    def __init__(self, points: int) -> None:
        self._buf: deque[float] = deque(maxlen=points)
        self.last_level: Optional[float] = None

    def on_light_level(self, avg: float) -> None:
        self.last_level = avg * 100.0
        self._buf.append(self.last_level)

    def clear(self) -> None:
        self._buf.clear()

    def levels(self) -> list[float]:
        return list(self._buf)
