from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


VIEW_SLUGS = ("status", "monitor", "remote", "measure", "calibration")


def _noop() -> None:
    pass


@dataclass(frozen=True)
class View:
    slug: str
    activate: Callable[[], None] = _noop
    deactivate: Callable[[], None] = _noop
    wants_telemetry: bool = False


class ViewSwitcher:
    """Keeps exactly one view active, running the leave/enter hooks on switch."""

    def __init__(self, views: Dict[str, View], initial: str = "status") -> None:
        self._views = views
        self.active: Optional[View] = None
        self.switch(initial)

    def switch(self, slug: str) -> View:
        view = self._views.get(slug)
        if view is None:
            raise KeyError(slug)
        if self.active is view:
            return view
        if self.active is not None:
            self.active.deactivate()
        self.active = view
        view.activate()
        logger.info("View switched to %s", slug)
        return view

    def is_active(self, slug: str) -> bool:
        return self.active is not None and self.active.slug == slug
