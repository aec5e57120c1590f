"""Curses implementation of the sidebar's panel host.

A panel is a curses window pinned to the left edge (docked) or covering the
whole screen (floating). Geometry is tracked even when no screen is attached,
so the controller can be driven headless.
"""

from __future__ import annotations

import curses
import itertools
import logging
from dataclasses import dataclass

from chatbar.constants import MIN_MAIN_WIDTH
from chatbar.tui.types import CursesWindow

logger = logging.getLogger(__name__)


@dataclass
class PanelRecord:
    name: str
    mode: str = "hidden"  # hidden | docked | floating
    width: int = 0
    cycle_excluded: bool = False
    window: CursesWindow | None = None


class CursesPanelHost:
    """Owns panel windows on a single curses screen."""

    def __init__(self) -> None:
        self.screen: CursesWindow | None = None
        self.panels: dict[str, PanelRecord] = {}
        self._ids = itertools.count(1)

    def attach(self, screen: CursesWindow) -> None:
        self.screen = screen
        for handle in self.panels:
            self._rebuild_window(handle)

    def _screen_size(self) -> tuple[int, int]:
        if self.screen is None:
            return 24, 80
        height, width = self.screen.getmaxyx()  # type: ignore[attr-defined]
        return height, width

    def _clamped_width(self, width: int) -> int:
        _, screen_width = self._screen_size()
        # leave room for the main surface and the separator column
        return max(1, min(width, screen_width - MIN_MAIN_WIDTH - 1))

    def _rebuild_window(self, handle: str) -> None:
        record = self.panels[handle]
        record.window = None
        if self.screen is None or record.mode == "hidden":
            return
        height, screen_width = self._screen_size()
        width = screen_width if record.mode == "floating" else self._clamped_width(record.width)
        try:
            record.window = curses.newwin(max(1, height), max(1, width), 0, 0)
        except curses.error as e:
            logger.warning("Failed to create window for panel %s: %s", record.name, e)
            return
        # Never steal focus: panels are painted with noutrefresh only
        record.window.noutrefresh()

    # --- PanelHost ---

    def create_panel(self, name: str) -> str:
        handle = f"{name}-{next(self._ids)}"
        self.panels[handle] = PanelRecord(name=name)
        logger.debug("Created panel %s", handle)
        return handle

    def destroy_panel(self, handle: str) -> None:
        record = self.panels.pop(handle, None)
        if record is not None:
            logger.debug("Destroyed panel %s", handle)

    def panel_exists(self, handle: str) -> bool:
        return handle in self.panels

    def dock(self, handle: str, width: int) -> None:
        record = self.panels[handle]
        record.mode = "docked"
        record.width = width
        self._rebuild_window(handle)

    def undock(self, handle: str) -> None:
        record = self.panels.get(handle)
        if record is None:
            return
        record.mode = "hidden"
        self._rebuild_window(handle)

    def float_panel(self, handle: str) -> None:
        record = self.panels[handle]
        record.mode = "floating"
        self._rebuild_window(handle)

    def set_geometry(self, handle: str, width: int) -> None:
        record = self.panels[handle]
        record.width = width
        if record.mode == "docked":
            self._rebuild_window(handle)

    def set_cycle_excluded(self, handle: str, excluded: bool) -> None:
        self.panels[handle].cycle_excluded = excluded

    # --- layout queries ---

    def panel_window(self, handle: str | None) -> CursesWindow | None:
        if handle is None:
            return None
        record = self.panels.get(handle)
        return record.window if record else None

    def docked_width(self) -> int:
        widths = [self._clamped_width(r.width) for r in self.panels.values() if r.mode == "docked"]
        return max(widths, default=0)

    def main_region(self) -> tuple[int, int]:
        """(first column, width) left for the main surface."""
        _, screen_width = self._screen_size()
        docked = self.docked_width()
        if docked == 0:
            return 0, screen_width
        start = docked + 1
        return start, max(0, screen_width - start)

    def resize(self) -> None:
        """Recreate panel windows after a terminal resize."""
        for handle in self.panels:
            self._rebuild_window(handle)
