"""User-facing sidebar commands and the nickbar feature mode."""

from __future__ import annotations

import logging

from chatbar.constants import MAX_SIDEBAR_WIDTH, MIN_SIDEBAR_WIDTH
from chatbar.tui.errors import SidebarInactiveError
from chatbar.tui.session import TreeSession
from chatbar.tui.sidebar import SidebarController

logger = logging.getLogger(__name__)


class NickbarMode:
    """While active, the sidebar opens on its own whenever a chat session is created.

    Killing the sidebar turns the mode off.
    """

    def __init__(self, controller: SidebarController) -> None:
        self.controller = controller
        self.active = False
        controller.add_kill_hook(self._on_kill)
        controller.add_auto_open_condition(lambda: self.active)

    def enable(self) -> None:
        if self.active:
            return
        self.active = True
        self.controller.ensure_open()
        logger.info("Nickbar mode enabled")

    def disable(self) -> None:
        if not self.active:
            return
        self.active = False
        logger.info("Nickbar mode disabled")

    def toggle(self, arg: int | None = None) -> bool:
        """Flip the mode, or force it on (positive arg) / off (zero or negative)."""
        enabled = (not self.active) if arg is None else arg > 0
        if enabled:
            self.enable()
        else:
            self.disable()
        return self.active

    def _on_kill(self) -> None:
        self.disable()


def open_browser(controller: SidebarController) -> bool:
    return controller.open_browser()


def toggle_nicknames_window(controller: SidebarController, arg: int | None = None) -> bool:
    return controller.toggle(arg)


def lock_nicknames_window(controller: SidebarController, arg: int | None = None) -> bool:
    return controller.toggle_lock(arg)


def close_nicknames_window(controller: SidebarController, *, kill: bool = False) -> bool:
    return controller.ensure_closed(kill=kill)


def _live_session(controller: SidebarController) -> TreeSession:
    session = controller.session
    if session is None or not controller.is_live():
        raise SidebarInactiveError("Sidebar is not active")
    return session


def resync_tree(controller: SidebarController) -> None:
    """Rebuild from the store, keeping what was expanded."""
    _live_session(controller).resync()


def rebuild_tree(controller: SidebarController) -> None:
    """Rebuild from the store with every server collapsed."""
    _live_session(controller).mutator.rebuild()


def expand_all_servers(controller: SidebarController) -> int:
    return _live_session(controller).mutator.expand_all_servers()


def resize_nicknames_window(controller: SidebarController, delta: int) -> int:
    width = max(MIN_SIDEBAR_WIDTH, min(MAX_SIDEBAR_WIDTH, controller.width + delta))
    if width != controller.width:
        controller.set_width(width)
        logger.debug("Sidebar width now %d", width)
    return width
