"""Sidebar lifecycle: open, dock at a fixed width, hide, kill.

State machine: CLOSED -> OPENING -> DOCKED -> CLOSED. DETACHED is the tree
shown in its own full panel (the browser); it is never entered from DOCKED.
Hiding keeps the tree session for a fast reopen; killing destroys it and runs
the kill hooks.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Protocol

from chatbar.store.models import SessionRef, StoreEvent, StoreEventKind
from chatbar.store.protocol import SessionStore
from chatbar.tui.errors import SidebarInactiveError, SidebarStateError
from chatbar.tui.session import TreeSession

logger = logging.getLogger(__name__)

SIDEBAR_SURFACE = "sidebar"

SessionFactory = Callable[[Callable[[], bool]], TreeSession]


class SidebarState(str, Enum):
    CLOSED = "closed"
    OPENING = "opening"
    DOCKED = "docked"
    DETACHED = "detached"


class PanelHost(Protocol):
    """Host UI layer that owns panel windows and their geometry."""

    def create_panel(self, name: str) -> str: ...

    def destroy_panel(self, handle: str) -> None: ...

    def panel_exists(self, handle: str) -> bool: ...

    def dock(self, handle: str, width: int) -> None:
        """Show the panel in the fixed-width left region without taking focus."""
        ...

    def undock(self, handle: str) -> None: ...

    def float_panel(self, handle: str) -> None: ...

    def set_geometry(self, handle: str, width: int) -> None: ...

    def set_cycle_excluded(self, handle: str, excluded: bool) -> None: ...


class SidebarController:
    """Owns the single sidebar panel and its tree session."""

    def __init__(
        self,
        host: PanelHost,
        session_factory: SessionFactory,
        *,
        width: int,
        auto_open: bool = False,
        panel_name: str = "chatbar-tree",
    ) -> None:
        self.host = host
        self.session_factory = session_factory
        self.width = width
        self.auto_open = auto_open
        self.panel_name = panel_name
        self.state = SidebarState.CLOSED
        self.session: TreeSession | None = None
        self.handle: str | None = None
        self.locked = False
        self._kill_hooks: list[Callable[[], None]] = []
        self._auto_open_conditions: list[Callable[[], bool]] = []
        self._unsubscribe: Callable[[], None] | None = None

    # --- queries ---

    def is_live(self) -> bool:
        """True while a panel exists and shows the tree."""
        if self.state is SidebarState.CLOSED or self.session is None or self.handle is None:
            return False
        return self.host.panel_exists(self.handle)

    def navigation_candidates(self, surfaces: Iterable[str]) -> list[str]:
        """Drop the sidebar's own surface from "most relevant session" candidates."""
        return [surface for surface in surfaces if surface != SIDEBAR_SURFACE]

    def focus_cycle(self, surfaces: Iterable[str]) -> list[str]:
        """Surfaces generic window cycling may visit."""
        candidates = list(surfaces)
        if self.locked or not self.is_live():
            return [surface for surface in candidates if surface != SIDEBAR_SURFACE]
        return candidates

    # --- hooks ---

    def add_kill_hook(self, hook: Callable[[], None]) -> None:
        self._kill_hooks.append(hook)

    def add_auto_open_condition(self, condition: Callable[[], bool]) -> None:
        self._auto_open_conditions.append(condition)

    def watch_sessions(self, store: SessionStore) -> None:
        """Open the sidebar when the store reports a new chat session (if configured)."""
        if self._unsubscribe is None:
            self._unsubscribe = store.subscribe(self._on_store_event)

    def unwatch_sessions(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.kind is StoreEventKind.SESSION_CREATED:
            self.on_session_created(event.ref)

    def on_session_created(self, ref: SessionRef) -> bool:
        if not (self.auto_open or any(condition() for condition in self._auto_open_conditions)):
            return False
        if self.state is SidebarState.DETACHED:
            return False
        logger.debug("New session %s: ensuring sidebar is open", ref)
        return self.ensure_open()

    # --- transitions ---

    def _ensure_session(self) -> str:
        """Create the panel and session if missing. Returns the panel handle."""
        handle = self.handle
        if handle is None or not self.host.panel_exists(handle):
            handle = self.handle = self.host.create_panel(self.panel_name)
        if self.session is None:
            self.session = self.session_factory(self.is_live)
        else:
            self.session.resync()
        return handle

    def ensure_open(self) -> bool:
        """Dock the sidebar. Returns False if it was already docked."""
        if self.state is SidebarState.DOCKED and self.is_live():
            return False
        previous = self.state
        if previous is SidebarState.DETACHED and self.handle is not None:
            self.host.undock(self.handle)
        self.state = SidebarState.OPENING
        try:
            handle = self._ensure_session()
            self.host.dock(handle, self.width)
            self.host.set_cycle_excluded(handle, self.locked)
        except Exception:
            self.state = SidebarState.CLOSED
            raise
        self.state = SidebarState.DOCKED
        logger.info("Sidebar docked (width=%d)", self.width)
        return True

    def on_layout_changed(self) -> bool:
        """Re-assert the docked geometry after any host layout change."""
        if self.state is not SidebarState.DOCKED or self.handle is None:
            return False
        if not self.host.panel_exists(self.handle):
            logger.warning("Sidebar panel vanished; marking sidebar closed")
            self.handle = None
            self.state = SidebarState.CLOSED
            return False
        self.host.set_geometry(self.handle, self.width)
        return True

    def set_width(self, width: int) -> None:
        self.width = width
        self.on_layout_changed()

    def ensure_closed(self, *, kill: bool = False) -> bool:
        """Hide the sidebar, or with `kill` destroy its session and run the kill hooks.

        Returns False if there was nothing to do.
        """
        if self.state is SidebarState.CLOSED and not kill:
            return False

        changed = False
        if self.state is not SidebarState.CLOSED and self.handle is not None and self.host.panel_exists(self.handle):
            self.host.undock(self.handle)
            changed = True
        self.state = SidebarState.CLOSED

        if kill:
            if self.session is not None:
                self.session.close()
                self.session = None
                changed = True
            if self.handle is not None:
                if self.host.panel_exists(self.handle):
                    self.host.destroy_panel(self.handle)
                self.handle = None
                changed = True
            self.locked = False
            for hook in list(self._kill_hooks):
                hook()
            logger.info("Sidebar killed")
        elif changed:
            logger.info("Sidebar hidden")
        return changed

    def toggle(self, arg: int | None = None) -> bool:
        """No arg toggles; a positive arg forces open, zero or negative forces closed."""
        if arg is None:
            if self.state is SidebarState.DOCKED:
                return self.ensure_closed()
            return self.ensure_open()
        if arg > 0:
            return self.ensure_open()
        return self.ensure_closed()

    def open_browser(self) -> bool:
        """Show the tree in its own full panel."""
        if self.state is SidebarState.DOCKED:
            raise SidebarStateError("The tree is docked as a sidebar; close it before opening the browser")
        if self.state is SidebarState.DETACHED and self.is_live():
            return False
        self.state = SidebarState.OPENING
        try:
            handle = self._ensure_session()
            self.host.float_panel(handle)
        except Exception:
            self.state = SidebarState.CLOSED
            raise
        self.state = SidebarState.DETACHED
        logger.info("Tree opened in its own panel")
        return True

    def lock(self) -> None:
        self._set_locked(True)

    def unlock(self) -> None:
        self._set_locked(False)

    def toggle_lock(self, arg: int | None = None) -> bool:
        """Flip the lock (or force it with a signed arg). Returns the new lock state."""
        locked = (not self.locked) if arg is None else arg > 0
        self._set_locked(locked)
        return locked

    def _set_locked(self, locked: bool) -> None:
        handle = self.handle
        if handle is None or not self.is_live():
            raise SidebarInactiveError("Sidebar is not active")
        self.locked = locked
        self.host.set_cycle_excluded(handle, locked)
        logger.debug("Sidebar %s", "locked" if locked else "unlocked")
