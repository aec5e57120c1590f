"""Main curses application: a main chat surface with the session tree beside it."""

from __future__ import annotations

import curses
import logging
import time
from dataclasses import dataclass
from typing import Callable

from chatbar.config.schema import ChatbarConfig
from chatbar.constants import NOTIFICATION_DURATION_S, UI_POLL_INTERVAL_MS
from chatbar.store.models import SessionRef, TargetKind, TargetRef
from chatbar.store.protocol import SessionStore
from chatbar.store.snapshot import SnapshotWatcher
from chatbar.tui.builder import TreeSettings, format_modes
from chatbar.tui.commands import (
    NickbarMode,
    close_nicknames_window,
    expand_all_servers,
    lock_nicknames_window,
    open_browser,
    rebuild_tree,
    resize_nicknames_window,
    resync_tree,
    toggle_nicknames_window,
)
from chatbar.tui.errors import SidebarInactiveError, SidebarStateError, TreeStateError
from chatbar.tui.faces import FaceChain, default_face_resolver, nick_color_layer
from chatbar.tui.panel_host import CursesPanelHost
from chatbar.tui.session import TreeSession
from chatbar.tui.sidebar import SIDEBAR_SURFACE, SidebarController, SidebarState
from chatbar.tui.theme import init_colors, separator_attr
from chatbar.tui.types import CursesWindow, NotificationLevel

logger = logging.getLogger(__name__)

MAIN_SURFACE = "main"

MOUSE_MASK = curses.BUTTON1_CLICKED | curses.BUTTON1_DOUBLE_CLICKED | curses.BUTTON4_PRESSED
_SCROLL_DOWN_MASK = getattr(curses, "BUTTON5_PRESSED", 0x200000)


@dataclass
class Notification:
    """A temporary one-line notification."""

    text: str
    level: NotificationLevel
    expires_at: float


def build_face_chain(store: SessionStore, config: ChatbarConfig) -> FaceChain:
    chain = FaceChain(default_face_resolver(store, config.tree.own_nick_face))
    if config.tree.nick_colors:
        chain.add_layer(nick_color_layer)
    return chain


class ChatbarApp:
    """Curses app hosting the sidebar controller and a simple main surface."""

    def __init__(
        self,
        store: SessionStore,
        config: ChatbarConfig,
        *,
        watcher: SnapshotWatcher | None = None,
        host: CursesPanelHost | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.watcher = watcher
        self.host = host or CursesPanelHost()
        self.settings = TreeSettings.from_config(config)
        self.faces = build_face_chain(store, config)
        self.controller = SidebarController(
            self.host,
            self._make_session,
            width=config.sidebar.width,
            auto_open=config.sidebar.auto_open,
        )
        self.nickbar = NickbarMode(self.controller)
        self.controller.watch_sessions(store)

        # Targets shown in the main surface, one per split; first is current
        self.windows: list[SessionRef] = []
        self.focus = MAIN_SURFACE
        self.notification: Notification | None = None
        self.running = True

    def _make_session(self, is_live: Callable[[], bool]) -> TreeSession:
        return TreeSession(self.store, self.settings, is_live, faces=self.faces, on_activate=self._on_activate)

    # --- surfaces ---

    def surfaces(self) -> list[str]:
        names = [MAIN_SURFACE]
        if self.controller.is_live():
            names.append(SIDEBAR_SURFACE)
        return names

    def _on_activate(self, ref: SessionRef, new_window: bool) -> None:
        if new_window or not self.windows:
            self.windows.insert(0, ref)
        else:
            self.windows[0] = ref
        self.focus = MAIN_SURFACE
        logger.debug("Main surface now shows %s (%d windows)", ref, len(self.windows))

    def cycle_focus(self) -> None:
        cycle = self.controller.focus_cycle(self.surfaces())
        if not cycle:
            return
        if self.focus not in cycle:
            self.focus = cycle[0]
            return
        self.focus = cycle[(cycle.index(self.focus) + 1) % len(cycle)]

    def focus_most_relevant(self) -> None:
        candidates = self.controller.navigation_candidates(self.surfaces())
        if candidates:
            self.focus = candidates[0]

    # --- notifications ---

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.notification = Notification(
            text=message,
            level=level,
            expires_at=time.time() + NOTIFICATION_DURATION_S,
        )

    def guarded(self, action: Callable[[], object]) -> object:
        """Run a command, turning tree and sidebar errors into notifications."""
        try:
            return action()
        except TreeStateError as e:
            logger.error("Tree state error: %s", e)
            self.notify(str(e), NotificationLevel.ERROR)
        except (SidebarInactiveError, SidebarStateError) as e:
            logger.info("Sidebar command rejected: %s", e)
            self.notify(str(e), NotificationLevel.WARNING)
        return None

    # --- commands ---

    def start(self, *, browser: bool = False, sidebar: int | None = None) -> None:
        if browser:
            self.guarded(lambda: open_browser(self.controller))
        elif sidebar is not None:
            self.guarded(lambda: toggle_nicknames_window(self.controller, sidebar))

    def expand_all(self) -> None:
        expanded = expand_all_servers(self.controller)
        self.notify(f"Expanded {expanded} servers")

    def toggle_lock(self) -> None:
        locked = lock_nicknames_window(self.controller)
        self.notify("Sidebar locked" if locked else "Sidebar unlocked")

    def toggle_nickbar(self) -> None:
        active = self.nickbar.toggle()
        self.notify("Nickbar mode on" if active else "Nickbar mode off")

    def handle_key(self, key: int) -> None:
        session = self.controller.session
        if self.focus == SIDEBAR_SURFACE and session is not None and self.controller.is_live():
            if self.guarded(lambda: session.view.handle_key(key)):
                return

        if key == ord("q"):
            logger.debug("Quit requested")
            self.running = False
        elif key == ord("s"):
            self.guarded(lambda: toggle_nicknames_window(self.controller))
        elif key == ord("x"):
            self.guarded(lambda: close_nicknames_window(self.controller))
        elif key == ord("X"):
            self.guarded(lambda: close_nicknames_window(self.controller, kill=True))
        elif key == ord("b"):
            self.guarded(lambda: open_browser(self.controller))
        elif key == ord("l"):
            self.guarded(self.toggle_lock)
        elif key == ord("n"):
            self.guarded(self.toggle_nickbar)
        elif key == ord("g"):
            self.guarded(lambda: resync_tree(self.controller))
        elif key == ord("G"):
            self.guarded(lambda: rebuild_tree(self.controller))
        elif key == ord("E"):
            self.guarded(self.expand_all)
        elif key in (ord("<"), ord(">")):
            self.guarded(lambda: resize_nicknames_window(self.controller, -2 if key == ord("<") else 2))
        elif key == ord("\t"):
            self.cycle_focus()
        elif key == ord("a"):
            self.focus_most_relevant()

        if self.focus == SIDEBAR_SURFACE and not self.controller.is_live():
            self.focus = MAIN_SURFACE

    def handle_mouse(self, mx: int, my: int, bstate: int) -> None:
        session = self.controller.session
        if session is None or not self.controller.is_live():
            return
        in_panel = self.controller.state is SidebarState.DETACHED or mx < self.host.docked_width()
        if not in_panel:
            self.focus = MAIN_SURFACE
            return
        self.focus = SIDEBAR_SURFACE
        if bstate & curses.BUTTON4_PRESSED:
            session.view.move_up()
        elif bstate & _SCROLL_DOWN_MASK:
            session.view.move_down()
        elif bstate & (curses.BUTTON1_CLICKED | curses.BUTTON1_DOUBLE_CLICKED):
            modified = bool(bstate & curses.BUTTON1_DOUBLE_CLICKED)
            self.guarded(lambda: session.view.handle_click(my, mx, modified=modified))

    def on_resize(self) -> None:
        self.host.resize()
        self.controller.on_layout_changed()

    # --- main surface ---

    def header_text(self) -> str:
        if not self.windows:
            return "chatbar"
        ref = self.windows[0]
        if not isinstance(ref, TargetRef):
            return ref.name
        parts = [f"{ref.connection.name} / {self.store.target_display_name(ref)}"]
        if self.store.target_kind(ref) is TargetKind.CHANNEL:
            modes = self.store.channel_modes(ref)
            if not modes.is_empty:
                parts.append(format_modes(modes, reveal_keys=self.settings.reveal_keys))
            topic = self.store.channel_topic(ref)
            if topic:
                parts.append(f"Topic: {topic}")
        return "  ".join(parts)

    def main_lines(self, width: int, height: int) -> list[str]:
        """Lines of the main surface (testable without curses)."""
        lines: list[str] = []
        if self.config.ui.header_line:
            lines.append(self.header_text())
        if not self.windows:
            lines.append("Select a server, channel or query in the tree (s toggles the sidebar).")
        for position, ref in enumerate(self.windows):
            marker = "*" if position == 0 else " "
            name = ref.name if not isinstance(ref, TargetRef) else f"{ref.connection.name}/{ref.name}"
            lines.append(f"{marker} [{position + 1}] {name}")
        return [line[:width] for line in lines[:height]]

    # --- loop ---

    def run(self, stdscr: CursesWindow) -> None:
        """Main event loop.

        Polls with a short timeout so snapshot reloads land without input.
        """
        curses.curs_set(0)
        init_colors()
        curses.mousemask(MOUSE_MASK)
        stdscr.timeout(UI_POLL_INTERVAL_MS)  # type: ignore[attr-defined]
        self.host.attach(stdscr)
        if self.watcher is not None:
            self.watcher.start()

        try:
            self._render(stdscr)
            while self.running:
                if self.watcher is not None:
                    self.guarded(self.watcher.drain)

                key = stdscr.getch()  # type: ignore[attr-defined]
                if key == curses.KEY_RESIZE:
                    self.on_resize()
                elif key == curses.KEY_MOUSE:
                    try:
                        _, mx, my, _, bstate = curses.getmouse()
                    except curses.error:
                        pass
                    else:
                        self.handle_mouse(mx, my, bstate)
                elif key != -1:
                    self.handle_key(key)

                self._render(stdscr)
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        self.controller.unwatch_sessions()

    def _render(self, stdscr: CursesWindow) -> None:
        stdscr.erase()  # type: ignore[attr-defined]
        height, width = stdscr.getmaxyx()  # type: ignore[attr-defined]
        detached = self.controller.state is SidebarState.DETACHED

        if not detached:
            start_col, main_width = self.host.main_region()
            for row, text in enumerate(self.main_lines(max(0, main_width - 1), height - 1)):
                attr = curses.A_BOLD if row == 0 and self.config.ui.header_line else curses.A_NORMAL
                stdscr.addstr(row, start_col, text, attr)  # type: ignore[attr-defined]
            if start_col > 0:
                for row in range(height - 1):
                    stdscr.addstr(row, start_col - 1, "│", separator_attr())  # type: ignore[attr-defined]
            self._render_notification(stdscr, width, height - 1)
        stdscr.noutrefresh()  # type: ignore[attr-defined]

        session = self.controller.session
        window = self.host.panel_window(self.controller.handle)
        if session is not None and window is not None and self.controller.is_live():
            window.erase()
            panel_height, panel_width = window.getmaxyx()
            session.view.render(window, 0, panel_height, panel_width)
            window.noutrefresh()
        curses.doupdate()

    def _render_notification(self, stdscr: CursesWindow, width: int, row: int) -> None:
        if self.notification is None:
            return
        if time.time() > self.notification.expires_at:
            self.notification = None
            return
        attr = curses.A_BOLD if self.notification.level is NotificationLevel.ERROR else curses.A_NORMAL
        stdscr.addstr(row, 0, self.notification.text[: max(0, width - 1)], attr)  # type: ignore[attr-defined]
