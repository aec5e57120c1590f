"""Session tree view: scrolling, selection and click routing over a TreeBuffer."""

from __future__ import annotations

import curses
import logging
from typing import Callable

from chatbar.store.models import SessionRef
from chatbar.tui.buffer import TreeBuffer
from chatbar.tui.mutator import TreeMutator
from chatbar.tui.render import display_text, glyph_column
from chatbar.tui.theme import face_attr
from chatbar.tui.types import CursesWindow, ExpandState

logger = logging.getLogger(__name__)

EMPTY_TREE_TEXT = "(no connections)"

# (navigable ref, open in a fresh split)
ActivateCallback = Callable[[SessionRef, bool], None]

_ENTER_KEYS = (curses.KEY_ENTER, 10, 13)


class TreeView:
    """Renders visible buffer lines; `flat_items` holds their buffer indices.

    `get_render_lines` returns the same text `render` draws, without curses.
    """

    def __init__(
        self,
        buffer: TreeBuffer,
        mutator: TreeMutator | None = None,
        on_activate: ActivateCallback | None = None,
    ) -> None:
        self.buffer = buffer
        self.mutator = mutator
        self.on_activate = on_activate
        self.selected_index = 0
        self.scroll_offset = 0
        self._visible_height = 20
        # screen row -> buffer index, rebuilt on each render
        self._row_to_item: dict[int, int] = {}

    @property
    def flat_items(self) -> list[int]:
        return self.buffer.visible_indices()

    def selected_buffer_index(self) -> int | None:
        items = self.flat_items
        if not items:
            return None
        self._clamp(items)
        return items[self.selected_index]

    def select_buffer_index(self, index: int) -> None:
        items = self.flat_items
        if index in items:
            self.selected_index = items.index(index)

    def center_on(self, index: int, count: int) -> None:
        """Select line `index` and scroll so its block of `count` lines stays visible."""
        items = self.flat_items
        if not items:
            self.selected_index = 0
            self.scroll_offset = 0
            return
        rows = [row for row, buffer_index in enumerate(items) if index <= buffer_index < index + max(count, 1)]
        if not rows:
            return
        first, last = rows[0], rows[-1]
        self.selected_index = first
        height = max(1, self._visible_height)
        block = last - first + 1
        if block >= height:
            self.scroll_offset = first
        elif first < self.scroll_offset or last >= self.scroll_offset + height:
            self.scroll_offset = max(0, first - (height - block) // 2)

    def move_up(self) -> None:
        self.selected_index = max(0, self.selected_index - 1)
        if self.selected_index < self.scroll_offset:
            self.scroll_offset = self.selected_index

    def move_down(self) -> None:
        """Move the selection down, scrolling once it passes the last visible row."""
        items = self.flat_items
        if not items:
            return
        self.selected_index = min(len(items) - 1, self.selected_index + 1)
        height = max(1, self._visible_height)
        if self.selected_index >= self.scroll_offset + height:
            self.scroll_offset = self.selected_index - height + 1

    def _clamp(self, items: list[int]) -> None:
        if not items:
            self.selected_index = 0
            self.scroll_offset = 0
            return
        self.selected_index = max(0, min(self.selected_index, len(items) - 1))
        self.scroll_offset = max(0, min(self.scroll_offset, len(items) - 1))

    def get_render_lines(self, width: int, height: int) -> list[str]:
        items = self.flat_items
        if not items:
            return [EMPTY_TREE_TEXT[:width]]
        self._clamp(items)
        visible = items[self.scroll_offset : self.scroll_offset + height]
        return [display_text(self.buffer[index])[:width] for index in visible]

    def render(self, stdscr: CursesWindow, start_row: int, height: int, width: int) -> None:
        """Render visible lines into a curses window."""
        self._visible_height = height
        self._row_to_item.clear()
        items = self.flat_items
        if not items:
            stdscr.addstr(start_row, 0, EMPTY_TREE_TEXT[: max(0, width - 1)], curses.A_DIM)
            return

        self._clamp(items)
        text_width = max(0, width - 1)
        first = self.scroll_offset
        for offset, row_index in enumerate(range(first, min(len(items), first + height))):
            buffer_index = items[row_index]
            line = self.buffer[buffer_index]
            attr = face_attr(line.faces)
            if row_index == self.selected_index:
                attr |= curses.A_REVERSE
            screen_row = start_row + offset
            stdscr.addstr(screen_row, 0, display_text(line)[:text_width], attr)
            self._row_to_item[screen_row] = buffer_index

    def hit_test(self, screen_row: int, col: int) -> tuple[int, bool] | None:
        """Buffer index at a screen position and whether the glyph was hit."""
        index = self._row_to_item.get(screen_row)
        if index is None or index >= len(self.buffer):
            return None
        span = glyph_column(self.buffer[index])
        on_glyph = span is not None and span[0] <= col < span[1]
        return index, on_glyph

    def handle_click(self, screen_row: int, col: int, *, modified: bool = False) -> bool:
        """Glyph click toggles; label click activates (modified click opens a split)."""
        hit = self.hit_test(screen_row, col)
        if hit is None:
            return False
        index, on_glyph = hit
        self.select_buffer_index(index)
        if on_glyph:
            return self.toggle(index)
        return self.activate(index, new_window=modified)

    def toggle(self, index: int) -> bool:
        if self.mutator is None:
            return False
        return self.mutator.toggle(index)

    def activate(self, index: int, *, new_window: bool = False) -> bool:
        ref = self.buffer[index].token.navigable
        if ref is None or self.on_activate is None:
            return False
        logger.debug("activate %s (new_window=%s)", ref, new_window)
        self.on_activate(ref, new_window)
        return True

    def _select_parent(self, index: int) -> None:
        depth = self.buffer[index].depth
        for candidate in range(index - 1, -1, -1):
            if self.buffer[candidate].depth < depth:
                self.select_buffer_index(candidate)
                return

    def handle_key(self, key: int) -> bool:
        """Handle a key press while the tree has focus. Returns True if consumed."""
        if key in (curses.KEY_UP, ord("k")):
            self.move_up()
            return True
        if key in (curses.KEY_DOWN, ord("j")):
            self.move_down()
            return True

        index = self.selected_buffer_index()
        if index is None:
            return False
        line = self.buffer[index]

        if key in (ord(" "), ord("+"), ord("-"), ord("=")):
            return self.toggle(index)
        if key == curses.KEY_RIGHT:
            if line.state is ExpandState.COLLAPSED:
                return self.toggle(index)
            return False
        if key == curses.KEY_LEFT:
            if line.state is ExpandState.EXPANDED:
                return self.toggle(index)
            self._select_parent(index)
            return True
        if key in _ENTER_KEYS:
            return self.activate(index)
        if key == ord("o"):
            return self.activate(index, new_window=True)
        return False
