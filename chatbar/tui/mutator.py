"""Expand/contract engine for the tree buffer.

Each operation inserts or deletes exactly the subtree under one line and runs
to completion before the next UI event, which keeps every subtree a
contiguous block.
"""

from __future__ import annotations

import logging
from typing import Callable

from chatbar.store.protocol import SessionStore
from chatbar.tui.buffer import TreeBuffer
from chatbar.tui.builder import TreeSettings, build_children, build_top_level
from chatbar.tui.errors import ExpandStateError
from chatbar.tui.faces import FaceChain
from chatbar.tui.render import TreeLine
from chatbar.tui.types import ExpandState

logger = logging.getLogger(__name__)

# (index of the toggled line, number of lines in its block including itself)
RegionCallback = Callable[[int, int], None]


class TreeMutator:
    """Applies expand/contract to lines of a `TreeBuffer`, reading (never writing) the store."""

    def __init__(
        self,
        buffer: TreeBuffer,
        store: SessionStore,
        settings: TreeSettings,
        faces: FaceChain | None = None,
        on_region_changed: RegionCallback | None = None,
    ) -> None:
        self.buffer = buffer
        self.store = store
        self.settings = settings
        self.faces = faces
        self.on_region_changed = on_region_changed

    def toggle(self, index: int) -> bool:
        """Expand a collapsed line or contract an expanded one.

        Returns False when the line is a participant that has degraded to a
        permanent leaf. Raises ExpandStateError for any other line whose state
        allows neither operation.
        """
        line = self.buffer[index]
        if line.state is ExpandState.COLLAPSED:
            self.expand(index)
            return True
        if line.state is ExpandState.EXPANDED:
            self.contract(index)
            return True
        if line.token.kind.is_participant:
            logger.debug("toggle: participant '%s' is a permanent leaf", line.label)
            return False
        raise ExpandStateError(
            f"Unexpected state {line.state.value} for {line.token.kind.value} '{line.label}' at line {index}"
        )

    def expand(self, index: int, *, recenter: bool = True) -> int:
        """Insert the line's children. Returns the number of lines inserted."""
        line = self.buffer[index]
        if line.state is not ExpandState.COLLAPSED:
            raise ExpandStateError(f"Cannot expand '{line.label}': state is {line.state.value}")

        children = build_children(self.store, line, self.settings, self.faces)
        if not children:
            self.buffer.replace_line(index, line.with_state(ExpandState.UNKNOWN))
            logger.debug("expand: '%s' produced no children, marked unknown", line.label)
            if recenter:
                self._region_changed(index, 1)
            return 0

        self.buffer.insert_children(index, children)
        self.buffer.replace_line(index, line.with_state(ExpandState.EXPANDED))
        logger.debug("expand: '%s' inserted %d lines", line.label, len(children))
        if recenter:
            self._region_changed(index, len(children) + 1)
        return len(children)

    def contract(self, index: int, *, recenter: bool = True) -> int:
        """Delete the line's subtree. Returns the number of lines removed."""
        line = self.buffer[index]
        if line.state is not ExpandState.EXPANDED:
            raise ExpandStateError(f"Cannot contract '{line.label}': state is {line.state.value}")

        removed = self.buffer.delete_subblock(index)
        self.buffer.replace_line(index, line.with_state(ExpandState.COLLAPSED))
        logger.debug("contract: '%s' removed %d lines", line.label, removed)
        if recenter:
            self._region_changed(index, 1)
        return removed

    def refresh(self, index: int, fresh: TreeLine | None = None) -> bool:
        """Re-derive the subtree of an expanded line in one step.

        `fresh` optionally replaces the line itself (new label and token) while
        it is collapsed. Lines that are not expanded are left alone.
        """
        line = self.buffer[index]
        if line.state is not ExpandState.EXPANDED:
            return False
        self.contract(index, recenter=False)
        if fresh is not None:
            self.buffer.replace_line(index, fresh.with_state(ExpandState.COLLAPSED))
        self.expand(index, recenter=False)
        return True

    def expand_all_servers(self) -> int:
        """Expand every collapsed top-level line."""
        expanded = 0
        index = 0
        while index < len(self.buffer):
            line = self.buffer[index]
            if line.depth == 0 and line.state is ExpandState.COLLAPSED:
                self.expand(index, recenter=False)
                expanded += 1
            index = self.buffer.block_end(index)
        return expanded

    def rebuild(self) -> None:
        """Discard every line and render the top level again."""
        self.buffer.reset(build_top_level(self.store))
        logger.debug("rebuild: %d top-level lines", len(self.buffer))
        self._region_changed(0, len(self.buffer))

    def _region_changed(self, index: int, count: int) -> None:
        if self.on_region_changed is not None:
            self.on_region_changed(index, count)
