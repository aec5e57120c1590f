"""The tree session hosted by the sidebar panel: buffer, mutator, view and bridge."""

from __future__ import annotations

import logging
from typing import Callable

from chatbar.store.protocol import SessionStore
from chatbar.tui.bridge import UpdateBridge
from chatbar.tui.buffer import TreeBuffer
from chatbar.tui.builder import TreeSettings, build_top_level
from chatbar.tui.faces import FaceChain
from chatbar.tui.mutator import TreeMutator
from chatbar.tui.render import TreeLine
from chatbar.tui.types import ExpandState
from chatbar.tui.views.tree import ActivateCallback, TreeView

logger = logging.getLogger(__name__)


def _expansion_key(line: TreeLine) -> tuple[object, ...]:
    token = line.token
    nickname = token.user.nickname if token.user else None
    return (token.kind.is_participant, token.kind, token.connection, token.target, nickname)


class TreeSession:
    """Everything the panel needs to show and maintain one tree."""

    def __init__(
        self,
        store: SessionStore,
        settings: TreeSettings,
        is_live: Callable[[], bool],
        *,
        faces: FaceChain | None = None,
        on_activate: ActivateCallback | None = None,
    ) -> None:
        self.store = store
        self.buffer = TreeBuffer(build_top_level(store))
        self.view = TreeView(self.buffer, on_activate=on_activate)
        self.mutator = TreeMutator(
            self.buffer,
            store,
            settings,
            faces=faces,
            on_region_changed=self.view.center_on,
        )
        self.view.mutator = self.mutator
        self.bridge = UpdateBridge(self.mutator, is_live)
        self.bridge.attach()
        logger.debug("Tree session created with %d servers", len(self.buffer))

    def resync(self) -> None:
        """Rebuild from the store, re-expanding whatever was expanded before."""
        expanded = {_expansion_key(line) for line in self.buffer if line.state is ExpandState.EXPANDED}
        self.buffer.reset(build_top_level(self.store))
        index = 0
        while index < len(self.buffer):
            line = self.buffer[index]
            if line.state is ExpandState.COLLAPSED and _expansion_key(line) in expanded:
                self.mutator.expand(index, recenter=False)
            index += 1
        logger.debug("Resynced tree: %d lines, %d expanded", len(self.buffer), len(expanded))

    def close(self) -> None:
        self.bridge.detach()
