"""Routes session-store change notifications into in-place tree updates."""

from __future__ import annotations

import logging
from typing import Callable

from chatbar.store.models import ConnectionRef, SessionRef, StoreEvent, StoreEventKind, TargetRef
from chatbar.store.protocol import SessionStore
from chatbar.tui.mutator import TreeMutator
from chatbar.tui.render import TreeLine, render_server, render_target
from chatbar.tui.types import ExpandState

logger = logging.getLogger(__name__)


class UpdateBridge:
    """Re-derives just the affected subtree when the store changes.

    Nothing happens unless `is_live()` reports a live panel, and nothing is
    ever expanded that the user did not expand.
    """

    def __init__(self, mutator: TreeMutator, is_live: Callable[[], bool]) -> None:
        self.mutator = mutator
        self.is_live = is_live
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def store(self) -> SessionStore:
        return self.mutator.store

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.on_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_event(self, event: StoreEvent) -> None:
        if not self.is_live():
            return
        kind = event.kind
        ref = event.ref
        if kind is StoreEventKind.TARGET_CHANGED:
            self.on_entity_changed(ref)
        elif kind is StoreEventKind.TARGET_ADDED:
            self._add_target(ref)
        elif kind is StoreEventKind.TARGET_REMOVED:
            self._remove_target(ref)
        elif kind is StoreEventKind.CONNECTION_ADDED:
            self._add_server(ref)
        elif kind is StoreEventKind.CONNECTION_REMOVED:
            self._remove_server(ref)

    def on_entity_changed(self, ref: SessionRef) -> bool:
        """Contract and re-expand the node for `ref` if it is rendered and expanded."""
        if not self.is_live():
            return False
        buffer = self.mutator.buffer
        index = buffer.find_ref(ref)
        if index is None:
            return False
        current = buffer[index]
        fresh = self._fresh_line(ref, current)
        if current.state is ExpandState.UNKNOWN:
            # an empty expansion earlier; the entity may have children now
            buffer.replace_line(index, (fresh or current).with_state(ExpandState.COLLAPSED))
            logger.debug("Reset unknown marker for %s", ref)
            return False
        refreshed = self.mutator.refresh(index, fresh)
        if refreshed:
            logger.debug("Refreshed subtree for %s", ref)
        return refreshed

    def _fresh_line(self, ref: SessionRef, current: TreeLine) -> TreeLine | None:
        if isinstance(ref, TargetRef):
            if ref not in self.store.list_targets(ref.connection):
                return None
            return render_target(self.store, ref, current.depth)
        return None

    def _add_target(self, ref: SessionRef) -> None:
        """Insert one line for a new target under an expanded server, in store order."""
        if not isinstance(ref, TargetRef):
            return
        buffer = self.mutator.buffer
        server = buffer.find_ref(ref.connection)
        if server is None:
            return
        if buffer[server].state is ExpandState.UNKNOWN:
            self.on_entity_changed(ref.connection)
            return
        if buffer[server].state is not ExpandState.EXPANDED or buffer.find_ref(ref) is not None:
            return
        targets = self.store.list_targets(ref.connection)
        if ref not in targets:
            return
        position = buffer.block_end(server)
        for later in targets[targets.index(ref) + 1 :]:
            index = buffer.find_ref(later)
            if index is not None and server < index < position:
                position = index
                break
        buffer.insert_line(position, render_target(self.store, ref, buffer[server].depth + 1))
        logger.debug("Added target line for %s at %d", ref, position)

    def _remove_target(self, ref: SessionRef) -> None:
        if not isinstance(ref, TargetRef):
            return
        buffer = self.mutator.buffer
        index = buffer.find_ref(ref)
        if index is None:
            return
        removed = buffer.remove_block(index)
        logger.debug("Removed target %s (%d lines)", ref, removed)
        server = buffer.find_ref(ref.connection)
        if server is not None and buffer.block_end(server) == server + 1:
            # last target gone: same marker an empty expansion leaves
            buffer.replace_line(server, buffer[server].with_state(ExpandState.UNKNOWN))

    def _add_server(self, ref: SessionRef) -> None:
        if not isinstance(ref, ConnectionRef):
            return
        buffer = self.mutator.buffer
        if buffer.find_ref(ref) is not None:
            return
        buffer.append(render_server(ref))
        logger.debug("Added server line for %s", ref.name)

    def _remove_server(self, ref: SessionRef) -> None:
        buffer = self.mutator.buffer
        index = buffer.find_ref(ref)
        if index is None:
            return
        removed = buffer.remove_block(index)
        logger.debug("Removed server %s (%d lines)", ref, removed)
