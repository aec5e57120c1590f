"""Contract the tree expects from a live chat-session store.

The tree never owns session state. It holds refs and re-queries the store on
every expansion, so implementations must answer from their current state and
return empty results for refs that have since gone away.
"""

from __future__ import annotations

from typing import Callable, Protocol

from chatbar.store.models import (
    ChannelModes,
    ConnectionRef,
    ParticipantEntry,
    SessionRef,
    StoreEvent,
    TargetKind,
    TargetRef,
)

StoreListener = Callable[[StoreEvent], None]


class SessionStore(Protocol):
    def list_connections(self) -> list[ConnectionRef]: ...

    def is_connection(self, ref: SessionRef) -> bool: ...

    def list_targets(self, connection: ConnectionRef) -> list[TargetRef]: ...

    def target_kind(self, target: TargetRef) -> TargetKind: ...

    def target_display_name(self, target: TargetRef) -> str: ...

    def list_participants(self, channel: TargetRef) -> list[ParticipantEntry]: ...

    def channel_topic(self, channel: TargetRef) -> str: ...

    def channel_modes(self, channel: TargetRef) -> ChannelModes: ...

    def is_own_nickname(self, connection: ConnectionRef, nickname: str) -> bool: ...

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        ...
