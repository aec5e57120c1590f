"""Session store contract and the in-process implementation."""

from chatbar.store.memory import InMemorySessionStore
from chatbar.store.models import (
    ChannelModes,
    ChannelRole,
    ConnectionRef,
    ParticipantEntry,
    SessionRef,
    StoreEvent,
    StoreEventKind,
    TargetKind,
    TargetRef,
    UserInfo,
)
from chatbar.store.protocol import SessionStore

__all__ = [
    "ChannelModes",
    "ChannelRole",
    "ConnectionRef",
    "InMemorySessionStore",
    "ParticipantEntry",
    "SessionRef",
    "SessionStore",
    "StoreEvent",
    "StoreEventKind",
    "TargetKind",
    "TargetRef",
    "UserInfo",
]
