"""Typed models shared between the session store and the tree."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TargetKind(str, Enum):
    """Kinds of open targets on a connection."""

    CHANNEL = "channel"
    QUERY = "query"


class StoreEventKind(str, Enum):
    """Change notifications delivered by a session store."""

    CONNECTION_ADDED = "connection_added"
    CONNECTION_REMOVED = "connection_removed"
    TARGET_ADDED = "target_added"
    TARGET_REMOVED = "target_removed"
    TARGET_CHANGED = "target_changed"
    SESSION_CREATED = "session_created"


@dataclass(frozen=True)
class ConnectionRef:
    """Handle for a server connection."""

    name: str


@dataclass(frozen=True)
class TargetRef:
    """Handle for a channel or private conversation on a connection."""

    connection: ConnectionRef
    name: str


SessionRef = ConnectionRef | TargetRef


@dataclass(frozen=True)
class UserInfo:
    nickname: str
    host: str = ""
    login: str = ""
    full_name: str = ""
    info: str = ""

    @property
    def userhost(self) -> str:
        """`login@host`, or whichever half is known."""
        if self.login and self.host:
            return f"{self.login}@{self.host}"
        if self.host:
            return f"@{self.host}"
        return self.login


@dataclass(frozen=True)
class ChannelRole:
    """Per-channel elevation flags for a participant."""

    owner: bool = False
    admin: bool = False
    op: bool = False
    halfop: bool = False
    voice: bool = False
    last_message_time: float | None = None

    @property
    def is_elevated(self) -> bool:
        return self.owner or self.admin or self.op or self.halfop or self.voice


@dataclass(frozen=True)
class ParticipantEntry:
    user: UserInfo
    role: ChannelRole | None = None


@dataclass(frozen=True)
class ChannelModes:
    flags: str = ""
    limit: int | None = None
    key: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.flags and self.limit is None and not self.key


@dataclass(frozen=True)
class StoreEvent:
    kind: StoreEventKind
    ref: SessionRef
