"""In-process session store.

Holds connections, their open targets and channel participants, answers the
`SessionStore` queries from current state and notifies listeners
synchronously, in mutation order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

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
from chatbar.store.protocol import StoreListener

logger = logging.getLogger(__name__)

_ROLE_NAMES = ("owner", "admin", "op", "halfop", "voice")


@dataclass
class TargetState:
    ref: TargetRef
    kind: TargetKind
    topic: str = ""
    modes: ChannelModes = field(default_factory=ChannelModes)
    # nickname -> entry, insertion ordered
    participants: dict[str, ParticipantEntry] = field(default_factory=dict)


@dataclass
class ConnectionState:
    ref: ConnectionRef
    own_nickname: str = ""
    targets: dict[str, TargetState] = field(default_factory=dict)


class InMemorySessionStore:
    """Mutable session model implementing the `SessionStore` contract."""

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionState] = {}
        self._listeners: list[StoreListener] = []

    # --- SessionStore queries ---

    def list_connections(self) -> list[ConnectionRef]:
        return [conn.ref for conn in self._connections.values()]

    def is_connection(self, ref: SessionRef) -> bool:
        return isinstance(ref, ConnectionRef) and ref.name in self._connections

    def list_targets(self, connection: ConnectionRef) -> list[TargetRef]:
        conn = self._connections.get(connection.name)
        if conn is None:
            return []
        return [target.ref for target in conn.targets.values()]

    def target_kind(self, target: TargetRef) -> TargetKind:
        state = self._target(target)
        if state is None:
            return TargetKind.CHANNEL if target.name[:1] in "#&!+" else TargetKind.QUERY
        return state.kind

    def target_display_name(self, target: TargetRef) -> str:
        return target.name

    def list_participants(self, channel: TargetRef) -> list[ParticipantEntry]:
        state = self._target(channel)
        if state is None:
            return []
        return list(state.participants.values())

    def channel_topic(self, channel: TargetRef) -> str:
        state = self._target(channel)
        return state.topic if state else ""

    def channel_modes(self, channel: TargetRef) -> ChannelModes:
        state = self._target(channel)
        return state.modes if state else ChannelModes()

    def is_own_nickname(self, connection: ConnectionRef, nickname: str) -> bool:
        conn = self._connections.get(connection.name)
        if conn is None or not conn.own_nickname:
            return False
        return conn.own_nickname.casefold() == nickname.casefold()

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Mutations ---

    def add_connection(self, name: str, own_nickname: str = "") -> ConnectionRef:
        ref = ConnectionRef(name)
        if name in self._connections:
            self._connections[name].own_nickname = own_nickname
            return ref
        self._connections[name] = ConnectionState(ref=ref, own_nickname=own_nickname)
        self._emit(StoreEventKind.CONNECTION_ADDED, ref)
        return ref

    def remove_connection(self, ref: ConnectionRef) -> None:
        if self._connections.pop(ref.name, None) is not None:
            self._emit(StoreEventKind.CONNECTION_REMOVED, ref)

    def open_target(self, connection: ConnectionRef, name: str, kind: TargetKind | None = None) -> TargetRef:
        conn = self._require_connection(connection)
        ref = TargetRef(connection, name)
        if name in conn.targets:
            return ref
        if kind is None:
            kind = TargetKind.CHANNEL if name[:1] in "#&!+" else TargetKind.QUERY
        conn.targets[name] = TargetState(ref=ref, kind=kind)
        self._emit(StoreEventKind.TARGET_ADDED, ref)
        self._emit(StoreEventKind.SESSION_CREATED, ref)
        return ref

    def close_target(self, target: TargetRef) -> None:
        conn = self._connections.get(target.connection.name)
        if conn is not None and conn.targets.pop(target.name, None) is not None:
            self._emit(StoreEventKind.TARGET_REMOVED, target)

    def set_topic(self, channel: TargetRef, topic: str) -> None:
        self._require_target(channel).topic = topic
        self._emit(StoreEventKind.TARGET_CHANGED, channel)

    def set_modes(self, channel: TargetRef, modes: ChannelModes) -> None:
        self._require_target(channel).modes = modes
        self._emit(StoreEventKind.TARGET_CHANGED, channel)

    def join(self, channel: TargetRef, user: UserInfo, role: ChannelRole | None = None) -> None:
        state = self._require_target(channel)
        state.participants[user.nickname] = ParticipantEntry(user=user, role=role)
        self._emit(StoreEventKind.TARGET_CHANGED, channel)

    def part(self, channel: TargetRef, nickname: str) -> None:
        state = self._require_target(channel)
        if state.participants.pop(nickname, None) is not None:
            self._emit(StoreEventKind.TARGET_CHANGED, channel)

    def record_activity(self, channel: TargetRef, nickname: str, when: float) -> None:
        """Stamp a participant's last message time (drives activity sorting)."""
        state = self._require_target(channel)
        entry = state.participants.get(nickname)
        if entry is None:
            return
        role = entry.role or ChannelRole()
        state.participants[nickname] = ParticipantEntry(
            user=entry.user,
            role=ChannelRole(
                owner=role.owner,
                admin=role.admin,
                op=role.op,
                halfop=role.halfop,
                voice=role.voice,
                last_message_time=when,
            ),
        )
        self._emit(StoreEventKind.TARGET_CHANGED, channel)

    def apply_snapshot(self, data: dict[str, Any]) -> None:
        """Replace the whole model with a snapshot, emitting events for the differences.

        The snapshot is parsed completely before anything is replaced; a
        malformed entry raises ValueError and leaves the store unchanged.
        """
        new_connections: dict[str, ConnectionState] = {}
        for raw_conn in _as_list(data.get("connections"), "connections"):
            conn = _parse_connection(raw_conn)
            new_connections[conn.ref.name] = conn

        old_connections = self._connections
        self._connections = new_connections

        events: list[StoreEvent] = []
        for name, old in old_connections.items():
            if name not in new_connections:
                events.append(StoreEvent(StoreEventKind.CONNECTION_REMOVED, old.ref))
        for name, new in new_connections.items():
            old_conn = old_connections.get(name)
            if old_conn is None:
                events.append(StoreEvent(StoreEventKind.CONNECTION_ADDED, new.ref))
                for target in new.targets.values():
                    events.append(StoreEvent(StoreEventKind.SESSION_CREATED, target.ref))
                continue
            for target_name, old_target in old_conn.targets.items():
                if target_name not in new.targets:
                    events.append(StoreEvent(StoreEventKind.TARGET_REMOVED, old_target.ref))
            for target_name, new_target in new.targets.items():
                previous = old_conn.targets.get(target_name)
                if previous is None:
                    events.append(StoreEvent(StoreEventKind.TARGET_ADDED, new_target.ref))
                    events.append(StoreEvent(StoreEventKind.SESSION_CREATED, new_target.ref))
                elif previous != new_target:
                    events.append(StoreEvent(StoreEventKind.TARGET_CHANGED, new_target.ref))

        logger.debug("Applied snapshot: %d connections, %d events", len(new_connections), len(events))
        for event in events:
            self._notify(event)

    # --- internals ---

    def _target(self, target: TargetRef) -> TargetState | None:
        conn = self._connections.get(target.connection.name)
        if conn is None:
            return None
        return conn.targets.get(target.name)

    def _require_connection(self, ref: ConnectionRef) -> ConnectionState:
        conn = self._connections.get(ref.name)
        if conn is None:
            raise KeyError(f"Unknown connection: {ref.name}")
        return conn

    def _require_target(self, ref: TargetRef) -> TargetState:
        state = self._target(ref)
        if state is None:
            raise KeyError(f"Unknown target: {ref.connection.name}/{ref.name}")
        return state

    def _emit(self, kind: StoreEventKind, ref: SessionRef) -> None:
        self._notify(StoreEvent(kind, ref))

    def _notify(self, event: StoreEvent) -> None:
        logger.debug("Store event %s for %s", event.kind.value, event.ref)
        for listener in list(self._listeners):
            listener(event)


def _require_name(raw: Any, what: str, key: str = "name") -> str:
    if not isinstance(raw, dict):
        raise ValueError(f"Snapshot {what} entry must be a mapping, got {type(raw).__name__}")
    name = raw.get(key)
    if name is None or str(name) == "":
        raise ValueError(f"Snapshot {what} entry is missing '{key}'")
    return str(name)


def _as_list(raw: Any, what: str) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"Snapshot {what} must be a list, got {type(raw).__name__}")
    return raw


def _parse_connection(raw: Any) -> ConnectionState:
    """Parse one snapshot connection. Raises ValueError on malformed entries."""
    ref = ConnectionRef(_require_name(raw, "connection"))
    conn = ConnectionState(ref=ref, own_nickname=str(raw.get("nickname") or ""))
    for raw_target in _as_list(raw.get("targets"), f"targets of {ref.name}"):
        target = _parse_target(ref, raw_target)
        conn.targets[target.ref.name] = target
    return conn


def _parse_target(conn: ConnectionRef, raw: Any) -> TargetState:
    name = _require_name(raw, "target")
    kind_value = raw.get("kind")
    if kind_value:
        try:
            kind = TargetKind(kind_value)
        except ValueError:
            raise ValueError(f"Unknown target kind for {name}: {kind_value!r}") from None
    else:
        kind = TargetKind.CHANNEL if name[:1] in "#&!+" else TargetKind.QUERY
    raw_modes = raw.get("modes") or {}
    if not isinstance(raw_modes, dict):
        raise ValueError(f"Modes of {name} must be a mapping")
    limit = raw_modes.get("limit")
    try:
        limit = int(limit) if limit is not None else None
    except (TypeError, ValueError):
        raise ValueError(f"Invalid channel limit for {name}: {limit!r}") from None
    target = TargetState(
        ref=TargetRef(conn, name),
        kind=kind,
        topic=str(raw.get("topic") or ""),
        modes=ChannelModes(
            flags=str(raw_modes.get("flags") or ""),
            limit=limit,
            key=raw_modes.get("key") or None,
        ),
    )
    for raw_user in _as_list(raw.get("participants"), f"participants of {name}"):
        entry = _parse_participant(raw_user)
        target.participants[entry.user.nickname] = entry
    return target


def _parse_participant(raw: Any) -> ParticipantEntry:
    user = UserInfo(
        nickname=_require_name(raw, "participant", key="nickname"),
        host=str(raw.get("host") or ""),
        login=str(raw.get("login") or ""),
        full_name=str(raw.get("full_name") or ""),
        info=str(raw.get("info") or ""),
    )
    roles = {str(role) for role in _as_list(raw.get("roles"), f"roles of {user.nickname}")}
    unknown = roles - set(_ROLE_NAMES)
    if unknown:
        logger.warning("Ignoring unknown roles for %s: %s", user.nickname, sorted(unknown))
    last = raw.get("last_message_time")
    if not roles and last is None:
        return ParticipantEntry(user=user, role=None)
    try:
        last_time = float(last) if last is not None else None
    except (TypeError, ValueError):
        raise ValueError(f"Invalid last_message_time for {user.nickname}: {last!r}") from None
    role = ChannelRole(
        owner="owner" in roles,
        admin="admin" in roles,
        op="op" in roles,
        halfop="halfop" in roles,
        voice="voice" in roles,
        last_message_time=last_time,
    )
    return ParticipantEntry(user=user, role=role)
