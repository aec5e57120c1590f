"""Build tree lines from the session store.

Everything here is a pure read of the store's current snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass

from chatbar.config.schema import ChatbarConfig
from chatbar.constants import MASKED_KEY
from chatbar.store.models import ChannelModes, ConnectionRef, ParticipantEntry, TargetRef
from chatbar.store.protocol import SessionStore
from chatbar.tui.errors import TreeStateError
from chatbar.tui.faces import FaceChain
from chatbar.tui.render import (
    NodeToken,
    TreeLine,
    render_attribute,
    render_participant,
    render_server,
    render_target,
)
from chatbar.tui.types import NodeKind, SortMode, VisibilityPolicy


@dataclass(frozen=True)
class TreeSettings:
    """Configuration the tree engine reads while building children."""

    sort_mode: SortMode = SortMode.ACTIVITY
    visibility: VisibilityPolicy = VisibilityPolicy.HEADER_LINE
    header_line: bool = True
    reveal_keys: bool = False

    @classmethod
    def from_config(cls, config: ChatbarConfig) -> TreeSettings:
        return cls(
            sort_mode=config.tree.sort_mode,
            visibility=config.tree.hide_mode_topic,
            header_line=config.ui.header_line,
            reveal_keys=config.tree.reveal_keys,
        )

    @property
    def mode_topic_visible(self) -> bool:
        if self.visibility is VisibilityPolicy.ALWAYS_SHOW:
            return True
        if self.visibility is VisibilityPolicy.ALWAYS_HIDE:
            return False
        return not self.header_line


def build_top_level(store: SessionStore) -> list[TreeLine]:
    """One collapsed server line per live connection."""
    return [render_server(connection) for connection in store.list_connections()]


def build_targets(store: SessionStore, connection: ConnectionRef, depth: int) -> list[TreeLine]:
    """Channel and query lines for every open target on a connection."""
    return [render_target(store, target, depth) for target in store.list_targets(connection)]


def sort_participants(entries: list[ParticipantEntry], mode: SortMode) -> list[ParticipantEntry]:
    if mode is SortMode.ALPHABETICAL:
        return sorted(entries, key=lambda entry: entry.user.nickname.casefold())
    if mode is SortMode.ACTIVITY:

        def activity_key(entry: ParticipantEntry) -> tuple[bool, float]:
            last = entry.role.last_message_time if entry.role else None
            return (last is None, -(last or 0.0))

        return sorted(entries, key=activity_key)
    return list(entries)


def build_participants(store: SessionStore, channel: TargetRef, sort_mode: SortMode) -> list[ParticipantEntry]:
    return sort_participants(store.list_participants(channel), sort_mode)


def format_modes(modes: ChannelModes, *, reveal_keys: bool) -> str:
    """`+<flags>[l][k]` followed by the limit and the (possibly masked) key."""
    flags = "".join(flag for flag in modes.flags if flag not in "+lk")
    args: list[str] = []
    if modes.limit is not None:
        flags += "l"
        args.append(str(modes.limit))
    if modes.key:
        flags += "k"
        args.append(modes.key if reveal_keys else MASKED_KEY)
    return " ".join([f"+{flags}", *args])


def _channel_of(token: NodeToken) -> TargetRef:
    if token.target is None:
        raise TreeStateError(f"{token.kind.value} line on {token.connection.name} has no channel")
    return token.target


def channel_attribute_lines(
    store: SessionStore, token: NodeToken, depth: int, settings: TreeSettings
) -> list[TreeLine]:
    """Modes and topic lines; hidden ones are still inserted, just invisible."""
    channel = _channel_of(token)
    visible = settings.mode_topic_visible
    lines: list[TreeLine] = []
    modes = store.channel_modes(channel)
    if not modes.is_empty:
        text = f"Modes: {format_modes(modes, reveal_keys=settings.reveal_keys)}"
        lines.append(render_attribute(token, text, depth, visible=visible))
    topic = store.channel_topic(channel)
    if topic:
        lines.append(render_attribute(token, f"Topic: {topic}", depth, visible=visible))
    return lines


def participant_detail_lines(store: SessionStore, token: NodeToken, depth: int) -> list[TreeLine]:
    """userhost, full name and info lines for a participant, re-read from the store."""
    if token.target is None or token.user is None:
        return []
    nickname = token.user.nickname
    for entry in store.list_participants(token.target):
        if entry.user.nickname == nickname:
            user = entry.user
            break
    else:
        return []
    return [
        render_attribute(token, text, depth)
        for text in (user.userhost, user.full_name, user.info)
        if text
    ]


def build_children(
    store: SessionStore,
    line: TreeLine,
    settings: TreeSettings,
    faces: FaceChain | None = None,
) -> list[TreeLine]:
    """Children of an expandable line, derived from the store right now."""
    token = line.token
    depth = line.depth + 1
    if token.kind is NodeKind.SERVER:
        if not store.is_connection(token.connection):
            return []
        return build_targets(store, token.connection, depth)
    if token.kind is NodeKind.CHANNEL:
        channel = _channel_of(token)
        children = channel_attribute_lines(store, token, depth, settings)
        for entry in build_participants(store, channel, settings.sort_mode):
            children.append(render_participant(channel, entry, depth, faces))
        return children
    if token.kind.is_participant:
        return participant_detail_lines(store, token, depth)
    return []
