"""Node renderer: turns one logical entity into one tree line."""

from __future__ import annotations

from dataclasses import dataclass, replace

from chatbar.constants import INDENT_UNIT
from chatbar.store.models import ChannelRole, ConnectionRef, ParticipantEntry, SessionRef, TargetKind, TargetRef, UserInfo
from chatbar.store.protocol import SessionStore
from chatbar.tui.faces import FaceChain, Faces
from chatbar.tui.types import ExpandState, NodeKind


@dataclass(frozen=True)
class NodeToken:
    """Click payload of a rendered line. Never mutated after rendering."""

    kind: NodeKind
    connection: ConnectionRef
    target: TargetRef | None = None
    user: UserInfo | None = None
    role: ChannelRole | None = None

    @property
    def ref(self) -> SessionRef | None:
        """The store entity this line stands for (server/channel/query lines only)."""
        if self.kind is NodeKind.SERVER:
            return self.connection
        if self.kind in (NodeKind.CHANNEL, NodeKind.QUERY):
            return self.target
        return None

    @property
    def navigable(self) -> SessionRef | None:
        """Surface to raise when the line's label is activated."""
        return self.ref


@dataclass(frozen=True)
class TreeLine:
    depth: int
    label: str
    token: NodeToken
    state: ExpandState = ExpandState.LEAF
    faces: Faces = ()
    visible: bool = True

    def with_state(self, state: ExpandState) -> TreeLine:
        return replace(self, state=state)


def display_text(line: TreeLine) -> str:
    """Project a line to text: indentation, optional `[g] ` glyph, label."""
    glyph = line.state.glyph
    prefix = f"[{glyph}] " if glyph else ""
    return f"{INDENT_UNIT * line.depth}{prefix}{line.label}"


def glyph_column(line: TreeLine) -> tuple[int, int] | None:
    """Column span of the `[g]` glyph in `display_text`, or None for plain leaves."""
    if line.state.glyph is None:
        return None
    start = len(INDENT_UNIT) * line.depth
    return (start, start + 3)


def participant_label(user: UserInfo, role: ChannelRole | None) -> str:
    """`@` for op, then `+` for voice, then the nickname."""
    op = "@" if role is not None and role.op else ""
    voice = "+" if role is not None and role.voice else ""
    return f"{op}{voice}{user.nickname}"


def has_details(user: UserInfo) -> bool:
    return bool(user.login or user.host or user.full_name or user.info)


def render_server(connection: ConnectionRef, depth: int = 0) -> TreeLine:
    return TreeLine(
        depth=depth,
        label=connection.name,
        token=NodeToken(kind=NodeKind.SERVER, connection=connection),
        state=ExpandState.COLLAPSED,
    )


def render_target(store: SessionStore, target: TargetRef, depth: int) -> TreeLine:
    name = store.target_display_name(target)
    if store.target_kind(target) is TargetKind.CHANNEL:
        count = len(store.list_participants(target))
        return TreeLine(
            depth=depth,
            label=f"{name} ({count})",
            token=NodeToken(kind=NodeKind.CHANNEL, connection=target.connection, target=target),
            state=ExpandState.COLLAPSED,
        )
    return TreeLine(
        depth=depth,
        label=name,
        token=NodeToken(kind=NodeKind.QUERY, connection=target.connection, target=target),
        state=ExpandState.LEAF,
    )


def render_participant(
    channel: TargetRef,
    entry: ParticipantEntry,
    depth: int,
    faces: FaceChain | None = None,
) -> TreeLine:
    resolved = faces.resolve(channel, entry.user, entry.role) if faces else ()
    expandable = has_details(entry.user)
    return TreeLine(
        depth=depth,
        label=participant_label(entry.user, entry.role),
        token=NodeToken(
            kind=NodeKind.PARTICIPANT if expandable else NodeKind.PARTICIPANT_LEAF,
            connection=channel.connection,
            target=channel,
            user=entry.user,
            role=entry.role,
        ),
        state=ExpandState.COLLAPSED if expandable else ExpandState.UNKNOWN,
        faces=resolved,
    )


def render_attribute(parent: NodeToken, text: str, depth: int, *, visible: bool = True) -> TreeLine:
    return TreeLine(
        depth=depth,
        label=text,
        token=NodeToken(kind=NodeKind.ATTRIBUTE, connection=parent.connection, target=parent.target),
        state=ExpandState.LEAF,
        visible=visible,
    )
