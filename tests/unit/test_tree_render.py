"""Unit tests for tree line rendering."""

import pytest

from chatbar.store import ChannelRole, ConnectionRef, ParticipantEntry, TargetKind, TargetRef, UserInfo
from chatbar.tui.faces import MENTION_FACE, FaceChain, default_face_resolver
from chatbar.tui.render import (
    NodeToken,
    display_text,
    glyph_column,
    participant_label,
    render_attribute,
    render_participant,
    render_server,
    render_target,
)
from chatbar.tui.types import ExpandState, NodeKind

pytestmark = pytest.mark.unit

CONN = ConnectionRef("irc.example.org")
CHANNEL = TargetRef(CONN, "#test")


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (ChannelRole(op=True, voice=True), "@+nick"),
        (ChannelRole(op=True), "@nick"),
        (ChannelRole(voice=True), "+nick"),
        (ChannelRole(), "nick"),
        (None, "nick"),
    ],
)
def test_participant_label_prefixes(role, expected):
    """Op comes before voice; other roles add no prefix."""
    assert participant_label(UserInfo(nickname="nick"), role) == expected


def test_participant_label_ignores_non_prefixed_roles():
    assert participant_label(UserInfo(nickname="nick"), ChannelRole(owner=True, halfop=True)) == "nick"


def test_server_line_is_collapsed_top_level():
    line = render_server(CONN)
    assert line.depth == 0
    assert line.state is ExpandState.COLLAPSED
    assert line.token.kind is NodeKind.SERVER
    assert line.token.navigable == CONN
    assert display_text(line) == "[+] irc.example.org"


def test_channel_label_carries_participant_count(store):
    line = render_target(store, CHANNEL, 1)
    assert line.label == "#test (2)"
    assert line.state is ExpandState.COLLAPSED
    assert display_text(line) == "  [+] #test (2)"
    assert line.token.navigable == CHANNEL


def test_query_line_is_plain_leaf(store):
    query = store.open_target(CONN, "carol", TargetKind.QUERY)
    line = render_target(store, query, 1)
    assert line.token.kind is NodeKind.QUERY
    assert line.state is ExpandState.LEAF
    assert display_text(line) == "  carol"
    assert glyph_column(line) is None


def test_participant_without_details_renders_unknown():
    """No login, host, full name or info means nothing to expand."""
    line = render_participant(CHANNEL, ParticipantEntry(UserInfo(nickname="bob")), 2)
    assert line.token.kind is NodeKind.PARTICIPANT_LEAF
    assert line.state is ExpandState.UNKNOWN
    assert display_text(line) == "    [?] bob"


def test_participant_with_details_renders_collapsed():
    entry = ParticipantEntry(UserInfo(nickname="alice", info="away"), ChannelRole(op=True))
    line = render_participant(CHANNEL, entry, 2)
    assert line.token.kind is NodeKind.PARTICIPANT
    assert line.state is ExpandState.COLLAPSED
    assert line.label == "@alice"
    # participants have no surface of their own
    assert line.token.navigable is None


def test_participant_faces_come_from_chain(store):
    chain = FaceChain(default_face_resolver(store))
    entry = ParticipantEntry(UserInfo(nickname="alice"), ChannelRole(op=True))
    line = render_participant(CHANNEL, entry, 2, chain)
    assert line.faces == (MENTION_FACE,)


def test_glyph_column_follows_indentation():
    line = render_server(CONN, depth=2)
    assert glyph_column(line) == (4, 7)


def test_attribute_line_keeps_parent_refs_and_visibility():
    parent = NodeToken(kind=NodeKind.CHANNEL, connection=CONN, target=CHANNEL)
    line = render_attribute(parent, "Topic: hi", 2, visible=False)
    assert line.token.kind is NodeKind.ATTRIBUTE
    assert line.token.target == CHANNEL
    assert line.visible is False
    assert display_text(line) == "    Topic: hi"
