"""Unit tests for the tree line buffer."""

from dataclasses import replace

import pytest

from chatbar.store import ConnectionRef, TargetRef
from chatbar.tui.buffer import TreeBuffer
from chatbar.tui.errors import TreeIntegrityError
from chatbar.tui.render import NodeToken, TreeLine, render_server
from chatbar.tui.types import ExpandState, NodeKind

pytestmark = pytest.mark.unit

CONN = ConnectionRef("irc.example.org")


def _line(depth: int, label: str, state: ExpandState = ExpandState.LEAF, target: str | None = None) -> TreeLine:
    ref = TargetRef(CONN, target) if target else None
    kind = NodeKind.CHANNEL if target else NodeKind.ATTRIBUTE
    return TreeLine(depth=depth, label=label, token=NodeToken(kind=kind, connection=CONN, target=ref), state=state)


def _expanded_server() -> TreeBuffer:
    server = render_server(CONN).with_state(ExpandState.EXPANDED)
    return TreeBuffer(
        [
            server,
            _line(1, "#a", ExpandState.EXPANDED, target="#a"),
            _line(2, "x"),
            _line(2, "y"),
            _line(1, "#b", ExpandState.COLLAPSED, target="#b"),
            render_server(ConnectionRef("irc.other.net")),
        ]
    )


def test_block_end_stops_at_shallower_line():
    buffer = _expanded_server()
    assert buffer.block_end(0) == 5
    assert buffer.block_end(1) == 4
    assert buffer.block_end(4) == 5
    assert buffer.block_end(5) == 6


def test_delete_subblock_keeps_the_line():
    buffer = _expanded_server()
    assert buffer.delete_subblock(1) == 2
    assert [line.label for line in buffer] == ["irc.example.org", "#a", "#b", "irc.other.net"]


def test_remove_block_drops_line_and_subtree():
    buffer = _expanded_server()
    assert buffer.remove_block(0) == 5
    assert [line.label for line in buffer] == ["irc.other.net"]


def test_insert_line_between_sibling_blocks():
    buffer = _expanded_server()
    buffer.insert_line(4, _line(1, "#ab", ExpandState.COLLAPSED, target="#ab"))
    assert [line.label for line in buffer][3:6] == ["y", "#ab", "#b"]
    buffer.check_integrity()


@pytest.mark.parametrize("index", [2, 6])
def test_insert_line_rejects_splitting_or_orphaning(index):
    # 2 would split #a's subtree; 6 follows the collapsed irc.other.net
    buffer = _expanded_server()
    with pytest.raises(TreeIntegrityError):
        buffer.insert_line(index, _line(1, "#new", ExpandState.COLLAPSED, target="#new"))


def test_insert_children_rejects_wrong_depth():
    buffer = TreeBuffer([render_server(CONN)])
    with pytest.raises(TreeIntegrityError):
        buffer.insert_children(0, [_line(2, "too deep")])
    assert len(buffer) == 1


def test_insert_children_rejects_existing_subtree():
    buffer = _expanded_server()
    with pytest.raises(TreeIntegrityError):
        buffer.insert_children(1, [_line(2, "again")])


def test_replace_line_must_keep_depth():
    buffer = _expanded_server()
    with pytest.raises(TreeIntegrityError):
        buffer.replace_line(1, _line(2, "#a"))


def test_append_only_top_level():
    buffer = TreeBuffer()
    assert buffer.append(render_server(CONN)) == 0
    with pytest.raises(TreeIntegrityError):
        buffer.append(_line(1, "child"))


def test_find_ref_matches_server_and_channel_lines():
    buffer = _expanded_server()
    assert buffer.find_ref(CONN) == 0
    assert buffer.find_ref(TargetRef(CONN, "#b")) == 4
    assert buffer.find_ref(TargetRef(CONN, "#missing")) is None


def test_visible_indices_skip_hidden_lines():
    buffer = _expanded_server()
    buffer.replace_line(2, replace(buffer[2], visible=False))
    assert buffer.visible_indices() == [0, 1, 3, 4, 5]


def test_check_integrity_accepts_valid_tree():
    _expanded_server().check_integrity()


def test_check_integrity_rejects_child_under_collapsed_line():
    buffer = TreeBuffer([render_server(CONN), _line(1, "orphan")])
    with pytest.raises(TreeIntegrityError):
        buffer.check_integrity()


def test_check_integrity_rejects_depth_jump():
    server = render_server(CONN).with_state(ExpandState.EXPANDED)
    buffer = TreeBuffer([server, _line(2, "jump")])
    with pytest.raises(TreeIntegrityError):
        buffer.check_integrity()
