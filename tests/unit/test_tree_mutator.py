"""Unit tests for expanding and contracting tree lines."""

import pytest

from chatbar.store import ChannelModes, ConnectionRef, InMemorySessionStore, TargetKind, TargetRef, UserInfo
from chatbar.tui.buffer import TreeBuffer
from chatbar.tui.builder import TreeSettings, build_top_level
from chatbar.tui.errors import ExpandStateError
from chatbar.tui.mutator import TreeMutator
from chatbar.tui.render import display_text
from chatbar.tui.types import ExpandState, SortMode, VisibilityPolicy

pytestmark = pytest.mark.unit

CONN = ConnectionRef("irc.example.org")
CHANNEL = TargetRef(CONN, "#test")

SHOW_ALL = TreeSettings(sort_mode=SortMode.ALPHABETICAL, visibility=VisibilityPolicy.ALWAYS_SHOW)


def _mutator(store, settings=SHOW_ALL, regions=None):
    buffer = TreeBuffer(build_top_level(store))
    on_region_changed = (lambda index, count: regions.append((index, count))) if regions is not None else None
    mutator = TreeMutator(buffer, store, settings, on_region_changed=on_region_changed)
    return buffer, mutator


def _texts(buffer):
    return [display_text(line) for line in buffer]


def test_single_connection_expands_level_by_level(store):
    """Server, then channel, then modes, topic and participants in order."""
    store.set_modes(CHANNEL, ChannelModes(flags="nt"))
    store.set_topic(CHANNEL, "Welcome")
    buffer, mutator = _mutator(store)

    assert _texts(buffer) == ["[+] irc.example.org"]

    assert mutator.toggle(0) is True
    assert _texts(buffer) == ["[-] irc.example.org", "  [+] #test (2)"]

    assert mutator.toggle(1) is True
    assert _texts(buffer) == [
        "[-] irc.example.org",
        "  [-] #test (2)",
        "    Modes: +nt",
        "    Topic: Welcome",
        "    [+] @alice",
        "    [?] bob",
    ]
    buffer.check_integrity()


def test_expand_then_contract_restores_buffer(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    before = buffer.lines

    mutator.toggle(1)
    mutator.toggle(2)  # expand @alice
    mutator.toggle(2)
    mutator.toggle(1)

    assert buffer.lines == before


def test_children_are_exactly_one_level_deeper(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.toggle(1)
    mutator.toggle(2)
    lines = buffer.lines
    assert [line.depth for line in lines] == [0, 1, 2, 3, 3, 2]
    buffer.check_integrity()


def test_participant_detail_lines(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.toggle(1)
    mutator.toggle(2)
    assert _texts(buffer)[3:5] == ["      alice@example.org", "      Alice Liddell"]


def test_participant_without_details_is_permanent_leaf(store):
    """Toggling an empty participant inserts nothing and keeps the `?` marker."""
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.toggle(1)
    bob = buffer.find(lambda line: line.label == "bob")

    assert mutator.toggle(bob) is False
    assert buffer[bob].state is ExpandState.UNKNOWN
    assert len(buffer) == 4


def test_participant_degrades_when_details_disappear(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.toggle(1)
    alice = buffer.find(lambda line: line.label == "@alice")
    assert buffer[alice].state is ExpandState.COLLAPSED

    store.join(CHANNEL, UserInfo(nickname="alice"), buffer[alice].token.role)

    assert mutator.toggle(alice) is True
    assert buffer[alice].state is ExpandState.UNKNOWN
    assert mutator.toggle(alice) is False
    assert len(buffer) == 4


def test_empty_server_becomes_unknown_then_raises():
    """Server and channel lines in an unexpected state are a hard error."""
    store = InMemorySessionStore()
    store.add_connection("irc.empty.net")
    buffer, mutator = _mutator(store)

    mutator.toggle(0)
    assert buffer[0].state is ExpandState.UNKNOWN
    assert len(buffer) == 1

    with pytest.raises(ExpandStateError):
        mutator.toggle(0)


def test_toggle_query_line_raises(store):
    store.open_target(CONN, "carol", TargetKind.QUERY)
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    query = buffer.find(lambda line: line.label == "carol")
    with pytest.raises(ExpandStateError):
        mutator.toggle(query)
    assert buffer[query].state is ExpandState.LEAF


def test_expand_requires_collapsed_state(store):
    _, mutator = _mutator(store)
    mutator.toggle(0)
    with pytest.raises(ExpandStateError):
        mutator.expand(0)
    mutator.contract(0)
    with pytest.raises(ExpandStateError):
        mutator.contract(0)


def test_region_callback_reports_block(store):
    regions = []
    _, mutator = _mutator(store, regions=regions)
    mutator.toggle(0)
    mutator.toggle(0)
    assert regions == [(0, 2), (0, 1)]


def test_refresh_rederives_children_in_place(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.toggle(1)
    store.join(CHANNEL, UserInfo(nickname="carol"))

    assert mutator.refresh(1) is True
    assert buffer[1].state is ExpandState.EXPANDED
    assert [line.label for line in buffer][2:] == ["@alice", "bob", "carol"]


def test_refresh_leaves_collapsed_line_alone(store):
    buffer, mutator = _mutator(store)
    assert mutator.refresh(0) is False
    assert len(buffer) == 1


def test_expand_all_servers(store):
    store.add_connection("irc.other.net")
    store.open_target(ConnectionRef("irc.other.net"), "#other")
    buffer, mutator = _mutator(store)

    assert mutator.expand_all_servers() == 2
    assert [line.label for line in buffer] == ["irc.example.org", "#test (2)", "irc.other.net", "#other (0)"]


def test_rebuild_discards_expansions(store):
    buffer, mutator = _mutator(store)
    mutator.toggle(0)
    mutator.rebuild()
    assert _texts(buffer) == ["[+] irc.example.org"]


def test_hidden_attribute_lines_are_still_inserted(store):
    store.set_topic(CHANNEL, "Welcome")
    buffer, mutator = _mutator(store, TreeSettings(visibility=VisibilityPolicy.HEADER_LINE, header_line=True))
    mutator.toggle(0)
    mutator.toggle(1)
    topic = buffer[2]
    assert topic.label == "Topic: Welcome"
    assert topic.visible is False
    assert 2 not in buffer.visible_indices()
