"""Pytest configuration for chatbar tests."""

import logging

import pytest

from chatbar.store import ChannelRole, InMemorySessionStore, TargetKind, UserInfo

logging.getLogger("chatbar").handlers.clear()
logging.getLogger().handlers.clear()


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


class FakePanelHost:
    """Records panel operations instead of drawing anything."""

    def __init__(self):
        self.panels: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self._next = 0

    def create_panel(self, name):
        self._next += 1
        handle = f"{name}-{self._next}"
        self.panels[handle] = {"mode": "hidden", "width": 0, "excluded": False}
        self.calls.append(("create", handle))
        return handle

    def destroy_panel(self, handle):
        self.panels.pop(handle, None)
        self.calls.append(("destroy", handle))

    def panel_exists(self, handle):
        return handle in self.panels

    def dock(self, handle, width):
        self.panels[handle].update(mode="docked", width=width)
        self.calls.append(("dock", handle, width))

    def undock(self, handle):
        self.panels[handle]["mode"] = "hidden"
        self.calls.append(("undock", handle))

    def float_panel(self, handle):
        self.panels[handle]["mode"] = "floating"
        self.calls.append(("float", handle))

    def set_geometry(self, handle, width):
        self.panels[handle]["width"] = width
        self.calls.append(("geometry", handle, width))

    def set_cycle_excluded(self, handle, excluded):
        self.panels[handle]["excluded"] = excluded


@pytest.fixture
def fake_host():
    return FakePanelHost()


@pytest.fixture
def store():
    """One connection `irc.example.org` with `#test` holding @alice and bob."""
    store = InMemorySessionStore()
    conn = store.add_connection("irc.example.org", own_nickname="me")
    channel = store.open_target(conn, "#test", TargetKind.CHANNEL)
    store.join(
        channel,
        UserInfo(nickname="alice", host="example.org", login="alice", full_name="Alice Liddell"),
        ChannelRole(op=True),
    )
    store.join(channel, UserInfo(nickname="bob"), ChannelRole())
    return store
