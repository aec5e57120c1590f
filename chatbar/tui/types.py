"""Shared TUI types."""

from __future__ import annotations

import curses
from enum import Enum
from typing import TypeAlias

from chatbar.constants import GLYPH_COLLAPSED, GLYPH_EXPANDED, GLYPH_UNKNOWN


class NodeKind(str, Enum):
    """Tree node kinds."""

    SERVER = "server"
    CHANNEL = "channel"
    QUERY = "query"
    PARTICIPANT = "participant"
    PARTICIPANT_LEAF = "participant_leaf"
    ATTRIBUTE = "attribute"

    @property
    def is_participant(self) -> bool:
        return self in (NodeKind.PARTICIPANT, NodeKind.PARTICIPANT_LEAF)


class ExpandState(str, Enum):
    """Expansion state of a rendered line; the glyph is derived from it."""

    COLLAPSED = "collapsed"
    EXPANDED = "expanded"
    UNKNOWN = "unknown"
    LEAF = "leaf"

    @property
    def glyph(self) -> str | None:
        return _GLYPHS.get(self)


_GLYPHS = {
    ExpandState.COLLAPSED: GLYPH_COLLAPSED,
    ExpandState.EXPANDED: GLYPH_EXPANDED,
    ExpandState.UNKNOWN: GLYPH_UNKNOWN,
}


class SortMode(str, Enum):
    """Participant ordering inside an expanded channel."""

    ACTIVITY = "activity"
    ALPHABETICAL = "alphabetical"
    UNSORTED = "unsorted"


class VisibilityPolicy(str, Enum):
    """When to show the channel modes/topic lines."""

    ALWAYS_SHOW = "always-show"
    ALWAYS_HIDE = "always-hide"
    HEADER_LINE = "header-line"  # hide when the header line already shows them


class NotificationLevel(str, Enum):
    """Notification severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


CursesWindow: TypeAlias = curses.window
