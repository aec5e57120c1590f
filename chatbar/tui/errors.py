"""Errors raised by the tree engine and the sidebar controller."""


class TreeStateError(RuntimeError):
    """The rendered tree and its expected structure disagree."""


class ExpandStateError(TreeStateError):
    """A toggle was requested on a line whose state allows neither expand nor contract."""


class TreeIntegrityError(TreeStateError):
    """An insert or delete would break the depth invariant."""


class SidebarInactiveError(RuntimeError):
    """A sidebar operation needs a live panel and none exists."""


class SidebarStateError(RuntimeError):
    """The requested sidebar transition is not allowed from the current state."""
