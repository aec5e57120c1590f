"""Face names to curses attributes.

Color pairs are only used after `init_colors()` has run (it needs
`curses.initscr()`); before that `face_attr` returns plain attributes so views
can be rendered in tests without a terminal.
"""

import curses

from chatbar.constants import NICK_COLOR_COUNT
from chatbar.tui.faces import MENTION_FACE, NICK_COLOR_PREFIX, OWN_SPEAKER_FACE, Faces

# Pair IDs (initialized after curses.start_color())
_OWN_SPEAKER_PAIR = 1
_MENTION_PAIR = 2
_SEPARATOR_PAIR = 3
_NICK_COLOR_BASE_PAIR = 10

# xterm-256 foregrounds for nick colors
_NICK_COLORS = (167, 107, 179, 74, 139, 37)

# Faces that map to plain attributes (usable as `own_nick_face`)
_ATTRIBUTE_FACES = {
    "bold": curses.A_BOLD,
    "underline": curses.A_UNDERLINE,
    "reverse": curses.A_REVERSE,
    "dim": curses.A_DIM,
    "standout": curses.A_STANDOUT,
}

_colors_ready = False


def init_colors() -> None:
    """Initialize curses color pairs for faces."""
    global _colors_ready  # noqa: PLW0603
    curses.start_color()
    curses.use_default_colors()
    many_colors = curses.COLORS >= 256

    curses.init_pair(_OWN_SPEAKER_PAIR, 180 if many_colors else curses.COLOR_YELLOW, -1)
    curses.init_pair(_MENTION_PAIR, 110 if many_colors else curses.COLOR_CYAN, -1)
    curses.init_pair(_SEPARATOR_PAIR, 240 if many_colors else curses.COLOR_WHITE, -1)
    for offset in range(NICK_COLOR_COUNT):
        color = _NICK_COLORS[offset % len(_NICK_COLORS)] if many_colors else 1 + offset % 6
        curses.init_pair(_NICK_COLOR_BASE_PAIR + offset, color, -1)
    _colors_ready = True


def _pair(pair_id: int) -> int:
    return curses.color_pair(pair_id) if _colors_ready else 0


def face_attr(faces: Faces) -> int:
    """Combine the attributes of every known face; unknown faces are ignored."""
    attr = 0
    for face in faces:
        if face == OWN_SPEAKER_FACE:
            attr |= _pair(_OWN_SPEAKER_PAIR) | curses.A_BOLD
        elif face == MENTION_FACE:
            attr |= _pair(_MENTION_PAIR)
        elif face.startswith(NICK_COLOR_PREFIX):
            suffix = face[len(NICK_COLOR_PREFIX) :]
            if suffix.isdigit() and int(suffix) < NICK_COLOR_COUNT:
                attr |= _pair(_NICK_COLOR_BASE_PAIR + int(suffix))
        else:
            attr |= _ATTRIBUTE_FACES.get(face, 0)
    return attr


def separator_attr() -> int:
    return _pair(_SEPARATOR_PAIR) | curses.A_DIM
