"""Constants used across chatbar (not user-configurable)."""

# Glyphs projected from ExpandState
GLYPH_COLLAPSED = "+"
GLYPH_EXPANDED = "-"
GLYPH_UNKNOWN = "?"

INDENT_UNIT = "  "

# Shown instead of a channel key unless keys are revealed
MASKED_KEY = "***"

DEFAULT_SIDEBAR_WIDTH = 18
MIN_SIDEBAR_WIDTH = 8
MAX_SIDEBAR_WIDTH = 200
MIN_MAIN_WIDTH = 20

# Number of nick-color faces the theme defines
NICK_COLOR_COUNT = 6

# UI loop poll interval in milliseconds
UI_POLL_INTERVAL_MS = 100
NOTIFICATION_DURATION_S = 4.0
