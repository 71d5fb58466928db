"""
Stable app-level constants used by runtime + tests.
Keep this file dependency-free (no rumps/requests/etc).
"""

APP_NAME = "NotesOrganizer"
APP_VERSION = "v0.1.0"  # bump when you ship
NOTION_VERSION = "2025-09-03"

DEFAULT_LOCALE = "en"

# Outline rendering
INDENT_UNIT = "  "
MAX_INDENT_DEPTH = 3
MAX_HEADING_DEPTH = 6

# Connection detection
LOOKBACK_WINDOW = 3
MIN_KEYWORD_LENGTH = 4
PREVIEW_CHARS = 50
PREVIEW_ELLIPSIS = "..."

CONNECTION_LABELS = {
    "en": "Related to",
    "pl": "Powiązane z",
}
