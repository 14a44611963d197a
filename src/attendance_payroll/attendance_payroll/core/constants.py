"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

LATE_THRESHOLD_MINUTES = 9 * 60
MINUTES_PER_DAY = 24 * 60
HOURS_PRECISION = 4
DEFAULT_SAVE_RETRIES = 3
DEFAULT_HISTORY_LIMIT = 30
MAX_HISTORY_LIMIT = 500
DEFAULT_ACTOR = "self"
DEFAULT_ADMIN = "admin"
OVERNIGHT_WINDOW_HOURS = 24
