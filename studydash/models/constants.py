"""Constants for studydash.

This module centralizes the recurrence windows and limits used throughout the application.
Window sizes can be tuned per deployment through the environment.
"""

import os

from dotenv import load_dotenv

load_dotenv()


# Generation windows (days ahead of "now")
ACTIVE_VIEW_WINDOW_DAYS = int(os.getenv("RECURRENCE_ACTIVE_WINDOW_DAYS", "60"))
CALENDAR_VIEW_WINDOW_DAYS = int(os.getenv("RECURRENCE_CALENDAR_WINDOW_DAYS", "365"))
INITIAL_WINDOW_DAYS = int(os.getenv("RECURRENCE_INITIAL_WINDOW_DAYS", "180"))
SWEEP_WINDOW_DAYS = int(os.getenv("RECURRENCE_SWEEP_WINDOW_DAYS", "365"))

# Skip read-triggered extension of patterns generated less than N minutes ago (0 = never skip)
REFRESH_INTERVAL_MINUTES = int(os.getenv("RECURRENCE_REFRESH_INTERVAL_MIN", "0"))

# Stepping fallbacks
WEEKLY_INTERVAL_DAYS = 7
BIWEEKLY_INTERVAL_DAYS = 14
MONTHLY_FALLBACK_DAYS = 30  # approximation, not calendar-month stepping
CUSTOM_FALLBACK_DAYS = 7

# Upper bound on candidates examined in a single generation pass
MAX_GENERATION_ITERATIONS = 1000
