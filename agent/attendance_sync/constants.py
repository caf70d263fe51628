"""
Constants, intervals, retry budget and the queued action types.
"""

AGENT_VERSION = "1.0.0"

# ─── Action types ────────────────────────────────────────────────
CLOCK_IN = "clock_in"
CLOCK_OUT = "clock_out"
START_BREAK = "start_break"
END_BREAK = "end_break"

ACTION_TYPES = frozenset({CLOCK_IN, CLOCK_OUT, START_BREAK, END_BREAK})

DEFAULT_BREAK_TYPE = "general"

# ─── Queue ───────────────────────────────────────────────────────
MAX_RETRIES = 5                # Entry dropped on its 5th failed sync attempt

# ─── Scheduling ──────────────────────────────────────────────────
SYNC_INTERVAL_SEC = 30         # Periodic sync attempt while online + non-empty
CONNECTIVITY_CHECK_SEC = 15    # How often to probe the server host
TICK_SEC = 1                   # Main loop poll interval

# ─── Network ─────────────────────────────────────────────────────
API_TIMEOUT_SYNC = 20          # Seconds per queued action request
CONNECT_PROBE_TIMEOUT = 4      # Socket connect timeout for is_online()
SYNC_PATH = "/api/attendance/sync"
