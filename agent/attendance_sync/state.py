"""
SyncState: scheduling state for the agent loop.

Mutated only from the main loop thread; sync worker threads never touch it.
"""

import time
from dataclasses import dataclass


@dataclass
class SyncState:
    # ── Connectivity ──────────────────────────────────────────
    online: bool = False
    offline_since: float = 0.0

    # ── Timers (monotonic) ────────────────────────────────────
    last_periodic_sync: float = 0.0
    last_connectivity_check: float = 0.0

    def mark_online(self):
        self.online = True
        self.offline_since = 0.0

    def mark_offline(self):
        if self.online or not self.offline_since:
            self.offline_since = time.time()
        self.online = False

    @property
    def offline_seconds(self) -> float:
        """Seconds since we went offline (0 while online)."""
        if self.online or not self.offline_since:
            return 0.0
        return time.time() - self.offline_since

    def sync_due(self, interval, now=None) -> bool:
        now = time.monotonic() if now is None else now
        return (now - self.last_periodic_sync) >= interval

    def connectivity_check_due(self, interval, now=None) -> bool:
        now = time.monotonic() if now is None else now
        return (now - self.last_connectivity_check) >= interval
