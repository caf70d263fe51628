"""
SyncAgent: owns the queue, the sync client and the connectivity monitor.

Everything is scheduled from one loop thread via _tick() (every TICK_SEC):
  connectivity check: online/offline transitions  (every 15s)
  periodic sync:      drain the queue if online    (every 30s)

Two independent triggers start a sync pass: the offline→online transition
and the periodic timer. Both go through OfflineQueue.sync_queue(), whose
guard keeps it to one pass at a time. Passes run on short-lived daemon
threads so the loop never blocks on the network.
"""

import threading
import time

from .constants import (
    AGENT_VERSION, CONNECTIVITY_CHECK_SEC, SYNC_INTERVAL_SEC, TICK_SEC, MAX_RETRIES,
)
from .config import log, QUEUE_FILE, DEAD_LETTER_FILE
from .state import SyncState
from .store import QueueStore, DeadLetterLog
from .offline_queue import OfflineQueue
from .api import SyncClient
from . import api
from . import network


class SyncAgent:

    def __init__(self, config, offline_queue=None, client=None, probe=None):
        self._config = config
        self.state = SyncState()
        self._client = client or SyncClient(config)
        self.dead_letters = DeadLetterLog(DEAD_LETTER_FILE)
        self.queue = offline_queue or OfflineQueue(
            QueueStore(QUEUE_FILE),
            self._client.send,
            max_retries=config.get("maxRetries", MAX_RETRIES),
            dead_letters=self.dead_letters,
        )
        self._stop_event = threading.Event()
        self._sync_thread = None
        self._consecutive_errors = 0

        if probe is None:
            server_url = config.get("serverUrl", "")

            def probe():
                return network.is_online(server_url)

        self._monitor = network.ConnectivityMonitor(
            probe, on_online=self._on_reconnect, on_offline=self._on_disconnect,
        )
        if self._monitor.online:
            self.state.mark_online()
        else:
            self.state.mark_offline()

    # ─── Lifecycle ───────────────────────────────────────────

    def run(self):
        """Block on the tick loop until stop(). Call from the main thread."""
        now = time.monotonic()
        self.state.last_periodic_sync = now
        self.state.last_connectivity_check = now

        log.info(
            "v%s started (server=%s, online=%s, pending=%d)",
            AGENT_VERSION, self._config.get("serverUrl") or "unset",
            self.state.online, self.queue.queue_length,
        )

        if self.state.online and self.queue.queue_length:
            log.info("Flushing queue left over from previous session...")
            self._start_sync()

        try:
            while not self._stop_event.wait(TICK_SEC):
                self._tick()
        finally:
            if self.queue.syncing:
                log.info("Shutting down mid-sync; unsent actions stay queued")
            log.info("SyncAgent shut down.")

    def stop(self):
        self._stop_event.set()

    def status(self):
        """Small snapshot for a pending-sync badge."""
        return {
            "online": self.state.online,
            "syncing": self.queue.syncing,
            "queueLength": self.queue.queue_length,
        }

    # ─── Tick ────────────────────────────────────────────────

    def _tick(self):
        try:
            self._do_tick()
            self._consecutive_errors = 0
        except Exception as e:
            self._consecutive_errors += 1
            log.error("_tick error: %s", e, exc_info=True)
            if self._consecutive_errors >= 3:
                self._client.reset()
                self._consecutive_errors = 0

    def _do_tick(self, now=None):
        now = time.monotonic() if now is None else now

        if self.state.connectivity_check_due(CONNECTIVITY_CHECK_SEC, now):
            self.state.last_connectivity_check = now
            self._monitor.check()

        interval = self._config.get("syncIntervalSec", SYNC_INTERVAL_SEC)
        if self.state.sync_due(interval, now):
            self.state.last_periodic_sync = now
            self._periodic_sync()

    # ─── Triggers ────────────────────────────────────────────

    def _on_reconnect(self):
        offline_for = self.state.offline_seconds
        self.state.mark_online()
        if self.queue.queue_length:
            log.info("Back online after %.0fs with %d pending action(s), syncing",
                     offline_for, self.queue.queue_length)
            self._start_sync()

    def _on_disconnect(self):
        self.state.mark_offline()

    def _periodic_sync(self):
        if (self.state.online
                and self.queue.queue_length
                and not self.queue.syncing):
            return self._start_sync()
        return None

    def _start_sync(self):
        """Run one sync pass on a worker thread. Returns the thread."""
        def do_sync():
            try:
                self.queue.sync_queue()
            except Exception as e:
                log.error("Sync thread error: %s", e, exc_info=True)

        thread = threading.Thread(target=do_sync, name="queue-sync", daemon=True)
        self._sync_thread = thread
        thread.start()
        return thread

    def wait_for_sync(self, timeout=None):
        """Join the most recent sync worker, if any."""
        thread = self._sync_thread
        if thread is not None:
            thread.join(timeout)

    # ─── Producers ───────────────────────────────────────────

    def _after_enqueue(self, action_id):
        # A running pass leaves the new entry for the next trigger.
        if self.state.online and not self.queue.syncing:
            self._start_sync()
        return action_id

    def clock_in(self, lat=None, lng=None, address=None):
        return self._after_enqueue(api.clock_in(self.queue, lat, lng, address))

    def clock_out(self, attendance_id, lat=None, lng=None, address=None):
        return self._after_enqueue(
            api.clock_out(self.queue, attendance_id, lat, lng, address))

    def start_break(self, attendance_id, break_type=None):
        return self._after_enqueue(
            api.start_break(self.queue, attendance_id, break_type))

    def end_break(self, break_id):
        return self._after_enqueue(api.end_break(self.queue, break_id))
