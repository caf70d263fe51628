"""
OfflineQueue: durable FIFO of attendance actions + the sync pass.

The store is the source of truth. Every operation re-reads it under the
lock, so a second process on the same store (the CLI next to a running
agent) sees and keeps the other's entries. If a store write fails the
in-memory list stays authoritative and is merged by id with whatever the
store holds until a write succeeds again.

Sync passes are guarded: a second sync_queue() while one is running is a
no-op. Entries are sent one at a time, in order, since a clock_out depends
on the earlier clock_in having been applied. The server de-duplicates
replays ("skipped" responses), so delivery is at-least-once here.
"""

import threading

from .config import log
from .constants import MAX_RETRIES
from .models import QueuedAction


class OfflineQueue:

    def __init__(self, store, sender, max_retries=MAX_RETRIES, dead_letters=None):
        self._store = store
        self._send = sender
        self._max_retries = max_retries
        self._dead_letters = dead_letters
        self._lock = threading.Lock()
        self._queue = list(store.get())
        self._syncing = False
        self._dirty = False         # Memory holds changes the store doesn't
        self._forgotten = set()     # Ids removed here but maybe still on disk

        if self._queue:
            log.info("Restored %d pending action(s) from %s",
                     len(self._queue), getattr(store, "path", "store"))

    # ── Store reconciliation (call with the lock held) ────────

    def _refresh(self):
        stored = self._store.get()
        if not self._dirty:
            self._queue = stored
            return
        known = {a.id for a in self._queue}
        self._queue += [
            a for a in stored
            if a.id not in known and a.id not in self._forgotten
        ]

    def _persist(self):
        if self._store.set(self._queue):
            self._dirty = False
            self._forgotten.clear()
        else:
            self._dirty = True

    # ── Observability ─────────────────────────────────────────

    @property
    def queue_length(self):
        with self._lock:
            self._refresh()
            return len(self._queue)

    @property
    def syncing(self):
        with self._lock:
            return self._syncing

    def pending(self):
        """Snapshot of the queued actions, oldest first."""
        with self._lock:
            self._refresh()
            return list(self._queue)

    # ── Producer side ─────────────────────────────────────────

    def enqueue(self, action_type, payload=None):
        """Queue an action and persist it. Returns the action id."""
        action = QueuedAction(type=action_type, payload=dict(payload or {}))
        with self._lock:
            self._refresh()
            self._queue.append(action)
            self._persist()
            size = len(self._queue)
        log.info("Queued %s (%s); %d pending", action.type, action.id[:8], size)
        return action.id

    def clear_queue(self):
        """Drop everything, in memory and on disk."""
        with self._lock:
            self._refresh()
            dropped = len(self._queue)
            self._forgotten.update(a.id for a in self._queue)
            self._queue = []
            if self._store.clear():
                self._dirty = False
                self._forgotten.clear()
            else:
                self._dirty = True
        log.info("Queue cleared (%d action(s) discarded)", dropped)

    # ── Sync pass ─────────────────────────────────────────────

    def sync_queue(self):
        """Replay queued actions against the server, oldest first."""
        with self._lock:
            if self._syncing:
                return
            self._refresh()
            if not self._queue:
                return
            self._syncing = True
            snapshot = list(self._queue)

        outcome = {}
        try:
            outcome = self._run_pass(snapshot)
        finally:
            with self._lock:
                self._write_back(outcome)
                self._syncing = False

    def _write_back(self, outcome):
        """
        Current store minus what this pass sent, with retry counts updated.

        outcome maps each attempted id to its surviving entry, or None when
        it was delivered or dropped. Entries cleared or added by anyone
        during the pass are left as the store now has them.
        """
        if not outcome:
            return
        self._refresh()
        merged = []
        for action in self._queue:
            if action.id not in outcome:
                merged.append(action)
            elif outcome[action.id] is not None:
                merged.append(outcome[action.id])
            else:
                self._forgotten.add(action.id)
        self._queue = merged
        self._persist()

    def _run_pass(self, snapshot):
        outcome = {}
        synced = dropped = 0
        for action in snapshot:
            if self._attempt(action):
                synced += 1
                outcome[action.id] = None
                continue

            failed = action.with_retry()
            if failed.retries >= self._max_retries:
                log.warning(
                    "Dropping %s (%s) after %d failed attempts",
                    failed.type, failed.id[:8], failed.retries,
                )
                if self._dead_letters is not None:
                    self._dead_letters.append(failed)
                dropped += 1
                outcome[action.id] = None
            else:
                outcome[action.id] = failed

        log.info("Sync pass done: %d synced, %d still pending, %d dropped",
                 synced, len(snapshot) - synced - dropped, dropped)
        return outcome

    def _attempt(self, action):
        try:
            return bool(self._send(action))
        except Exception as e:
            log.warning("Sync of %s (%s) raised: %s", action.type, action.id[:8], e)
            return False
