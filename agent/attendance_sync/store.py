"""
Local persistence: the durable queue file and the dead-letter log.

Queue file: a single JSON list, rewritten whole on every change. It is the
only durable record of pending actions.

Dead-letter log: JSON-lines file of actions dropped after exhausting their
retry budget, kept for operator inspection.

Both swallow I/O failures (logged) so the agent keeps running in memory.
"""

import json
import os
from pathlib import Path

from .config import log
from .models import QueuedAction, utc_now_iso


class QueueStore:
    """Durable key-value slot holding the serialized queue."""

    def __init__(self, path):
        self.path = Path(path)

    def get(self):
        """Persisted queue, or [] if missing/corrupt. Never raises."""
        try:
            if not self.path.exists():
                return []
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            log.warning("Queue store unreadable (%s); starting empty", e)
            return []

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError("queue is not a list")
            return [QueuedAction.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("Queue store corrupt (%s); treating as empty", e)
            return []

    def set(self, queue):
        """Overwrite the persisted queue. Returns False (logged) on failure."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps([a.to_dict() for a in queue]),
                encoding="utf-8",
            )
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            log.warning("Failed to persist queue (%d entries): %s", len(queue), e)
            return False
        return True

    def clear(self):
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to remove queue file: %s", e)
            return self.set([])
        return True


class DeadLetterLog:
    """Append-only record of actions dropped after too many failures."""

    def __init__(self, path):
        self.path = Path(path)

    def append(self, action):
        entry = dict(action.to_dict(), droppedAt=utc_now_iso())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except (OSError, TypeError, ValueError) as e:
            log.warning("Failed to record dead letter %s: %s", action.id, e)

    def read(self):
        """All dead-lettered records; unparseable lines are skipped."""
        try:
            if not self.path.exists():
                return []
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            log.warning("Dead-letter log unreadable: %s", e)
            return []

        records = []
        for line in lines:
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except ValueError:
                continue
        return records
