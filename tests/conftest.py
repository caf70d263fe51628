"""Shared fixtures for the attendance sync tests."""

import os
import tempfile
import threading

# Keep config/log/queue paths out of the real home directory.
os.environ.setdefault("ATTENDANCE_SYNC_HOME", tempfile.mkdtemp(prefix="attendance-sync-"))

import pytest

from attendance_sync.offline_queue import OfflineQueue
from attendance_sync.store import QueueStore, DeadLetterLog


class RecordingSender:
    """Sender stub: records every action and answers from a script.

    `results` is consumed one item per call; once exhausted, `default` is
    returned. An Exception instance in `results` is raised instead.
    """

    def __init__(self, results=None, default=True):
        self.results = list(results or [])
        self.default = default
        self.calls = []

    def __call__(self, action):
        self.calls.append(action)
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def sent_ids(self):
        return [a.id for a in self.calls]


class BlockingSender(RecordingSender):
    """Sender that parks inside the first call until release() is called."""

    def __init__(self, results=None, default=True):
        super().__init__(results, default)
        self.entered = threading.Event()
        self._release = threading.Event()

    def __call__(self, action):
        self.entered.set()
        self._release.wait(5)
        return super().__call__(action)

    def release(self):
        self._release.set()


@pytest.fixture
def queue_path(tmp_path):
    return tmp_path / "queue.json"


@pytest.fixture
def store(queue_path):
    return QueueStore(queue_path)


@pytest.fixture
def dead_letters(tmp_path):
    return DeadLetterLog(tmp_path / "dead_letters.jsonl")


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def make_queue(store, dead_letters):
    def _make(sender, **kwargs):
        kwargs.setdefault("dead_letters", dead_letters)
        return OfflineQueue(store, sender, **kwargs)
    return _make
