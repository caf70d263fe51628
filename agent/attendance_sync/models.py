"""
QueuedAction: one attendance action waiting to reach the server.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from .constants import ACTION_TYPES


def utc_now_iso():
    """Current UTC time as ISO-8601 with a Z suffix (what the server expects)."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class QueuedAction:
    type: str
    payload: dict = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(default_factory=utc_now_iso)
    retries: int = 0

    def __post_init__(self):
        if self.type not in ACTION_TYPES:
            raise ValueError(f"Unknown action type: {self.type!r}")

    def with_retry(self):
        """Copy of this action with one more failed attempt counted."""
        return replace(self, retries=self.retries + 1)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "payload": self.payload,
            "timestamp": self.timestamp,
            "retries": self.retries,
        }

    def to_request(self):
        """Wire body for the sync endpoint. The timestamp is the event time."""
        return {
            "type": self.type,
            "payload": self.payload,
            "queuedAt": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data):
        """Build from the persisted shape. Raises on malformed data."""
        payload = data.get("payload")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise TypeError("payload must be an object")
        retries = data.get("retries", 0)
        if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
            raise ValueError(f"invalid retries: {retries!r}")
        return cls(
            type=data["type"],
            payload=payload,
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            retries=retries,
        )
