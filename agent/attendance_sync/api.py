"""
Server API: replay of queued actions, plus the four action producers.

SyncClient.send() is blocking (called from the sync worker thread, never
from the main loop). It never raises: every failure is a False return and
the queue decides whether to retry.

The producers build each action's payload and put it on the queue. Nothing
is sent directly; the queue is the only path to the server.
"""

import requests

from .config import log
from .constants import (
    API_TIMEOUT_SYNC, CONNECT_PROBE_TIMEOUT, SYNC_PATH, DEFAULT_BREAK_TYPE,
    CLOCK_IN, CLOCK_OUT, START_BREAK, END_BREAK,
)
from . import http_client


# ─── Sync endpoint ───────────────────────────────────────────────

class SyncClient:
    """Posts one queued action at a time to the attendance sync endpoint."""

    def __init__(self, config, session=None):
        self._config = config
        self.session = session or http_client.create_session()

    @property
    def url(self):
        return f"{self._config.get('serverUrl', '').rstrip('/')}{SYNC_PATH}"

    def _headers(self):
        token = self._config.get("authToken")
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def send(self, action):
        """Replay one action. Returns True on any 2xx (including 'skipped')."""
        timeout = self._config.get("requestTimeoutSec", API_TIMEOUT_SYNC)
        try:
            resp = self.session.post(
                self.url,
                json=action.to_request(),
                headers=self._headers(),
                timeout=(min(CONNECT_PROBE_TIMEOUT, timeout), timeout),
            )
        except requests.RequestException as e:
            log.warning("Sync %s network error: %s", action.type, e)
            return False

        if 200 <= resp.status_code < 300:
            if _is_skipped(resp):
                log.info("Sync %s (%s) skipped; already applied on server",
                         action.type, action.id[:8])
            else:
                log.info("Sync %s (%s) OK", action.type, action.id[:8])
            return True
        if resp.status_code == 401:
            log.error("Sync REJECTED (401); auth token missing or expired")
            return False
        log.warning("Sync %s failed: HTTP %d; %s",
                    action.type, resp.status_code, resp.text[:200])
        return False

    def reset(self):
        """Recreate the HTTP session after repeated errors."""
        self.session = http_client.reset_session(self.session)


def _is_skipped(resp):
    try:
        data = resp.json()
    except ValueError:
        return False
    return isinstance(data, dict) and bool(data.get("skipped"))


# ─── Payload builders ────────────────────────────────────────────

def _location(lat, lng, address):
    payload = {}
    if lat is not None:
        payload["lat"] = lat
    if lng is not None:
        payload["lng"] = lng
    if address:
        payload["address"] = address
    return payload


def _require(value, name):
    if not value:
        raise ValueError(f"{name} is required")
    return value


def clock_in_payload(lat=None, lng=None, address=None):
    return _location(lat, lng, address)


def clock_out_payload(attendance_id, lat=None, lng=None, address=None):
    payload = {"attendanceId": _require(attendance_id, "attendance_id")}
    payload.update(_location(lat, lng, address))
    return payload


def start_break_payload(attendance_id, break_type=DEFAULT_BREAK_TYPE):
    return {
        "attendanceId": _require(attendance_id, "attendance_id"),
        "breakType": break_type or DEFAULT_BREAK_TYPE,
    }


def end_break_payload(break_id):
    return {"breakId": _require(break_id, "break_id")}


# ─── Producers ───────────────────────────────────────────────────

def clock_in(queue, lat=None, lng=None, address=None):
    return queue.enqueue(CLOCK_IN, clock_in_payload(lat, lng, address))


def clock_out(queue, attendance_id, lat=None, lng=None, address=None):
    return queue.enqueue(CLOCK_OUT, clock_out_payload(attendance_id, lat, lng, address))


def start_break(queue, attendance_id, break_type=DEFAULT_BREAK_TYPE):
    return queue.enqueue(START_BREAK, start_break_payload(attendance_id, break_type))


def end_break(queue, break_id):
    return queue.enqueue(END_BREAK, end_break_payload(break_id))
