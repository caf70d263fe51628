"""
Connectivity: socket-level reachability probe + online/offline transitions.

The probe only tests whether a TCP connection to the server host can be
opened, so it works on WiFi, LAN, or any adapter.
"""

import socket
from urllib.parse import urlparse

from .config import log
from .constants import CONNECT_PROBE_TIMEOUT


def is_online(server_url, timeout=CONNECT_PROBE_TIMEOUT):
    """Quick connectivity check via socket connect to the server's host."""
    if not server_url:
        return False
    try:
        parsed = urlparse(server_url if "://" in server_url else f"http://{server_url}")
        host = parsed.hostname
        if not host:
            return False
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.close()
        return True
    except (socket.timeout, OSError, ValueError):
        return False


class ConnectivityMonitor:
    """
    Polled online/offline signal.

    The constructor probes once (the startup "currently online" answer).
    check() probes again and fires on_online / on_offline on transitions
    only, so one reconnect triggers exactly one callback.
    """

    def __init__(self, probe, on_online=None, on_offline=None):
        self._probe = probe
        self._on_online = on_online
        self._on_offline = on_offline
        self.online = self._safe_probe()

    def _safe_probe(self):
        try:
            return bool(self._probe())
        except Exception as e:
            log.warning("Connectivity probe error: %s", e)
            return False

    def check(self):
        """Probe now; fire callbacks on a state change. Returns online."""
        was_online = self.online
        self.online = self._safe_probe()

        if self.online and not was_online:
            log.info("Network ONLINE; reconnected")
            self._fire(self._on_online)
        elif was_online and not self.online:
            log.warning("Network OFFLINE; actions will be queued")
            self._fire(self._on_offline)
        return self.online

    @staticmethod
    def _fire(callback):
        if callback is None:
            return
        try:
            callback()
        except Exception as e:
            log.error("Connectivity callback error: %s", e, exc_info=True)
