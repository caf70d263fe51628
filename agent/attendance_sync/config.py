"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import json
import sys
import logging
from pathlib import Path

from .constants import MAX_RETRIES, SYNC_INTERVAL_SEC, API_TIMEOUT_SYNC


# ─── Paths ───────────────────────────────────────────────────────
# One queue/config per user per machine. ATTENDANCE_SYNC_HOME overrides.
_FOLDER_NAME = "AttendanceSync"


def _default_base_dir():
    override = os.environ.get("ATTENDANCE_SYNC_HOME")
    if override:
        return Path(override)
    if sys.platform == "win32":
        return Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData")) / _FOLDER_NAME
    return Path.home() / ".attendance-sync"


BASE_DIR = _default_base_dir()

CONFIG_FILE = BASE_DIR / "config.json"
LOG_FILE = BASE_DIR / "sync.log"
QUEUE_FILE = BASE_DIR / "queue.json"
DEAD_LETTER_FILE = BASE_DIR / "dead_letters.jsonl"

DEFAULT_CONFIG = {
    "serverUrl": "",
    "authToken": "",
    "syncIntervalSec": SYNC_INTERVAL_SEC,
    "maxRetries": MAX_RETRIES,
    "requestTimeoutSec": API_TIMEOUT_SYNC,
}


# ─── Safe print (no crash when --noconsole) ──────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

log = logging.getLogger("attendance_sync")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file=None, level=logging.INFO):
    """Attach file + stdout handlers. Called once by the entry point."""
    if log.handlers:
        return log

    log_file = Path(log_file or LOG_FILE)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if log_file.exists() and log_file.stat().st_size > 1_000_000:
            log_file.write_text("")
    except OSError:
        pass

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)
    try:
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)
    except OSError as e:
        safe_print(f"Cannot open log file {log_file}: {e}")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)
    log.setLevel(level)
    return log


# ─── Config Management ──────────────────────────────────────────

def load_config(path=None):
    """Load config from disk merged over defaults. Env vars win."""
    path = Path(path or CONFIG_FILE)
    config = dict(DEFAULT_CONFIG)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                config.update(data)
            else:
                log.warning("Ignoring config %s: not a JSON object", path)
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Ignoring unreadable config %s: %s", path, e)

    server_url = os.environ.get("ATTENDANCE_SYNC_SERVER_URL")
    if server_url:
        config["serverUrl"] = server_url
    token = os.environ.get("ATTENDANCE_SYNC_TOKEN")
    if token:
        config["authToken"] = token

    config["serverUrl"] = (config.get("serverUrl") or "").rstrip("/")
    return config


def save_config(config, path=None):
    """Save config dict to disk."""
    path = Path(path or CONFIG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
    log.info("Config saved to %s", path)
