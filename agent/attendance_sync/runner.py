"""
Entry point: argparse CLI + auto-restart wrapper for the long-running agent.
"""

import argparse
import json
import sys
import time

from .constants import AGENT_VERSION, API_TIMEOUT_SYNC
from .config import log, safe_print, setup_logging, load_config
from .app import SyncAgent


def run_agent(config):
    """Primary agent entry point (blocking)."""
    safe_print("Attendance Sync Agent v" + AGENT_VERSION)
    safe_print()

    if not config.get("serverUrl"):
        log.warning("No serverUrl configured; actions will queue until one is set")

    agent = SyncAgent(config)
    safe_print("Service running.\n")
    agent.run()


def run_with_auto_restart(config):
    """
    Wrapper that auto-restarts on crash. Never gives up.
    Crash counter resets if the agent ran for 2+ minutes (not a boot-loop).
    """
    crash_count = 0
    crash_window = 120
    max_rapid_crashes = 10

    while True:
        start_time = time.time()
        try:
            run_agent(config)
            break
        except KeyboardInterrupt:
            safe_print("\nAgent stopped by user.")
            break
        except Exception as e:
            elapsed = time.time() - start_time
            log.error("Agent crashed after %.0fs: %s", elapsed, e, exc_info=True)

            if elapsed > crash_window:
                crash_count = 0
            crash_count += 1

            if crash_count >= max_rapid_crashes:
                wait = 120
                log.warning("Many rapid crashes (%d). Waiting %ds...", crash_count, wait)
            else:
                wait = min(10 * crash_count, 60)

            log.info("Restarting in %ds (crash %d)...", wait, crash_count)
            time.sleep(wait)


# ─── CLI ─────────────────────────────────────────────────────────

def _add_location_args(parser):
    parser.add_argument("--lat", type=float)
    parser.add_argument("--lng", type=float)
    parser.add_argument("--address")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="attendance-sync",
        description="Offline-tolerant attendance action queue.",
    )
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--version", action="version", version=AGENT_VERSION)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run the sync agent (auto-restarts on crash)")
    sub.add_parser("status", help="Show connectivity and pending actions")
    sub.add_parser("sync", help="Run one sync pass now")
    sub.add_parser("clear", help="Discard all pending actions")
    sub.add_parser("dead-letters", help="List actions dropped after too many failures")

    p = sub.add_parser("clock-in", help="Queue a clock-in")
    _add_location_args(p)

    p = sub.add_parser("clock-out", help="Queue a clock-out")
    p.add_argument("attendance_id")
    _add_location_args(p)

    p = sub.add_parser("start-break", help="Queue a break start")
    p.add_argument("attendance_id")
    p.add_argument("--type", dest="break_type")

    p = sub.add_parser("end-break", help="Queue a break end")
    p.add_argument("break_id")

    return parser


def _print_json(data):
    safe_print(json.dumps(data, indent=2))


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging()
    config = load_config(args.config)

    if args.command == "run":
        run_with_auto_restart(config)
        return 0

    agent = SyncAgent(config)
    wait = config.get("requestTimeoutSec", API_TIMEOUT_SYNC) * 2

    try:
        if args.command == "status":
            _print_json(dict(
                agent.status(),
                pending=[a.to_dict() for a in agent.queue.pending()],
            ))
        elif args.command == "sync":
            agent.queue.sync_queue()
            _print_json(agent.status())
        elif args.command == "clear":
            agent.queue.clear_queue()
        elif args.command == "dead-letters":
            _print_json(agent.dead_letters.read())
        elif args.command == "clock-in":
            safe_print(agent.clock_in(args.lat, args.lng, args.address))
            agent.wait_for_sync(wait)
        elif args.command == "clock-out":
            safe_print(agent.clock_out(args.attendance_id, args.lat, args.lng, args.address))
            agent.wait_for_sync(wait)
        elif args.command == "start-break":
            safe_print(agent.start_break(args.attendance_id, args.break_type))
            agent.wait_for_sync(wait)
        elif args.command == "end-break":
            safe_print(agent.end_break(args.break_id))
            agent.wait_for_sync(wait)
    except ValueError as e:
        safe_print(f"Error: {e}")
        return 2
    return 0


def cli():
    sys.exit(main())
