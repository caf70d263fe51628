"""
Attendance Sync Agent
=====================
Queues clock-in/out and break actions locally and replays them, oldest
first, to the HR server's attendance sync endpoint whenever it is reachable.

Usage:
    python agent.py run
    python agent.py clock-in --lat 12.9 --lng 77.6
    python agent.py status
"""

from attendance_sync.runner import cli


if __name__ == "__main__":
    cli()
