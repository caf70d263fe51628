"""Tests for SyncAgent trigger policy.

Tests verify that:
1. Going offline → online starts exactly one sync pass
2. The periodic timer only syncs when online, non-empty and idle
3. Producers queue while offline and sync straight away while online,
   without starting a second worker while a pass is running
4. run() flushes entries left from a previous session
"""

from unittest.mock import MagicMock

import pytest

from attendance_sync.app import SyncAgent

from attendance_sync.offline_queue import OfflineQueue

from conftest import BlockingSender, RecordingSender


CONFIG = {"serverUrl": "https://hr.example.com", "syncIntervalSec": 30}


class Connectivity:
    """Switchable probe."""

    def __init__(self, online):
        self.online = online

    def __call__(self):
        return self.online


@pytest.fixture
def make_agent(make_queue):
    def _make(sender, online, config=CONFIG):
        link = Connectivity(online)
        agent = SyncAgent(
            config,
            offline_queue=make_queue(sender),
            client=MagicMock(),
            probe=link,
        )
        return agent, link
    return _make


class TestConnectivityTrigger:

    def test_reconnect_triggers_one_sync(self, make_agent, sender):
        agent, link = make_agent(sender, online=False)
        agent.queue.enqueue("clock_in", {"lat": 12.9})
        assert agent.state.online is False
        assert agent._sync_thread is None

        link.online = True
        agent._monitor.check()
        agent.wait_for_sync(5)

        assert len(sender.calls) == 1
        assert agent.queue.queue_length == 0
        assert agent.state.online is True

        first_thread = agent._sync_thread
        agent._monitor.check()
        assert agent._sync_thread is first_thread

    def test_reconnect_with_empty_queue_does_not_sync(self, make_agent, sender):
        agent, link = make_agent(sender, online=False)

        link.online = True
        agent._monitor.check()

        assert agent._sync_thread is None
        assert agent.state.online is True

    def test_disconnect_marks_offline(self, make_agent, sender):
        agent, link = make_agent(sender, online=True)

        link.online = False
        agent._monitor.check()

        assert agent.state.online is False
        assert agent.state.offline_since > 0


class TestPeriodicTrigger:

    def test_syncs_when_online_and_pending(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)
        agent.queue.enqueue("clock_in", {})

        thread = agent._periodic_sync()
        thread.join(5)

        assert len(sender.calls) == 1

    def test_skips_when_offline(self, make_agent, sender):
        agent, _ = make_agent(sender, online=False)
        agent.queue.enqueue("clock_in", {})

        assert agent._periodic_sync() is None

    def test_skips_when_empty(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)
        assert agent._periodic_sync() is None

    def test_syncs_entry_queued_by_another_process(self, make_agent, sender, store):
        agent, _ = make_agent(sender, online=True)
        action_id = OfflineQueue(store, RecordingSender()).enqueue("clock_in", {})

        thread = agent._periodic_sync()
        thread.join(5)

        assert sender.sent_ids == [action_id]
        assert store.get() == []

    def test_tick_respects_intervals(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)
        agent._periodic_sync = MagicMock()
        agent._monitor.check = MagicMock()
        agent.state.last_periodic_sync = 1000.0
        agent.state.last_connectivity_check = 1000.0

        agent._do_tick(now=1010.0)
        agent._periodic_sync.assert_not_called()
        agent._monitor.check.assert_not_called()

        agent._do_tick(now=1016.0)
        agent._monitor.check.assert_called_once()
        agent._periodic_sync.assert_not_called()

        agent._do_tick(now=1030.0)
        agent._periodic_sync.assert_called_once()

    def test_tick_errors_are_contained(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)
        agent._do_tick = MagicMock(side_effect=RuntimeError("boom"))

        for _ in range(3):
            agent._tick()

        agent._client.reset.assert_called_once()


class TestProducers:

    def test_offline_clock_in_is_queued(self, make_agent, sender):
        agent, _ = make_agent(sender, online=False)

        action_id = agent.clock_in(lat=12.9, lng=77.6)

        assert sender.calls == []
        assert [a.id for a in agent.queue.pending()] == [action_id]
        assert agent.status() == {"online": False, "syncing": False, "queueLength": 1}

    def test_online_producer_syncs_immediately(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)

        agent.start_break("att-1")
        agent.wait_for_sync(5)

        assert [a.type for a in sender.calls] == ["start_break"]
        assert agent.status()["queueLength"] == 0

    def test_producer_during_pass_does_not_start_second_worker(self, make_agent):
        sender = BlockingSender()
        agent, _ = make_agent(sender, online=True)
        first = agent.clock_in()
        assert sender.entered.wait(5)
        worker = agent._sync_thread

        late = agent.end_break("b-1")

        assert agent._sync_thread is worker
        sender.release()
        agent.wait_for_sync(5)
        assert sender.sent_ids == [first]
        assert [a.id for a in agent.queue.pending()] == [late]

    def test_example_scenario(self, make_agent):
        sender = RecordingSender(results=[True, False, False, True])
        agent, link = make_agent(sender, online=False)

        agent.clock_in()
        assert agent.status()["queueLength"] == 1

        link.online = True
        agent._monitor.check()
        agent.wait_for_sync(5)
        assert agent.status()["queueLength"] == 0

        agent.clock_out("abc")
        agent.wait_for_sync(5)
        agent._periodic_sync().join(5)
        assert agent.queue.pending()[0].retries == 2

        agent._periodic_sync().join(5)
        assert agent.status()["queueLength"] == 0
        assert [a.type for a in sender.calls] == [
            "clock_in", "clock_out", "clock_out", "clock_out",
        ]


class TestRun:

    def test_run_flushes_leftovers_then_stops(self, make_agent, sender):
        agent, _ = make_agent(sender, online=True)
        agent.queue.enqueue("clock_in", {})

        agent.stop()
        agent.run()
        agent.wait_for_sync(5)

        assert len(sender.calls) == 1
        assert agent.queue.queue_length == 0
