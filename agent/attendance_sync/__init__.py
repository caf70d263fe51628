"""
attendance_sync: Offline-tolerant Attendance Sync Agent v1.0
=============================================================
Architecture: one tick loop thread + short-lived sync worker threads.

  constants.py     → Version, intervals, retry budget, action types
  config.py        → Paths, logging, config load/save, helpers
  http_client.py   → HTTP session with retry/pooling + CA bundle
  models.py        → QueuedAction dataclass
  store.py         → Durable queue file + dead-letter log
  offline_queue.py → OfflineQueue (enqueue, guarded FIFO sync pass, clear)
  api.py           → SyncClient (POST /api/attendance/sync) + action producers
  network.py       → Connectivity probe + online/offline transitions
  state.py         → SyncState dataclass (loop scheduling state)
  app.py           → SyncAgent (tick loop, sync triggers)
  runner.py        → CLI + auto-restart wrapper
"""
