"""
Change Capture Domain

Captures file contents at the moment a change notification arrives:
- handler.py - watchdog handler reading changed files and queueing snapshots
- sequence.py - per-path snapshot numbering
- snapshot_queue.py - hand-off buffer to the persistence worker
- worker.py - single thread writing snapshots to the shadow directory
- monitor.py - start/stop lifecycle tying the pieces together
"""

__all__ = ["cancellation", "handler", "monitor", "sequence", "snapshot_queue", "worker"]
