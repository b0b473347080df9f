import threading

import pytest

from dirmon.models.schemas import Snapshot
from domains.change_capture.cancellation import CancellationToken
from domains.change_capture.snapshot_queue import QueueFullError, SnapshotQueue


def snap(sequence: int, name: str) -> Snapshot:
    return Snapshot(sequence=sequence, file_name=name, contents=f"{name}@{sequence}")


def test_dequeue_preserves_enqueue_order_across_paths():
    queue = SnapshotQueue()
    token = CancellationToken()
    expected = [snap(0, "A"), snap(1, "B"), snap(2, "A")]

    for item in expected:
        queue.enqueue(item)

    assert [queue.wait_and_dequeue(token) for _ in expected] == expected
    assert len(queue) == 0


def test_try_dequeue_returns_none_when_empty():
    queue = SnapshotQueue()

    assert queue.try_dequeue() is None
    queue.enqueue(snap(0, "a"))
    assert queue.try_dequeue() == snap(0, "a")
    assert queue.try_dequeue() is None


def test_blocked_consumer_receives_item_from_other_thread():
    queue = SnapshotQueue()
    token = CancellationToken()
    received = []

    consumer = threading.Thread(target=lambda: received.append(queue.wait_and_dequeue(token)))
    consumer.start()
    queue.enqueue(snap(0, "late.tmp"))
    consumer.join(timeout=5)

    assert not consumer.is_alive()
    assert received == [snap(0, "late.tmp")]


def test_cancellation_wakes_blocked_consumer():
    queue = SnapshotQueue()
    token = CancellationToken()
    received = []
    started = threading.Event()

    def consume():
        started.set()
        received.append(queue.wait_and_dequeue(token))

    consumer = threading.Thread(target=consume)
    consumer.start()
    started.wait(timeout=5)
    token.cancel()
    consumer.join(timeout=5)

    assert not consumer.is_alive()
    assert received == [None]


def test_cancelled_token_returns_immediately():
    queue = SnapshotQueue()
    token = CancellationToken()
    token.cancel()

    assert queue.wait_and_dequeue(token) is None


def test_bounded_queue_rejects_overflow():
    queue = SnapshotQueue(max_pending=2)
    queue.enqueue(snap(0, "a"))
    queue.enqueue(snap(1, "a"))

    with pytest.raises(QueueFullError):
        queue.enqueue(snap(2, "a"))
    assert len(queue) == 2


def test_concurrent_producers_lose_nothing():
    queue = SnapshotQueue()
    producers = 6
    per_producer = 200

    def produce(index: int):
        for sequence in range(per_producer):
            queue.enqueue(snap(sequence, f"file{index}"))

    threads = [threading.Thread(target=produce, args=(i,)) for i in range(producers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    drained = []
    item = queue.try_dequeue()
    while item is not None:
        drained.append(item)
        item = queue.try_dequeue()

    assert len(drained) == producers * per_producer
    for index in range(producers):
        per_file = [s.sequence for s in drained if s.file_name == f"file{index}"]
        assert per_file == list(range(per_producer))


def test_token_callbacks_run_once_and_can_be_unregistered():
    token = CancellationToken()
    calls = []

    kept = token.register(lambda: calls.append("kept"))
    dropped = token.register(lambda: calls.append("dropped"))
    dropped.unregister()

    token.cancel()
    token.cancel()

    assert calls == ["kept"]
    assert token.cancelled
    kept.unregister()


def test_register_after_cancel_runs_immediately():
    token = CancellationToken()
    token.cancel()
    calls = []

    token.register(lambda: calls.append(True))

    assert calls == [True]
    assert token.wait(0) is True
