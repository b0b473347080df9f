import threading

import pytest
from watchdog.observers.polling import PollingObserver

from domains.change_capture.cancellation import CancellationToken
from domains.change_capture.monitor import DirectoryMonitor, MonitorState, MonitorStateError


@pytest.fixture
def monitor_factory(make_settings):
    monitors = []

    def _make(**overrides):
        monitor = DirectoryMonitor(make_settings(**overrides), observer=PollingObserver(timeout=0.1))
        monitors.append(monitor)
        return monitor

    yield _make

    for monitor in monitors:
        monitor.stop()


def test_start_creates_shadow_dir(monitor_factory, shadow_dir):
    monitor = monitor_factory()

    monitor.start()

    assert shadow_dir.is_dir()
    assert monitor.state is MonitorState.RUNNING
    assert monitor.worker.is_alive()


def test_purge_empties_stale_shadow_dir(monitor_factory, shadow_dir):
    shadow_dir.mkdir()
    (shadow_dir / "0_old.tmp").write_text("stale")
    (shadow_dir / "nested").mkdir()
    (shadow_dir / "nested" / "deep.txt").write_text("stale")
    monitor = monitor_factory(purge_shadow=True)

    monitor.start()

    assert shadow_dir.is_dir()
    assert list(shadow_dir.iterdir()) == []


def test_existing_shadow_contents_kept_without_purge(monitor_factory, shadow_dir):
    shadow_dir.mkdir()
    (shadow_dir / "0_old.tmp").write_text("stale")

    monitor_factory().start()

    assert (shadow_dir / "0_old.tmp").read_text() == "stale"


def test_stop_joins_worker_and_is_idempotent(monitor_factory):
    monitor = monitor_factory()
    monitor.start()

    monitor.stop()
    monitor.stop()

    assert monitor.state is MonitorState.STOPPED
    assert not monitor.worker.is_alive()
    assert not monitor.observer.is_alive()


def test_restart_after_stop_is_rejected(monitor_factory):
    monitor = monitor_factory()
    monitor.start()
    monitor.stop()

    with pytest.raises(MonitorStateError):
        monitor.start()


def test_stop_before_start_marks_stopped(monitor_factory):
    monitor = monitor_factory()

    monitor.stop()

    assert monitor.state is MonitorState.STOPPED
    with pytest.raises(MonitorStateError):
        monitor.start()


def test_stop_persists_already_queued_snapshots(monitor_factory, watch_dir, shadow_dir):
    monitor = monitor_factory()
    monitor.start()
    path = watch_dir / "queued.txt"
    path.write_text("pending")
    monitor.handler.capture(str(path))

    monitor.stop()

    assert (shadow_dir / "0_queued.txt").read_text() == "pending"
    assert monitor.stats.persisted == 1
    assert monitor.stats.tracked_files == 1


def test_context_manager_starts_and_stops(monitor_factory):
    monitor = monitor_factory()

    with monitor as running:
        assert running.state is MonitorState.RUNNING

    assert monitor.state is MonitorState.STOPPED


def test_run_returns_after_cancellation(monitor_factory):
    monitor = monitor_factory()
    token = CancellationToken()
    runner = threading.Thread(target=monitor.run, args=(token,))

    runner.start()
    token.cancel()
    runner.join(timeout=10)

    assert not runner.is_alive()
    assert monitor.state is MonitorState.STOPPED
    assert not monitor.worker.is_alive()


def test_concurrent_stop_waits_for_first_caller(monitor_factory, monkeypatch):
    monitor = monitor_factory()
    monitor.start()
    join_entered = threading.Event()
    release_join = threading.Event()
    real_join = monitor.worker.join

    def slow_join(timeout=None):
        join_entered.set()
        release_join.wait(timeout=10)
        real_join(timeout)

    monkeypatch.setattr(monitor.worker, "join", slow_join)
    first = threading.Thread(target=monitor.stop)
    first.start()
    assert join_entered.wait(timeout=5)

    second_states = []
    second = threading.Thread(target=lambda: (monitor.stop(), second_states.append(monitor.state)))
    second.start()
    second.join(timeout=0.3)
    assert second.is_alive()

    release_join.set()
    first.join(timeout=10)
    second.join(timeout=10)

    assert second_states == [MonitorState.STOPPED]
    assert not monitor.worker.is_alive()


def test_run_stops_and_reraises_when_wait_fails(monitor_factory):
    class FailingToken(CancellationToken):
        def wait(self, timeout=None):
            raise RuntimeError("wait interrupted")

    monitor = monitor_factory()

    with pytest.raises(RuntimeError, match="wait interrupted"):
        monitor.run(FailingToken())

    assert monitor.state is MonitorState.STOPPED
    assert not monitor.worker.is_alive()
