import threading
import time

from hybrid_testgen.core.models.test_case import TaskStatus
from hybrid_testgen.core.options import PoolConfig
from hybrid_testgen.orchestrator.worker_pool import WorkerPool


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_throttle_bounds_concurrency() -> None:
    pool = WorkerPool("exploration", PoolConfig(threads=4, throttle=0.5))
    lock = threading.Lock()
    running = [0]
    peak = [0]

    def task():
        with lock:
            running[0] += 1
            peak[0] = max(peak[0], running[0])
        time.sleep(0.02)
        with lock:
            running[0] -= 1
        return "done"

    futures = [pool.submit(f"t{i}", task) for i in range(8)]
    results = [f.result(timeout=5) for f in futures]
    pool.shutdown()

    assert all(r.status == TaskStatus.COMPLETED and r.value == "done" for r in results)
    assert peak[0] <= 2
    assert pool.peak_active <= 2
    assert pool.completed == 8


def test_failing_task_does_not_affect_siblings() -> None:
    pool = WorkerPool("concretization", PoolConfig(threads=2))

    def boom():
        raise ValueError("malformed input")

    bad = pool.submit("bad", boom)
    good = pool.submit("good", lambda: 42)

    bad_result = bad.result(timeout=5)
    good_result = good.result(timeout=5)
    pool.shutdown()

    assert bad_result.status == TaskStatus.FAILED
    assert "ValueError" in bad_result.error_message
    assert good_result.succeeded and good_result.value == 42
    assert pool.failed == 1


def test_stopped_pool_rejects_work() -> None:
    pool = WorkerPool("exploration", PoolConfig())
    pool.stop_accepting()
    assert pool.submit("late", lambda: None) is None
    pool.shutdown()


def test_cancel_pending_cancels_queued_tasks() -> None:
    pool = WorkerPool("exploration", PoolConfig(threads=1))
    started = threading.Event()
    release = threading.Event()

    def blocking():
        started.set()
        release.wait(timeout=5)

    first = pool.submit("first", blocking)
    assert started.wait(timeout=5)
    queued = [pool.submit(f"q{i}", lambda: None) for i in range(3)]

    assert pool.cancel_pending() == 3
    assert pool.submit("late", lambda: None) is None
    release.set()

    assert first.result(timeout=5).succeeded
    assert all(f.cancelled() for f in queued)
    pool.shutdown()


def test_task_waiting_on_throttle_is_cancelled_after_stop() -> None:
    pool = WorkerPool("concretization", PoolConfig(threads=2, throttle=0.5))
    started = threading.Event()
    release = threading.Event()

    def blocking():
        started.set()
        release.wait(timeout=5)

    first = pool.submit("first", blocking)
    assert started.wait(timeout=5)
    second = pool.submit("second", lambda: "ran")
    # second holds a worker thread but waits for the single throttle slot
    assert wait_until(second.running)

    assert pool.cancel_pending() == 0
    release.set()

    assert first.result(timeout=5).succeeded
    assert second.result(timeout=5).status == TaskStatus.CANCELLED
    pool.shutdown()


def test_counters_are_exact_under_contention() -> None:
    pool = WorkerPool("concretization", PoolConfig(threads=8))

    def task(i: int) -> int:
        if i % 5 == 0:
            raise RuntimeError(f"task {i}")
        return i

    futures = [pool.submit(f"t{i}", task, i) for i in range(400)]
    for f in futures:
        f.result(timeout=10)
    pool.shutdown()

    assert pool.completed == 320
    assert pool.failed == 80
