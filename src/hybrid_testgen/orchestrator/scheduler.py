"""
Dual Pool Scheduler - exploration and concretization pools under one global deadline
"""
import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, List, Optional

from ..core.options import PoolConfig
from ..core.models.test_case import TaskResult, TaskStatus
from .worker_pool import WorkerPool


Clock = Callable[[], float]
ResultCallback = Callable[[str, TaskResult], None]


class Deadline:
    """Absolute deadline on an injected monotonic clock"""

    def __init__(self, seconds: float, clock: Clock = time.monotonic):
        self._clock = clock
        self.seconds = seconds
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at


class DualPoolScheduler:
    """
    Owns the exploration pool, the concretization pool and the global deadline.

    Once the deadline elapses (or stop() is called) neither pool accepts new
    work; tasks already running finish within their own budgets, queued
    tasks are cancelled. A failing task is reported as a FAILED result and
    never aborts its siblings.
    """

    EXPLORATION = "exploration"
    CONCRETIZATION = "concretization"

    def __init__(
        self,
        exploration: PoolConfig,
        concretization: PoolConfig,
        global_budget_seconds: float,
        clock: Clock = time.monotonic,
        on_result: Optional[ResultCallback] = None,
        poll_interval: float = 0.05
    ):
        self.logger = logging.getLogger(__name__)
        self.exploration_pool = WorkerPool(self.EXPLORATION, exploration)
        self.concretization_pool = WorkerPool(self.CONCRETIZATION, concretization)
        self.deadline = Deadline(global_budget_seconds, clock)
        self.on_result = on_result
        self.poll_interval = poll_interval
        self.failures: List[TaskResult] = []
        self._cond = threading.Condition()
        self._outstanding = 0
        self._stopped = False

        self.logger.info(
            f"Scheduler ready: exploration {exploration.max_concurrency}/{exploration.threads} active, "
            f"concretization {concretization.max_concurrency}/{concretization.threads} active, "
            f"global budget {global_budget_seconds:.1f}s"
        )

    @property
    def accepting(self) -> bool:
        return not self._stopped and not self.deadline.expired()

    @property
    def outstanding(self) -> int:
        with self._cond:
            return self._outstanding

    def submit_exploration(self, task_name: str, fn: Callable[..., Any], *args) -> bool:
        return self._submit(self.exploration_pool, task_name, fn, args)

    def submit_concretization(self, task_name: str, fn: Callable[..., Any], *args) -> bool:
        return self._submit(self.concretization_pool, task_name, fn, args)

    def _submit(self, pool: WorkerPool, task_name: str, fn: Callable[..., Any], args: tuple) -> bool:
        if not self.accepting:
            self.logger.debug(f"Not accepting new {pool.name} task {task_name}")
            return False

        with self._cond:
            self._outstanding += 1
        future = pool.submit(task_name, fn, *args)
        if future is None:
            self._task_finished()
            return False

        future.add_done_callback(lambda f: self._on_done(pool.name, task_name, f))
        return True

    def _on_done(self, pool_name: str, task_name: str, future: Future) -> None:
        try:
            if future.cancelled():
                result = TaskResult(task_name=task_name, status=TaskStatus.CANCELLED)
            else:
                result = future.result()

            if result.status == TaskStatus.FAILED:
                self.logger.error(f"✗ [{pool_name}] {task_name}: {result.error_message}")
                with self._cond:
                    self.failures.append(result)
            if self.on_result is not None:
                self.on_result(pool_name, result)
        finally:
            self._task_finished()

    def _task_finished(self) -> None:
        with self._cond:
            self._outstanding -= 1
            self._cond.notify_all()

    def wait(self) -> bool:
        """
        Block until no task is outstanding or the deadline elapses.

        Returns:
            True if the pools went idle, False if the deadline came first
        """
        with self._cond:
            while self._outstanding > 0:
                remaining = self.deadline.remaining()
                if remaining <= 0:
                    return False
                self._cond.wait(timeout=min(remaining, self.poll_interval))
            return True

    def job_budget(self, requested_seconds: float) -> float:
        """Per-job budget bounded by what is left of the global budget"""
        return max(0.0, min(requested_seconds, self.deadline.remaining()))

    def stop(self) -> None:
        """Stop accepting work in both pools and cancel queued tasks"""
        if self._stopped:
            return
        self._stopped = True
        cancelled = self.exploration_pool.cancel_pending() + self.concretization_pool.cancel_pending()
        self.logger.info(f"Scheduler stopped accepting work ({cancelled} queued task(s) cancelled)")

    def shutdown(self, wait: bool = True) -> None:
        self.stop()
        self.exploration_pool.shutdown(wait=wait)
        self.concretization_pool.shutdown(wait=wait)
