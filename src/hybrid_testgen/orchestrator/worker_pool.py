"""
Worker Pool - thread pool with throttled concurrency and per-task isolation
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional, Set

from ..core.options import PoolConfig
from ..core.models.test_case import TaskResult, TaskStatus


class WorkerPool:
    """
    ThreadPoolExecutor sized to `config.threads`, of which at most
    `config.max_concurrency` run a task at any time.

    A task that raises is turned into a FAILED TaskResult; it never
    affects sibling tasks.
    """

    def __init__(self, name: str, config: PoolConfig):
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.config = config
        self._executor = ThreadPoolExecutor(max_workers=config.threads, thread_name_prefix=name)
        self._slots = threading.BoundedSemaphore(config.max_concurrency)
        self._lock = threading.Lock()
        self._futures: Set[Future] = set()
        self._accepting = True
        self._cancelled = False
        self._active = 0
        self.peak_active = 0
        self.completed = 0
        self.failed = 0

    @property
    def accepting(self) -> bool:
        return self._accepting

    def submit(self, task_name: str, fn: Callable[..., Any], *args, **kwargs) -> Optional[Future]:
        """
        Schedule a task.

        Returns:
            Future resolving to a TaskResult, or None if the pool no longer accepts work
        """
        with self._lock:
            if not self._accepting:
                self.logger.debug(f"[{self.name}] not accepting, dropped task {task_name}")
                return None
            future = self._executor.submit(self._run, task_name, fn, args, kwargs)
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def _run(self, task_name: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> TaskResult:
        result = TaskResult(task_name=task_name)
        with self._slots:
            # Queued behind the throttle when the pool was stopped
            if self._cancelled:
                result.status = TaskStatus.CANCELLED
                result.completed_at = datetime.now()
                return result

            with self._lock:
                self._active += 1
                self.peak_active = max(self.peak_active, self._active)
            result.started_at = datetime.now()
            try:
                result.mark_completed(fn(*args, **kwargs))
            except Exception as e:
                self.logger.exception(f"✗ [{self.name}] task {task_name} failed")
                result.mark_failed(f"{type(e).__name__}: {e}")
            finally:
                with self._lock:
                    self._active -= 1
                    if result.status == TaskStatus.COMPLETED:
                        self.completed += 1
                    else:
                        self.failed += 1
        return result

    def stop_accepting(self) -> None:
        with self._lock:
            self._accepting = False

    def cancel_pending(self) -> int:
        """Stop accepting and cancel every task that has not started running"""
        with self._lock:
            self._accepting = False
            self._cancelled = True
            futures = list(self._futures)
        cancelled = sum(1 for f in futures if f.cancel())
        if cancelled:
            self.logger.info(f"[{self.name}] cancelled {cancelled} queued task(s)")
        return cancelled

    def shutdown(self, wait: bool = True) -> None:
        self.stop_accepting()
        self._executor.shutdown(wait=wait)
