"""
Batch Assembler - groups path conditions into bounded concretization batches
"""
import itertools
import logging
import threading
from typing import Callable, Dict, Tuple

from ..core.models.batch import BatchState, DispatchTrigger, TargetBatch
from ..core.models.path_condition import MethodSignature, PathCondition


DispatchCallback = Callable[[TargetBatch], None]
TimerFactory = Callable[..., threading.Timer]


class BatchAssembler:
    """
    One open batch per target method: ACCUMULATING -> READY -> DISPATCHED.

    Triggers:
    - count: the batch reaches `max_size`
    - timeout: `timeout_seconds` after the batch received its first member

    All state changes happen under a single lock, and the dispatch callback is
    invoked under it too, so batches of one method are dispatched in the
    order they became READY. A timer only fires for the batch it was armed
    for; it is cancelled in the same critical section that dispatches.
    The callback must not call back into the assembler.
    """

    def __init__(
        self,
        max_size: int,
        timeout_seconds: float,
        dispatch: DispatchCallback,
        timer_factory: TimerFactory = threading.Timer
    ):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.logger = logging.getLogger(__name__)
        self.max_size = max_size
        self.timeout_seconds = timeout_seconds
        self._dispatch = dispatch
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._open: Dict[MethodSignature, TargetBatch] = {}
        self._timers: Dict[MethodSignature, Tuple[int, threading.Timer]] = {}
        self._closed = False
        self.dispatched_count = 0

    def open_for(self, target: MethodSignature) -> TargetBatch:
        """Make sure `target` has an open batch and return it"""
        with self._lock:
            return self._open_batch(target)

    def _open_batch(self, target: MethodSignature) -> TargetBatch:
        batch = self._open.get(target)
        if batch is None:
            batch = TargetBatch(batch_id=next(self._ids), target=target, capacity=self.max_size)
            self._open[target] = batch
        return batch

    def add(self, path_condition: PathCondition) -> bool:
        """
        Append a path condition to its method's open batch.

        Returns:
            False if the assembler is closed and the path was dropped
        """
        target = path_condition.target
        with self._lock:
            if self._closed:
                return False
            batch = self._open_batch(target)
            batch.members.append(path_condition)
            if batch.size == 1:
                self._arm_timer(target, batch.batch_id)
            if batch.is_full:
                self._dispatch_locked(batch, DispatchTrigger.COUNT)
            return True

    def flush(self) -> int:
        """Dispatch every non-empty open batch now; returns how many were dispatched"""
        with self._lock:
            batches = [b for b in self._open.values() if b.size > 0]
            for batch in batches:
                self._dispatch_locked(batch, DispatchTrigger.FLUSH)
            return len(batches)

    def close(self, flush: bool = False) -> int:
        """
        Stop accepting path conditions and cancel all timers.

        Args:
            flush: Dispatch non-empty open batches before closing

        Returns:
            Number of batches dispatched by the flush
        """
        flushed = self.flush() if flush else 0
        with self._lock:
            self._closed = True
            for _, timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._open.clear()
        return flushed

    def open_batch_size(self, target: MethodSignature) -> int:
        with self._lock:
            batch = self._open.get(target)
            return batch.size if batch else 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _arm_timer(self, target: MethodSignature, batch_id: int) -> None:
        timer = self._timer_factory(self.timeout_seconds, self._on_timeout, args=(target, batch_id))
        timer.daemon = True
        self._timers[target] = (batch_id, timer)
        timer.start()

    def _cancel_timer(self, target: MethodSignature) -> None:
        entry = self._timers.pop(target, None)
        if entry is not None:
            entry[1].cancel()

    def _on_timeout(self, target: MethodSignature, batch_id: int) -> None:
        with self._lock:
            if self._closed:
                return
            batch = self._open.get(target)
            # Stale timer: its batch was already dispatched by count or flush
            if batch is None or batch.batch_id != batch_id or batch.size == 0:
                return
            if batch.state != BatchState.ACCUMULATING:
                return
            self._dispatch_locked(batch, DispatchTrigger.TIMEOUT)

    def _dispatch_locked(self, batch: TargetBatch, trigger: DispatchTrigger) -> None:
        batch.state = BatchState.READY
        batch.trigger = trigger
        self._cancel_timer(batch.target)

        # Fresh batch begins accumulating immediately
        del self._open[batch.target]
        self._open_batch(batch.target)

        batch.state = BatchState.DISPATCHED
        self.dispatched_count += 1
        self.logger.debug(
            f"Batch {batch.batch_id} for {batch.target} dispatched "
            f"({batch.size}/{batch.capacity}, trigger={trigger.value})"
        )
        try:
            self._dispatch(batch)
        except Exception:
            self.logger.exception(f"✗ Dispatch of batch {batch.batch_id} for {batch.target} failed")
