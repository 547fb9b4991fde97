"""
Batch models - unit of work handed from exploration to concretization
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import time

from .path_condition import MethodSignature, PathCondition


class BatchState(Enum):
    """Trạng thái của một batch"""
    ACCUMULATING = "accumulating"
    READY = "ready"
    DISPATCHED = "dispatched"


class DispatchTrigger(Enum):
    """Why a batch left ACCUMULATING"""
    COUNT = "count"
    TIMEOUT = "timeout"
    FLUSH = "flush"


@dataclass
class TargetBatch:
    """Bounded group of path conditions for one concretization job"""
    batch_id: int
    target: MethodSignature
    capacity: int
    members: List[PathCondition] = field(default_factory=list)
    state: BatchState = BatchState.ACCUMULATING
    trigger: Optional[DispatchTrigger] = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.capacity

    @property
    def is_partial(self) -> bool:
        return len(self.members) < self.capacity
