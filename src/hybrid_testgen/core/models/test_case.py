"""
Test case models - output of concretization
"""
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime
from enum import Enum
import hashlib
import json
import uuid

from .path_condition import MethodSignature, PathCondition


class TaskStatus(Enum):
    """Outcome of one pool task"""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TestCase:
    """A concrete test case bound to the method it targets"""
    target: MethodSignature
    inputs: Dict[str, Any]
    path_condition: Optional[PathCondition] = field(default=None, compare=False)
    source: Optional[str] = field(default=None, compare=False)
    depth: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12], compare=False)
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    # pytest must not collect this class
    __test__ = False

    def input_fingerprint(self) -> str:
        """SHA-256 over the canonical JSON form of the inputs"""
        canonical = json.dumps(self.inputs, sort_keys=True, separators=(",", ":"), default=repr)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def dedup_key(self) -> tuple:
        return (self.target, self.input_fingerprint())


@dataclass(frozen=True)
class ConcretizationFailure:
    """
    The search-based generator could not satisfy a path condition.

    `infeasible` is True when the budget ran out without a solution, False
    when the engine itself failed (crash, malformed output).
    """
    reason: str
    infeasible: bool = True


@dataclass
class TaskResult:
    """Kết quả của một task trong worker pool"""
    task_name: str
    status: TaskStatus = TaskStatus.COMPLETED
    value: Any = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def mark_failed(self, error: str) -> None:
        self.status = TaskStatus.FAILED
        self.error_message = error
        self.completed_at = datetime.now()

    def mark_completed(self, value: Any) -> None:
        self.status = TaskStatus.COMPLETED
        self.value = value
        self.completed_at = datetime.now()
