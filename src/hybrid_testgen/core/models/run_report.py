"""
Run report models
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum
import threading


class FailureKind(Enum):
    """Loại lỗi được ghi nhận trong một run"""
    CONFIG_REJECTED = "config_rejected"
    EXPLORATION_FAILURE = "exploration_failure"
    CONCRETIZATION_FAILURE = "concretization_failure"
    INFEASIBLE = "infeasible"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    TASK_FAILED = "task_failed"


@dataclass
class RunIssue:
    """Một lỗi (không fatal) phát sinh trong quá trình chạy"""
    kind: FailureKind
    message: str
    target: Optional[str] = None

    def __str__(self) -> str:
        loc = f" [{self.target}]" if self.target else ""
        return f"{self.kind.value}{loc}: {self.message}"


@dataclass
class MethodStatistics:
    """Counters for one target method"""
    target: str
    paths_explored: int = 0
    paths_infeasible: int = 0
    paths_duplicate: int = 0
    batches_dispatched: int = 0
    tests_generated: int = 0
    concretization_failures: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "paths_explored": self.paths_explored,
            "paths_infeasible": self.paths_infeasible,
            "paths_duplicate": self.paths_duplicate,
            "batches_dispatched": self.batches_dispatched,
            "tests_generated": self.tests_generated,
            "concretization_failures": self.concretization_failures,
        }


@dataclass
class RunReport:
    """
    Báo cáo tổng hợp cho một run.

    Counters are updated from worker threads; every mutator takes the
    report lock.
    """
    run_name: str = ""
    methods: Dict[str, MethodStatistics] = field(default_factory=dict)
    issues: List[RunIssue] = field(default_factory=list)
    written_files: List[str] = field(default_factory=list)
    training_records: int = 0
    deadline_reached: bool = False

    # Time
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_duration_seconds: float = 0.0

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def stats_for(self, target: str) -> MethodStatistics:
        with self._lock:
            return self._stats_unlocked(target)

    def _stats_unlocked(self, target: str) -> MethodStatistics:
        if target not in self.methods:
            self.methods[target] = MethodStatistics(target=target)
        return self.methods[target]

    def increment(self, target: str, counter: str, amount: int = 1) -> None:
        """Tăng một counter của method"""
        with self._lock:
            stats = self._stats_unlocked(target)
            setattr(stats, counter, getattr(stats, counter) + amount)

    def add_issue(self, kind: FailureKind, message: str, target: Optional[str] = None) -> None:
        with self._lock:
            self.issues.append(RunIssue(kind=kind, message=message, target=target))

    def add_written_file(self, path: str) -> None:
        with self._lock:
            self.written_files.append(path)

    def count_issues(self, kind: FailureKind) -> int:
        with self._lock:
            return sum(1 for issue in self.issues if issue.kind == kind)

    @property
    def total_tests(self) -> int:
        return sum(s.tests_generated for s in self.methods.values())

    @property
    def total_paths(self) -> int:
        return sum(s.paths_explored for s in self.methods.values())

    def get_summary(self) -> str:
        """Tạo summary text"""
        failures = len(self.issues)
        return f"""
Run Summary ({self.run_name})
=================
Target methods: {len(self.methods)}
Paths explored: {self.total_paths}
Training records: {self.training_records}
Tests written: {len(self.written_files)} ({self.total_tests} generated)
Recorded failures: {failures}
Deadline reached: {'yes' if self.deadline_reached else 'no'}
Duration: {self.total_duration_seconds:.2f} seconds
        """.strip()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "run_name": self.run_name,
            "summary": {
                "methods": len(self.methods),
                "paths_explored": self.total_paths,
                "training_records": self.training_records,
                "tests_written": len(self.written_files),
                "deadline_reached": self.deadline_reached,
            },
            "methods": [s.to_dict() for s in self.methods.values()],
            "issues": [str(issue) for issue in self.issues],
            "written_files": list(self.written_files),
            "duration_seconds": round(self.total_duration_seconds, 2),
        }
