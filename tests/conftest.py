import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional

import pytest

from hybrid_testgen.concretizer.base import SearchEngine
from hybrid_testgen.core.models.path_condition import Clause, MethodSignature, PathCondition
from hybrid_testgen.core.options import OptionsBuilder, Visibility
from hybrid_testgen.explorer.base import ExplorationRequest, RawPath, SymbolicEngine


SIG = MethodSignature("avl_tree/AvlTree", "(I)V", "insert")
OTHER = MethodSignature("avl_tree/AvlTree", "(I)Z", "find")


def make_pc(*encodings: str, target: MethodSignature = SIG, depth: int = 1, prefix_length: int = 0) -> PathCondition:
    return PathCondition(
        clauses=tuple(Clause(e) for e in encodings),
        depth=depth,
        target=target,
        prefix_length=prefix_length,
    )


def raw(*encodings: str, depth: int = 1, **kwargs) -> RawPath:
    return RawPath(clauses=list(encodings), depth=depth, **kwargs)


class FakeSymbolicEngine(SymbolicEngine):
    """Replays canned raw paths; seeded requests get `seeded_paths`"""

    def __init__(
        self,
        paths: Optional[Dict[MethodSignature, List[RawPath]]] = None,
        methods: Iterable[MethodSignature] = (),
        seeded_paths: Optional[Dict[MethodSignature, List[RawPath]]] = None,
        required: Iterable[Path] = (),
        hook: Optional[Callable[[ExplorationRequest], None]] = None
    ):
        self.paths = paths or {}
        self.methods = list(methods)
        self.seeded_paths = seeded_paths or {}
        self.required = list(required)
        self.hook = hook
        self.requests: List[ExplorationRequest] = []
        self._lock = threading.Lock()

    def required_paths(self) -> List[Path]:
        return list(self.required)

    def list_target_methods(self, class_name: str, visibility: Visibility) -> List[MethodSignature]:
        return [m for m in self.methods if m.class_name == class_name]

    def explore(self, request: ExplorationRequest) -> Iterator[RawPath]:
        with self._lock:
            self.requests.append(request)
        if self.hook is not None:
            self.hook(request)
        source = self.seeded_paths if request.seed is not None else self.paths
        for path in source.get(request.target, []):
            yield path


class FakeSearchEngine(SearchEngine):
    """Solves every path condition unless one of its clauses is listed as unsolvable or crashing"""

    def __init__(
        self,
        unsolvable: Iterable[str] = (),
        crashing: Iterable[str] = (),
        required: Iterable[Path] = (),
        delay: Optional[threading.Event] = None
    ):
        self.unsolvable = set(unsolvable)
        self.crashing = set(crashing)
        self.required = list(required)
        self.delay = delay
        self.calls: List[PathCondition] = []
        self.budgets: List[float] = []
        self._lock = threading.Lock()

    def required_paths(self) -> List[Path]:
        return list(self.required)

    def solve(self, path_condition: PathCondition, budget_seconds: float, workdir: Path):
        with self._lock:
            self.calls.append(path_condition)
            self.budgets.append(budget_seconds)
        if self.delay is not None:
            self.delay.wait(timeout=5)
        encodings = [c.encoding for c in path_condition.clauses]
        if any(e in self.crashing for e in encodings):
            raise RuntimeError("search engine crashed")
        if any(e in self.unsolvable for e in encodings):
            return None
        return {"inputs": {"clauses": encodings}}


class ManualTimer:
    """threading.Timer stand-in fired explicitly by the test"""

    created: List["ManualTimer"] = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        ManualTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args, **self.kwargs)


@pytest.fixture
def manual_timers():
    ManualTimer.created = []
    yield ManualTimer
    ManualTimer.created = []


@pytest.fixture
def builder(tmp_path: Path) -> OptionsBuilder:
    b = OptionsBuilder()
    b.set_target_method(*SIG.as_tuple())
    b.set_tmp_base(tmp_path / "tmp")
    b.set_out_dir(tmp_path / "out")
    b.set_run_name("run")
    b.set_global_time_budget(20, "SECONDS")
    b.set_evosuite_time_budget(5, "SECONDS")
    b.set_timeout_mosa_task_creation(50, "MILLISECONDS")
    return b
