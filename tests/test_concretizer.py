from pathlib import Path

from hybrid_testgen.concretizer.concretizer import Concretizer
from hybrid_testgen.core.models.batch import TargetBatch
from hybrid_testgen.core.models.test_case import ConcretizationFailure, TestCase

from conftest import SIG, FakeSearchEngine, make_pc


class StepClock:
    """Advances by `step` seconds on every reading"""

    def __init__(self, step: float):
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def batch_of(*pcs) -> TargetBatch:
    return TargetBatch(batch_id=1, target=SIG, capacity=5, members=list(pcs))


def test_each_member_gets_an_outcome_in_order(tmp_path: Path) -> None:
    engine = FakeSearchEngine(unsolvable={"unsat"}, crashing={"crash"})
    members = [make_pc("a"), make_pc("unsat"), make_pc("crash"), make_pc("b")]
    results = Concretizer(engine, tmp_path).concretize(batch_of(*members), budget_seconds=60)

    assert [pc for pc, _ in results] == members
    outcomes = [outcome for _, outcome in results]
    assert isinstance(outcomes[0], TestCase)
    assert isinstance(outcomes[1], ConcretizationFailure) and outcomes[1].infeasible
    assert isinstance(outcomes[2], ConcretizationFailure) and not outcomes[2].infeasible
    assert "RuntimeError" in outcomes[2].reason
    assert isinstance(outcomes[3], TestCase)


def test_test_case_is_bound_to_the_path_condition(tmp_path: Path) -> None:
    pc = make_pc("x > 0", depth=4)
    [(_, test_case)] = Concretizer(FakeSearchEngine(), tmp_path).concretize(batch_of(pc), 10)

    assert test_case.target == SIG
    assert test_case.path_condition is pc
    assert test_case.depth == 4
    assert test_case.inputs == {"clauses": ["x > 0"]}


def test_budget_is_shared_fairly(tmp_path: Path) -> None:
    engine = FakeSearchEngine()
    Concretizer(engine, tmp_path, clock=lambda: 0.0).concretize(batch_of(make_pc("a"), make_pc("b")), 10)
    assert engine.budgets == [5.0, 10.0]


def test_exhausted_budget_reports_failure_without_losing_earlier_results(tmp_path: Path) -> None:
    engine = FakeSearchEngine()
    clock = StepClock(step=4.0)
    members = [make_pc("a"), make_pc("b"), make_pc("c")]
    results = Concretizer(engine, tmp_path, clock=clock).concretize(batch_of(*members), 6)

    assert isinstance(results[0][1], TestCase)
    assert all(isinstance(outcome, ConcretizationFailure) for _, outcome in results[1:])
    assert results[2][1].reason == "job time budget exhausted"
    assert len(engine.calls) == 1
