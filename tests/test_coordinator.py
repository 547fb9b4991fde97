import json
import time
from pathlib import Path

import pytest

from hybrid_testgen.core.exceptions import ResourceUnavailableError
from hybrid_testgen.core.models.run_report import FailureKind
from hybrid_testgen.explorer.base import RawPath
from hybrid_testgen.orchestrator import TestGenerationCoordinator

from conftest import OTHER, SIG, FakeSearchEngine, FakeSymbolicEngine, raw


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ClockJumpingSearchEngine(FakeSearchEngine):
    """Moves the run clock past the global deadline while solving"""

    def __init__(self, clock: FakeClock):
        super().__init__()
        self.clock = clock

    def solve(self, path_condition, budget_seconds, workdir):
        self.clock.now += 100
        time.sleep(0.3)
        return super().solve(path_condition, budget_seconds, workdir)


def run(options, engine, search, **kwargs):
    return TestGenerationCoordinator(options, engine, search, poll_interval=0.01, **kwargs).run()


def test_end_to_end_single_method(builder) -> None:
    builder.set_num_mosa_targets(2)
    options = builder.build()
    engine = FakeSymbolicEngine({SIG: [
        raw("a", depth=2),
        raw("b", depth=2),
        raw("c", depth=2),
        raw("a", depth=2),
        raw("unsat", depth=2, infeasible=True),
    ]})
    search = FakeSearchEngine(unsolvable={"b"})

    report = run(options, engine, search)
    stats = report.methods[str(SIG)]

    assert not report.deadline_reached
    assert stats.paths_explored == 3
    assert stats.paths_duplicate == 1
    assert stats.paths_infeasible == 1
    assert stats.batches_dispatched == 2
    assert stats.tests_generated == 2
    assert stats.concretization_failures == 1
    assert report.count_issues(FailureKind.INFEASIBLE) == 1
    assert report.training_records == 4
    assert len(report.written_files) == 2
    assert all(Path(p).exists() for p in report.written_files)
    assert sorted(c.clauses[0].encoding for c in search.calls) == ["a", "b", "c"]

    # one exploration from scratch, one re-seeded exploration per new test
    assert len(engine.requests) == 3
    assert sum(1 for r in engine.requests if r.seed is not None) == 2

    saved = json.loads((options.tmp_dir / "run_report.json").read_text(encoding="utf-8"))
    assert saved["summary"]["tests_written"] == 2
    assert saved["options"]["num_mosa_targets"] == 2
    training_lines = (options.tmp_dir / "training_set.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(training_lines) == 4
    assert sum(1 for line in training_lines if not json.loads(line)["satisfiable"]) == 1
    assert options.tmp_bin_dir.is_dir() and options.tmp_wrappers_dir.is_dir()


def test_target_class_skips_uninterpreted_methods(builder) -> None:
    builder.set_target_class(SIG.class_name)
    builder.set_uninterpreted(OTHER)
    options = builder.build()
    engine = FakeSymbolicEngine({SIG: [raw("a")], OTHER: [raw("b")]}, methods=[SIG, OTHER])

    report = run(options, engine, FakeSearchEngine())

    assert list(report.methods) == [str(SIG)]
    assert {r.target for r in engine.requests} == {SIG}
    assert report.total_tests == 1


def test_reseeding_stops_at_known_paths(builder) -> None:
    options = builder.build()
    engine = FakeSymbolicEngine(
        paths={SIG: [raw("a", depth=2)]},
        seeded_paths={SIG: [raw("a", "d", depth=3, prefix_length=1)]},
    )

    report = run(options, engine, FakeSearchEngine())
    stats = report.methods[str(SIG)]

    assert stats.tests_generated == 2
    assert stats.paths_explored == 2
    assert stats.paths_duplicate == 1
    assert len(engine.requests) == 3


def test_failures_are_recorded_without_aborting(builder) -> None:
    options = builder.build()
    engine = FakeSymbolicEngine({SIG: [RawPath(error="solver crashed", depth=1), raw("a"), raw("boom")]})

    report = run(options, engine, FakeSearchEngine(crashing={"boom"}))

    assert report.count_issues(FailureKind.EXPLORATION_FAILURE) == 1
    assert report.count_issues(FailureKind.CONCRETIZATION_FAILURE) == 1
    assert report.total_tests == 1


def test_missing_resources_abort_before_the_run_begins(builder, tmp_path: Path) -> None:
    options = builder.build()
    missing = tmp_path / "lib" / "jbse.jar"
    engine = FakeSymbolicEngine({SIG: [raw("a")]}, required=[missing])

    with pytest.raises(ResourceUnavailableError) as excinfo:
        run(options, engine, FakeSearchEngine())

    assert excinfo.value.missing == [str(missing)]
    assert engine.requests == []
    assert not options.out_dir.exists()


def test_config_rejections_are_reported(builder) -> None:
    builder.set_exploration_throttle(3.0)
    options = builder.build()
    engine = FakeSymbolicEngine({SIG: []})

    report = run(options, engine, FakeSearchEngine(), rejections=builder.rejections)

    assert report.count_issues(FailureKind.CONFIG_REJECTED) == 1


def test_deadline_keeps_partial_results(builder) -> None:
    builder.set_num_mosa_targets(2)
    options = builder.build()
    clock = FakeClock()
    engine = FakeSymbolicEngine({SIG: [raw("a"), raw("b")]})
    search = ClockJumpingSearchEngine(clock)

    report = run(options, engine, search, clock=clock)
    stats = report.methods[str(SIG)]

    assert report.deadline_reached
    assert report.count_issues(FailureKind.DEADLINE_EXCEEDED) == 1
    # the running job finished its first member, the second found no budget left
    assert stats.tests_generated == 1
    assert stats.concretization_failures == 1
    assert len(search.calls) == 1
    assert Path(report.written_files[0]).exists()
    # no re-seeded exploration was accepted after the deadline
    assert len(engine.requests) == 1


def test_reordered_clauses_are_distinct_paths(builder) -> None:
    options = builder.build()
    engine = FakeSymbolicEngine({SIG: [raw("x > 0", "y > 0"), raw("y > 0", "x > 0")]})
    search = FakeSearchEngine()

    report = run(options, engine, search)
    stats = report.methods[str(SIG)]

    assert stats.paths_explored == 2
    assert stats.paths_duplicate == 0
    assert len(search.calls) == 2
    assert stats.tests_generated == 2
