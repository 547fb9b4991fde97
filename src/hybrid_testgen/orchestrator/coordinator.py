"""
Test Generation Coordinator - điều phối exploration và concretization
"""
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ..core.exceptions import ExplorationFailure, ResourceUnavailableError
from ..core.options import ByMethod, ConfigRejected, Options
from ..core.models.path_condition import MethodSignature, PathCondition
from ..core.models.batch import TargetBatch
from ..core.models.run_report import FailureKind, RunReport
from ..core.models.test_case import ConcretizationFailure, TaskResult, TaskStatus, TestCase
from ..encoder.constraint_encoder import ConstraintEncoder, TrainingSet
from ..explorer.base import SymbolicEngine
from ..explorer.path_explorer import PathExplorer
from ..concretizer.base import SearchEngine
from ..concretizer.concretizer import Concretizer
from ..output.output_assembler import OutputAssembler
from ..output.test_writer import TestWriter
from .batch_assembler import BatchAssembler
from .scheduler import DualPoolScheduler


class TestGenerationCoordinator:
    """
    Coordinator chính cho một run
    Workflow:
    1. Verify external resources and create the run directories
    2. Resolve target methods, submit one exploration task per method
    3. Encode paths, assemble batches, dispatch them to the concretization pool
    4. Write new test cases and re-seed exploration from them
    5. Stop at idle or at the global deadline, return the RunReport
    """

    __test__ = False

    def __init__(
        self,
        options: Options,
        symbolic_engine: SymbolicEngine,
        search_engine: SearchEngine,
        clock: Callable[[], float] = time.monotonic,
        rejections: Optional[List[ConfigRejected]] = None,
        poll_interval: float = 0.05
    ):
        """
        Initialize coordinator

        Args:
            options: Immutable run configuration
            symbolic_engine: Path explorer backend
            search_engine: Concretizer backend
            clock: Monotonic clock for the global deadline
            rejections: Configuration updates refused while building `options`
            poll_interval: How often the main loop re-checks the deadline
        """
        self.options = options
        self.logger = logging.getLogger(__name__)
        self.symbolic_engine = symbolic_engine
        self.search_engine = search_engine
        self.clock = clock
        self.poll_interval = poll_interval

        self.explorer = PathExplorer(symbolic_engine, options.max_simple_array_length)
        self.encoder = ConstraintEncoder.from_options(options)
        self.training_set = TrainingSet()
        self.concretizer = Concretizer(search_engine, options.tmp_dir, clock=clock)
        self.output = OutputAssembler(options.out_dir, TestWriter(options.evosuite_no_dependency))

        # State
        self.report = RunReport(run_name=options.run_name)
        self.scheduler: Optional[DualPoolScheduler] = None
        self.assembler: Optional[BatchAssembler] = None

        for rejection in rejections or []:
            self.report.add_issue(FailureKind.CONFIG_REJECTED, str(rejection))

    def run(self) -> RunReport:
        """
        Thực hiện một run hoàn chỉnh

        Returns:
            RunReport, including partial results when the deadline was reached

        Raises:
            ResourceUnavailableError: a required binary or library is missing
        """
        start_time = time.time()
        self.report.started_at = datetime.now()

        self.logger.info("=" * 70)
        self.logger.info(f"Starting test generation run {self.options.run_name}")
        self.logger.info("=" * 70)

        self._check_resources()
        self._prepare_directories()

        self.scheduler = DualPoolScheduler(
            self.options.exploration_pool,
            self.options.concretization_pool,
            self.options.global_time_budget.to_seconds(),
            clock=self.clock,
            on_result=self._on_task_result,
            poll_interval=self.poll_interval,
        )
        self.assembler = BatchAssembler(
            self.options.num_mosa_targets,
            self.options.timeout_mosa_task_creation.to_seconds(),
            self._dispatch_batch,
        )

        try:
            self.logger.info("\n[Step 1] Resolving target methods...")
            targets = self._resolve_targets()
            self.logger.info(f"✓ {len(targets)} target method(s)")

            self.logger.info("\n[Step 2] Exploring and concretizing...")
            for target in targets:
                self.report.stats_for(str(target))
                self.assembler.open_for(target)
                self.scheduler.submit_exploration(f"explore {target}", self._explore, target)

            self._drive()
        finally:
            self.assembler.close()
            self.scheduler.shutdown(wait=True)

            self.report.training_records = len(self.training_set)
            self.report.completed_at = datetime.now()
            self.report.total_duration_seconds = time.time() - start_time
            self._write_report()

            self.logger.info("\n" + "=" * 70)
            self.logger.info("Test Generation Run Completed")
            self.logger.info("=" * 70)
            self.logger.info(self.report.get_summary())

        return self.report

    def _drive(self) -> None:
        while True:
            if not self.scheduler.wait():
                self.report.deadline_reached = True
                self.report.add_issue(
                    FailureKind.DEADLINE_EXCEEDED,
                    f"global time budget of {self.options.global_time_budget} elapsed, partial results kept",
                )
                self.logger.warning("✗ Global time budget elapsed, stopping")
                self.scheduler.stop()
                return
            # Idle pools may still leave partial batches whose timer has not fired
            if self.assembler.flush() == 0 and self.scheduler.outstanding == 0:
                return

    def _check_resources(self) -> None:
        required = list(self.symbolic_engine.required_paths()) + list(self.search_engine.required_paths())
        missing = [str(path) for path in required if not Path(path).exists()]
        if missing:
            for path in missing:
                self.logger.error(f"✗ Required resource not found: {path}")
            raise ResourceUnavailableError(missing)

    def _prepare_directories(self) -> None:
        for directory in (
            self.options.tmp_bin_dir,
            self.options.tmp_wrappers_dir,
            self.options.tmp_tests_dir,
            self.options.out_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    def _resolve_targets(self) -> List[MethodSignature]:
        if isinstance(self.options.target, ByMethod):
            return [self.options.target.signature]

        class_name = self.options.target.class_name
        methods = self.symbolic_engine.list_target_methods(class_name, self.options.visibility)
        targets = [m for m in methods if m not in self.options.uninterpreted]
        if not targets:
            self.logger.warning(f"No {self.options.visibility.value} methods to test in {class_name}")
        return targets

    # ---- exploration ---------------------------------------------------

    def _explore(self, target: MethodSignature, seed: Optional[TestCase] = None) -> int:
        """Exploration task; returns how many new paths were handed to the assembler"""
        label = str(target)
        new_paths = 0

        def on_failure(failure: ExplorationFailure) -> None:
            self.report.add_issue(FailureKind.EXPLORATION_FAILURE, str(failure), label)

        def on_infeasible(path_condition: PathCondition, reason: str) -> None:
            self.report.increment(label, "paths_infeasible")
            if self.training_set.claim_path(self.encoder.path_key(path_condition)):
                self.training_set.add(self.encoder.encode(path_condition, satisfiable=False))

        paths = self.explorer.explore(
            target,
            self.options.scope,
            self.options.uninterpreted,
            self.options.max_depth,
            self.options.max_test_case_depth,
            seed=seed,
            timeout=self.scheduler.deadline.remaining(),
            on_failure=on_failure,
            on_infeasible=on_infeasible,
        )
        try:
            for path_condition in paths:
                if not self.scheduler.accepting:
                    self.logger.debug(f"Exploration of {target} stopped, scheduler no longer accepts work")
                    break
                if not self.training_set.claim_path(self.encoder.path_key(path_condition)):
                    self.report.increment(label, "paths_duplicate")
                    continue
                self.report.increment(label, "paths_explored")
                self.training_set.add(self.encoder.encode(path_condition))
                if self.assembler.add(path_condition):
                    new_paths += 1
        finally:
            paths.close()
        return new_paths

    # ---- concretization ------------------------------------------------

    def _dispatch_batch(self, batch: TargetBatch) -> None:
        submitted = self.scheduler.submit_concretization(
            f"concretize batch {batch.batch_id} of {batch.target}", self._concretize, batch
        )
        if submitted:
            self.report.increment(str(batch.target), "batches_dispatched")
        else:
            self.logger.debug(f"Batch {batch.batch_id} of {batch.target} dropped, scheduler stopped")

    def _concretize(self, batch: TargetBatch) -> int:
        """Concretization task; returns how many test cases were written"""
        budget = self.scheduler.job_budget(self.options.evosuite_time_budget.to_seconds())
        written = 0
        for path_condition, outcome in self.concretizer.concretize(batch, budget):
            if isinstance(outcome, ConcretizationFailure):
                self._record_failure(path_condition, outcome)
            elif self._accept(outcome):
                written += 1
        return written

    def _record_failure(self, path_condition: PathCondition, failure: ConcretizationFailure) -> None:
        label = str(path_condition.target)
        self.report.increment(label, "concretization_failures")
        kind = FailureKind.INFEASIBLE if failure.infeasible else FailureKind.CONCRETIZATION_FAILURE
        self.report.add_issue(kind, failure.reason, label)

    def _accept(self, test_case: TestCase) -> bool:
        path = self.output.accept(test_case)
        if path is None:
            return False

        label = str(test_case.target)
        self.report.increment(label, "tests_generated")
        self.report.add_written_file(str(path))

        if test_case.depth < self.options.max_depth:
            self.scheduler.submit_exploration(
                f"explore {test_case.target} from test {test_case.id}", self._explore, test_case.target, test_case
            )
        return True

    def _on_task_result(self, pool_name: str, result: TaskResult) -> None:
        if result.status == TaskStatus.FAILED:
            self.report.add_issue(FailureKind.TASK_FAILED, f"[{pool_name}] {result.task_name}: {result.error_message}")

    def _write_report(self) -> None:
        """Persist the run report and the training set into the run directory"""
        report_file = self.options.tmp_dir / "run_report.json"
        training_file = self.options.tmp_dir / "training_set.jsonl"
        try:
            with open(report_file, "w", encoding="utf-8") as f:
                json.dump({**self.report.to_dict(), "options": self.options.to_dict()}, f, indent=2)
            with open(training_file, "w", encoding="utf-8") as f:
                for record in self.training_set.records():
                    f.write(json.dumps(record.to_dict()) + "\n")
            self.logger.info(f"✓ Run report written to {report_file}")
        except OSError as e:
            self.logger.error(f"✗ Could not write run report: {e}")
