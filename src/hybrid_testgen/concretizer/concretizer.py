"""
Concretizer - turns dispatched batches into concrete test cases
"""
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..core.models.path_condition import PathCondition
from ..core.models.test_case import ConcretizationFailure, TestCase
from ..core.models.batch import TargetBatch
from .base import SearchEngine


Outcome = Union[TestCase, ConcretizationFailure]


class Concretizer:
    """
    Concretizer Adapter

    Members of a batch are attempted one after the other. Each gets a fair
    share of what is left of the job budget (remaining time / remaining
    members), so a member that times out never hides results already
    obtained for the others. Infeasibility is an outcome, not an error.
    """

    def __init__(
        self,
        engine: SearchEngine,
        workdir: Path,
        min_share_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.logger = logging.getLogger(__name__)
        self.engine = engine
        self.workdir = Path(workdir)
        self.min_share_seconds = min_share_seconds
        self.clock = clock

    def concretize(self, batch: TargetBatch, budget_seconds: float) -> List[Tuple[PathCondition, Outcome]]:
        """
        Concretize every member of a batch.

        Args:
            batch: Dispatched TargetBatch
            budget_seconds: Time budget shared by the whole batch

        Returns:
            One (PathCondition, TestCase | ConcretizationFailure) pair per member, in batch order
        """
        results: List[Tuple[PathCondition, Outcome]] = []
        members = list(batch.members)
        started = self.clock()

        for index, path_condition in enumerate(members):
            remaining = budget_seconds - (self.clock() - started)
            share = remaining / (len(members) - index)
            if share <= 0 or share < self.min_share_seconds:
                results.append((path_condition, ConcretizationFailure("job time budget exhausted")))
                continue

            member_dir = self.workdir / f"batch_{batch.batch_id}" / f"pc_{index}"
            results.append((path_condition, self._attempt(path_condition, share, member_dir)))

        solved = sum(1 for _, outcome in results if isinstance(outcome, TestCase))
        self.logger.info(
            f"✓ Batch {batch.batch_id} for {batch.target}: {solved}/{len(members)} concretized "
            f"in {self.clock() - started:.1f}s"
        )
        return results

    def _attempt(self, path_condition: PathCondition, budget: float, workdir: Path) -> Outcome:
        try:
            solution = self.engine.solve(path_condition, budget, workdir)
        except Exception as e:
            # Engine crash on one member; the rest of the batch goes on
            self.logger.warning(f"✗ Concretizer failed on {path_condition.target}: {e}")
            return ConcretizationFailure(f"engine error: {type(e).__name__}: {e}", infeasible=False)

        if solution is None:
            return ConcretizationFailure(f"no solution within {budget:.1f}s")

        return TestCase(
            target=path_condition.target,
            inputs=dict(solution.get("inputs") or {}),
            source=solution.get("source"),
            depth=path_condition.depth,
            path_condition=path_condition,
        )
