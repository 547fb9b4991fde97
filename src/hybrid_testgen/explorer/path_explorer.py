"""
Path Explorer - wraps the symbolic engine and enforces depth and scope bounds
"""
import logging
import subprocess
from typing import Callable, Iterable, Iterator, Optional

from ..core.exceptions import ExplorationFailure, HybridTestGenError
from ..core.models.path_condition import Clause, MethodSignature, PathCondition, ScopeSet
from ..core.models.test_case import TestCase
from .base import ExplorationRequest, RawPath, SymbolicEngine


FailureCallback = Callable[[ExplorationFailure], None]
InfeasibleCallback = Callable[[PathCondition, str], None]


def _to_clause(raw) -> Clause:
    if isinstance(raw, Clause):
        return raw
    if isinstance(raw, dict):
        return Clause(encoding=str(raw["encoding"]), payload=raw.get("payload"))
    return Clause(encoding=str(raw))


class PathExplorer:
    """
    Path Explorer Adapter

    Turns the engine's raw path stream into PathConditions:
    1. paths deeper than max_depth (or max_test_case_depth past a seed) are
       truncated and never reported
    2. paths violating the ScopeSet are skipped as infeasible
    3. per-path engine failures become ExplorationFailure values; siblings
       keep being explored
    """

    def __init__(self, engine: SymbolicEngine, max_simple_array_length: int = 100_000):
        self.logger = logging.getLogger(__name__)
        self.engine = engine
        self.max_simple_array_length = max_simple_array_length

    def explore(
        self,
        target: MethodSignature,
        scope: ScopeSet,
        uninterpreted: Iterable[MethodSignature],
        max_depth: int,
        max_test_case_depth: int,
        seed: Optional[TestCase] = None,
        timeout: Optional[float] = None,
        on_failure: Optional[FailureCallback] = None,
        on_infeasible: Optional[InfeasibleCallback] = None
    ) -> Iterator[PathCondition]:
        """
        Lazily explore a target method.

        Args:
            target: Method to explore
            scope: Heap/count scope attached to the request
            uninterpreted: Methods the engine must not expand
            max_depth: Bound on exploration depth
            max_test_case_depth: Bound on depth past a seed test case
            seed: Test case the exploration starts from (None = from scratch)
            timeout: Wall-clock bound for the engine invocation
            on_failure: Receives per-path ExplorationFailure values
            on_infeasible: Receives scope-violating or engine-infeasible paths

        Yields:
            PathCondition objects within bounds
        """
        uninterpreted = tuple(uninterpreted)
        if target in uninterpreted:
            self.logger.warning(f"Target {target} is uninterpreted, nothing to explore")
            return

        request = ExplorationRequest(
            target=target,
            scope=scope,
            uninterpreted=uninterpreted,
            max_depth=max_depth,
            max_test_case_depth=max_test_case_depth,
            max_simple_array_length=self.max_simple_array_length,
            seed=seed,
            timeout=timeout,
        )

        reported = 0
        truncated = 0
        try:
            for raw in self.engine.explore(request):
                if raw.error:
                    self._report_failure(on_failure, ExplorationFailure(raw.error, str(target), raw.depth))
                    continue

                if self._exceeds_bounds(raw, request):
                    truncated += 1
                    continue

                path_condition = self._to_path_condition(raw, target)
                if path_condition is None:
                    self._report_failure(
                        on_failure,
                        ExplorationFailure(f"malformed path record at depth {raw.depth}", str(target), raw.depth)
                    )
                    continue

                violation = scope.violated_by(raw.object_counts)
                if violation or raw.infeasible:
                    reason = violation or "infeasible according to the symbolic engine"
                    self.logger.debug(f"Skipping path of {target}: {reason}")
                    if on_infeasible is not None:
                        on_infeasible(path_condition, reason)
                    continue

                reported += 1
                yield path_condition
        except (HybridTestGenError, OSError, subprocess.SubprocessError, ValueError) as e:
            # The engine stream itself broke; paths already yielded stand
            self._report_failure(on_failure, ExplorationFailure(f"engine failed: {e}", str(target)))

        self.logger.info(f"✓ Explored {target}: {reported} paths reported, {truncated} truncated")

    def _exceeds_bounds(self, raw: RawPath, request: ExplorationRequest) -> bool:
        if raw.depth > request.max_depth:
            return True
        seed_depth = raw.seed_depth
        if seed_depth is None and request.seed is not None:
            seed_depth = raw.depth - request.seed.depth
        if seed_depth is not None and seed_depth > request.max_test_case_depth:
            return True
        return False

    def _to_path_condition(self, raw: RawPath, target: MethodSignature) -> Optional[PathCondition]:
        try:
            clauses = tuple(_to_clause(c) for c in raw.clauses)
            return PathCondition(
                clauses=clauses,
                depth=raw.depth,
                target=target,
                prefix_length=raw.prefix_length,
                seed_depth=raw.seed_depth,
            )
        except (KeyError, ValueError, TypeError) as e:
            self.logger.debug(f"Malformed path record: {e}")
            return None

    def _report_failure(self, callback: Optional[FailureCallback], failure: ExplorationFailure) -> None:
        self.logger.warning(f"✗ Exploration failure for {failure.target}: {failure}")
        if callback is not None:
            callback(failure)
