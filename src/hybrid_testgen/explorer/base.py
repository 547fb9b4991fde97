from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..core.options import Visibility
from ..core.models.path_condition import MethodSignature, ScopeSet
from ..core.models.test_case import TestCase


@dataclass(frozen=True)
class ExplorationRequest:
    """Everything the symbolic engine needs to explore one target method"""
    target: MethodSignature
    scope: ScopeSet
    uninterpreted: Tuple[MethodSignature, ...]
    max_depth: int
    max_test_case_depth: int
    max_simple_array_length: int = 100_000
    seed: Optional[TestCase] = None
    timeout: Optional[float] = None


@dataclass
class RawPath:
    """
    One path record as reported by the engine, before bounds are enforced.

    `error` marks a failed engine invocation for this path; `infeasible`
    marks a path the engine itself found unsatisfiable.
    """
    clauses: List[Any] = field(default_factory=list)
    depth: int = 0
    prefix_length: int = 0
    seed_depth: Optional[int] = None
    object_counts: Dict[str, int] = field(default_factory=dict)
    infeasible: bool = False
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawPath":
        return cls(
            clauses=list(data.get("clauses", [])),
            depth=int(data.get("depth", 0)),
            prefix_length=int(data.get("prefix_length", 0)),
            seed_depth=data.get("seed_depth"),
            object_counts={k: int(v) for k, v in dict(data.get("objects", {})).items()},
            infeasible=bool(data.get("infeasible", False)),
            error=data.get("error"),
        )


class SymbolicEngine(ABC):
    """Request/response contract of the symbolic path explorer"""

    @abstractmethod
    def required_paths(self) -> List[Path]:
        """Binaries and libraries that must exist before a run starts"""

    @abstractmethod
    def list_target_methods(self, class_name: str, visibility: Visibility) -> List[MethodSignature]:
        """Methods of `class_name` eligible for testing under `visibility`"""

    @abstractmethod
    def explore(self, request: ExplorationRequest) -> Iterator[RawPath]:
        """
        Explore the target method.

        The returned iterator is finite and not restartable.
        """
