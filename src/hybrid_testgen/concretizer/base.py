from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.models.path_condition import PathCondition


class SearchEngine(ABC):
    """Request/response contract of the search-based concretizer"""

    @abstractmethod
    def required_paths(self) -> List[Path]:
        """Binaries and libraries that must exist before a run starts"""

    @abstractmethod
    def solve(self, path_condition: PathCondition, budget_seconds: float, workdir: Path) -> Optional[Dict[str, Any]]:
        """
        Search for inputs satisfying `path_condition` within the budget.

        Returns:
            {"inputs": {...}, "source": "..."} on success (source optional),
            None when no solution was found in time
        """
