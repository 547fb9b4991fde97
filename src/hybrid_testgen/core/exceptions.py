"""
Exceptions cho hybrid test generation
"""
from typing import List, Optional


class HybridTestGenError(Exception):
    """Base class for all coordinator errors"""


class ConfigurationError(HybridTestGenError):
    """Malformed configuration that makes a run impossible (e.g. no target selected)"""


class ResourceUnavailableError(HybridTestGenError):
    """A required external binary or library is missing; the run does not begin"""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Required resources not found: {', '.join(self.missing)}")


class ExplorationFailure(HybridTestGenError):
    """
    The symbolic engine failed on one path.

    Instances are usually handed around as values (see PathExplorer.on_failure)
    rather than raised, so that sibling paths keep being explored.
    """

    def __init__(self, message: str, target: Optional[str] = None, depth: Optional[int] = None):
        self.target = target
        self.depth = depth
        super().__init__(message)

