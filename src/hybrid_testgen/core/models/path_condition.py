"""
Path condition models - output of symbolic exploration
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Mapping
from types import MappingProxyType


@dataclass(frozen=True)
class MethodSignature:
    """Java method signature as a (class, descriptor, name) triple"""
    class_name: str
    descriptor: str
    name: str

    @classmethod
    def of(cls, *parts: str) -> "MethodSignature":
        """Build from exactly three strings; raises ValueError otherwise"""
        if len(parts) != 3 or not all(isinstance(p, str) and p for p in parts):
            raise ValueError(f"A method signature needs class, descriptor and name, got {parts!r}")
        return cls(*parts)

    @property
    def simple_class_name(self) -> str:
        return self.class_name.replace("/", ".").split(".")[-1]

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.class_name, self.descriptor, self.name)

    def __str__(self) -> str:
        return f"{self.class_name}:{self.descriptor}:{self.name}"


@dataclass(frozen=True)
class Clause:
    """
    Atomic constraint over symbolic inputs.

    `payload` is opaque to the coordinator; `encoding` is the stable text
    that fingerprints are computed over.
    """
    encoding: str
    payload: object = field(default=None, compare=False)

    def to_bytes(self) -> bytes:
        return self.encoding.encode("utf-8")


@dataclass(frozen=True)
class ScopeSet:
    """Heap scope (class -> max instances) plus a global count scope (0 = unlimited)"""
    heap_scope: Mapping[str, int] = field(default_factory=dict)
    count_scope: int = 0

    def __post_init__(self):
        object.__setattr__(self, "heap_scope", MappingProxyType(dict(self.heap_scope)))

    def violated_by(self, object_counts: Mapping[str, int]) -> Optional[str]:
        """
        Check live object counts of a path against the scope.

        Returns:
            Description of the first violation, or None if the path is within scope
        """
        for class_name, count in object_counts.items():
            limit = self.heap_scope.get(class_name)
            if limit is not None and count > limit:
                return f"{count} instances of {class_name} exceed heap scope {limit}"
        if self.count_scope > 0:
            total = sum(object_counts.values())
            if total > self.count_scope:
                return f"{total} live objects exceed count scope {self.count_scope}"
        return None

    def __hash__(self):
        return hash((tuple(sorted(self.heap_scope.items())), self.count_scope))

    def __eq__(self, other):
        if not isinstance(other, ScopeSet):
            return NotImplemented
        return dict(self.heap_scope) == dict(other.heap_scope) and self.count_scope == other.count_scope


@dataclass(frozen=True)
class PathCondition:
    """
    Ordered clause sequence characterizing one execution path.

    `prefix_length` clauses were already known from the parent path; the rest
    were appended by this exploration step. `seed_depth` is set when the path
    originates from a seed test case and holds the depth explored past it.
    """
    clauses: Tuple[Clause, ...]
    depth: int
    target: MethodSignature
    prefix_length: int = 0
    seed_depth: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "clauses", tuple(self.clauses))
        if not 0 <= self.prefix_length <= len(self.clauses):
            raise ValueError(
                f"prefix_length {self.prefix_length} out of range for {len(self.clauses)} clauses"
            )

    @property
    def prefix(self) -> Tuple[Clause, ...]:
        return self.clauses[:self.prefix_length]

    @property
    def suffix(self) -> Tuple[Clause, ...]:
        return self.clauses[self.prefix_length:]

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary"""
        return {
            "target": str(self.target),
            "depth": self.depth,
            "seed_depth": self.seed_depth,
            "prefix_length": self.prefix_length,
            "clauses": [c.encoding for c in self.clauses],
        }
