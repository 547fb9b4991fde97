"""
Constraint Encoder - turns path conditions into training records
"""
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.models.path_condition import PathCondition
from .fingerprint import Fingerprint, DEFAULT_SIZE, DEFAULT_PROBES


@dataclass(frozen=True)
class TrainingRecord:
    """
    (fingerprints, satisfiable) pair.

    Whole-sequence records carry one fingerprint in unsplit mode and
    (prefix, suffix) in split mode. Per-clause records carry one fingerprint
    and the index of their clause.
    """
    target: str
    fingerprints: Tuple[Fingerprint, ...]
    satisfiable: bool
    clause_index: Optional[int] = None

    @property
    def is_per_clause(self) -> bool:
        return self.clause_index is not None

    def key(self) -> Tuple:
        return (self.target, tuple(fp.digest() for fp in self.fingerprints), self.clause_index)

    def to_dict(self) -> Dict[str, object]:
        return {
            "target": self.target,
            "fingerprints": [fp.digest() for fp in self.fingerprints],
            "clause_index": self.clause_index,
            "satisfiable": self.satisfiable,
        }


class ConstraintEncoder:
    """
    Pure, deterministic encoder.

    Modes:
    - unsplit: one fingerprint over the whole clause sequence
    - split: one over the prefix known from the parent path, one over the suffix
    - single-clause (orthogonal): one extra record per clause, or instead of
      the whole-sequence record when `replace_whole` is set
    """

    def __init__(
        self,
        split: bool = False,
        single_clause: bool = False,
        replace_whole: bool = False,
        size: int = DEFAULT_SIZE,
        probes: int = DEFAULT_PROBES
    ):
        self.split = split
        self.single_clause = single_clause
        self.replace_whole = replace_whole
        self.size = size
        self.probes = probes

    @classmethod
    def from_options(cls, options) -> "ConstraintEncoder":
        return cls(
            split=options.split_fingerprint_mode,
            single_clause=options.single_clause_mode,
            replace_whole=options.single_clause_replaces_whole,
        )

    def fingerprints(self, path_condition: PathCondition) -> Tuple[Fingerprint, ...]:
        """Fingerprints of the whole-sequence record"""
        if self.split:
            return (
                Fingerprint.of(path_condition.prefix, self.size, self.probes),
                Fingerprint.of(path_condition.suffix, self.size, self.probes),
            )
        return (Fingerprint.of(path_condition.clauses, self.size, self.probes),)

    def path_key(self, path_condition: PathCondition) -> Tuple:
        """
        Exact dedup key of a path condition.

        Hashes the ordered clause encodings, so two paths share a key only
        when they are the same clause sequence. Split mode also keys on where
        the prefix ends.
        """
        digest = hashlib.sha256()
        for clause in path_condition.clauses:
            data = clause.to_bytes()
            digest.update(len(data).to_bytes(8, "big"))
            digest.update(data)
        key = (str(path_condition.target), digest.hexdigest())
        if self.split:
            key += (path_condition.prefix_length,)
        return key

    def encode(self, path_condition: PathCondition, satisfiable: bool = True) -> List[TrainingRecord]:
        """
        Encode a path condition.

        Args:
            path_condition: PathCondition to encode
            satisfiable: Feasibility label for the produced records

        Returns:
            One record, or k (+1) records in single-clause mode
        """
        target = str(path_condition.target)
        records: List[TrainingRecord] = []

        if not (self.single_clause and self.replace_whole):
            records.append(TrainingRecord(
                target=target,
                fingerprints=self.fingerprints(path_condition),
                satisfiable=satisfiable,
            ))

        if self.single_clause:
            for index, clause in enumerate(path_condition.clauses):
                records.append(TrainingRecord(
                    target=target,
                    fingerprints=(Fingerprint.of((clause,), self.size, self.probes),),
                    satisfiable=satisfiable,
                    clause_index=index,
                ))

        return records


class TrainingSet:
    """Thread-safe, de-duplicating store of training records and seen paths"""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[Tuple, TrainingRecord] = {}
        self._seen_paths = set()
        self.logger = logging.getLogger(__name__)

    def add(self, records: Iterable[TrainingRecord]) -> int:
        """Add records; returns how many were new"""
        added = 0
        with self._lock:
            for record in records:
                key = record.key()
                if key not in self._records:
                    self._records[key] = record
                    added += 1
        return added

    def claim_path(self, path_key: Tuple) -> bool:
        """Mark a path as seen; False if it had been seen before"""
        with self._lock:
            if path_key in self._seen_paths:
                return False
            self._seen_paths.add(path_key)
            return True

    def records(self) -> List[TrainingRecord]:
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
