"""
Fixed-size clause fingerprints (Bloom-filter style bit vectors)
"""
import hashlib
from dataclasses import dataclass
from typing import Iterable

from ..core.models.path_condition import Clause


DEFAULT_SIZE = 256
DEFAULT_PROBES = 3


@dataclass(frozen=True)
class Fingerprint:
    """
    Bit vector summarizing a clause sequence.

    Each clause sets `probes` bits derived from the SHA-256 of its encoding,
    so identical clause byte sequences always give identical fingerprints.
    """
    bits: int
    size: int = DEFAULT_SIZE

    @classmethod
    def of(cls, clauses: Iterable[Clause], size: int = DEFAULT_SIZE, probes: int = DEFAULT_PROBES) -> "Fingerprint":
        if size <= 0 or probes <= 0:
            raise ValueError("size and probes must be positive")
        bits = 0
        for clause in clauses:
            digest = hashlib.sha256(clause.to_bytes()).digest()
            for i in range(probes):
                # 4 bytes per probe; sha256 gives 8 independent words
                word = digest[(4 * i) % 32:(4 * i) % 32 + 4]
                bits |= 1 << (int.from_bytes(word, "big") % size)
        return cls(bits=bits, size=size)

    def digest(self) -> str:
        """Hex key, fixed width for a given size"""
        width = (self.size + 3) // 4
        return format(self.bits, f"0{width}x")

    def bit_count(self) -> int:
        return bin(self.bits).count("1")

    def contains(self, other: "Fingerprint") -> bool:
        """True if every bit of `other` is set here (possible superset of its clauses)"""
        if other.size != self.size:
            return False
        return self.bits & other.bits == other.bits

    def __str__(self) -> str:
        return self.digest()
