"""Alignment results: steps, merged segments and summary statistics.

The engine produces a *path* of steps, each consuming ``len_a`` residues of A
and ``len_b`` residues of B. Consecutive steps of the same kind are merged
into *segments* for display; mass-matched steps are never merged because each
one is a distinct pair of equal-mass runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, NamedTuple, Tuple

from ..sequence import Sequence
from .scoring import ScoringMode, Topology


class MatchType(IntEnum):
    """Classification of a single step (integer codes shared with the kernel)."""
    FULL_IDENTITY = 1           # Same residue, same mass
    IDENTITY_MASS_MISMATCH = 2  # Same residue, different mass (modification)
    ISOBARIC = 3                # Different residues, equal mass
    ROTATION = 4                # Same composition in a different order
    MISMATCH = 5
    GAP = 6


class SegmentKind(Enum):
    """Segment tags of an alignment."""
    MATCH = "match"            # Identical symbols
    MASS_MATCH = "mass_match"  # Different symbols, equal mass
    MISMATCH = "mismatch"
    GAP_A = "gap_a"            # B residues against a gap in A
    GAP_B = "gap_b"            # A residues against a gap in B


class Step(NamedTuple):
    """One DP move.

    ``start_a``/``start_b`` are 0-based residue offsets, ``len_a``/``len_b``
    the number of residues consumed on each side.
    """
    match_type: MatchType
    start_a: int
    len_a: int
    start_b: int
    len_b: int
    score: float

    @property
    def kind(self) -> SegmentKind:
        if self.match_type == MatchType.GAP:
            return SegmentKind.GAP_A if self.len_a == 0 else SegmentKind.GAP_B
        if self.match_type == MatchType.FULL_IDENTITY:
            return SegmentKind.MATCH
        if self.match_type in (MatchType.ISOBARIC, MatchType.ROTATION):
            return SegmentKind.MASS_MATCH
        return SegmentKind.MISMATCH


@dataclass(frozen=True)
class Segment:
    """A run of consecutive steps of the same match type."""

    kind: SegmentKind
    match_type: MatchType
    start_a: int
    len_a: int
    start_b: int
    len_b: int
    score: float
    steps: int = 1

    @property
    def end_a(self) -> int:
        return self.start_a + self.len_a

    @property
    def end_b(self) -> int:
        return self.start_b + self.len_b


def merge_steps(steps: List[Step]) -> List[Segment]:
    """Merge consecutive steps of the same match type into segments."""
    segments: List[Segment] = []
    for step in steps:
        mergeable = step.match_type not in (MatchType.ISOBARIC, MatchType.ROTATION)
        last = segments[-1] if segments else None
        if (mergeable and last is not None and last.match_type == step.match_type
                and last.kind == step.kind
                and last.end_a == step.start_a and last.end_b == step.start_b):
            segments[-1] = Segment(
                last.kind, last.match_type, last.start_a, last.len_a + step.len_a,
                last.start_b, last.len_b + step.len_b, last.score + step.score, last.steps + 1,
            )
        else:
            segments.append(Segment(
                step.kind, step.match_type, step.start_a, step.len_a,
                step.start_b, step.len_b, step.score,
            ))
    return segments


class AlignmentStats(NamedTuple):
    """Counts over the aligned region.

    ``length`` is the longer of the two aligned stretches.
    """
    identical: int
    mass_similar: int
    gaps: int
    length: int


_CIGAR_CODES = {
    MatchType.FULL_IDENTITY: "=",
    MatchType.IDENTITY_MASS_MISMATCH: "m",
    MatchType.MISMATCH: "X",
    MatchType.ISOBARIC: "i",
    MatchType.ROTATION: "r",
}


@dataclass(frozen=True)
class AlignmentResult:
    """Optimal alignment of two sequences.

    Attributes
    ----------
    score : float
        Optimal score
    topology : Topology
    mode : ScoringMode
    steps : tuple of Step
        Path in forward order
    segments : tuple of Segment
        Merged path in forward order
    seq_a, seq_b : Sequence
        The aligned sequences
    start_a, start_b : int
        First aligned residue on each side (leading overhang length)
    end_a, end_b : int
        One past the last aligned residue on each side
    """

    score: float
    topology: Topology
    mode: ScoringMode
    steps: Tuple[Step, ...]
    segments: Tuple[Segment, ...]
    seq_a: Sequence
    seq_b: Sequence
    start_a: int = 0
    start_b: int = 0
    end_a: int = 0
    end_b: int = 0

    @property
    def len_a(self) -> int:
        """Number of aligned residues of A."""
        return self.end_a - self.start_a

    @property
    def len_b(self) -> int:
        return self.end_b - self.start_b

    def stats(self) -> AlignmentStats:
        identical = 0
        mass_similar = 0
        gaps = 0
        for step in self.steps:
            if step.match_type == MatchType.FULL_IDENTITY:
                identical += step.len_a
                mass_similar += step.len_a
            elif step.match_type in (MatchType.ISOBARIC, MatchType.ROTATION):
                mass_similar += max(step.len_a, step.len_b)
            elif step.match_type == MatchType.GAP:
                gaps += step.len_a + step.len_b
        return AlignmentStats(identical, mass_similar, gaps, max(self.len_a, self.len_b))

    def identity(self) -> float:
        """Fraction of the aligned length that is identical."""
        stats = self.stats()
        return stats.identical / stats.length if stats.length else 0.0

    def cigar(self) -> str:
        """Compact path text.

        ``=`` identity, ``m`` identity with mass mismatch, ``X`` mismatch,
        ``I``/``D`` gap in B/A, mass-matched steps as ``i[k,m]`` (isobaric)
        or ``r[k,m]`` (rotation).
        """
        parts = []
        for segment in self.segments:
            if segment.match_type in (MatchType.ISOBARIC, MatchType.ROTATION):
                parts.append(f"{_CIGAR_CODES[segment.match_type]}[{segment.len_a},{segment.len_b}]")
            elif segment.match_type == MatchType.GAP:
                if segment.kind == SegmentKind.GAP_B:
                    parts.append(f"{segment.len_a}I")
                else:
                    parts.append(f"{segment.len_b}D")
            else:
                parts.append(f"{segment.len_a}{_CIGAR_CODES[segment.match_type]}")
        return "".join(parts)

    def aligned_symbols(self) -> Tuple[str, str]:
        """Both sequences with ``-`` padding, runs padded to equal width."""
        a_parts, b_parts = [], []
        symbols_a, symbols_b = self.seq_a.symbols, self.seq_b.symbols
        for step in self.steps:
            a = symbols_a[step.start_a:step.start_a + step.len_a]
            b = symbols_b[step.start_b:step.start_b + step.len_b]
            width = max(len(a), len(b))
            a_parts.append(a.ljust(width, "-"))
            b_parts.append(b.ljust(width, "-"))
        return "".join(a_parts), "".join(b_parts)

    def segments_of(self, kind: SegmentKind) -> List[Segment]:
        return [s for s in self.segments if s.kind == kind]
