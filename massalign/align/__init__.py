"""Pairwise and database alignment with mass-matched steps."""

from .database import search
from .engine import align
from .result import AlignmentResult, AlignmentStats, MatchType, Segment, SegmentKind, Step
from .scoring import AlignScoring, ScoringMode, Topology

__all__ = [
    "align",
    "search",
    "AlignmentResult",
    "AlignmentStats",
    "AlignScoring",
    "MatchType",
    "ScoringMode",
    "Segment",
    "SegmentKind",
    "Step",
    "Topology",
]
