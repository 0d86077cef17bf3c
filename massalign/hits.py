"""Ranked hits shared by database alignment and mass-tolerant lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple


@dataclass(frozen=True)
class SearchHit:
    """One ranked candidate.

    Attributes
    ----------
    identifier : str
        Name of the candidate (database entry, modification or gene)
    index : int
        Position of the candidate in its source collection
    score : float
        Rank score, higher ranks first
    alignment : AlignmentResult or None
        Set for database alignment hits
    mass_delta : float or None
        ``candidate - query`` for mass lookups
    item : object
        The matched entry itself (Sequence, Modification, GeneRecord, ...)
    """

    identifier: str
    index: int
    score: float
    alignment: Optional[Any] = None
    mass_delta: Optional[float] = None
    item: Optional[Any] = None


@dataclass(frozen=True)
class SearchResult:
    """Ordered hits plus a truncation flag.

    Behaves like a read-only list of ``SearchHit``. ``truncated`` is True when
    more candidates qualified than were kept, so the hits are not exhaustive.
    """

    hits: Tuple[SearchHit, ...]
    truncated: bool = False

    def __iter__(self) -> Iterator[SearchHit]:
        return iter(self.hits)

    def __len__(self) -> int:
        return len(self.hits)

    def __getitem__(self, index):
        return self.hits[index]

    def __bool__(self) -> bool:
        return bool(self.hits)

    @property
    def best(self) -> Optional[SearchHit]:
        return self.hits[0] if self.hits else None

    def identifiers(self) -> Tuple[str, ...]:
        return tuple(hit.identifier for hit in self.hits)
