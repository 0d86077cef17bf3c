"""Budgeted traversal bookkeeping for bounded combinatorial searches.

Isobaric generation and formula search are exponential in principle. A
``Budget`` tracks how much of the allowed work is left and remembers whether
anything was cut off, so callers can report a partial result instead of
silently treating it as exhaustive.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import TruncatedResultWarning


@dataclass
class Budget:
    """Remaining work for one traversal.

    Attributes
    ----------
    max_results : int or None
        Maximal number of results to accept (None for unbounded)
    results : int
        Results accepted so far
    truncated : bool
        Set as soon as a result or a branch was dropped because of a bound
    """

    max_results: Optional[int] = None
    results: int = 0
    truncated: bool = field(default=False)

    def __post_init__(self):
        if self.max_results is not None and self.max_results < 0:
            raise ValueError(f"max_results must be non-negative, got {self.max_results}")

    @property
    def exhausted(self) -> bool:
        return self.max_results is not None and self.results >= self.max_results

    def accept(self) -> bool:
        """Claim room for one more result.

        Returns False (and marks the traversal truncated) when the budget is
        already spent.
        """
        if self.exhausted:
            self.truncated = True
            return False
        self.results += 1
        return True

    def cut(self):
        """Record that a branch was pruned by a bound, not by the search itself."""
        self.truncated = True

    def warn_if_truncated(self, what: str, stacklevel: int = 3):
        if self.truncated:
            warnings.warn(
                f"{what} stopped after {self.results} results, output is not exhaustive",
                TruncatedResultWarning,
                stacklevel=stacklevel,
            )
