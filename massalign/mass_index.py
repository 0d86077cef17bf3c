"""Mass-sorted index with binary search.

Core data structure for mass-tolerant lookup in reference collections
(modification libraries, gene databases). Masses are sorted once at
construction, lookups are O(log n + k).

Design principles:
1. Mass-sorted for binary search
2. Thread-safe (read-only after construction)
3. Numba-accelerated search
"""

from typing import Iterable, List, Tuple

import numba
import numpy as np

from .tolerance import Tolerance


# =============================================================================
# Numba-Accelerated Binary Search
# =============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def search_mass_window_numba(
    masses: np.ndarray,
    mass_min: float,
    mass_max: float,
) -> Tuple[int, int]:
    """Binary search for all masses in ``[mass_min, mass_max]`` (Numba-compiled).

    Parameters
    ----------
    masses : np.ndarray (float64)
        Sorted masses
    mass_min : float
        Lower bound (inclusive)
    mass_max : float
        Upper bound (inclusive)

    Returns
    -------
    start_idx : int
        First index in range (inclusive)
    end_idx : int
        Last index in range (exclusive, Python convention)

    Examples
    --------
    >>> masses = np.array([100.0, 200.0, 200.1, 300.0])
    >>> search_mass_window_numba(masses, 199.9, 200.2)
    (1, 3)
    """
    n = len(masses)
    if n == 0:
        return (0, 0)

    # Binary search for start index (first mass >= mass_min)
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if masses[mid] < mass_min:
            left = mid + 1
        else:
            right = mid
    start_idx = left

    # Binary search for end index (first mass > mass_max)
    left, right = start_idx, n
    while left < right:
        mid = (left + right) // 2
        if masses[mid] <= mass_max:
            left = mid + 1
        else:
            right = mid
    end_idx = left

    return (start_idx, end_idx)


class MassIndex:
    """Sorted masses with their original positions.

    Attributes
    ----------
    masses : np.ndarray (float64)
        Masses, sorted ascending
    sort_indices : np.ndarray (int64)
        Original indices before sorting,
        ``items[sort_indices[i]]`` has mass ``masses[i]``
    """

    def __init__(self, masses: Iterable[float]):
        values = np.asarray(list(masses), dtype=np.float64)
        # Stable sort keeps equal masses in input order
        self.sort_indices = np.argsort(values, kind="stable").astype(np.int64)
        self.masses = values[self.sort_indices]
        self.masses.setflags(write=False)
        self.sort_indices.setflags(write=False)

    def __len__(self) -> int:
        return len(self.masses)

    def search(self, target: float, tolerance: Tolerance) -> List[int]:
        """Original indices of all masses within tolerance of ``target``."""
        low, high = tolerance.bounds(target)
        start, end = search_mass_window_numba(self.masses, low, high)
        return [
            int(self.sort_indices[i])
            for i in range(start, end)
            if tolerance.within(target, float(self.masses[i]))
        ]
