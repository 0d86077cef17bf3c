"""Elemental compositions for a mass.

Enumerates element counts whose summed mass lies within tolerance of a
target, e.g. to suggest a formula for an unexplained mass shift. Heavy atoms
are enumerated with an odometer in a Numba kernel; hydrogen is solved for
directly, so only the (few) hydrogen counts inside the window are visited.

Examples
--------
>>> result = find_formulas(15.9949, Tolerance.da(0.001))
>>> result.identifiers()
('O',)
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Tuple, Union

import numba
import numpy as np

from ..alphabet import MassMode
from ..budget import Budget
from ..constants import DEFAULT_FORMULA_LIMIT, ELEMENT_AVERAGE_MASSES, ELEMENT_MASSES
from ..formula import formula_from_counts, parse_formula
from ..hits import SearchHit, SearchResult
from ..tolerance import Tolerance, as_tolerance

logger = logging.getLogger(__name__)

# Compositions collected by one kernel call before it gives up
MAX_CANDIDATES = 100_000


# =============================================================================
# Enumeration Kernel (Numba-Compiled)
# =============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def enumerate_compositions_numba(
    heavy_masses: np.ndarray,
    h_mass: float,
    use_hydrogen: bool,
    mass_min: float,
    mass_max: float,
    capacity: int,
) -> Tuple[np.ndarray, bool]:
    """All compositions with a mass in ``[mass_min, mass_max]`` (Numba-compiled).

    Parameters
    ----------
    heavy_masses : np.ndarray (float64)
        Positive masses of the non-hydrogen elements
    h_mass : float
        Hydrogen mass
    use_hydrogen : bool
        Whether hydrogen may be part of the composition
    mass_min, mass_max : float
        Inclusive mass window
    capacity : int
        Maximal number of compositions to collect

    Returns
    -------
    counts : np.ndarray (int64), shape (n_found, n_heavy + 1)
        Heavy-element counts followed by the hydrogen count
    overflow : bool
        True if more than ``capacity`` compositions exist
    """
    n = len(heavy_masses)
    counts = np.zeros(n, dtype=np.int64)
    found = np.zeros((capacity, n + 1), dtype=np.int64)
    n_found = 0
    overflow = False

    while True:
        heavy = 0.0
        n_atoms = 0
        for e in range(n):
            heavy += counts[e] * heavy_masses[e]
            n_atoms += counts[e]

        if use_hydrogen:
            h_low = max(0, int(math.ceil((mass_min - heavy) / h_mass)))
            h_high = int(math.floor((mass_max - heavy) / h_mass))
        else:
            h_low = 0
            h_high = 0 if heavy >= mass_min else -1
        for h in range(h_low, h_high + 1):
            if n_atoms + h == 0:
                continue
            if n_found == capacity:
                overflow = True
                break
            for e in range(n):
                found[n_found, e] = counts[e]
            found[n_found, n] = h
            n_found += 1
        if overflow:
            break

        # Advance the odometer: bump the first element, carry when too heavy
        e = 0
        while e < n:
            counts[e] += 1
            partial = 0.0
            for k in range(n):
                partial += counts[k] * heavy_masses[k]
            if partial <= mass_max:
                break
            counts[e] = 0
            e += 1
        if e == n:
            break

    return found[:n_found], overflow


# =============================================================================
# Public API
# =============================================================================

def _element_list(elements: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(elements, str):
        return [element for element, _ in parse_formula(elements)]
    result = list(dict.fromkeys(elements))
    for element in result:
        if element not in ELEMENT_MASSES:
            raise ValueError(f"Unknown element: {element}")
    return result


def find_formulas(
    mass: float,
    tolerance: Union[Tolerance, float, str, None] = None,
    elements: Union[str, Iterable[str]] = "CHNOS",
    max_results: Optional[int] = DEFAULT_FORMULA_LIMIT,
    mass_mode: MassMode = MassMode.MONOISOTOPIC,
) -> SearchResult:
    """Elemental compositions within tolerance of ``mass``.

    Parameters
    ----------
    mass : float
        Target mass (Da); non-positive masses have no composition
    tolerance : Tolerance, float or str, optional
        Mass tolerance, floats are Dalton (default: 10 ppm)
    elements : str or iterable of str
        Allowed elements, e.g. ``"CHNOS"`` or ``["C", "H", "13C"]``
    max_results : int or None
        Number of hits to keep (default: 50)
    mass_mode : MassMode
        Monoisotopic or average element masses

    Returns
    -------
    SearchResult
        Hits ordered by absolute mass difference, then by Hill formula;
        ``item`` is the ``Formula``. ``truncated`` is set (and a
        ``TruncatedResultWarning`` issued) when hits were dropped.
    """
    tolerance = as_tolerance(tolerance)
    element_list = _element_list(elements)
    if not element_list:
        raise ValueError("At least one element is required")
    if mass <= 0:
        return SearchResult(())

    table = ELEMENT_AVERAGE_MASSES if mass_mode == MassMode.AVERAGE else ELEMENT_MASSES
    heavy = [e for e in element_list if e != "H"]
    heavy_masses = np.array([table[e] for e in heavy], dtype=np.float64)
    mass_min, mass_max = tolerance.bounds(mass)

    found, overflow = enumerate_compositions_numba(
        heavy_masses, table["H"], "H" in element_list, mass_min, mass_max, MAX_CANDIDATES,
    )

    candidates = []
    for row in found:
        formula = formula_from_counts(zip(heavy + ["H"], (int(c) for c in row)))
        formula_mass = formula.average_mass() if mass_mode == MassMode.AVERAGE else formula.monoisotopic_mass()
        if tolerance.within(mass, formula_mass):
            candidates.append((abs(formula_mass - mass), str(formula), formula, formula_mass - mass))
    candidates.sort(key=lambda c: (c[0], c[1]))

    budget = Budget(max_results)
    if overflow:
        budget.cut()
    hits = []
    for distance, text, formula, delta in candidates:
        if not budget.accept():
            break
        hits.append(SearchHit(
            identifier=text,
            index=len(hits),
            score=-distance,
            mass_delta=delta,
            item=formula,
        ))
    budget.warn_if_truncated("Formula search")

    logger.debug(f"Formula search {mass:.4f} ({tolerance}, {''.join(element_list)}): {len(hits)} hits")
    return SearchResult(tuple(hits), budget.truncated)
