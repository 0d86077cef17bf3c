"""Mass-tolerant lookup in a modification library.

A query is one of:

- a signed mass (``+15.995``, ``-17.03`` or a float): every modification
  with ``|mass - query| <= tolerance``
- a formula (``Formula:O``): modifications with the same computed mass
- a name: case-insensitive exact match, otherwise all prefix matches

Mass hits are ranked by absolute distance, ties by name. "No match" is an
empty result, never an error.

Examples
--------
>>> result = find_modifications("+15.995", default_library(), tolerance=0.01)
>>> result.identifiers()
('Oxidation',)
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

from ..alphabet import MassMode
from ..constants import DEFAULT_MASS_EPSILON
from ..formula import parse_formula
from ..hits import SearchHit, SearchResult
from ..modifications import MASS_SHIFT_PATTERN, Modification, ModificationLibrary, default_library
from ..tolerance import Tolerance, as_tolerance

logger = logging.getLogger(__name__)

FORMULA_PREFIX = "formula:"


def _allowed_anywhere_on(modification: Modification, positions: Optional[str]) -> bool:
    """True if the modification may sit on at least one of the residues."""
    if positions is None:
        return True
    if not modification.rules:
        return True
    # Terminal-only rules do not restrict the residue
    return any(r.symbols is None or bool(r.symbols & set(positions)) for r in modification.rules)


def _mass_hits(
    mass: float,
    library: ModificationLibrary,
    tolerance: Tolerance,
    mass_mode: MassMode,
    positions: Optional[str],
) -> List[SearchHit]:
    hits = []
    for index in library.mass_index(mass_mode).search(mass, tolerance):
        modification = library[index]
        if not _allowed_anywhere_on(modification, positions):
            continue
        delta = modification.mass_for(mass_mode) - mass
        hits.append(SearchHit(
            identifier=modification.name,
            index=index,
            score=-abs(delta),
            mass_delta=delta,
            item=modification,
        ))
    hits.sort(key=lambda hit: (abs(hit.mass_delta), hit.identifier.lower()))
    return hits


def find_modifications(
    query: Union[str, float],
    library: Optional[ModificationLibrary] = None,
    tolerance: Union[Tolerance, float, str, None] = None,
    positions: Optional[Iterable[str]] = None,
    mass_mode: MassMode = MassMode.MONOISOTOPIC,
) -> SearchResult:
    """Find modifications by mass, formula or name.

    Parameters
    ----------
    query : str or float
        Signed mass, ``Formula:<formula>`` or a (prefix of a) name
    library : ModificationLibrary, optional
        Library to search (default: ``default_library()``)
    tolerance : Tolerance, float or str, optional
        Mass tolerance for mass queries; floats are Dalton
        (default: 10 ppm)
    positions : iterable of str, optional
        Residues the modification has to be placeable on (any of them)
    mass_mode : MassMode
        Monoisotopic or average library masses

    Returns
    -------
    SearchResult
        Ordered hits; ``mass_delta`` is ``modification - query`` for mass
        and formula queries

    Raises
    ------
    InvalidToleranceError
        For a negative or non-finite tolerance
    ValueError
        For a malformed formula
    """
    library = library if library is not None else default_library()
    tolerance = as_tolerance(tolerance)
    positions = "".join(positions) if positions is not None else None

    if isinstance(query, (int, float)):
        hits = _mass_hits(float(query), library, tolerance, mass_mode, positions)
    else:
        text = query.strip()
        if MASS_SHIFT_PATTERN.match(text):
            hits = _mass_hits(float(text), library, tolerance, mass_mode, positions)
        elif text.lower().startswith(FORMULA_PREFIX):
            formula = parse_formula(text[len(FORMULA_PREFIX):])
            mass = formula.average_mass() if mass_mode == MassMode.AVERAGE else formula.monoisotopic_mass()
            hits = _mass_hits(mass, library, Tolerance.da(DEFAULT_MASS_EPSILON), mass_mode, positions)
        else:
            hits = _name_hits(text, library, positions)

    logger.debug(f"Modification search {query!r} ({tolerance}): {len(hits)} hits")
    return SearchResult(tuple(hits))


def _name_hits(name: str, library: ModificationLibrary, positions: Optional[str]) -> List[SearchHit]:
    if name in library:
        candidates = [library.get(name)]
    else:
        candidates = library.with_prefix(name)
    indices = {m.name: i for i, m in enumerate(library)}
    return [
        SearchHit(identifier=m.name, index=indices[m.name], score=0.0, item=m)
        for m in candidates
        if _allowed_anywhere_on(m, positions)
    ]
