"""Elemental formulas and their masses.

Supported notations
-------------------
- Hill style: ``C2H3NO``
- Signed counts: ``H-1N-1O``
- Unimod style with parenthesised counts: ``H(-1) N(-1) O``
- Isotopes in brackets: ``[13C]6``, ``[15N]2``

Examples
--------
>>> f = parse_formula("C2H3NO")
>>> round(f.monoisotopic_mass(), 6)
57.021464
>>> str(parse_formula("H(-1) N(-1) O"))
'H-1N-1O'
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Mapping, Tuple

from .constants import ELEMENT_AVERAGE_MASSES, ELEMENT_MASSES

_TOKEN = re.compile(r"\s*(?:\[(\d+)([A-Z][a-z]?)\]|([A-Z][a-z]?))\s*(?:\((-?\d+)\)|(-?\d+))?")


class Formula:
    """Immutable element -> count mapping.

    Zero counts are dropped, so two formulas compare equal when they have the
    same composition regardless of how they were written.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Mapping[str, int] = None):
        cleaned = {}
        for element, count in (counts or {}).items():
            if element not in ELEMENT_MASSES:
                raise ValueError(f"Unknown element: {element}")
            if count:
                cleaned[element] = int(count)
        self._counts: Tuple[Tuple[str, int], ...] = tuple(sorted(cleaned.items(), key=_hill_key))

    @property
    def counts(self) -> Dict[str, int]:
        return dict(self._counts)

    def __iter__(self):
        return iter(self._counts)

    def __eq__(self, other) -> bool:
        return isinstance(other, Formula) and self._counts == other._counts

    def __hash__(self) -> int:
        return hash(self._counts)

    def __add__(self, other: 'Formula') -> 'Formula':
        counts = self.counts
        for element, count in other:
            counts[element] = counts.get(element, 0) + count
        return Formula(counts)

    def __bool__(self) -> bool:
        return bool(self._counts)

    def monoisotopic_mass(self) -> float:
        return sum(ELEMENT_MASSES[element] * count for element, count in self._counts)

    def average_mass(self) -> float:
        return sum(ELEMENT_AVERAGE_MASSES[element] * count for element, count in self._counts)

    def __str__(self) -> str:
        parts = []
        for element, count in self._counts:
            symbol = f"[{element}]" if element[0].isdigit() else element
            parts.append(symbol if count == 1 else f"{symbol}{count}")
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Formula('{self}')"


def _hill_key(item: Tuple[str, int]):
    # Hill order: C, then H, then the rest alphabetically, isotopes after their element
    element = item[0]
    base = element.lstrip("0123456789")
    rank = {"C": 0, "H": 1}.get(base, 2)
    return (rank, base, element != base, element)


def parse_formula(text: str) -> Formula:
    """Parse an elemental formula.

    Parameters
    ----------
    text : str
        Formula text, see the module docstring for the accepted notations

    Returns
    -------
    Formula

    Raises
    ------
    ValueError
        If the text contains anything that is not an element with an
        optional count, or an unknown element
    """
    counts: Dict[str, int] = {}
    position = 0
    text = text.strip()
    while position < len(text):
        match = _TOKEN.match(text, position)
        if match is None or match.end() == position:
            raise ValueError(f"Invalid formula {text!r} at position {position + 1}")
        mass_number, isotope, element, paren_count, count = match.groups()
        name = f"{mass_number}{isotope}" if mass_number else element
        if name not in ELEMENT_MASSES:
            raise ValueError(f"Unknown element {name!r} in formula {text!r}")
        amount = paren_count if paren_count is not None else count
        counts[name] = counts.get(name, 0) + (int(amount) if amount is not None else 1)
        position = match.end()
    return Formula(counts)


def formula_from_counts(items: Iterable[Tuple[str, int]]) -> Formula:
    counts: Dict[str, int] = {}
    for element, count in items:
        counts[element] = counts.get(element, 0) + count
    return Formula(counts)
