"""Monomer alphabets with set-valued masses.

A symbol can stand for more than one mass (B is N or D, X is any residue), so
every mass in this module is a *mass set*: a sorted tuple of candidate masses
deduplicated within a small epsilon. Combining two mass sets is the Cartesian
sum, deduplicated the same way, which keeps the sets small even for runs of
repeated ambiguous residues.

Examples
--------
>>> alphabet = Alphabet.standard()
>>> alphabet.mass_of("G")
(57.021464,)
>>> alphabet.mass_of("B")
(114.042927, 115.026943)
>>> combine((1.0, 2.0), (10.0, 11.0))
(11.0, 12.0, 13.0)
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple, Union

from .constants import (
    AA_AVERAGE_MASSES_DICT,
    AA_AVERAGE_MASSES_RARE,
    AA_MASSES_DICT,
    AA_MASSES_RARE,
    AMBIGUOUS_AA,
    DEFAULT_MASS_EPSILON,
)
from .exceptions import UnknownSymbolError

MassSet = Tuple[float, ...]


class MassMode(Enum):
    """Which mass of a residue, element or modification to use."""
    MONOISOTOPIC = "monoisotopic"
    AVERAGE = "average"


def dedupe(masses: Iterable[float], epsilon: float = DEFAULT_MASS_EPSILON) -> MassSet:
    """Sort masses and merge neighbours closer than ``epsilon``.

    The lowest mass of each merged group is kept.
    """
    result = []
    for mass in sorted(masses):
        if not result or mass - result[-1] > epsilon:
            result.append(mass)
    return tuple(result)


def combine(masses_a: MassSet, masses_b: MassSet, epsilon: float = DEFAULT_MASS_EPSILON) -> MassSet:
    """Cartesian sum of two mass sets, deduplicated within ``epsilon``."""
    return dedupe((a + b for a in masses_a for b in masses_b), epsilon)


class Alphabet:
    """Immutable table of symbol -> mass set.

    Shared read-only between threads; there is no write path after
    construction.

    Parameters
    ----------
    masses : Mapping[str, Iterable[float]]
        Candidate masses for every single-character symbol
    mass_mode : MassMode
        The mass mode the table was built for (informational, used to pick
        modification masses consistently)
    """

    def __init__(self, masses: Mapping[str, Iterable[float]], mass_mode: MassMode = MassMode.MONOISOTOPIC):
        table: Dict[str, MassSet] = {}
        for symbol, values in masses.items():
            if len(symbol) != 1:
                raise ValueError(f"Alphabet symbols must be single characters, got {symbol!r}")
            values = dedupe(values)
            if not values:
                raise ValueError(f"Symbol {symbol!r} has no mass")
            table[symbol] = values
        self._masses = MappingProxyType(table)
        self.mass_mode = mass_mode

    @classmethod
    def standard(cls, mass_mode: MassMode = MassMode.MONOISOTOPIC, ambiguous: bool = True,
                 rare: bool = True) -> 'Alphabet':
        """The 20 standard amino acids, optionally U/O and B/Z/J/X."""
        if mass_mode == MassMode.AVERAGE:
            single = dict(AA_AVERAGE_MASSES_DICT)
            if rare:
                single.update(AA_AVERAGE_MASSES_RARE)
        else:
            single = dict(AA_MASSES_DICT)
            if rare:
                single.update(AA_MASSES_RARE)
        masses = {symbol: (mass,) for symbol, mass in single.items()}
        if ambiguous:
            for symbol, options in AMBIGUOUS_AA.items():
                masses[symbol] = tuple(single[option] for option in options)
        return cls(masses, mass_mode)

    @classmethod
    def from_masses(cls, masses: Mapping[str, Union[float, Iterable[float]]],
                    mass_mode: MassMode = MassMode.MONOISOTOPIC) -> 'Alphabet':
        """Build an alphabet from plain floats or iterables of floats."""
        return cls(
            {symbol: (value,) if isinstance(value, (int, float)) else tuple(value)
             for symbol, value in masses.items()},
            mass_mode,
        )

    @property
    def symbols(self) -> Tuple[str, ...]:
        """All symbols in lexicographic order."""
        return tuple(sorted(self._masses))

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._masses

    def __len__(self) -> int:
        return len(self._masses)

    def __iter__(self):
        return iter(self.symbols)

    def mass_of(self, item, position: int = -1) -> MassSet:
        """Mass set of a symbol or a monomer.

        Monomers carry their own (possibly modified) masses, symbols are
        looked up in the table.

        Raises
        ------
        UnknownSymbolError
            If the symbol is not part of this alphabet
        """
        masses = getattr(item, "masses", None)
        if masses is not None:
            return masses
        try:
            return self._masses[item]
        except KeyError:
            raise UnknownSymbolError(item, position) from None

    def is_ambiguous(self, symbol: str) -> bool:
        return len(self.mass_of(symbol)) > 1

    def unambiguous(self) -> 'Alphabet':
        """A copy without any multi-mass symbols."""
        return Alphabet(
            {symbol: masses for symbol, masses in self._masses.items() if len(masses) == 1},
            self.mass_mode,
        )

    def restricted(self, symbols: Iterable[str]) -> 'Alphabet':
        """A copy with only the given symbols."""
        selected = {}
        for symbol in symbols:
            selected[symbol] = self.mass_of(symbol)
        return Alphabet(selected, self.mass_mode)

    def __repr__(self) -> str:
        return f"Alphabet({''.join(self.symbols)!r}, {self.mass_mode.value})"
