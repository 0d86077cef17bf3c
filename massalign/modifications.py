"""Modifications, placement rules and the modification library.

A modification is a named mass delta, defined either by an elemental formula
(exact monoisotopic and average mass) or by a plain mass shift such as
``+15.995``. Modifications are owned by a ``ModificationLibrary`` and only
referenced by monomers.

Key Features
------------
- Placement rules (residues + N-/C-terminal position) per modification
- Immutable library keyed by lower-case name and by a sorted mass index
- Curated default library of common Unimod modifications

Examples
--------
>>> library = default_library()
>>> ox = library.get("oxidation")
>>> round(ox.mass, 6)
15.994915
>>> ox.allowed_on("M", 3, 10)
True
>>> parse_modification("+15.995", library).mass
15.995
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .alphabet import MassMode
from .formula import Formula, parse_formula
from .mass_index import MassIndex

MASS_SHIFT_PATTERN = re.compile(r"^\s*[+-]?\d*\.?\d+(?:[eE][-+]?\d+)?\s*$")


class Position(Enum):
    """Where on a sequence a modification may be placed."""
    ANYWHERE = "anywhere"
    N_TERM = "n-term"
    C_TERM = "c-term"


@dataclass(frozen=True)
class PlacementRule:
    """Allowed residues (None for any) at a position."""

    symbols: Optional[FrozenSet[str]] = None
    position: Position = Position.ANYWHERE

    def allows(self, symbol: Optional[str], index: int, length: int) -> bool:
        if self.symbols is not None and symbol not in self.symbols:
            return False
        if self.position == Position.N_TERM:
            return index == 0
        if self.position == Position.C_TERM:
            return index == length - 1
        return True

    def __str__(self) -> str:
        residues = "".join(sorted(self.symbols)) if self.symbols is not None else "*"
        if self.position == Position.ANYWHERE:
            return residues
        return f"{residues}-{'N' if self.position == Position.N_TERM else 'C'}"


def rule(symbols: Optional[str] = None, position: Position = Position.ANYWHERE) -> PlacementRule:
    """Shorthand: ``rule("ST")``, ``rule(position=Position.N_TERM)``."""
    return PlacementRule(frozenset(symbols) if symbols is not None else None, position)


@dataclass(frozen=True)
class Modification:
    """A named mass delta.

    Attributes
    ----------
    name : str
        Display name, unique (case-insensitively) inside a library
    mass : float
        Monoisotopic mass delta in Dalton
    formula : Formula or None
        Elemental composition when known
    rules : tuple of PlacementRule
        Allowed placements, empty means anywhere
    unimod_id : int or None
        Unimod accession
    """

    name: str
    mass: float
    formula: Optional[Formula] = None
    rules: Tuple[PlacementRule, ...] = field(default=())
    unimod_id: Optional[int] = None

    @classmethod
    def from_formula(cls, name: str, formula: str, rules: Iterable[PlacementRule] = (),
                     unimod_id: Optional[int] = None) -> 'Modification':
        parsed = parse_formula(formula)
        return cls(name, parsed.monoisotopic_mass(), parsed, tuple(rules), unimod_id)

    @classmethod
    def mass_shift(cls, mass: float) -> 'Modification':
        """A formula-less modification named after its mass, e.g. ``+15.995``."""
        return cls(f"{mass:+g}", float(mass))

    def mass_for(self, mode: MassMode) -> float:
        if mode == MassMode.AVERAGE and self.formula is not None:
            return self.formula.average_mass()
        return self.mass

    def allowed_on(self, symbol: Optional[str], index: int, length: int) -> bool:
        if not self.rules:
            return True
        return any(r.allows(symbol, index, length) for r in self.rules)

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Modification Library
# =============================================================================

class ModificationLibrary:
    """Immutable collection of modifications keyed by name and mass.

    Safe to share between threads: nothing is mutated after construction.
    """

    def __init__(self, modifications: Iterable[Modification]):
        ordered = sorted(modifications, key=lambda m: m.name.lower())
        by_name = {}
        for modification in ordered:
            key = modification.name.lower()
            if key in by_name:
                raise ValueError(f"Duplicate modification name: {modification.name}")
            by_name[key] = modification
        self._modifications: Tuple[Modification, ...] = tuple(ordered)
        self._by_name = MappingProxyType(by_name)
        self._indices = MappingProxyType({
            mode: MassIndex(m.mass_for(mode) for m in ordered) for mode in MassMode
        })

    def __len__(self) -> int:
        return len(self._modifications)

    def __iter__(self):
        return iter(self._modifications)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._by_name

    def __getitem__(self, index: int) -> Modification:
        return self._modifications[index]

    def get(self, name: str) -> Modification:
        """Case-insensitive exact name lookup.

        Raises
        ------
        KeyError
            If no modification has this name
        """
        try:
            return self._by_name[name.lower()]
        except KeyError:
            raise KeyError(f"Unknown modification: {name}") from None

    def with_prefix(self, prefix: str) -> List[Modification]:
        """All modifications whose name starts with ``prefix`` (case-insensitive)."""
        prefix = prefix.lower()
        return [m for m in self._modifications if m.name.lower().startswith(prefix)]

    def mass_index(self, mode: MassMode = MassMode.MONOISOTOPIC) -> MassIndex:
        return self._indices[mode]


def parse_modification(text: str, library: ModificationLibrary) -> Modification:
    """Resolve a modification from text.

    Accepts a library name (case-insensitive), a signed mass shift
    (``+15.995``) or a formula (``Formula:O``). Formulas that match a library
    entry resolve to that entry, otherwise a new formula-defined modification
    is returned.

    Raises
    ------
    KeyError
        If a name is not in the library
    ValueError
        If a formula is malformed
    """
    text = text.strip()
    if MASS_SHIFT_PATTERN.match(text):
        return Modification.mass_shift(float(text))
    if text.lower().startswith("formula:"):
        formula = parse_formula(text[len("formula:"):])
        for modification in library:
            if modification.formula == formula:
                return modification
        return Modification(f"Formula:{formula}", formula.monoisotopic_mass(), formula)
    return library.get(text)


# =============================================================================
# Default Library (common Unimod entries)
# =============================================================================

_N_TERM = rule(position=Position.N_TERM)
_C_TERM = rule(position=Position.C_TERM)

_DEFAULT_MODIFICATIONS = (
    # name, formula, rules, Unimod id
    ("Acetyl", "C2H2O", (rule("KSTY"), _N_TERM), 1),
    ("Amidated", "HNO-1", (_C_TERM,), 2),
    ("Biotin", "C10H14N2O2S", (rule("K"), _N_TERM), 3),
    ("Carbamidomethyl", "C2H3NO", (rule("C"),), 4),
    ("Carbamyl", "CHNO", (rule("KR"), _N_TERM), 5),
    ("Carboxymethyl", "C2H2O2", (rule("C"),), 6),
    ("Deamidated", "H-1N-1O", (rule("NQR"),), 7),
    ("Phospho", "HO3P", (rule("STY"),), 21),
    ("Dehydrated", "H-2O-1", (rule("STD"),), 23),
    ("Propionamide", "C3H5NO", (rule("C"),), 24),
    ("Glu->pyro-Glu", "H-2O-1", (rule("E", Position.N_TERM),), 27),
    ("Gln->pyro-Glu", "H-3N-1", (rule("Q", Position.N_TERM),), 28),
    ("Cation:Na", "H-1Na", (rule("DE"), _C_TERM), 30),
    ("Methyl", "CH2", (rule("KRDEH"), _C_TERM), 34),
    ("Oxidation", "O", (rule("MWHC"),), 35),
    ("Dimethyl", "C2H4", (rule("KR"), _N_TERM), 36),
    ("Trimethyl", "C3H6", (rule("K"),), 37),
    ("Methylthio", "CH2S", (rule("C"),), 39),
    ("Sulfo", "O3S", (rule("STY"),), 40),
    ("Hex", "C6H10O5", (rule("KN"),), 41),
    ("HexNAc", "C8H13NO5", (rule("NST"),), 43),
    ("Succinyl", "C4H4O3", (rule("K"), _N_TERM), 64),
    ("GG", "C4H6N2O2", (rule("KSTC"),), 121),
    ("Formyl", "CO", (rule("KST"), _N_TERM), 122),
    ("Label:13C(6)", "C-6[13C]6", (rule("KR"),), 188),
    ("iTRAQ4plex", "C4H12[13C]3N[15N]O", (rule("KY"), _N_TERM), 214),
    ("Label:13C(6)15N(2)", "C-6[13C]6N-2[15N]2", (rule("K"),), 259),
    ("Label:13C(6)15N(4)", "C-6[13C]6N-4[15N]4", (rule("R"),), 267),
    ("Trioxidation", "O3", (rule("CW"),), 345),
    ("Nitro", "H-1NO2", (rule("YW"),), 354),
    ("Ammonia-loss", "H-3N-1", (rule("N"), _N_TERM), 385),
    ("Dioxidation", "O2", (rule("MWC"),), 425),
    ("TMT6plex", "C8H20[13C]4N[15N]O2", (rule("KST"), _N_TERM), 737),
    ("Malonyl", "C3H2O3", (rule("KS"),), 747),
    ("Crotonyl", "C4H4O", (rule("K"),), 1363),
)


def default_library() -> ModificationLibrary:
    """A library of frequently used Unimod modifications."""
    return ModificationLibrary(
        Modification.from_formula(name, formula, rules, unimod_id)
        for name, formula, rules, unimod_id in _DEFAULT_MODIFICATIONS
    )
