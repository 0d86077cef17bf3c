"""Monomers and sequences with set-valued masses.

A ``Monomer`` is one residue together with its candidate masses (already
including any attached modifications). A ``Sequence`` is an ordered tuple of
monomers plus optional N-/C-terminal modifications. Both are immutable and can
be shared freely between threads.

``parse_sequence`` reads a small ProForma-like notation:

- ``PEPTIDE`` plain residues
- ``PEP[Oxidation]TIDE`` named modification on the preceding residue
- ``M[+15.995]`` mass shift, ``C[Formula:C2H3NO]`` formula
- ``[Acetyl]-PEPTIDE`` N-terminal, ``PEPTIDE-[Amidated]`` C-terminal

Examples
--------
>>> alphabet = Alphabet.standard()
>>> seq = parse_sequence("PEM[Oxidation]K", alphabet, default_library())
>>> seq.symbols
'PEMK'
>>> len(seq.total_masses())
1
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .alphabet import Alphabet, MassMode, MassSet, combine, dedupe
from .constants import DEFAULT_MASS_EPSILON, H2O_AVERAGE_MASS, H2O_MASS
from .exceptions import UnknownSymbolError
from .modifications import Modification, ModificationLibrary, default_library, parse_modification


@dataclass(frozen=True)
class Monomer:
    """One residue with its candidate masses.

    Attributes
    ----------
    symbol : str
        Single-character residue symbol
    masses : tuple of float
        Candidate masses, modifications included
    modifications : tuple of Modification
        Attached modifications, in the order they were applied
    """

    symbol: str
    masses: MassSet
    modifications: Tuple[Modification, ...] = field(default=())

    @classmethod
    def create(cls, symbol: str, alphabet: Alphabet, modifications: Iterable[Modification] = (),
               position: int = -1) -> 'Monomer':
        masses = alphabet.mass_of(symbol, position)
        modifications = tuple(modifications)
        for modification in modifications:
            masses = combine(masses, (modification.mass_for(alphabet.mass_mode),))
        return cls(symbol, masses, modifications)

    @property
    def code(self) -> int:
        """ord() of the symbol, as used by the numba kernels."""
        return ord(self.symbol)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.masses) > 1

    @property
    def min_mass(self) -> float:
        return self.masses[0]

    def modified(self, modification: Modification, mass_mode: MassMode = MassMode.MONOISOTOPIC) -> 'Monomer':
        return Monomer(
            self.symbol,
            combine(self.masses, (modification.mass_for(mass_mode),)),
            self.modifications + (modification,),
        )

    def __str__(self) -> str:
        return self.symbol + "".join(f"[{m.name}]" for m in self.modifications)


@dataclass(frozen=True)
class Sequence:
    """An ordered run of monomers plus terminal modifications.

    Attributes
    ----------
    monomers : tuple of Monomer
    n_term : tuple of Modification
        N-terminal modifications
    c_term : tuple of Modification
        C-terminal modifications
    name : str or None
        Identifier, used as the hit id in database search
    mass_mode : MassMode
        Mass mode used for the terminal modification deltas
    """

    monomers: Tuple[Monomer, ...]
    n_term: Tuple[Modification, ...] = field(default=())
    c_term: Tuple[Modification, ...] = field(default=())
    name: Optional[str] = None
    mass_mode: MassMode = MassMode.MONOISOTOPIC

    @classmethod
    def from_symbols(cls, symbols: str, alphabet: Alphabet, name: Optional[str] = None) -> 'Sequence':
        """Unmodified sequence, raising ``UnknownSymbolError`` with the position."""
        return cls(
            tuple(Monomer.create(s, alphabet, position=i) for i, s in enumerate(symbols)),
            name=name,
            mass_mode=alphabet.mass_mode,
        )

    def __len__(self) -> int:
        return len(self.monomers)

    def __iter__(self):
        return iter(self.monomers)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Sequence(self.monomers[index], mass_mode=self.mass_mode)
        return self.monomers[index]

    @property
    def symbols(self) -> str:
        return "".join(m.symbol for m in self.monomers)

    @property
    def codes(self) -> List[int]:
        return [m.code for m in self.monomers]

    def terminal_delta(self) -> float:
        return sum(m.mass_for(self.mass_mode) for m in self.n_term + self.c_term)

    def residue_masses(self, epsilon: float = DEFAULT_MASS_EPSILON) -> MassSet:
        """Sum of the monomer masses, without terminal modifications."""
        masses: MassSet = (0.0,)
        for monomer in self.monomers:
            masses = combine(masses, monomer.masses, epsilon)
        return masses

    def total_masses(self, epsilon: float = DEFAULT_MASS_EPSILON) -> MassSet:
        """All possible total masses: residues plus terminal deltas.

        Unambiguous sequences have exactly one total mass.
        """
        delta = self.terminal_delta()
        return dedupe((mass + delta for mass in self.residue_masses(epsilon)), epsilon)

    def neutral_masses(self, epsilon: float = DEFAULT_MASS_EPSILON) -> MassSet:
        """Total masses of the full molecule (terminal water added)."""
        water = H2O_AVERAGE_MASS if self.mass_mode == MassMode.AVERAGE else H2O_MASS
        return tuple(mass + water for mass in self.total_masses(epsilon))

    def with_name(self, name: str) -> 'Sequence':
        return Sequence(self.monomers, self.n_term, self.c_term, name, self.mass_mode)

    def __str__(self) -> str:
        text = "".join(str(m) for m in self.monomers)
        if self.n_term:
            text = "".join(f"[{m.name}]" for m in self.n_term) + "-" + text
        if self.c_term:
            text = text + "-" + "".join(f"[{m.name}]" for m in self.c_term)
        return text


# =============================================================================
# Parsing
# =============================================================================

def _read_bracket(text: str, start: int) -> Tuple[str, int]:
    """Content of the bracket opening at ``start`` and the index after it."""
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "[":
            depth += 1
        elif text[index] == "]":
            depth -= 1
            if depth == 0:
                return text[start + 1:index], index + 1
    raise ValueError(f"Unclosed bracket at position {start + 1} in {text!r}")


def parse_sequence(text: str, alphabet: Alphabet = None, library: ModificationLibrary = None,
                   name: Optional[str] = None) -> Sequence:
    """Parse a sequence in the bracket notation described in the module docstring.

    Parameters
    ----------
    text : str
        Sequence text
    alphabet : Alphabet, optional
        Residue alphabet (default: ``Alphabet.standard()``)
    library : ModificationLibrary, optional
        Library used to resolve modification names (default: ``default_library()``)
    name : str, optional
        Identifier stored on the sequence

    Raises
    ------
    UnknownSymbolError
        For residues missing from the alphabet, with the residue position
    KeyError
        For unknown modification names
    ValueError
        For malformed brackets or formulas
    """
    alphabet = alphabet if alphabet is not None else Alphabet.standard()
    library = library if library is not None else default_library()
    text = text.strip()

    n_term: List[Modification] = []
    c_term: List[Modification] = []
    residues: List[Tuple[str, List[Modification]]] = []

    index = 0
    while index < len(text) and text[index] == "[":
        content, after = _read_bracket(text, index)
        if after < len(text) and text[after] == "-":
            n_term.append(parse_modification(content, library))
            index = after + 1
        else:
            break

    while index < len(text):
        char = text[index]
        if char == "[":
            if not residues:
                raise ValueError(f"Modification without residue at position {index + 1} in {text!r}")
            content, index = _read_bracket(text, index)
            residues[-1][1].append(parse_modification(content, library))
        elif char == "-" and index + 1 < len(text) and text[index + 1] == "[":
            index += 1
            while index < len(text) and text[index] == "[":
                content, index = _read_bracket(text, index)
                c_term.append(parse_modification(content, library))
            if index != len(text):
                raise ValueError(f"Unexpected text after C-terminal modification in {text!r}")
        elif char.isspace():
            index += 1
        else:
            if char not in alphabet:
                raise UnknownSymbolError(char, len(residues))
            residues.append((char, []))
            index += 1

    monomers = tuple(
        Monomer.create(symbol, alphabet, mods, position)
        for position, (symbol, mods) in enumerate(residues)
    )
    return Sequence(monomers, tuple(n_term), tuple(c_term), name, alphabet.mass_mode)
