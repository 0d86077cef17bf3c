"""Enumerate sequences with the same mass as a given sequence.

Depth-first search over the alphabet in lexicographic order. A partial
sequence is only extended while the lightest and the heaviest possible
completion still bracket the target window, so large parts of the tree are
never visited. The number of results is bounded; hitting the bound sets a
``truncated`` flag and issues a ``TruncatedResultWarning``.

Ordering
--------
The reference sequence comes first whenever the options can build it, so a
bound never drops it. The other candidates follow in lexicographic order of
``(symbol, modification names)`` per position. With ``allow_length_change``
lengths are enumerated from short to long, each length in the same order.
The order only depends on the inputs, so a search can be iterated again and
gives identical output.

Examples
--------
>>> alphabet = Alphabet.standard()
>>> gai = Sequence.from_symbols("GAI", alphabet)
>>> result = generate_isobaric(gai, tolerance=Tolerance.da(0.01)).collect()
>>> "GAI" in [s.symbols for s in result]
True
>>> "AGI" in [s.symbols for s in result]
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..alphabet import Alphabet, MassSet, combine
from ..budget import Budget
from ..constants import DEFAULT_ISOBARIC_LIMIT, DEFAULT_MASS_EPSILON
from ..modifications import Modification
from ..sequence import Monomer, Sequence
from ..tolerance import Tolerance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IsobaricResult:
    """Collected output of an isobaric search.

    Attributes
    ----------
    sequences : tuple of Sequence
        Equal-mass sequences in generation order
    truncated : bool
        True when the result bound stopped the search early
    """

    sequences: Tuple[Sequence, ...]
    truncated: bool = False

    def __iter__(self):
        return iter(self.sequences)

    def __len__(self) -> int:
        return len(self.sequences)

    def __getitem__(self, index):
        return self.sequences[index]

    def symbols(self) -> List[str]:
        return [s.symbols for s in self.sequences]


class IsobaricSearch:
    """Lazy, restartable enumeration of sequences isobaric to ``sequence``.

    Parameters
    ----------
    sequence : Sequence
        Reference sequence. Its residue masses are the target; its terminal
        modifications are carried over to every result
    alphabet : Alphabet, optional
        Residues to build from (default: the 20 standard residues, without
        U, O and the ambiguity codes B, Z, J and X)
    fixed_mods : iterable of Modification
        Always applied where their placement rules allow
    variable_mods : iterable of Modification
        Optionally applied, each one adds modified residues as extra options
    tolerance : Tolerance, optional
        Mass tolerance (default: ``Tolerance()``)
    max_results : int or None
        Result bound (default: 25), None for unbounded
    allow_length_change : bool
        Also produce sequences of other lengths
    max_length : int, optional
        Longest sequence when lengths may change (default: the most residues
        of the lightest option that fit into the target mass)
    epsilon : float
        Deduplication epsilon for mass sets

    Attributes
    ----------
    truncated : bool
        Set once an iteration stopped because of ``max_results``
    """

    def __init__(
        self,
        sequence: Sequence,
        alphabet: Optional[Alphabet] = None,
        fixed_mods: Iterable[Modification] = (),
        variable_mods: Iterable[Modification] = (),
        tolerance: Optional[Tolerance] = None,
        max_results: Optional[int] = DEFAULT_ISOBARIC_LIMIT,
        allow_length_change: bool = False,
        max_length: Optional[int] = None,
        epsilon: float = DEFAULT_MASS_EPSILON,
    ):
        if alphabet is None:
            alphabet = Alphabet.standard(sequence.mass_mode, ambiguous=False, rare=False)
        if len(alphabet) == 0:
            raise ValueError("Alphabet is empty")
        if max_results is not None and max_results < 0:
            raise ValueError(f"max_results must be non-negative, got {max_results}")
        if max_length is not None and max_length < 0:
            raise ValueError(f"max_length must be non-negative, got {max_length}")

        self.sequence = sequence
        self.alphabet = alphabet
        self.fixed_mods = tuple(fixed_mods)
        self.variable_mods = tuple(sorted(variable_mods, key=lambda m: m.name))
        self.tolerance = tolerance if tolerance is not None else Tolerance()
        self.max_results = max_results
        self.allow_length_change = allow_length_change
        self.epsilon = epsilon
        self.truncated = False

        self.targets = sequence.residue_masses(epsilon)
        self.low = min(self.tolerance.bounds(t)[0] for t in self.targets)
        self.high = max(self.tolerance.bounds(t)[1] for t in self.targets)

        self._options: Dict[Tuple[bool, bool], Tuple[Monomer, ...]] = {}
        masses = [
            mass
            for first in (True, False)
            for last in (True, False)
            for monomer in self._options_at(first, last)
            for mass in monomer.masses
        ]
        self.min_mass = min(masses)
        self.max_mass = max(masses)

        if allow_length_change and max_length is None:
            if self.min_mass <= 0:
                raise ValueError("max_length is required when an option has no positive mass")
            max_length = max(len(sequence), int(self.high // self.min_mass))
        self.max_length = max_length

    # -------------------------------------------------------------------------
    # Options per position
    # -------------------------------------------------------------------------

    def _options_at(self, first: bool, last: bool) -> Tuple[Monomer, ...]:
        """Residue options for a position, sorted by symbol then modifications.

        Placement rules only distinguish the first, the last and any other
        position, so options are cached on those two flags.
        """
        key = (first, last)
        if key not in self._options:
            # A position that is both first and last is index 0 of length 1
            index = 0 if first else 1
            length = 1 if first and last else (index + 1 if last else index + 2)
            mode = self.alphabet.mass_mode
            options: List[Monomer] = []
            for symbol in self.alphabet.symbols:
                fixed = [m for m in self.fixed_mods if m.allowed_on(symbol, index, length)]
                base = Monomer.create(symbol, self.alphabet, fixed)
                options.append(base)
                for modification in self.variable_mods:
                    if modification.allowed_on(symbol, index, length):
                        options.append(base.modified(modification, mode))
            self._options[key] = tuple(options)
        return self._options[key]

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def lengths(self) -> List[int]:
        """Sequence lengths that are searched, shortest first."""
        if not self.allow_length_change:
            return [len(self.sequence)]
        shortest = 1 if len(self.sequence) else 0
        return [
            length for length in range(shortest, self.max_length + 1)
            if length * self.min_mass <= self.high and length * self.max_mass >= self.low
        ]

    def _matches(self, masses: MassSet) -> bool:
        return any(self.tolerance.within(t, m) for t in self.targets for m in masses)

    def _extend(self, prefix: Tuple[Monomer, ...], masses: MassSet, length: int) -> Iterator[Tuple[Monomer, ...]]:
        index = len(prefix)
        if index == length:
            if self._matches(masses):
                yield prefix
            return
        remaining = length - index - 1
        for monomer in self._options_at(index == 0, index == length - 1):
            combined = combine(masses, monomer.masses, self.epsilon)
            if combined[0] + remaining * self.min_mass > self.high:
                continue
            if combined[-1] + remaining * self.max_mass < self.low:
                continue
            yield from self._extend(prefix + (monomer,), combined, length)

    def _reference_monomers(self) -> Optional[Tuple[Monomer, ...]]:
        """The reference's monomers if the options can build them, else None."""
        monomers = self.sequence.monomers
        length = len(monomers)
        if length not in self.lengths():
            return None
        for index, monomer in enumerate(monomers):
            if monomer not in self._options_at(index == 0, index == length - 1):
                return None
        return monomers

    def _candidates(self) -> Iterator[Tuple[Monomer, ...]]:
        reference = self._reference_monomers()
        if reference is not None:
            yield reference
        for length in self.lengths():
            for monomers in self._extend((), (0.0,), length):
                if monomers != reference:
                    yield monomers

    def __iter__(self) -> Iterator[Sequence]:
        budget = Budget(self.max_results)
        self.truncated = False
        for monomers in self._candidates():
            if not budget.accept():
                self.truncated = True
                budget.warn_if_truncated("Isobaric generation")
                return
            yield Sequence(
                monomers,
                self.sequence.n_term,
                self.sequence.c_term,
                mass_mode=self.alphabet.mass_mode,
            )
        logger.debug(f"Isobaric generation for {self.sequence.symbols!r}: {budget.results} sequences")

    def collect(self) -> IsobaricResult:
        """Run the search to completion (or to the bound)."""
        sequences = tuple(self)
        return IsobaricResult(sequences, self.truncated)


def generate_isobaric(
    sequence: Sequence,
    alphabet: Optional[Alphabet] = None,
    fixed_mods: Iterable[Modification] = (),
    variable_mods: Iterable[Modification] = (),
    tolerance: Optional[Tolerance] = None,
    **kwargs,
) -> IsobaricSearch:
    """Lazy sequence of sequences with the mass of ``sequence``.

    See ``IsobaricSearch`` for the remaining keyword arguments
    (``max_results``, ``allow_length_change``, ``max_length``, ``epsilon``).
    """
    return IsobaricSearch(sequence, alphabet, fixed_mods, variable_mods, tolerance, **kwargs)
