"""Convenience wrapper functions for easy-to-use API.

String-level wrappers that parse sequences, modifications and tolerances for
you, using the standard alphabet and the default modification library.

Use these functions when you want a simple API without worrying about:
- Building ``Alphabet``/``Sequence`` objects
- Resolving modification names
- Tolerance and topology objects

For repeated work on the same sequences, build the objects once and call
``align``, ``search`` or ``generate_isobaric`` directly.

Examples
--------
>>> align_peptides("ANGK", "AGGGK").cigar()
'1=i[1,2]2='
>>> round(peptide_mass("PEPTIDE"), 4)
799.36
>>> isobaric_sequences("GAI", tolerance=0.01).symbols()[:3]
['GAI', 'AAV', 'AGI']
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Optional, Union

from .align import AlignmentResult, AlignScoring, ScoringMode, Topology, align, search
from .alphabet import Alphabet, MassMode
from .constants import DEFAULT_ISOBARIC_LIMIT, DEFAULT_TOP_N
from .hits import SearchResult
from .isobaric import IsobaricResult, generate_isobaric
from .modifications import Modification, ModificationLibrary, default_library, parse_modification
from .sequence import parse_sequence
from .tolerance import Tolerance, as_tolerance

TopologyLike = Union[Topology, str]
ModeLike = Union[ScoringMode, str]


def _topology(value: TopologyLike) -> Topology:
    return value if isinstance(value, Topology) else Topology.parse(value)


def _mode(value: ModeLike) -> ScoringMode:
    return value if isinstance(value, ScoringMode) else ScoringMode(value.strip().lower())


def _scoring(scoring: Optional[AlignScoring], tolerance) -> Optional[AlignScoring]:
    if tolerance is None:
        return scoring
    base = scoring if scoring is not None else AlignScoring()
    return replace(base, tolerance=as_tolerance(tolerance))


# =============================================================================
# Mass
# =============================================================================

def peptide_mass(sequence: str, mass_mode: MassMode = MassMode.MONOISOTOPIC) -> float:
    """Neutral mass of a peptide (terminal water included).

    Modifications in bracket notation are allowed (``PEM[Oxidation]K``).
    For ambiguous residues (B, Z, J, X) this is the lowest candidate mass,
    ``parse_sequence(...).neutral_masses()`` gives all of them.
    """
    return parse_sequence(sequence, Alphabet.standard(mass_mode)).neutral_masses()[0]


# =============================================================================
# Alignment Wrappers
# =============================================================================

def align_peptides(
    a: str,
    b: str,
    topology: TopologyLike = Topology.GLOBAL,
    mode: ModeLike = ScoringMode.MASS,
    tolerance: Union[Tolerance, float, str, None] = None,
    scoring: Optional[AlignScoring] = None,
) -> AlignmentResult:
    """Align two peptide strings.

    Parameters
    ----------
    a, b : str
        Sequences in bracket notation
    topology : Topology or str
        e.g. ``"global"``, ``"local"``, ``"semi-global"``, ``"extend-a"``
    mode : ScoringMode or str
        ``"mass"`` or ``"identity"``
    tolerance : Tolerance, float or str, optional
        Overrides the scoring tolerance (floats are Dalton)
    scoring : AlignScoring, optional
    """
    return align(parse_sequence(a), parse_sequence(b), _topology(topology), _mode(mode),
                 _scoring(scoring, tolerance))


def search_peptides(
    query: str,
    database: Union[Mapping[str, str], Iterable[str]],
    topology: TopologyLike = Topology.LOCAL,
    mode: ModeLike = ScoringMode.MASS,
    top_n: Optional[int] = DEFAULT_TOP_N,
    tolerance: Union[Tolerance, float, str, None] = None,
    scoring: Optional[AlignScoring] = None,
    n_workers: Optional[int] = None,
) -> SearchResult:
    """Align a peptide against named (mapping) or unnamed (iterable) peptide strings."""
    if isinstance(database, Mapping):
        entries = [parse_sequence(text, name=name) for name, text in database.items()]
    else:
        entries = [parse_sequence(text) for text in database]
    return search(parse_sequence(query), entries, _topology(topology), _mode(mode),
                  _scoring(scoring, tolerance), top_n, n_workers)


# =============================================================================
# Isobaric Wrapper
# =============================================================================

def _resolve(mods: Iterable[Union[str, Modification]], library: ModificationLibrary):
    return [m if isinstance(m, Modification) else parse_modification(m, library) for m in mods]


def isobaric_sequences(
    sequence: str,
    tolerance: Union[Tolerance, float, str, None] = None,
    fixed: Iterable[Union[str, Modification]] = (),
    variable: Iterable[Union[str, Modification]] = (),
    symbols: Optional[str] = None,
    max_results: Optional[int] = DEFAULT_ISOBARIC_LIMIT,
    allow_length_change: bool = False,
    library: Optional[ModificationLibrary] = None,
) -> IsobaricResult:
    """Sequences with the mass of ``sequence``, collected.

    Parameters
    ----------
    sequence : str
        Reference sequence in bracket notation
    tolerance : Tolerance, float or str, optional
        Floats are Dalton (default: 10 ppm)
    fixed, variable : iterable of str or Modification
        Modification names, mass shifts or ``Formula:`` strings
    symbols : str, optional
        Residues to build from (default: the 20 standard residues, no U, O, B, Z, J or X)
    max_results : int or None
        Result bound
    allow_length_change : bool
        Also produce sequences of other lengths
    library : ModificationLibrary, optional
        Library for modification names (default: ``default_library()``)
    """
    library = library if library is not None else default_library()
    alphabet = Alphabet.standard()
    reference = parse_sequence(sequence, alphabet, library)
    if symbols is not None:
        build = alphabet.restricted(symbols)
    else:
        build = Alphabet.standard(ambiguous=False, rare=False)
    generator = generate_isobaric(
        reference,
        build,
        _resolve(fixed, library),
        _resolve(variable, library),
        as_tolerance(tolerance),
        max_results=max_results,
        allow_length_change=allow_length_change,
    )
    return generator.collect()


__all__ = [
    "align_peptides",
    "search_peptides",
    "isobaric_sequences",
    "peptide_mass",
]
