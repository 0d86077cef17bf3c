"""massalign - Mass-aware sequence alignment for mass spectrometry inspection.

Aligns peptides (and other monomer sequences) where two stretches count as
equivalent when their masses agree, not only when their symbols do.
Alignment kernels are Numba-compiled; database search fans out over a
thread pool.

Main entry points:
- ``align`` / ``search``: pairwise and one-vs-database alignment
- ``generate_isobaric``: sequences with the same mass as a given one
- ``find_modifications`` / ``find_formulas`` / ``find_genes``: mass-tolerant lookup
"""

__version__ = "0.1.0"

from massalign.align import (
    AlignmentResult,
    AlignScoring,
    MatchType,
    ScoringMode,
    SegmentKind,
    Topology,
    align,
    search,
)
from massalign.alphabet import Alphabet, MassMode, combine
from massalign.convenience import align_peptides, isobaric_sequences, peptide_mass, search_peptides
from massalign.exceptions import (
    EmptyInputError,
    InvalidToleranceError,
    MassAlignError,
    TruncatedResultWarning,
    UnknownSymbolError,
)
from massalign.formula import Formula, parse_formula
from massalign.hits import SearchHit, SearchResult
from massalign.isobaric import IsobaricResult, IsobaricSearch, generate_isobaric
from massalign.modifications import Modification, ModificationLibrary, default_library
from massalign.search import GeneDatabase, GeneRecord, find_formulas, find_genes, find_modifications
from massalign.sequence import Monomer, Sequence, parse_sequence
from massalign.tolerance import Tolerance

__all__ = [
    # Alignment
    "align",
    "search",
    "AlignmentResult",
    "AlignScoring",
    "MatchType",
    "ScoringMode",
    "SegmentKind",
    "Topology",
    # Mass model
    "Alphabet",
    "MassMode",
    "Monomer",
    "Sequence",
    "combine",
    "parse_sequence",
    "Formula",
    "parse_formula",
    "Tolerance",
    # Modifications
    "Modification",
    "ModificationLibrary",
    "default_library",
    # Search
    "SearchHit",
    "SearchResult",
    "find_modifications",
    "find_formulas",
    "find_genes",
    "GeneDatabase",
    "GeneRecord",
    # Isobaric
    "IsobaricResult",
    "IsobaricSearch",
    "generate_isobaric",
    # Errors
    "MassAlignError",
    "UnknownSymbolError",
    "InvalidToleranceError",
    "EmptyInputError",
    "TruncatedResultWarning",
    # Convenience
    "align_peptides",
    "search_peptides",
    "isobaric_sequences",
    "peptide_mass",
]
