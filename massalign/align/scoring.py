"""Alignment topologies, scoring modes and scoring parameters.

Scores are "higher is better": match and mass-match bonuses are positive,
mismatch and gap penalties are negative numbers. A gap of length ``L`` scores
``gap_open + gap_extend * L``.

Mass-matched steps
------------------
With ``ScoringMode.MASS`` a step may consume a run of ``k`` residues from A
and ``m`` from B (``1 <= k, m <= max_run``) when both runs have the same mass
within tolerance:

- rotation (same composition, different order, ``k == m``):
  ``mass_base + rotated * k``
- isobaric (anything else with equal mass):
  ``mass_base + isobaric * (k + m) / 2``

Keep ``rotated`` and ``isobaric`` at least as large as ``match`` so a mass
match always scores at least as well as splitting the same residues into
single match/mismatch/gap steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from ..constants import DEFAULT_MASS_EPSILON, DEFAULT_MAX_RUN
from ..tolerance import Tolerance


class ScoringMode(Enum):
    """How residues are compared."""
    IDENTITY = "identity"  # Character equality only, one residue per step
    MASS = "mass"          # Character equality plus mass-matched runs


class Topology(Enum):
    """Alignment boundary conditions.

    Each member holds ``(left_a, left_b, right_a, right_b, local)``: a True
    end flag means that end of the sequence has to be part of the alignment,
    a False flag lets it overhang without penalty.
    """
    GLOBAL = (True, True, True, True, False)
    LOCAL = (False, False, False, False, True)
    SEMI_GLOBAL = (False, False, False, False, False)
    GLOBAL_A = (True, False, True, False, False)    # A aligns fully inside B
    GLOBAL_B = (False, True, False, True, False)    # B aligns fully inside A
    EXTEND_A = (True, False, False, True, False)    # A continues past the end of B
    EXTEND_B = (False, True, True, False, False)    # B continues past the end of A

    @property
    def left_a(self) -> bool:
        return self.value[0]

    @property
    def left_b(self) -> bool:
        return self.value[1]

    @property
    def right_a(self) -> bool:
        return self.value[2]

    @property
    def right_b(self) -> bool:
        return self.value[3]

    @property
    def local(self) -> bool:
        return self.value[4]

    @property
    def symmetric(self) -> bool:
        return self.swapped() is self

    def swapped(self) -> 'Topology':
        """The topology that describes the same alignment with A and B exchanged."""
        left_a, left_b, right_a, right_b, local = self.value
        return Topology((left_b, left_a, right_b, right_a, local))

    @classmethod
    def parse(cls, text: str) -> 'Topology':
        """Member by name, case-insensitive, ``-`` and ``_`` interchangeable."""
        key = text.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(
                f"Unknown topology: {text!r}, use one of {', '.join(t.name.lower() for t in cls)}"
            ) from None


# =============================================================================
# Substitution Matrices
# =============================================================================

_BLOSUM62 = """
   A  R  N  D  C  Q  E  G  H  I  L  K  M  F  P  S  T  W  Y  V  B  Z  X  *
A  4 -1 -2 -2  0 -1 -1  0 -2 -1 -1 -1 -1 -2 -1  1  0 -3 -2  0 -2 -1  0 -4
R -1  5  0 -2 -3  1  0 -2  0 -3 -2  2 -1 -3 -2 -1 -1 -3 -2 -3 -1  0 -1 -4
N -2  0  6  1 -3  0  0  0  1 -3 -3  0 -2 -3 -2  1  0 -4 -2 -3  3  0 -1 -4
D -2 -2  1  6 -3  0  2 -1 -1 -3 -4 -1 -3 -3 -1  0 -1 -4 -3 -3  4  1 -1 -4
C  0 -3 -3 -3  9 -3 -4 -3 -3 -1 -1 -3 -1 -2 -3 -1 -1 -2 -2 -1 -3 -3 -2 -4
Q -1  1  0  0 -3  5  2 -2  0 -3 -2  1  0 -3 -1  0 -1 -2 -1 -2  0  3 -1 -4
E -1  0  0  2 -4  2  5 -2  0 -3 -3  1 -2 -3 -1  0 -1 -3 -2 -2  1  4 -1 -4
G  0 -2  0 -1 -3 -2 -2  6 -2 -4 -4 -2 -3 -3 -2  0 -2 -2 -3 -3 -1 -2 -1 -4
H -2  0  1 -1 -3  0  0 -2  8 -3 -3 -1 -2 -1 -2 -1 -2 -2  2 -3  0  0 -1 -4
I -1 -3 -3 -3 -1 -3 -3 -4 -3  4  2 -3  1  0 -3 -2 -1 -3 -1  3 -3 -3 -1 -4
L -1 -2 -3 -4 -1 -2 -3 -4 -3  2  4 -2  2  0 -3 -2 -1 -2 -1  1 -4 -3 -1 -4
K -1  2  0 -1 -3  1  1 -2 -1 -3 -2  5 -1 -3 -1  0 -1 -3 -2 -2  0  1 -1 -4
M -1 -1 -2 -3 -1  0 -2 -3 -2  1  2 -1  5  0 -2 -1 -1 -1 -1  1 -3 -1 -1 -4
F -2 -3 -3 -3 -2 -3 -3 -3 -1  0  0 -3  0  6 -4 -2 -2  1  3 -1 -3 -3 -1 -4
P -1 -2 -2 -1 -3 -1 -1 -2 -2 -3 -3 -1 -2 -4  7 -1 -1 -4 -3 -2 -2 -1 -2 -4
S  1 -1  1  0 -1  0  0  0 -1 -2 -2  0 -1 -2 -1  4  1 -3 -2 -2  0  0  0 -4
T  0 -1  0 -1 -1 -1 -1 -2 -2 -1 -1 -1 -1 -2 -1  1  5 -2 -2  0 -1 -1  0 -4
W -3 -3 -4 -4 -2 -2 -3 -2 -2 -3 -2 -3 -1  1 -4 -3 -2 11  2 -3 -4 -3 -2 -4
Y -2 -2 -2 -3 -2 -1 -2 -3  2 -1 -1 -2 -1  3 -3 -2 -2  2  7 -1 -3 -2 -1 -4
V  0 -3 -3 -3 -1 -2 -2 -3 -3  3  1 -2  1 -1 -2 -2  0 -3 -1  4 -3 -2 -1 -4
B -2 -1  3  4 -3  0  1 -1  0 -3 -4  0 -3 -3 -2  0 -1 -4 -3 -3  4  1 -1 -4
Z -1  0  0  1 -3  3  4 -2  0 -3 -3  1 -1 -3 -1  0 -1 -3 -2 -2  1  4 -1 -4
X  0 -1 -1 -1 -2 -1 -1 -1 -1 -1 -1 -1 -1 -1 -2  0  0 -2 -1 -1 -1 -1 -1 -4
* -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4  1
"""


def _parse_matrix(text: str) -> np.ndarray:
    """Parse a whitespace table into an ord()-indexed (256, 256) array.

    Pairs not in the table are NaN, the kernel falls back to the
    match/mismatch scores for those.
    """
    lines = [line.split() for line in text.strip().splitlines()]
    header = lines[0]
    table = np.full((256, 256), np.nan, dtype=np.float64)
    for row in lines[1:]:
        a = row[0]
        for b, value in zip(header, row[1:]):
            table[ord(a), ord(b)] = float(value)
    table.setflags(write=False)
    return table


MATRICES = {
    "BLOSUM62": _parse_matrix(_BLOSUM62),
}

_NO_MATRIX = np.full((256, 256), np.nan, dtype=np.float64)
_NO_MATRIX.setflags(write=False)


def get_matrix(name: Optional[str]) -> np.ndarray:
    """ord()-indexed substitution matrix, all NaN for ``None``."""
    if name is None:
        return _NO_MATRIX
    try:
        return MATRICES[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown substitution matrix: {name}, use one of {', '.join(MATRICES)}") from None


# =============================================================================
# Scoring Parameters
# =============================================================================

@dataclass(frozen=True)
class AlignScoring:
    """Scoring parameters for the alignment engine.

    Attributes
    ----------
    match : float
        Score for identical residues with equal mass
    mismatch : float
        Score for different residues without a mass match
    mass_mismatch : float
        Added to ``match`` when residues are identical but their masses
        differ (e.g. one of them carries a modification)
    mass_base : float
        Base score of every mass-matched step
    rotated : float
        Per-residue score of a rotation (same composition, other order)
    isobaric : float
        Per-residue score of an isobaric step
    gap_open : float
        Score for starting a gap
    gap_extend : float
        Score for every gap position
    matrix : str or None
        Name of a substitution matrix (e.g. ``"BLOSUM62"``) replacing
        match/mismatch for single-residue steps
    tolerance : Tolerance
        Mass tolerance for mass equality
    max_run : int
        Longest run on either side of a mass-matched step
    mass_epsilon : float
        Deduplication epsilon for mass sets of ambiguous runs
    """

    match: float = 4.0
    mismatch: float = -1.0
    mass_mismatch: float = -1.0
    mass_base: float = 1.0
    rotated: float = 4.0
    isobaric: float = 4.0
    gap_open: float = -5.0
    gap_extend: float = -1.0
    matrix: Optional[str] = None
    tolerance: Tolerance = field(default_factory=Tolerance)
    max_run: int = DEFAULT_MAX_RUN
    mass_epsilon: float = DEFAULT_MASS_EPSILON

    def __post_init__(self):
        if self.max_run < 1:
            raise ValueError(f"max_run must be at least 1, got {self.max_run}")
        if self.gap_open > 0 or self.gap_extend > 0:
            raise ValueError("Gap scores must be <= 0")
        if self.mass_epsilon < 0:
            raise ValueError(f"mass_epsilon must be non-negative, got {self.mass_epsilon}")
        # Fail early on unknown matrix names
        get_matrix(self.matrix)

    @classmethod
    def normal(cls, **kwargs) -> 'AlignScoring':
        """Single-residue steps only."""
        return cls(max_run=1, **kwargs)

    @classmethod
    def mass_based(cls, max_run: int = DEFAULT_MAX_RUN, **kwargs) -> 'AlignScoring':
        """Mass-matched runs of up to ``max_run`` residues per side."""
        return cls(max_run=max_run, **kwargs)

    def gap(self, length: int) -> float:
        """Score of a gap of ``length`` positions."""
        if length <= 0:
            return 0.0
        return self.gap_open + self.gap_extend * length
