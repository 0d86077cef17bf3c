"""Mass-aware pairwise alignment (Numba-compiled dynamic programming).

The recurrence is Gotoh's affine-gap alignment extended with mass-matched
steps: besides the usual one-residue match/mismatch move, a cell (i, j) may be
reached from (i - k, j - m) for any run lengths ``1 <= k, m <= max_run``
whose residue masses agree within tolerance. Runs are tried in order of
increasing combined length and only a strictly better score replaces the
current best, so the shortest mass match wins ties.

Mass ambiguity
--------------
Every run carries a *set* of candidate masses (Cartesian sums of the
residues' mass sets, deduplicated within ``mass_epsilon``). Two runs match
when any candidate of one is within tolerance of any candidate of the other.

Key optimizations:
1. Run mass sets precomputed once per sequence (flat arrays + offsets)
2. Kernel compiled with ``nogil=True`` so database search threads run in parallel
3. Traceback in Python over small int8 pointer tables

Examples
--------
>>> alphabet = Alphabet.standard()
>>> a = Sequence.from_symbols("ANGK", alphabet)
>>> b = Sequence.from_symbols("AGGGK", alphabet)
>>> result = align(a, b, Topology.GLOBAL, ScoringMode.MASS)
>>> result.cigar()
'1=i[1,2]2='
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

import numba
import numpy as np

from ..alphabet import combine
from ..exceptions import EmptyInputError
from ..sequence import Sequence
from .result import AlignmentResult, MatchType, Step, merge_steps
from .scoring import AlignScoring, ScoringMode, Topology, get_matrix


logger = logging.getLogger(__name__)

# Pointer codes of the H table
MOVE_START = 0
MOVE_STEP = 1
MOVE_UP = 2    # came from the UP table (A residue against a gap)
MOVE_LEFT = 3  # came from the LEFT table (B residue against a gap)

NEG_INF = -1.0e300

# Layout of the float parameter vector passed to the kernel
P_MATCH, P_MISMATCH, P_MASS_MISMATCH, P_MASS_BASE, P_ROTATED, P_ISOBARIC, \
    P_GAP_OPEN, P_GAP_EXTEND, P_TOLERANCE = range(9)

_FULL_IDENTITY = int(MatchType.FULL_IDENTITY)
_IDENTITY_MASS_MISMATCH = int(MatchType.IDENTITY_MASS_MISMATCH)
_ISOBARIC = int(MatchType.ISOBARIC)
_ROTATION = int(MatchType.ROTATION)
_MISMATCH = int(MatchType.MISMATCH)


# =============================================================================
# Sequence Encoding
# =============================================================================

class EncodedSequence(NamedTuple):
    """Kernel view of a sequence.

    Attributes
    ----------
    codes : np.ndarray (int64)
        ord() of every residue symbol
    run_starts, run_ends : np.ndarray (int64), shape (n + 1, max_run + 1)
        ``run_masses[run_starts[i, k]:run_ends[i, k]]`` is the sorted mass set
        of the k residues ending before position i
    run_masses : np.ndarray (float64)
        Flat storage of all run mass sets
    """
    codes: np.ndarray
    run_starts: np.ndarray
    run_ends: np.ndarray
    run_masses: np.ndarray


def encode_sequence(sequence: Sequence, max_run: int, epsilon: float) -> EncodedSequence:
    """Precompute residue codes and run mass sets for the kernel."""
    n = len(sequence)
    codes = np.array(sequence.codes, dtype=np.int64)
    starts = np.zeros((n + 1, max_run + 1), dtype=np.int64)
    ends = np.zeros((n + 1, max_run + 1), dtype=np.int64)
    values: List[float] = []
    for i in range(1, n + 1):
        masses = (0.0,)
        for k in range(1, min(max_run, i) + 1):
            masses = combine(masses, sequence.monomers[i - k].masses, epsilon)
            starts[i, k] = len(values)
            values.extend(masses)
            ends[i, k] = len(values)
    return EncodedSequence(codes, starts, ends, np.array(values, dtype=np.float64))


# =============================================================================
# Kernel Helpers (Numba-Compiled)
# =============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def _masses_overlap(values_a, start_a, end_a, values_b, start_b, end_b, tolerance, is_ppm):
    """True if any mass of set A is within tolerance of any mass of set B.

    Both sets are sorted, so a merge walk finds a close pair in linear time.
    """
    ia = start_a
    ib = start_b
    while ia < end_a and ib < end_b:
        a = values_a[ia]
        b = values_b[ib]
        if is_ppm:
            allowed = tolerance * 1e-6 * max(abs(a), abs(b))
        else:
            allowed = tolerance
        if abs(a - b) <= allowed:
            return True
        if a < b:
            ia += 1
        else:
            ib += 1
    return False


@numba.jit(nopython=True, cache=True, nogil=True)
def _identical_runs(codes_a, start_a, codes_b, start_b, length):
    for p in range(length):
        if codes_a[start_a + p] != codes_b[start_b + p]:
            return False
    return True


@numba.jit(nopython=True, cache=True, nogil=True)
def _same_composition(codes_a, start_a, codes_b, start_b, length):
    """True if both runs contain the same residues in any order."""
    for p in range(length):
        code = codes_a[start_a + p]
        count_a = 0
        count_b = 0
        for q in range(length):
            if codes_a[start_a + q] == code:
                count_a += 1
            if codes_b[start_b + q] == code:
                count_b += 1
        if count_a != count_b:
            return False
    return True


# =============================================================================
# DP Fill (Numba-Compiled)
# =============================================================================

@numba.jit(nopython=True, cache=True, nogil=True)
def fill_tables(
    codes_a: np.ndarray,
    starts_a: np.ndarray,
    ends_a: np.ndarray,
    values_a: np.ndarray,
    codes_b: np.ndarray,
    starts_b: np.ndarray,
    ends_b: np.ndarray,
    values_b: np.ndarray,
    matrix: np.ndarray,
    params: np.ndarray,
    max_run: int,
    use_mass: bool,
    is_ppm: bool,
    left_a: bool,
    left_b: bool,
    local: bool,
):
    """Fill the affine-gap DP tables with mass-matched steps (Numba-compiled).

    Parameters
    ----------
    codes_a, starts_a, ends_a, values_a : np.ndarray
        Encoded sequence A (see ``EncodedSequence``)
    codes_b, starts_b, ends_b, values_b : np.ndarray
        Encoded sequence B
    matrix : np.ndarray (float64), shape (256, 256)
        ord()-indexed substitution scores, NaN where match/mismatch apply
    params : np.ndarray (float64)
        Scores and tolerance, indexed by the ``P_*`` constants
    max_run : int
        Longest run per side of a mass-matched step
    use_mass : bool
        False for plain identity scoring (masses are ignored)
    is_ppm : bool
        Tolerance unit, ppm if True, Dalton otherwise
    left_a, left_b : bool
        Whether the start of A / B must be aligned (gap penalty on the
        first column / row instead of a free start)
    local : bool
        Clamp negative scores to zero (Smith-Waterman)

    Returns
    -------
    tuple
        ``(H, move, match_type, step_a, step_b, up_ext, left_ext)``:
        best scores, H pointers, step classification, step lengths and the
        extend flags of the two gap tables
    """
    n = len(codes_a)
    m = len(codes_b)

    match = params[P_MATCH]
    mismatch = params[P_MISMATCH]
    mass_mismatch = params[P_MASS_MISMATCH]
    mass_base = params[P_MASS_BASE]
    rotated = params[P_ROTATED]
    isobaric = params[P_ISOBARIC]
    gap_open = params[P_GAP_OPEN]
    gap_extend = params[P_GAP_EXTEND]
    tolerance = params[P_TOLERANCE]

    H = np.full((n + 1, m + 1), NEG_INF, dtype=np.float64)
    UP = np.full((n + 1, m + 1), NEG_INF, dtype=np.float64)
    LEFT = np.full((n + 1, m + 1), NEG_INF, dtype=np.float64)
    move = np.zeros((n + 1, m + 1), dtype=np.int8)
    match_type = np.zeros((n + 1, m + 1), dtype=np.int8)
    step_a = np.zeros((n + 1, m + 1), dtype=np.int8)
    step_b = np.zeros((n + 1, m + 1), dtype=np.int8)
    up_ext = np.zeros((n + 1, m + 1), dtype=np.int8)
    left_ext = np.zeros((n + 1, m + 1), dtype=np.int8)

    # Boundaries: cumulative gap penalty where the start is anchored, free otherwise
    H[0, 0] = 0.0
    for i in range(1, n + 1):
        if left_a and not local:
            UP[i, 0] = gap_open + gap_extend * i
            up_ext[i, 0] = 1 if i > 1 else 0
            H[i, 0] = UP[i, 0]
            move[i, 0] = MOVE_UP
        else:
            H[i, 0] = 0.0
    for j in range(1, m + 1):
        if left_b and not local:
            LEFT[0, j] = gap_open + gap_extend * j
            left_ext[0, j] = 1 if j > 1 else 0
            H[0, j] = LEFT[0, j]
            move[0, j] = MOVE_LEFT
        else:
            H[0, j] = 0.0

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            # Gap tables
            opened = H[i - 1, j] + gap_open + gap_extend
            extended = UP[i - 1, j] + gap_extend
            if extended > opened:
                UP[i, j] = extended
                up_ext[i, j] = 1
            else:
                UP[i, j] = opened

            opened = H[i, j - 1] + gap_open + gap_extend
            extended = LEFT[i, j - 1] + gap_extend
            if extended > opened:
                LEFT[i, j] = extended
                left_ext[i, j] = 1
            else:
                LEFT[i, j] = opened

            # Single residue step
            code_a = codes_a[i - 1]
            code_b = codes_b[j - 1]
            same_mass = True
            if use_mass:
                same_mass = _masses_overlap(
                    values_a, starts_a[i, 1], ends_a[i, 1],
                    values_b, starts_b[j, 1], ends_b[j, 1],
                    tolerance, is_ppm,
                )
            if code_a == code_b:
                score = matrix[code_a, code_b]
                if np.isnan(score):
                    score = match
                if same_mass:
                    kind = _FULL_IDENTITY
                else:
                    score += mass_mismatch
                    kind = _IDENTITY_MASS_MISMATCH
            elif use_mass and same_mass:
                score = mass_base + isobaric
                kind = _ISOBARIC
            else:
                score = matrix[code_a, code_b]
                if np.isnan(score):
                    score = mismatch
                kind = _MISMATCH

            best = H[i - 1, j - 1] + score
            best_move = MOVE_STEP
            best_kind = kind
            best_a = 1
            best_b = 1

            # Mass-matched runs, shortest combined length first
            if use_mass and max_run > 1:
                for total in range(3, 2 * max_run + 1):
                    for k in range(1, max_run + 1):
                        run_b = total - k
                        if run_b < 1 or run_b > max_run or k > i or run_b > j:
                            continue
                        if not _masses_overlap(
                            values_a, starts_a[i, k], ends_a[i, k],
                            values_b, starts_b[j, run_b], ends_b[j, run_b],
                            tolerance, is_ppm,
                        ):
                            continue
                        if k == run_b and _identical_runs(codes_a, i - k, codes_b, j - run_b, k):
                            continue
                        if k == run_b and _same_composition(codes_a, i - k, codes_b, j - run_b, k):
                            score = mass_base + rotated * k
                            kind = _ROTATION
                        else:
                            score = mass_base + isobaric * (k + run_b) / 2.0
                            kind = _ISOBARIC
                        candidate = H[i - k, j - run_b] + score
                        if candidate > best:
                            best = candidate
                            best_kind = kind
                            best_a = k
                            best_b = run_b

            if UP[i, j] > best:
                best = UP[i, j]
                best_move = MOVE_UP
            if LEFT[i, j] > best:
                best = LEFT[i, j]
                best_move = MOVE_LEFT

            if local and best <= 0.0:
                best = 0.0
                best_move = MOVE_START

            H[i, j] = best
            move[i, j] = best_move
            if best_move == MOVE_STEP:
                match_type[i, j] = best_kind
                step_a[i, j] = best_a
                step_b[i, j] = best_b

    return H, move, match_type, step_a, step_b, up_ext, left_ext


# =============================================================================
# Traceback
# =============================================================================

def _terminal_cell(H: np.ndarray, topology: Topology):
    """Cell where the traceback starts."""
    n, m = H.shape[0] - 1, H.shape[1] - 1
    if topology.local:
        flat = int(np.argmax(H))
        return divmod(flat, m + 1)
    if topology.right_a and topology.right_b:
        return n, m
    if topology.right_a:
        return n, int(np.argmax(H[n, :]))
    if topology.right_b:
        return int(np.argmax(H[:, m])), m
    j = int(np.argmax(H[n, :]))
    i = int(np.argmax(H[:, m]))
    if H[n, j] >= H[i, m]:
        return n, j
    return i, m


def _traceback(tables, i: int, j: int, gap_open: float, gap_extend: float):
    """Follow the pointers back from (i, j); returns steps in forward order and the start cell."""
    H, move, match_type, step_a, step_b, up_ext, left_ext = tables
    steps: List[Step] = []
    state = MOVE_STEP
    while True:
        if state == MOVE_STEP:
            pointer = move[i, j]
            if pointer == MOVE_START:
                break
            if pointer == MOVE_STEP:
                len_a, len_b = int(step_a[i, j]), int(step_b[i, j])
                score = float(H[i, j] - H[i - len_a, j - len_b])
                steps.append(Step(MatchType(int(match_type[i, j])), i - len_a, len_a, j - len_b, len_b, score))
                i -= len_a
                j -= len_b
            else:
                state = pointer
        elif state == MOVE_UP:
            extended = bool(up_ext[i, j])
            steps.append(Step(MatchType.GAP, i - 1, 1, j, 0, gap_extend + (0.0 if extended else gap_open)))
            i -= 1
            state = MOVE_UP if extended else MOVE_STEP
        else:
            extended = bool(left_ext[i, j])
            steps.append(Step(MatchType.GAP, i, 0, j - 1, 1, gap_extend + (0.0 if extended else gap_open)))
            j -= 1
            state = MOVE_LEFT if extended else MOVE_STEP
    steps.reverse()
    return steps, i, j


# =============================================================================
# Public API
# =============================================================================

def _kernel_params(scoring: AlignScoring) -> np.ndarray:
    return np.array([
        scoring.match,
        scoring.mismatch,
        scoring.mass_mismatch,
        scoring.mass_base,
        scoring.rotated,
        scoring.isobaric,
        scoring.gap_open,
        scoring.gap_extend,
        scoring.tolerance.value,
    ], dtype=np.float64)


def effective_max_run(mode: ScoringMode, scoring: AlignScoring) -> int:
    return scoring.max_run if mode == ScoringMode.MASS else 1


def align_encoded(
    seq_a: Sequence,
    encoded_a: EncodedSequence,
    seq_b: Sequence,
    encoded_b: EncodedSequence,
    topology: Topology,
    mode: ScoringMode,
    scoring: AlignScoring,
) -> AlignmentResult:
    """Align two pre-encoded sequences (used by database search to encode the query once)."""
    tables = fill_tables(
        encoded_a.codes, encoded_a.run_starts, encoded_a.run_ends, encoded_a.run_masses,
        encoded_b.codes, encoded_b.run_starts, encoded_b.run_ends, encoded_b.run_masses,
        get_matrix(scoring.matrix),
        _kernel_params(scoring),
        effective_max_run(mode, scoring),
        mode == ScoringMode.MASS,
        scoring.tolerance.is_ppm,
        topology.left_a,
        topology.left_b,
        topology.local,
    )
    end_a, end_b = _terminal_cell(tables[0], topology)
    steps, start_a, start_b = _traceback(tables, end_a, end_b, scoring.gap_open, scoring.gap_extend)
    return AlignmentResult(
        score=float(tables[0][end_a, end_b]),
        topology=topology,
        mode=mode,
        steps=tuple(steps),
        segments=tuple(merge_steps(steps)),
        seq_a=seq_a,
        seq_b=seq_b,
        start_a=start_a,
        start_b=start_b,
        end_a=end_a,
        end_b=end_b,
    )


def align(
    seq_a: Sequence,
    seq_b: Sequence,
    topology: Topology = Topology.GLOBAL,
    mode: ScoringMode = ScoringMode.MASS,
    scoring: Optional[AlignScoring] = None,
    allow_empty: bool = True,
) -> AlignmentResult:
    """Optimal alignment of two sequences.

    Parameters
    ----------
    seq_a, seq_b : Sequence
        Sequences to align
    topology : Topology
        Boundary conditions (default: global)
    mode : ScoringMode
        Identity or mass-aware scoring (default: mass)
    scoring : AlignScoring, optional
        Scores, tolerance and run bound (default: ``AlignScoring()``)
    allow_empty : bool
        If False, two empty sequences raise ``EmptyInputError`` instead of
        producing an empty alignment with score 0

    Returns
    -------
    AlignmentResult

    Notes
    -----
    An empty sequence against a non-empty one gives a single gap segment
    for topologies that anchor the non-empty side, and an empty alignment
    otherwise.
    """
    scoring = scoring if scoring is not None else AlignScoring()
    if not allow_empty and len(seq_a) == 0 and len(seq_b) == 0:
        raise EmptyInputError("Both sequences are empty")

    max_run = effective_max_run(mode, scoring)
    encoded_a = encode_sequence(seq_a, max_run, scoring.mass_epsilon)
    encoded_b = encode_sequence(seq_b, max_run, scoring.mass_epsilon)
    result = align_encoded(seq_a, encoded_a, seq_b, encoded_b, topology, mode, scoring)
    logger.debug(
        f"Aligned {len(seq_a)}x{len(seq_b)} ({topology.name.lower()}, {mode.value}): "
        f"score {result.score:g}, {result.cigar()}"
    )
    return result
