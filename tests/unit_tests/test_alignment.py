"""Unit tests for the pairwise alignment engine."""

import numpy as np
import pytest

from massalign.align import (
    AlignScoring,
    MatchType,
    ScoringMode,
    SegmentKind,
    Topology,
    align,
)
from massalign.align.engine import encode_sequence
from massalign.align.scoring import get_matrix
from massalign.exceptions import EmptyInputError
from massalign.sequence import parse_sequence
from massalign.tolerance import Tolerance


class TestTopology:
    """Test topology flags and parsing."""

    def test_flags(self):
        """Test the end flags of the main topologies."""
        assert Topology.GLOBAL.left_a and Topology.GLOBAL.right_b
        assert Topology.LOCAL.local
        assert not any(Topology.SEMI_GLOBAL.value)

    def test_swapped(self):
        """Test exchanging A and B."""
        assert Topology.EXTEND_A.swapped() is Topology.EXTEND_B
        assert Topology.GLOBAL_A.swapped() is Topology.GLOBAL_B
        assert Topology.GLOBAL.symmetric
        assert not Topology.EXTEND_A.symmetric

    def test_parse(self):
        """Test parsing names."""
        assert Topology.parse("semi-global") is Topology.SEMI_GLOBAL
        assert Topology.parse("Local") is Topology.LOCAL
        with pytest.raises(ValueError):
            Topology.parse("sideways")


class TestScoring:
    """Test scoring parameter validation."""

    def test_defaults(self):
        """Test the default scores."""
        scoring = AlignScoring()
        assert scoring.match == 4.0
        assert scoring.max_run == 4
        assert scoring.tolerance == Tolerance.ppm(10)

    def test_presets(self):
        """Test the presets."""
        assert AlignScoring.normal().max_run == 1
        assert AlignScoring.mass_based(max_run=3).max_run == 3

    def test_invalid(self):
        """Test rejected parameters."""
        with pytest.raises(ValueError):
            AlignScoring(max_run=0)
        with pytest.raises(ValueError):
            AlignScoring(gap_open=1.0)
        with pytest.raises(ValueError):
            AlignScoring(matrix="PAM1000")

    def test_gap(self):
        """Test affine gap scores."""
        scoring = AlignScoring()
        assert scoring.gap(0) == 0.0
        assert scoring.gap(1) == -6.0
        assert scoring.gap(3) == -8.0

    def test_blosum62(self):
        """Test matrix lookup by ord()."""
        matrix = get_matrix("blosum62")
        assert matrix[ord("W"), ord("W")] == 11
        assert matrix[ord("A"), ord("R")] == -1
        assert np.isnan(get_matrix(None)[ord("A"), ord("A")])


class TestEncoding:
    """Test precomputed run masses."""

    def test_run_masses(self, make_sequence):
        """Test the mass set of every run ending at a position."""
        encoded = encode_sequence(make_sequence("GGA"), max_run=2, epsilon=1e-6)
        values = encoded.run_masses
        start, end = encoded.run_starts[2, 2], encoded.run_ends[2, 2]
        assert list(values[start:end]) == pytest.approx([2 * 57.021464])
        start, end = encoded.run_starts[3, 1], encoded.run_ends[3, 1]
        assert list(values[start:end]) == pytest.approx([71.037114])
        assert list(encoded.codes) == [ord("G"), ord("G"), ord("A")]

    def test_ambiguous_runs(self, make_sequence):
        """Test that ambiguous residues give run mass sets."""
        encoded = encode_sequence(make_sequence("BB"), max_run=2, epsilon=1e-6)
        start, end = encoded.run_starts[2, 2], encoded.run_ends[2, 2]
        assert end - start == 3


class TestIdentityAlignment:
    """Test alignments with identity scoring."""

    def test_self_alignment(self, make_sequence):
        """Test that a sequence aligns to itself as one full-length match."""
        seq = make_sequence("PEPTIDE")
        result = align(seq, seq, Topology.GLOBAL, ScoringMode.IDENTITY)
        assert result.score == 7 * 4.0
        assert len(result.segments) == 1
        segment = result.segments[0]
        assert segment.kind == SegmentKind.MATCH
        assert (segment.start_a, segment.len_a, segment.start_b, segment.len_b) == (0, 7, 0, 7)
        assert result.identity() == 1.0

    def test_length_difference_needs_gap(self, make_sequence):
        """Test a global alignment of sequences differing in length by one."""
        a = make_sequence("AKTNLSHLGYGMDV")
        b = make_sequence("AKEGGLHSIGYGMDV")
        result = align(a, b, Topology.GLOBAL, ScoringMode.IDENTITY)
        assert result.segments
        assert result.segments_of(SegmentKind.GAP_A) or result.segments_of(SegmentKind.GAP_B)
        assert len(result.segments_of(SegmentKind.MATCH)) >= 2
        assert sum(s.len_a for s in result.segments) == 14
        assert sum(s.len_b for s in result.segments) == 15

    def test_affine_gap(self, make_sequence):
        """Test that a single deletion costs gap_open + gap_extend."""
        result = align(make_sequence("PEPTIDE"), make_sequence("PEPIDE"), Topology.GLOBAL, ScoringMode.IDENTITY)
        assert result.score == 6 * 4.0 - 6.0
        assert result.cigar() == "3=1I3="
        assert result.stats().gaps == 1

    def test_identity_ignores_mass(self, make_sequence):
        """Test that I and L are a mismatch in identity mode."""
        result = align(make_sequence("PEPTIDE"), make_sequence("PEPTLDE"), Topology.GLOBAL, ScoringMode.IDENTITY)
        assert result.score == 6 * 4.0 - 1.0
        assert result.cigar() == "4=1X2="

    def test_substitution_matrix(self, make_sequence):
        """Test a substitution matrix replacing match/mismatch."""
        scoring = AlignScoring(matrix="BLOSUM62")
        result = align(make_sequence("W"), make_sequence("W"), Topology.GLOBAL, ScoringMode.IDENTITY, scoring)
        assert result.score == 11.0


class TestMassAlignment:
    """Test alignments with mass-matched steps."""

    def test_identical_local(self, make_sequence):
        """Test that identical sequences score two plain matches."""
        seq = make_sequence("AK")
        result = align(seq, seq, Topology.LOCAL, ScoringMode.MASS)
        assert result.score == 2 * 4.0
        assert [s.kind for s in result.segments] == [SegmentKind.MATCH]

    def test_isobaric_residue(self, make_sequence):
        """Test that I and L are a single-residue mass match."""
        result = align(make_sequence("PEPTIDE"), make_sequence("PEPTLDE"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == 6 * 4.0 + 5.0
        assert result.cigar() == "4=i[1,1]2="
        assert [s.kind for s in result.segments] == [
            SegmentKind.MATCH, SegmentKind.MASS_MATCH, SegmentKind.MATCH,
        ]

    def test_wildcard_outscores_identity(self, make_sequence):
        """Test that X against G is a mass match worth more than a plain match."""
        wildcard = align(make_sequence("AXK"), make_sequence("AGK"), Topology.GLOBAL, ScoringMode.MASS)
        identical = align(make_sequence("AGK"), make_sequence("AGK"), Topology.GLOBAL, ScoringMode.MASS)
        assert wildcard.score == 4.0 + 5.0 + 4.0
        assert identical.score == 3 * 4.0
        assert wildcard.score > identical.score
        assert wildcard.cigar() == "1=i[1,1]1="
        assert [s.kind for s in wildcard.segments] == [
            SegmentKind.MATCH, SegmentKind.MASS_MATCH, SegmentKind.MATCH,
        ]

    def test_run_mass_match(self, make_sequence):
        """Test N against GG (equal mass)."""
        result = align(make_sequence("ANGK"), make_sequence("AGGGK"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == 19.0
        assert result.cigar() == "1=i[1,2]2="
        mass_match = result.segments_of(SegmentKind.MASS_MATCH)[0]
        assert (mass_match.start_a, mass_match.len_a, mass_match.start_b, mass_match.len_b) == (1, 1, 1, 2)
        assert mass_match.score == 1.0 + 4.0 * 1.5

    def test_rotation(self, make_sequence):
        """Test a swapped pair of residues."""
        result = align(make_sequence("PEKTIDE"), make_sequence("PETKIDE"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == 29.0
        assert result.cigar() == "2=r[2,2]3="
        assert result.steps[2].match_type == MatchType.ROTATION

    def test_mass_match_beats_decomposition(self, make_sequence):
        """Test that a mass match scores at least as well as match/mismatch/gap moves."""
        for a, b in [("N", "GG"), ("ANGK", "AGGGK"), ("PEKTIDE", "PETKIDE"), ("GAGA", "QA")]:
            mass = align(make_sequence(a), make_sequence(b), Topology.GLOBAL, ScoringMode.MASS)
            identity = align(make_sequence(a), make_sequence(b), Topology.GLOBAL, ScoringMode.IDENTITY)
            assert mass.score >= identity.score

    def test_ambiguous_residue(self, make_sequence):
        """Test that B matches N by mass."""
        result = align(make_sequence("B"), make_sequence("N"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == 5.0
        assert result.segments[0].kind == SegmentKind.MASS_MATCH

    def test_modified_residue(self, make_sequence):
        """Test same residue with a different mass."""
        modified = parse_sequence("PEM[Oxidation]K")
        result = align(modified, make_sequence("PEMK"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == 3 * 4.0 + 3.0
        assert result.steps[2].match_type == MatchType.IDENTITY_MASS_MISMATCH
        assert result.cigar() == "2=1m1="

    def test_max_run_limits_lookback(self, make_sequence):
        """Test that runs longer than max_run are not matched."""
        scoring = AlignScoring(max_run=1)
        result = align(make_sequence("N"), make_sequence("GG"), Topology.GLOBAL, ScoringMode.MASS, scoring)
        assert result.segments_of(SegmentKind.MASS_MATCH) == []


class TestTopologies:
    """Test boundary conditions."""

    def test_local(self, make_sequence):
        """Test that local alignment finds the embedded sequence."""
        result = align(make_sequence("WWWPEPTIDEWWW"), make_sequence("PEPTIDE"), Topology.LOCAL, ScoringMode.MASS)
        assert result.score == 28.0
        assert (result.start_a, result.end_a) == (3, 10)
        assert (result.start_b, result.end_b) == (0, 7)

    def test_global_a(self, make_sequence):
        """Test A aligning fully inside B."""
        result = align(make_sequence("PEPTIDE"), make_sequence("MMPEPTIDEKR"), Topology.GLOBAL_A, ScoringMode.MASS)
        assert result.score == 28.0
        assert (result.start_b, result.end_b) == (2, 9)

    def test_extend(self, make_sequence):
        """Test A continuing past the end of B."""
        a = make_sequence("PEPTIDEKR")
        b = make_sequence("MMPEPTIDE")
        result = align(a, b, Topology.EXTEND_A, ScoringMode.MASS)
        assert result.score == 28.0
        assert (result.start_a, result.end_a, result.start_b, result.end_b) == (0, 7, 2, 9)
        swapped = align(b, a, Topology.EXTEND_B, ScoringMode.MASS)
        assert swapped.score == result.score

    def test_global_penalizes_overhang(self, make_sequence):
        """Test that global alignment pays for the flanks that semi-global ignores."""
        a = make_sequence("PEPTIDE")
        b = make_sequence("MMPEPTIDE")
        assert align(a, b, Topology.SEMI_GLOBAL, ScoringMode.IDENTITY).score == 28.0
        assert align(a, b, Topology.GLOBAL, ScoringMode.IDENTITY).score == 28.0 - 7.0


class TestProperties:
    """Test symmetry, determinism and edge cases."""

    PAIRS = [
        ("AKTNLSHLGYGMDV", "AKEGGLHSIGYGMDV"),
        ("ANGK", "AGGGK"),
        ("PEPTIDE", "EDITPEP"),
        ("WGGQ", "NWQ"),
        ("BZX", "NQL"),
    ]

    @pytest.mark.parametrize("topology", [Topology.GLOBAL, Topology.LOCAL, Topology.SEMI_GLOBAL])
    @pytest.mark.parametrize("mode", [ScoringMode.IDENTITY, ScoringMode.MASS])
    def test_score_symmetry(self, make_sequence, topology, mode):
        """Test that exchanging A and B keeps the score."""
        for a, b in self.PAIRS:
            forward = align(make_sequence(a), make_sequence(b), topology, mode)
            backward = align(make_sequence(b), make_sequence(a), topology, mode)
            assert forward.score == pytest.approx(backward.score)

    def test_extend_symmetry(self, make_sequence):
        """Test that extend topologies swap with their arguments."""
        for a, b in self.PAIRS:
            forward = align(make_sequence(a), make_sequence(b), Topology.EXTEND_A, ScoringMode.MASS)
            backward = align(make_sequence(b), make_sequence(a), Topology.EXTEND_B, ScoringMode.MASS)
            assert forward.score == pytest.approx(backward.score)

    def test_deterministic(self, make_sequence):
        """Test that repeated runs give identical results."""
        a, b = make_sequence("AKTNLSHLGYGMDV"), make_sequence("AKEGGLHSIGYGMDV")
        first = align(a, b, Topology.GLOBAL, ScoringMode.MASS)
        second = align(a, b, Topology.GLOBAL, ScoringMode.MASS)
        assert first == second
        assert first.cigar() == second.cigar()

    def test_path_covers_aligned_region(self, make_sequence):
        """Test that steps are contiguous from start to end."""
        result = align(make_sequence("AKTNLSHLGYGMDV"), make_sequence("AKEGGLHSIGYGMDV"),
                       Topology.GLOBAL, ScoringMode.MASS)
        position_a, position_b = result.start_a, result.start_b
        for step in result.steps:
            assert (step.start_a, step.start_b) == (position_a, position_b)
            position_a += step.len_a
            position_b += step.len_b
        assert (position_a, position_b) == (result.end_a, result.end_b)
        assert sum(step.score for step in result.steps) == pytest.approx(result.score)

    def test_empty_against_sequence(self, make_sequence):
        """Test that an empty sequence gives an all-gap alignment."""
        result = align(make_sequence(""), make_sequence("PEP"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.score == -8.0
        assert result.cigar() == "3D"
        assert [s.kind for s in result.segments] == [SegmentKind.GAP_A]

    def test_empty_semi_global(self, make_sequence):
        """Test that free ends make an empty alignment."""
        result = align(make_sequence(""), make_sequence("PEP"), Topology.SEMI_GLOBAL, ScoringMode.MASS)
        assert result.score == 0.0
        assert result.segments == ()

    def test_both_empty(self, make_sequence):
        """Test the degenerate alignment and the opt-in error."""
        empty = make_sequence("")
        result = align(empty, empty)
        assert result.score == 0.0
        assert result.segments == ()
        with pytest.raises(EmptyInputError):
            align(empty, empty, allow_empty=False)

    def test_aligned_symbols(self, make_sequence):
        """Test the padded text view."""
        result = align(make_sequence("ANGK"), make_sequence("AGGGK"), Topology.GLOBAL, ScoringMode.MASS)
        assert result.aligned_symbols() == ("AN-GK", "AGGGK")
