"""Unit tests for one-vs-many database alignment."""

import pytest

from massalign.align import ScoringMode, SegmentKind, Topology, search


@pytest.fixture
def database(make_sequence):
    """Small database with one exact, one partial and one unrelated entry."""
    return [
        make_sequence("AAAAA", name="unrelated"),
        make_sequence("PEPTIDE", name="exact"),
        make_sequence("PEPT", name="partial"),
    ]


class TestSearch:
    """Test ranking and truncation."""

    def test_ranking(self, make_sequence, database):
        """Test that hits come by descending score."""
        result = search(make_sequence("PEPTIDE"), database, Topology.LOCAL, ScoringMode.IDENTITY)
        assert result.identifiers() == ("exact", "partial", "unrelated")
        assert [hit.score for hit in result] == [28.0, 16.0, 0.0]
        assert not result.truncated

    def test_top_n(self, make_sequence, database):
        """Test keeping the best entries and flagging the cut."""
        result = search(make_sequence("PEPTIDE"), database, Topology.LOCAL, ScoringMode.IDENTITY, top_n=2)
        assert result.identifiers() == ("exact", "partial")
        assert result.truncated

    def test_top_n_none_keeps_all(self, make_sequence, database):
        """Test an unbounded search."""
        result = search(make_sequence("PEPTIDE"), database, top_n=None)
        assert len(result) == 3
        assert not result.truncated

    def test_top_n_zero(self, make_sequence, database):
        """Test that zero hits kept is a truncated empty result."""
        result = search(make_sequence("PEPTIDE"), database, top_n=0)
        assert len(result) == 0
        assert result.truncated

    def test_negative_top_n(self, make_sequence, database):
        """Test that a negative bound is rejected."""
        with pytest.raises(ValueError):
            search(make_sequence("PEPTIDE"), database, top_n=-1)

    def test_hits_carry_alignments(self, make_sequence, database):
        """Test that every hit holds its alignment and entry."""
        result = search(make_sequence("PEPTIDE"), database, Topology.LOCAL, ScoringMode.IDENTITY)
        best = result.best
        assert best.index == 1
        assert best.item is database[1]
        assert best.alignment.cigar() == "7="
        assert best.alignment.seq_b is database[1]

    def test_empty_database(self, make_sequence):
        """Test that an empty database gives an empty result."""
        result = search(make_sequence("PEPTIDE"), [])
        assert len(result) == 0
        assert not result.truncated


class TestOrdering:
    """Test deterministic tie-breaking."""

    def test_ties_in_database_order(self, make_sequence):
        """Test that equal scores keep input order."""
        database = [
            make_sequence("WWWW", name="other"),
            make_sequence("PEPT", name="first"),
            make_sequence("PEPT", name="second"),
        ]
        result = search(make_sequence("PEPTIDE"), database, Topology.LOCAL, ScoringMode.IDENTITY)
        assert result.identifiers()[:2] == ("first", "second")

    def test_reordering_database(self, make_sequence, database):
        """Test that reordering the database only changes tie order."""
        query = make_sequence("PEPTIDE")
        forward = search(query, database, Topology.LOCAL, ScoringMode.IDENTITY)
        backward = search(query, list(reversed(database)), Topology.LOCAL, ScoringMode.IDENTITY)
        assert forward.identifiers() == backward.identifiers()
        assert [hit.score for hit in forward] == [hit.score for hit in backward]

    def test_unnamed_entries(self, make_sequence):
        """Test that unnamed entries are identified by index."""
        database = [make_sequence("WWW"), make_sequence("PEPTIDE")]
        result = search(make_sequence("PEPTIDE"), database, Topology.LOCAL, ScoringMode.IDENTITY)
        assert result.identifiers() == ("1", "0")

    def test_workers_do_not_change_result(self, make_sequence, antibody_fragments):
        """Test that threaded and inline search agree."""
        database = [make_sequence(seq, name=name) for name, seq in antibody_fragments] * 3
        query = make_sequence("GFTFSSYAMS")
        inline = search(query, database, n_workers=1, top_n=None)
        threaded = search(query, database, n_workers=4, top_n=None)
        assert inline.identifiers() == threaded.identifiers()
        assert [hit.score for hit in inline] == [hit.score for hit in threaded]
        assert [hit.index for hit in inline] == [hit.index for hit in threaded]


class TestAntibodySearch:
    """Test searching a fragment against germline-like sequences."""

    def test_best_gene(self, make_sequence, antibody_fragments):
        """Test that an exact fragment finds its gene first."""
        database = [make_sequence(seq, name=name) for name, seq in antibody_fragments]
        result = search(make_sequence("GFTFSSYAMS"), database, Topology.LOCAL, ScoringMode.MASS, top_n=1)
        assert result.identifiers() == ("IGHV3-23",)
        assert result.best.score >= 40.0
        assert result.truncated

    def test_isobaric_fragment(self, make_sequence, antibody_fragments):
        """Test that an I/L swap still ranks the right gene first in mass mode."""
        database = [make_sequence(seq, name=name) for name, seq in antibody_fragments]
        result = search(make_sequence("EVQILESGGG"), database, Topology.LOCAL, ScoringMode.MASS)
        assert result.best.identifier == "IGHV3-23"
        assert result.best.score >= 9 * 4.0 + 5.0
        assert result.best.alignment.segments_of(SegmentKind.MASS_MATCH)
