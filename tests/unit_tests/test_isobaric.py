"""Unit tests for isobaric sequence generation."""

import pytest

from massalign.alphabet import Alphabet
from massalign.exceptions import TruncatedResultWarning
from massalign.isobaric import IsobaricResult, IsobaricSearch, generate_isobaric
from massalign.sequence import parse_sequence
from massalign.tolerance import Tolerance


GAI_ISOBARS = sorted(
    ["GAI", "GIA", "AGI", "AIG", "IGA", "IAG",
     "GAL", "GLA", "AGL", "ALG", "LGA", "LAG",
     "AAV", "AVA", "VAA"]
)
# The reference leads, the rest follow in lexicographic order
GAI_ORDER = ["GAI"] + [s for s in GAI_ISOBARS if s != "GAI"]


class TestSameLength:
    """Test same-length enumeration."""

    def test_gai(self, make_sequence):
        """Test all permutations of the three isobaric compositions."""
        result = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01)).collect()
        assert isinstance(result, IsobaricResult)
        assert result.symbols() == GAI_ORDER
        assert not result.truncated

    def test_reference_included(self, make_sequence):
        """Test that the input and its permutations are generated."""
        symbols = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01)).collect().symbols()
        assert "GAI" in symbols
        assert "AGI" in symbols

    def test_all_within_tolerance(self, make_sequence):
        """Test that every result has the reference mass."""
        reference = make_sequence("GAI")
        target = reference.total_masses()[0]
        for sequence in generate_isobaric(reference, tolerance=Tolerance.da(0.01)):
            assert abs(sequence.total_masses()[0] - target) <= 0.01
            assert len(sequence) == 3

    def test_lazy(self, make_sequence):
        """Test that results can be consumed one at a time."""
        iterator = iter(generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01)))
        assert next(iterator).symbols == "GAI"
        assert next(iterator).symbols == "AAV"

    def test_restartable(self, make_sequence):
        """Test that iterating twice gives the same output."""
        search = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01))
        assert [s.symbols for s in search] == [s.symbols for s in search]

    def test_custom_alphabet(self, make_sequence):
        """Test restricting the residues to build from."""
        alphabet = Alphabet.standard().restricted("AGIV")
        result = generate_isobaric(make_sequence("GAI"), alphabet, tolerance=Tolerance.da(0.01)).collect()
        assert result.symbols() == ["GAI", "AAV", "AGI", "AIG", "AVA", "GIA", "IAG", "IGA", "VAA"]

    def test_reference_not_buildable(self, make_sequence):
        """Test that a reference outside the alphabet is not added."""
        alphabet = Alphabet.standard().restricted("AGV")
        result = generate_isobaric(make_sequence("GAI"), alphabet, tolerance=Tolerance.da(0.01)).collect()
        assert result.symbols() == ["AAV", "AVA", "VAA"]

    def test_default_alphabet_has_no_rare_residues(self, make_sequence):
        """Test that U and O are not used unless asked for."""
        search = generate_isobaric(make_sequence("PEPTIDE"), max_results=200)
        assert len(search.alphabet) == 20
        assert "U" not in search.alphabet.symbols
        assert "O" not in search.alphabet.symbols
        with pytest.warns(TruncatedResultWarning):
            symbols = search.collect().symbols()
        assert len(symbols) == 200
        assert not any("U" in s or "O" in s for s in symbols)

    def test_empty_alphabet(self, make_sequence):
        """Test that an empty alphabet is rejected."""
        with pytest.raises(ValueError):
            IsobaricSearch(make_sequence("GAI"), Alphabet.from_masses({}))


class TestBounds:
    """Test the result bound."""

    def test_truncation(self, make_sequence):
        """Test that hitting the bound warns and flags the result."""
        search = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01), max_results=5)
        with pytest.warns(TruncatedResultWarning):
            result = search.collect()
        assert result.symbols() == GAI_ORDER[:5]
        assert result.truncated
        assert search.truncated

    def test_reference_survives_default_bound(self, make_sequence):
        """Test that a reference sorting late is still returned."""
        search = generate_isobaric(make_sequence("PEPTIDE"))
        with pytest.warns(TruncatedResultWarning):
            result = search.collect()
        assert len(result) == 25
        assert result.truncated
        assert result.symbols()[0] == "PEPTIDE"
        assert result.symbols().count("PEPTIDE") == 1
        # Everything after the reference is in search order
        assert result.symbols()[1:] == sorted(result.symbols()[1:])

    def test_reference_not_repeated(self, make_sequence):
        """Test that the reference is emitted once when the search reaches it."""
        symbols = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01)).collect().symbols()
        assert symbols.count("GAI") == 1
        assert len(symbols) == len(set(symbols))

    def test_exact_bound_is_not_truncated(self, make_sequence):
        """Test that exactly max_results results are not a truncation."""
        result = generate_isobaric(
            make_sequence("GAI"), tolerance=Tolerance.da(0.01), max_results=len(GAI_ISOBARS)
        ).collect()
        assert len(result) == len(GAI_ISOBARS)
        assert not result.truncated

    def test_unbounded(self, make_sequence):
        """Test max_results=None."""
        result = generate_isobaric(make_sequence("GAI"), tolerance=Tolerance.da(0.01), max_results=None).collect()
        assert len(result) == 15

    def test_negative_bound(self, make_sequence):
        """Test that a negative bound is rejected."""
        with pytest.raises(ValueError):
            generate_isobaric(make_sequence("GAI"), max_results=-1)


class TestLengthChange:
    """Test enumeration across lengths."""

    def test_gg(self, make_sequence):
        """Test that N (one residue) and GG have the same mass."""
        search = generate_isobaric(make_sequence("GG"), allow_length_change=True)
        assert search.lengths() == [1, 2]
        assert search.collect().symbols() == ["GG", "N"]

    def test_fixed_length_by_default(self, make_sequence):
        """Test that lengths only change on request."""
        assert generate_isobaric(make_sequence("GG")).collect().symbols() == ["GG"]

    def test_max_length(self, make_sequence):
        """Test capping the length."""
        search = generate_isobaric(make_sequence("GG"), allow_length_change=True, max_length=1)
        assert search.collect().symbols() == ["N"]


class TestModifications:
    """Test fixed and variable modifications."""

    def test_fixed(self, alphabet, library):
        """Test that a fixed modification is applied wherever allowed."""
        reference = parse_sequence("C[Carbamidomethyl]AK", alphabet, library)
        result = generate_isobaric(
            reference,
            fixed_mods=[library.get("Carbamidomethyl")],
            tolerance=Tolerance.da(0.001),
            max_results=None,
        ).collect()
        texts = [str(s) for s in result]
        assert "C[Carbamidomethyl]AK" in texts
        assert "CAK" not in texts
        assert all("C" not in s.symbols or "[Carbamidomethyl]" in str(s) for s in result)

    def test_variable(self, alphabet, library):
        """Test that a variable modification adds modified residues as options."""
        reference = parse_sequence("M[Oxidation]K", alphabet, library)
        result = generate_isobaric(
            reference,
            variable_mods=[library.get("Oxidation")],
            tolerance=Tolerance.da(0.001),
            max_results=None,
        ).collect()
        texts = [str(s) for s in result]
        assert "M[Oxidation]K" in texts
        assert "KM[Oxidation]" in texts
        assert "MK" not in texts

    def test_terminal_modifications_carried(self, alphabet, library):
        """Test that every result keeps the reference's terminal modifications."""
        reference = parse_sequence("[Acetyl]-GAI", alphabet, library)
        result = generate_isobaric(reference, tolerance=Tolerance.da(0.01)).collect()
        assert len(result) == 15
        assert all(s.n_term == reference.n_term for s in result)
        assert str(result[0]) == "[Acetyl]-GAI"
