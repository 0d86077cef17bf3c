"""Pytest configuration for massalign tests.

Common fixtures: alphabets, libraries and a few sequences that are used by
several test modules.
"""

import pytest

from massalign.alphabet import Alphabet
from massalign.modifications import default_library
from massalign.sequence import Sequence


@pytest.fixture(scope="session")
def alphabet():
    """Standard monoisotopic alphabet with the ambiguous symbols."""
    return Alphabet.standard()


@pytest.fixture(scope="session")
def library():
    """Default modification library."""
    return default_library()


@pytest.fixture
def make_sequence(alphabet):
    """Build an unmodified sequence from a string."""
    def _make(symbols, name=None):
        return Sequence.from_symbols(symbols, alphabet, name=name)
    return _make


@pytest.fixture
def known_peptide_masses():
    """Known neutral peptide masses (terminal H2O included).

    Sums of the monoisotopic residue masses plus water.
    """
    return {
        "PEPTIDE": 799.359965,
        "YGGFMTSEK": 1018.442984,
        "TESTPEPTIDER": 1373.631055,
    }


@pytest.fixture
def antibody_fragments():
    """Heavy chain variable region fragments used by search tests."""
    return [
        ("IGHV3-23", "EVQLLESGGGLVQPGGSLRLSCAASGFTFSSYAMS"),
        ("IGHV1-2", "QVQLVQSGAEVKKPGASVKVSCKASGYTFTGYYMH"),
        ("IGHV4-34", "QVQLQQWGAGLLKPSETLSLTCAVYGGSFSGYYWS"),
    ]
