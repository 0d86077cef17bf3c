"""Physical constants, residue masses and default settings for mass alignment.

This module provides all physical constants, residue masses, element masses
and default tolerance/bound settings used throughout massalign. All values
are sourced from NIST or established proteomics standards.

Key Features
------------
- Monoisotopic and average residue masses for the 20 standard amino acids
  plus selenocysteine (U) and pyrrolysine (O)
- Ambiguous one-letter codes (B, Z, J, X) mapped to their candidate residues
- Monoisotopic and average element masses (including common isotopes)
- Default tolerance, run-length and result-count bounds

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- IUPAC amino acid masses: https://www.unimod.org/masses.html
"""

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Water mass (H2O)
# Calculated: 2*1.007825 + 15.994915 = 18.010564684
H2O_MASS = 18.010564684  # Da

# Average water mass
H2O_AVERAGE_MASS = 18.01528  # Da

# =============================================================================
# Residue Monoisotopic Masses (Da)
# =============================================================================

# Values are monoisotopic masses of residues (not including N/C terminals)
AA_MASSES_DICT = {
    'A': 71.037114,   # Alanine
    'R': 156.101111,  # Arginine
    'N': 114.042927,  # Asparagine
    'D': 115.026943,  # Aspartic acid
    'C': 103.009185,  # Cysteine (unmodified)
    'E': 129.042593,  # Glutamic acid
    'Q': 128.058578,  # Glutamine
    'G': 57.021464,   # Glycine
    'H': 137.058912,  # Histidine
    'I': 113.084064,  # Isoleucine
    'L': 113.084064,  # Leucine
    'K': 128.094963,  # Lysine
    'M': 131.040485,  # Methionine
    'F': 147.068414,  # Phenylalanine
    'P': 97.052764,   # Proline
    'S': 87.032028,   # Serine
    'T': 101.047679,  # Threonine
    'W': 186.079313,  # Tryptophan
    'Y': 163.063329,  # Tyrosine
    'V': 99.068414,   # Valine
}

# Rare genetically encoded residues
AA_MASSES_RARE = {
    'U': 150.953636,  # Selenocysteine
    'O': 237.147727,  # Pyrrolysine
}

# =============================================================================
# Residue Average Masses (Da)
# =============================================================================

AA_AVERAGE_MASSES_DICT = {
    'A': 71.0779,
    'R': 156.1857,
    'N': 114.1026,
    'D': 115.0874,
    'C': 103.1429,
    'E': 129.1140,
    'Q': 128.1292,
    'G': 57.0513,
    'H': 137.1393,
    'I': 113.1576,
    'L': 113.1576,
    'K': 128.1723,
    'M': 131.1961,
    'F': 147.1739,
    'P': 97.1152,
    'S': 87.0773,
    'T': 101.1039,
    'W': 186.2099,
    'Y': 163.1733,
    'V': 99.1311,
}

AA_AVERAGE_MASSES_RARE = {
    'U': 150.0379,
    'O': 237.2982,
}

# =============================================================================
# Ambiguous One-Letter Codes
# =============================================================================

# Each ambiguous code stands for any of the listed residues, so its mass is
# the set of the residue masses (deduplicated, J collapses to one value).
AMBIGUOUS_AA = {
    'B': ('N', 'D'),
    'Z': ('Q', 'E'),
    'J': ('I', 'L'),
    'X': tuple(AA_MASSES_DICT),
}

# =============================================================================
# Element Masses (Da)
# =============================================================================

# Monoisotopic mass of the most abundant isotope
# Isotopes are keyed with their mass number, e.g. '13C'
ELEMENT_MASSES = {
    'H': 1.00782503207,
    'C': 12.0,
    'N': 14.0030740048,
    'O': 15.99491461956,
    'S': 31.97207100,
    'P': 30.97376163,
    'Na': 22.9897692809,
    'K': 38.96370668,
    'Li': 7.01600455,
    'Mg': 23.9850417,
    'Ca': 39.96259098,
    'Fe': 55.9349375,
    'Cu': 62.9295975,
    'Zn': 63.9291422,
    'Se': 79.9165213,
    'F': 18.99840322,
    'Cl': 34.96885268,
    'Br': 78.9183371,
    'I': 126.904473,
    'Si': 27.9769265325,
    '2H': 2.0141017778,
    '13C': 13.0033548378,
    '15N': 15.0001088982,
    '18O': 17.9991610,
}

# Standard atomic weights, isotopes map to their own exact mass
ELEMENT_AVERAGE_MASSES = {
    'H': 1.00794,
    'C': 12.0107,
    'N': 14.0067,
    'O': 15.9994,
    'S': 32.065,
    'P': 30.973762,
    'Na': 22.98976928,
    'K': 39.0983,
    'Li': 6.941,
    'Mg': 24.3050,
    'Ca': 40.078,
    'Fe': 55.845,
    'Cu': 63.546,
    'Zn': 65.38,
    'Se': 78.96,
    'F': 18.9984032,
    'Cl': 35.453,
    'Br': 79.904,
    'I': 126.90447,
    'Si': 28.0855,
    '2H': 2.0141017778,
    '13C': 13.0033548378,
    '15N': 15.0001088982,
    '18O': 17.9991610,
}

# =============================================================================
# Default Settings
# =============================================================================

# Default mass tolerance in PPM
# Used for isobaric sets and for mass equality inside alignments
DEFAULT_TOLERANCE_PPM = 10.0  # ppm

# Masses closer than this are treated as one entry of a mass set
# Bounds the growth of mass sets built from ambiguous residues
DEFAULT_MASS_EPSILON = 1e-6  # Da

# Longest run of residues considered on either side of a mass-matched step
# 1 disables mass runs, larger values cost roughly max_run^2 per DP cell
DEFAULT_MAX_RUN = 4

# Maximal number of isobaric sequences generated before truncation
DEFAULT_ISOBARIC_LIMIT = 25

# Number of hits kept from a database search
DEFAULT_TOP_N = 10

# Maximal number of elemental compositions returned by formula search
DEFAULT_FORMULA_LIMIT = 50


# =============================================================================
# Mass Accuracy Validation
# =============================================================================

def validate_constants():
    """Validate that constants are physically reasonable.

    Raises AssertionError if any constant is out of expected range.
    This is a sanity check to catch copy-paste errors or typos.
    """
    assert 18.00 < H2O_MASS < 18.02, f"H2O_MASS is wrong: {H2O_MASS}"

    # Water from element masses must agree with the tabulated value
    water = 2 * ELEMENT_MASSES['H'] + ELEMENT_MASSES['O']
    assert abs(water - H2O_MASS) < 1e-6, f"H2O_MASS inconsistent: {water}"

    for aa, mass in AA_MASSES_DICT.items():
        assert 50.0 < mass < 250.0, f"AA {aa} mass out of range: {mass}"
        average = AA_AVERAGE_MASSES_DICT[aa]
        assert abs(average - mass) < 0.2, f"AA {aa} average mass inconsistent: {average}"
