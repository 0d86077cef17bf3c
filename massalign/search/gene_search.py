"""Immune-gene records and lookup by name or mass.

Loading IMGT data is left to the caller; this module only holds already
parsed germline records, selects subsets of them (species, chains, gene
types, alleles) and finds records by name or by mass. ``as_sequences()``
feeds a selection into database search.

Examples
--------
>>> alphabet = Alphabet.standard()
>>> record = GeneRecord.from_imgt_name(
...     "IGHV3-23*01", "Homo sapiens", Sequence.from_symbols("EVQLLESGGG", alphabet))
>>> record.chain, record.gene_type
(<ChainType.HEAVY: 'H'>, <GeneType.V: 'V'>)
>>> database = GeneDatabase([record])
>>> find_genes("ighv3", database).identifiers()
('IGHV3-23*01',)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from ..hits import SearchHit, SearchResult
from ..mass_index import MassIndex
from ..modifications import MASS_SHIFT_PATTERN
from ..sequence import Sequence
from ..tolerance import Tolerance, as_tolerance

logger = logging.getLogger(__name__)

_IMGT_NAME = re.compile(r"^IG([HKLI])([VDJCAEGMOT])([^*]*)(?:\*(\d+))?$", re.IGNORECASE)


class ChainType(Enum):
    HEAVY = "H"
    KAPPA = "K"
    LAMBDA = "L"
    IOTA = "I"


class GeneType(Enum):
    """Gene segment; C subtypes (A, E, G, M, O, T) are the heavy constant genes."""
    V = "V"
    D = "D"
    J = "J"
    C = "C"
    A = "A"
    E = "E"
    G = "G"
    M = "M"
    O = "O"
    T = "T"


class AlleleSelection(Enum):
    FIRST = "first"  # Lowest allele number of every gene
    ALL = "all"


@dataclass(frozen=True)
class GeneRecord:
    """One germline allele.

    Attributes
    ----------
    name : str
        IMGT gene name without allele, e.g. ``IGHV3-23``
    allele : int
        Allele number (``*01`` is 1)
    species : str
    chain : ChainType
    gene_type : GeneType
    sequence : Sequence
    """

    name: str
    allele: int
    species: str
    chain: ChainType
    gene_type: GeneType
    sequence: Sequence

    @classmethod
    def from_imgt_name(cls, name: str, species: str, sequence: Sequence) -> 'GeneRecord':
        """Derive chain, gene type and allele from an IMGT name like ``IGHV3-23*01``."""
        match = _IMGT_NAME.match(name.strip())
        if match is None:
            raise ValueError(f"Not an IMGT gene name: {name!r}")
        chain, gene_type, _, allele = match.groups()
        gene = name.strip().split("*")[0].upper()
        return cls(
            gene,
            int(allele) if allele is not None else 1,
            species,
            ChainType(chain.upper()),
            GeneType(gene_type.upper()),
            sequence,
        )

    @property
    def full_name(self) -> str:
        return f"{self.name}*{self.allele:02d}"


class GeneDatabase:
    """Immutable, ordered collection of gene records.

    Records keep their input order, which is also the tie-break order of
    database search over ``as_sequences()``.
    """

    def __init__(self, records: Iterable[GeneRecord]):
        self._records: Tuple[GeneRecord, ...] = tuple(records)
        owners, masses = [], []
        for index, record in enumerate(self._records):
            for mass in record.sequence.total_masses():
                owners.append(index)
                masses.append(mass)
        self._mass_owners = np.array(owners, dtype=np.int64)
        self._mass_index = MassIndex(masses)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __getitem__(self, index: int) -> GeneRecord:
        return self._records[index]

    def select(
        self,
        species: Optional[str] = None,
        chains: Optional[Iterable[Union[ChainType, str]]] = None,
        gene_types: Optional[Iterable[Union[GeneType, str]]] = None,
        allele: Union[AlleleSelection, str] = AlleleSelection.FIRST,
    ) -> 'GeneDatabase':
        """Subset by species (case-insensitive), chains, gene types and allele policy."""
        chain_set = {ChainType(c.upper()) if isinstance(c, str) else c for c in chains} if chains else None
        type_set = {GeneType(g.upper()) if isinstance(g, str) else g for g in gene_types} if gene_types else None
        allele = AlleleSelection(allele.lower()) if isinstance(allele, str) else allele

        selected = [
            r for r in self._records
            if (species is None or r.species.lower() == species.lower())
            and (chain_set is None or r.chain in chain_set)
            and (type_set is None or r.gene_type in type_set)
        ]
        if allele == AlleleSelection.FIRST:
            first: Dict[Tuple[str, str], GeneRecord] = {}
            for record in selected:
                key = (record.species, record.name)
                if key not in first or record.allele < first[key].allele:
                    first[key] = record
            selected = [r for r in selected if first[(r.species, r.name)] is r]
        return GeneDatabase(selected)

    def get(self, name: str, species: Optional[str] = None) -> GeneRecord:
        """Record by IMGT name, with (``IGHV3-23*02``) or without allele (lowest allele).

        Raises
        ------
        KeyError
            If no record matches
        """
        gene, _, allele = name.strip().upper().partition("*")
        candidates = [
            r for r in self._records
            if r.name.upper() == gene
            and (not allele or r.allele == int(allele))
            and (species is None or r.species.lower() == species.lower())
        ]
        if not candidates:
            raise KeyError(f"Unknown gene: {name}")
        return min(candidates, key=lambda r: r.allele)

    def as_sequences(self) -> List[Sequence]:
        """Record sequences named by their full IMGT name."""
        return [r.sequence.with_name(r.full_name) for r in self._records]

    def search_mass(self, mass: float, tolerance: Tolerance) -> Dict[int, float]:
        """Record index -> closest ``record mass - mass`` for records within tolerance."""
        closest: Dict[int, float] = {}
        for position in self._mass_index.search(mass, tolerance):
            owner = int(self._mass_owners[position])
            if owner not in closest:
                # Ambiguous sequences have several masses, keep the closest one
                closest[owner] = min(
                    (m - mass for m in self._records[owner].sequence.total_masses()), key=abs
                )
        return closest


def find_genes(
    query: Union[str, float],
    database: GeneDatabase,
    tolerance: Union[Tolerance, float, str, None] = None,
) -> SearchResult:
    """Find gene records by name or mass.

    Parameters
    ----------
    query : str or float
        A mass, or an IMGT name (case-insensitive exact match on the full or
        gene name, otherwise prefix match)
    database : GeneDatabase
    tolerance : Tolerance, float or str, optional
        Mass tolerance, floats are Dalton (default: 10 ppm)

    Returns
    -------
    SearchResult
        Mass hits by distance then name, name hits alphabetically
    """
    tolerance = as_tolerance(tolerance)
    if isinstance(query, (int, float)) or MASS_SHIFT_PATTERN.match(query):
        mass = float(query)
        hits = [
            SearchHit(
                identifier=database[index].full_name,
                index=index,
                score=-abs(delta),
                mass_delta=delta,
                item=database[index],
            )
            for index, delta in database.search_mass(mass, tolerance).items()
        ]
        hits.sort(key=lambda hit: (abs(hit.mass_delta), hit.identifier))
    else:
        text = query.strip().upper()
        exact = [
            i for i, r in enumerate(database)
            if r.full_name.upper() == text or r.name.upper() == text
        ]
        matches = exact or [i for i, r in enumerate(database) if r.full_name.upper().startswith(text)]
        hits = [
            SearchHit(identifier=database[i].full_name, index=i, score=0.0, item=database[i])
            for i in matches
        ]
        hits.sort(key=lambda hit: (hit.identifier, hit.index))

    logger.debug(f"Gene search {query!r}: {len(hits)} hits")
    return SearchResult(tuple(hits))
