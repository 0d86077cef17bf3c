"""Mass-tolerant search in modification libraries, elemental compositions and gene databases."""

from .formula_search import find_formulas
from .gene_search import AlleleSelection, ChainType, GeneDatabase, GeneRecord, GeneType, find_genes
from .modification_search import find_modifications

__all__ = [
    "find_modifications",
    "find_formulas",
    "find_genes",
    "AlleleSelection",
    "ChainType",
    "GeneDatabase",
    "GeneRecord",
    "GeneType",
]
