"""Isobaric sequence generation."""

from .generator import IsobaricResult, IsobaricSearch, generate_isobaric

__all__ = [
    "IsobaricResult",
    "IsobaricSearch",
    "generate_isobaric",
]
