"""Mass tolerance in absolute (Da) or relative (ppm) units.

Comparison is symmetric: for ppm tolerances the allowed difference is taken
relative to the larger of the two absolute masses, so ``within(a, b)`` and
``within(b, a)`` always agree. This keeps alignment scores independent of the
order of the two sequences.

Examples
--------
>>> tol = Tolerance.parse("10ppm")
>>> tol.within(1000.0, 1000.009)
True
>>> Tolerance.da(0.5).bounds(100.0)
(99.5, 100.5)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .constants import DEFAULT_TOLERANCE_PPM
from .exceptions import InvalidToleranceError

DA = "da"
PPM = "ppm"

_TOLERANCE_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*(ppm|da)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Tolerance:
    """Allowed mass difference.

    Attributes
    ----------
    value : float
        Non-negative, finite tolerance value
    unit : str
        ``"da"`` for absolute or ``"ppm"`` for parts per million
    """

    value: float = DEFAULT_TOLERANCE_PPM
    unit: str = PPM

    def __post_init__(self):
        if self.unit not in (DA, PPM):
            raise InvalidToleranceError(f"Unknown tolerance unit: {self.unit!r}, use 'da' or 'ppm'")
        if not math.isfinite(self.value) or self.value < 0:
            raise InvalidToleranceError(f"Tolerance must be finite and non-negative, got {self.value}")

    @classmethod
    def ppm(cls, value: float) -> 'Tolerance':
        return cls(float(value), PPM)

    @classmethod
    def da(cls, value: float) -> 'Tolerance':
        return cls(float(value), DA)

    @classmethod
    def parse(cls, text: str) -> 'Tolerance':
        """Parse ``"<x>ppm"`` or ``"<x>da"`` (case-insensitive)."""
        match = _TOLERANCE_PATTERN.match(text)
        if match is None:
            raise InvalidToleranceError(f"Invalid tolerance: {text!r}, use e.g. '10ppm' or '0.02da'")
        return cls(float(match.group(1)), match.group(2).lower())

    @property
    def is_ppm(self) -> bool:
        return self.unit == PPM

    def allowed_difference(self, a: float, b: float) -> float:
        """Largest difference between ``a`` and ``b`` that is still equal."""
        if self.unit == DA:
            return self.value
        return self.value * 1e-6 * max(abs(a), abs(b))

    def within(self, a: float, b: float) -> bool:
        return abs(a - b) <= self.allowed_difference(a, b)

    def bounds(self, reference: float) -> Tuple[float, float]:
        """All masses that are ``within`` tolerance of ``reference``.

        For ppm the window is asymmetric because the allowed difference
        scales with the larger of the two masses.
        """
        if self.unit == DA:
            return (reference - self.value, reference + self.value)
        fraction = self.value * 1e-6
        if fraction >= 1.0:
            return (-math.inf, math.inf)
        low, high = reference * (1.0 - fraction), reference / (1.0 - fraction)
        return (min(low, high), max(low, high))

    def __str__(self) -> str:
        return f"{self.value:g} {'ppm' if self.is_ppm else 'Da'}"


def as_tolerance(value: Optional[Union[Tolerance, float, str]]) -> Tolerance:
    """Coerce user input to a ``Tolerance``.

    None gives the default (10 ppm), numbers are Dalton, strings are parsed
    with ``Tolerance.parse``.
    """
    if value is None:
        return Tolerance()
    if isinstance(value, Tolerance):
        return value
    if isinstance(value, str):
        return Tolerance.parse(value)
    return Tolerance.da(value)
