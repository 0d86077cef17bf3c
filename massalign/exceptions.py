"""Error and warning types raised by massalign.

All errors derive from ``ValueError`` so callers that already guard numeric
input with ``except ValueError`` keep working.
"""


class MassAlignError(ValueError):
    """Base class for all massalign errors."""


class UnknownSymbolError(MassAlignError):
    """A sequence contains a symbol absent from the active alphabet."""

    def __init__(self, symbol: str, position: int = -1):
        self.symbol = symbol
        self.position = position
        if position >= 0:
            message = f"Unknown symbol '{symbol}' at position {position + 1}"
        else:
            message = f"Unknown symbol '{symbol}'"
        super().__init__(message)


class InvalidToleranceError(MassAlignError):
    """A tolerance is negative, not finite, or has an unknown unit."""


class EmptyInputError(MassAlignError):
    """Both sequences are empty and empty input was explicitly forbidden."""


class TruncatedResultWarning(UserWarning):
    """A bounded search stopped before it was exhaustive."""
