"""
Position-specific exceptions.

Parse failures and geodesic non-convergence are deliberately absent: the
former is reported through ``None`` / ``ParseResult.success`` and the latter
through the ``converged`` flag on solver results.
"""


class PositionError(Exception):
    """Base exception for position errors"""
    pass


class InvalidRange(PositionError, ValueError):
    """A coordinate, coordinate sub-part or datum parameter is outside its domain"""
    pass


class PreconditionError(PositionError):
    """An explicit operation requires a derived representation that is not loaded"""
    pass
