from __future__ import annotations


class KdTreeError(Exception):
    """Base class for errors raised by the k-d tree."""


class EmptyTreeError(KdTreeError):
    """Raised when an operation needs at least one node but the tree is absent."""


class DimensionMismatchError(KdTreeError, ValueError):
    """Raised when a point's dimension count differs from the tree's."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Point has {actual} dimensions, but {expected} dimensions are expected"
        )
        self.expected = expected
        self.actual = actual
