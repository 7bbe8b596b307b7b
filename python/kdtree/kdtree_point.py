from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt


@runtime_checkable
class KdPoint(Protocol):
    """Capability every value stored in the k-d tree has to provide."""

    def dimension_count(self) -> int:
        ...

    def value(self, axis: int) -> float:
        ...

    def distance_to(self, other: KdPoint) -> float:
        ...

    def plane_distance(self, value: float, axis: int) -> float:
        """Distance contributed by a single axis against a coordinate value.

        Must never be larger than distance_to for any point on the other side
        of the plane, otherwise nearest neighbor search prunes valid branches.
        """
        ...

    def equal_to(self, other: KdPoint) -> bool:
        ...


@dataclass(eq=False)
class EuclideanPoint:
    """Point backed by a numpy array, using squared euclidean distance.

    Squared distances keep distance_to and plane_distance consistent without
    taking square roots.
    """

    coords: npt.NDArray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        self.coords = np.asarray(self.coords, dtype=np.float64).reshape(-1)
        # NaN never equals itself, so such a point couldn't be coalesced or found.
        if not np.all(np.isfinite(self.coords)):
            raise ValueError(f"Point coordinates must be finite, got {self.coords}")

    @staticmethod
    def from_array(values) -> EuclideanPoint:
        return EuclideanPoint(np.array(values, dtype=np.float64))

    def dimension_count(self) -> int:
        return self.coords.shape[0]

    def value(self, axis: int) -> float:
        return float(self.coords[axis])

    def distance_to(self, other: KdPoint) -> float:
        if isinstance(other, EuclideanPoint):
            delta = self.coords - other.coords
        else:
            delta = self.coords - np.array(
                [other.value(i) for i in range(other.dimension_count())]
            )
        return float(np.dot(delta, delta))

    def plane_distance(self, value: float, axis: int) -> float:
        delta = self.coords[axis] - value
        return float(delta * delta)

    def equal_to(self, other: KdPoint) -> bool:
        if self.dimension_count() != other.dimension_count():
            return False
        if isinstance(other, EuclideanPoint):
            return bool(np.array_equal(self.coords, other.coords))
        return all(
            self.value(i) == other.value(i) for i in range(self.dimension_count())
        )

    def __str__(self) -> str:
        # e.g. [7 2]
        return "[" + " ".join(f"{v:g}" for v in self.coords) + "]"


def points_from_array(points) -> list[EuclideanPoint]:
    """Convert an (n, k) array-like into a list of points."""
    # Accept any list type by converting NDArray.
    points_array = np.array(points, dtype=np.float64)
    if points_array.size == 0:
        return []

    if points_array.ndim != 2:
        raise ValueError(
            f"Expected a two dimensional array of points, got shape {points_array.shape}"
        )

    return [EuclideanPoint(row) for row in points_array]
