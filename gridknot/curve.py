"""
Closed polygonal curves for gridknot.

A PolygonalCurve is an ordered list of 3D vertices; the last vertex is
implicitly joined back to the first. Curves are produced by the curve
extractor and animated by the relaxation engine.
"""

import math
from typing import Iterator, Sequence, Tuple, Union

import numpy as np

from .geometry import (
    Segment,
    cumulative_lengths,
    resample_closed,
    sample_closed,
    segment_lengths,
    subdivide_closed,
)

PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]


class PolygonalCurve:
    """
    A closed polyline in 3-space.

    Vertices are stored as an (n, 3) float array. Segment k joins
    vertex k to vertex k + 1, with segment n - 1 closing the loop.
    """

    def __init__(self, vertices: PointsLike = ()):
        data = np.asarray(vertices, dtype=float)
        if data.size == 0:
            data = np.zeros((0, 3))
        if data.ndim != 2 or data.shape[1] != 3:
            raise ValueError(f"Vertices must have shape (n, 3), got {data.shape}")
        self._vertices = data.copy()

    @property
    def vertices(self) -> np.ndarray:
        """A copy of the vertex array."""
        return self._vertices.copy()

    def set_vertices(self, vertices: PointsLike) -> None:
        """Replace every vertex; the vertex count may not change."""
        data = np.asarray(vertices, dtype=float)
        if data.shape != self._vertices.shape:
            raise ValueError(
                f"Expected {self._vertices.shape} vertices, got {data.shape}"
            )
        self._vertices = data.copy()

    def get_number_of_vertices(self) -> int:
        return len(self._vertices)

    def wrapped_index(self, index: int) -> int:
        """Index modulo the vertex count, so -1 is the last vertex."""
        return index % len(self._vertices)

    def neighboring_indices(self, index: int) -> Tuple[int, int]:
        """(left, right) neighbors of a vertex on the closed loop."""
        return (self.wrapped_index(index - 1), self.wrapped_index(index + 1))

    def segment(self, index: int) -> Segment:
        """The segment from vertex `index` to vertex `index + 1`."""
        return Segment(self._vertices[self.wrapped_index(index)],
                       self._vertices[self.wrapped_index(index + 1)])

    def segments(self) -> Iterator[Segment]:
        for k in range(len(self._vertices)):
            yield self.segment(k)

    def perimeter(self) -> float:
        """Total length including the closing segment."""
        if len(self._vertices) < 2:
            return 0.0
        return float(np.sum(segment_lengths(self._vertices, closed=True)))

    def arc_lengths(self) -> np.ndarray:
        """Arc length at every vertex, plus the full perimeter as last entry."""
        return cumulative_lengths(self._vertices, closed=True)

    def bounding_box(self) -> Tuple[np.ndarray, np.ndarray]:
        """(minimum corner, maximum corner) of the vertices."""
        if len(self._vertices) == 0:
            raise ValueError("An empty curve has no bounding box")
        return self._vertices.min(axis=0), self._vertices.max(axis=0)

    def point_at(self, t: float) -> np.ndarray:
        """
        The point at normalized arc length `t` along the closed loop.

        Both 0.0 and 1.0 give the first vertex.
        """
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"t must lie in [0, 1], got {t}")
        if len(self._vertices) == 0:
            raise ValueError("An empty curve has no points")
        return sample_closed(self._vertices, np.asarray(t))

    def refine(self, spacing: float, keep_existing_points: bool = False) -> 'PolygonalCurve':
        """
        Return a denser copy of this curve.

        By default the curve is resampled uniformly by arc length with
        ceil(perimeter / spacing) points (at least 3), starting at the
        first vertex. With `keep_existing_points` every segment is split
        into equal pieces no longer than `spacing` instead, so corners
        and lifted crossing vertices survive.
        """
        if spacing <= 0.0:
            raise ValueError("spacing must be positive")
        if len(self._vertices) < 2:
            return self.copy()
        if keep_existing_points:
            return PolygonalCurve(subdivide_closed(self._vertices, spacing))
        count = max(3, int(math.ceil(self.perimeter() / spacing - 1e-9)))
        return PolygonalCurve(resample_closed(self._vertices, count))

    def translated(self, offset: Sequence[float]) -> 'PolygonalCurve':
        return PolygonalCurve(self._vertices + np.asarray(offset, dtype=float))

    def copy(self) -> 'PolygonalCurve':
        return PolygonalCurve(self._vertices)

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._vertices.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, PolygonalCurve):
            return NotImplemented
        return (self._vertices.shape == other._vertices.shape
                and bool(np.array_equal(self._vertices, other._vertices)))

    __hash__ = None

    def __repr__(self) -> str:
        return f"PolygonalCurve(vertices={len(self._vertices)}, perimeter={self.perimeter():.3f})"
