"""
Geometry helpers for gridknot.

Closest points between 3D line segments (used by the relaxation
engine's proximity guard) and arc-length utilities for closed
polylines (used by PolygonalCurve).

All functions work on numpy arrays; the segment routines broadcast over
leading dimensions so one call can test a segment against many others.
"""

from dataclasses import dataclass

import numpy as np

# Below this value a parametric numerator is treated as zero.
_SMALL = 1e-12


def closest_vectors(a0: np.ndarray, a1: np.ndarray,
                    b0: np.ndarray, b1: np.ndarray,
                    parallel_tol: float = 1e-9) -> np.ndarray:
    """
    Vector between the closest points of segments [a0, a1] and [b0, b1].

    The vector points from the closest point on the second segment to the
    closest point on the first one, so its norm is the segment distance.
    Inputs have shape (..., 3) and broadcast against each other.

    The closest points of the supporting lines are clamped to the
    segments; when the lines are (nearly) parallel the first parameter is
    fixed at 0 and the second one is solved for.
    """
    a0, a1, b0, b1 = np.broadcast_arrays(*(np.asarray(p, dtype=float) for p in (a0, a1, b0, b1)))
    u = a1 - a0
    v = b1 - b0
    w = a0 - b0
    a = np.einsum("...i,...i->...", u, u)
    b = np.einsum("...i,...i->...", u, v)
    c = np.einsum("...i,...i->...", v, v)
    d = np.einsum("...i,...i->...", u, w)
    e = np.einsum("...i,...i->...", v, w)
    denom = a * c - b * b

    parallel = denom <= parallel_tol * np.maximum(a * c, _SMALL)

    # Closest points of the infinite lines (or s = 0 when parallel)
    s_num = np.where(parallel, 0.0, b * e - c * d)
    s_den = np.where(parallel, 1.0, denom)
    t_num = np.where(parallel, e, a * e - b * d)
    t_den = np.where(parallel, c, denom)

    # Clamp s to [0, 1]; the matching t edge becomes visible
    low_s = ~parallel & (s_num < 0.0)
    high_s = ~parallel & (s_num > s_den)
    s_num = np.where(low_s, 0.0, np.where(high_s, s_den, s_num))
    t_num = np.where(low_s, e, np.where(high_s, e + b, t_num))
    t_den = np.where(low_s | high_s, c, t_den)

    # Clamp t to [0, 1] and recompute s for that edge
    low_t = t_num < 0.0
    high_t = ~low_t & (t_num > t_den)
    s_edge = np.where(low_t, -d, -d + b)
    edge = low_t | high_t
    t_num = np.where(low_t, 0.0, np.where(high_t, t_den, t_num))
    s_num = np.where(edge & (s_edge < 0.0), 0.0,
                     np.where(edge & (s_edge > a), s_den,
                              np.where(edge, s_edge, s_num)))
    s_den = np.where(edge & (s_edge >= 0.0) & (s_edge <= a), a, s_den)

    sc = np.where(np.abs(s_num) < _SMALL, 0.0, s_num / np.where(s_den == 0.0, 1.0, s_den))
    tc = np.where(np.abs(t_num) < _SMALL, 0.0, t_num / np.where(t_den == 0.0, 1.0, t_den))

    return w + sc[..., None] * u - tc[..., None] * v


def segment_distances(a0: np.ndarray, a1: np.ndarray,
                      b0: np.ndarray, b1: np.ndarray) -> np.ndarray:
    """Shortest distance between segments [a0, a1] and [b0, b1] (broadcasting)."""
    return np.linalg.norm(closest_vectors(a0, a1, b0, b1), axis=-1)


@dataclass
class Segment:
    """
    A line segment in 3-space.

    Attributes:
        start: First endpoint
        end: Second endpoint
    """
    start: np.ndarray
    end: np.ndarray

    def __post_init__(self):
        self.start = np.asarray(self.start, dtype=float)
        self.end = np.asarray(self.end, dtype=float)

    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    def midpoint(self) -> np.ndarray:
        return (self.start + self.end) * 0.5

    def point_at(self, t: float) -> np.ndarray:
        """Linear interpolation: 0.0 is `start`, 1.0 is `end`."""
        return self.start + (self.end - self.start) * t

    def shortest_vector_to(self, other: 'Segment') -> np.ndarray:
        """Vector between the closest points of this segment and `other`."""
        return closest_vectors(self.start, self.end, other.start, other.end)

    def distance_to(self, other: 'Segment') -> float:
        return float(np.linalg.norm(self.shortest_vector_to(other)))


def segment_lengths(points: np.ndarray, closed: bool = True) -> np.ndarray:
    """Lengths of the polyline's segments (including the closing one if `closed`)."""
    points = np.asarray(points, dtype=float)
    ends = np.roll(points, -1, axis=0) if closed else points[1:]
    starts = points if closed else points[:-1]
    return np.linalg.norm(ends - starts, axis=-1)


def cumulative_lengths(points: np.ndarray, closed: bool = True) -> np.ndarray:
    """Arc length at every vertex, starting at 0 (one extra entry when closed)."""
    return np.concatenate(([0.0], np.cumsum(segment_lengths(points, closed))))


def sample_closed(points: np.ndarray, params: np.ndarray) -> np.ndarray:
    """
    Points at normalized arc-length parameters along a closed polyline.

    A parameter of 0 (or 1) is the first vertex; 0.5 is half-way around
    the loop, measured along the closing segment too.
    """
    points = np.asarray(points, dtype=float)
    params = np.asarray(params, dtype=float)
    cumulative = cumulative_lengths(points, closed=True)
    total = cumulative[-1]
    if total == 0.0:
        return np.repeat(points[:1], params.size, axis=0).reshape(params.shape + (points.shape[1],))
    loop = np.vstack([points, points[:1]])
    target = params * total
    seg = np.clip(np.searchsorted(cumulative, target, side="right") - 1, 0, len(points) - 1)
    seg_len = cumulative[seg + 1] - cumulative[seg]
    local = np.where(seg_len > 0.0, (target - cumulative[seg]) / np.where(seg_len > 0.0, seg_len, 1.0), 0.0)
    return loop[seg] + (loop[seg + 1] - loop[seg]) * local[..., None]


def resample_closed(points: np.ndarray, count: int) -> np.ndarray:
    """`count` points evenly spaced by arc length, starting at the first vertex."""
    if count < 1:
        raise ValueError("count must be positive")
    return sample_closed(points, np.arange(count) / count)


def subdivide_closed(points: np.ndarray, spacing: float) -> np.ndarray:
    """
    Split every segment of a closed polyline into equal parts no longer
    than `spacing`, keeping all original vertices.
    """
    points = np.asarray(points, dtype=float)
    lengths = segment_lengths(points, closed=True)
    ends = np.roll(points, -1, axis=0)
    pieces = []
    for start, end, length in zip(points, ends, lengths):
        parts = max(1, int(np.ceil(length / spacing - 1e-9)))
        t = np.arange(parts)[:, None] / parts
        pieces.append(start + (end - start) * t)
    return np.vstack(pieces)
