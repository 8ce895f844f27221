"""
Knot relaxation for gridknot.

A Knot treats a closed polyline as a chain of beads: every bead is
pulled towards its two neighbors by a spring, pushed away from every
other bead by an electrostatic-like force and, optionally, pulled back
towards its starting (anchor) position. Each call to step() advances
the simulation by one tick; a bead whose move would bring its segments
too close to a non-adjacent segment is held in place for that tick, so
strands never pass through each other and the knot type is preserved.
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Optional

import numpy as np

from .curve import PolygonalCurve
from .geometry import segment_distances

logger = logging.getLogger(__name__)


@dataclass
class SimulationParams:
    """
    Tunable constants of the relaxation.

    Attributes:
        starting_length: Typical segment length; sets the default distances
        d_max: Largest distance a bead may travel per step
        d_close: Smallest allowed distance between non-adjacent segments
        mass: Mass of every bead
        damping: Velocity multiplier applied every step
        anchor_weight: Strength of the pull towards the anchor curve
        beta: Spring exponent (force grows as r^(1 + beta))
        h: Spring scale
        alpha: Repulsion exponent (force falls as r^-(2 + alpha))
        k: Repulsion scale
        epsilon: Distances below this contribute no force
        use_anchors: Whether the anchor force is applied at all
    """
    starting_length: float = 0.25
    d_max: Optional[float] = None
    d_close: Optional[float] = None
    mass: float = 1.0
    damping: float = 0.25
    anchor_weight: float = 0.01
    beta: float = 1.0
    h: float = 1.0
    alpha: float = 4.0
    k: float = 1.0
    epsilon: float = 0.001
    use_anchors: bool = True

    def __post_init__(self):
        # Distances left to default are re-derived when starting_length changes
        self._derived = {name for name in ("d_max", "d_close") if getattr(self, name) is None}
        if self.d_max is None:
            self.d_max = self.starting_length * 0.025
        if self.d_close is None:
            self.d_close = self.starting_length * 0.25
        self.validate()

    def validate(self) -> None:
        """Raise ValueError if any constant is out of range."""
        for name in ("starting_length", "d_max", "mass", "epsilon"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be positive")
        for name in ("d_close", "anchor_weight", "h", "k"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must not be negative")
        if not 0.0 <= self.damping <= 1.0:
            raise ValueError("damping must lie in [0, 1]")

    def with_overrides(self, **changes) -> 'SimulationParams':
        """
        A validated copy with some fields changed.

        d_max and d_close that were never set explicitly follow a new
        starting_length.
        """
        for name in self._derived:
            changes.setdefault(name, None)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class Bead:
    """
    A point mass standing for one vertex of the polyline.

    Attributes:
        position: Current position
        index: Index of the matching polyline vertex
        neighbor_l: Index of the left neighbor on the closed loop
        neighbor_r: Index of the right neighbor on the closed loop
        prev_position: Position before the last step
        velocity: Current velocity
        acceleration: Accumulated acceleration (cleared every step)
        locked: Whether the proximity guard held this bead in the last step
    """
    position: np.ndarray
    index: int
    neighbor_l: int
    neighbor_r: int
    prev_position: Optional[np.ndarray] = None
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))
    locked: bool = False

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).copy()
        if self.prev_position is None:
            self.prev_position = self.position.copy()

    def are_neighbors(self, other: 'Bead') -> bool:
        return self.index in (other.neighbor_l, other.neighbor_r)

    def integrate(self, force: np.ndarray, params: SimulationParams) -> np.ndarray:
        """
        Fold `force` into the velocity and return the clamped displacement.

        The position itself is not changed here.
        """
        self.acceleration = self.acceleration + force / params.mass
        self.velocity = (self.velocity + self.acceleration) * params.damping
        self.acceleration = np.zeros(3)
        speed = float(np.linalg.norm(self.velocity))
        if speed > params.d_max:
            return self.velocity / speed * params.d_max
        return self.velocity.copy()


class Knot:
    """
    A closed curve in 3-space treated as a bead-spring system.

    The curve passed in becomes both the rope (which moves) and the
    anchors (the rest shape, never modified). Rope, anchors and beads
    share vertex indices.

    Args:
        curve: The polyline to relax (at least 3 vertices)
        params: Simulation constants; defaults are used if omitted
    """

    def __init__(self, curve: PolygonalCurve, params: Optional[SimulationParams] = None):
        n = curve.get_number_of_vertices()
        if n < 3:
            raise ValueError("A knot needs at least 3 vertices")
        self.params = params if params is not None else SimulationParams()
        self._rope = curve.copy()
        self._anchors = curve.copy()
        self.beads: List[Bead] = []
        for i, position in enumerate(self._anchors.vertices):
            left, right = self._anchors.neighboring_indices(i)
            self.beads.append(Bead(position=position, index=i, neighbor_l=left, neighbor_r=right))

        self._neighbors = np.zeros((n, n), dtype=bool)
        for bead in self.beads:
            self._neighbors[bead.index, [bead.neighbor_l, bead.neighbor_r]] = True

        # Segments checked by the proximity guard: all except the two
        # segments of the bead and the ones touching them.
        self._guard_segments = []
        for i in range(n):
            skip = {(i - 2) % n, (i - 1) % n, i, (i + 1) % n}
            self._guard_segments.append(np.array([s for s in range(n) if s not in skip], dtype=int))

        self.last_displacement = 0.0
        self._check_consistency()
        logger.debug("Constructed knot with %d beads", n)

    def _check_consistency(self) -> None:
        sizes = (len(self._rope), len(self._anchors), len(self.beads))
        if len(set(sizes)) != 1:
            raise RuntimeError(f"Rope, anchors and beads are out of step: {sizes}")

    # Accessors

    def get_rope(self) -> PolygonalCurve:
        """A copy of the current (relaxing) curve."""
        return self._rope.copy()

    def get_anchors(self) -> PolygonalCurve:
        """A copy of the rest shape."""
        return self._anchors.copy()

    @property
    def locked(self) -> List[bool]:
        """Per-bead flags: True where the proximity guard held the bead."""
        return [bead.locked for bead in self.beads]

    @property
    def locked_count(self) -> int:
        return sum(1 for bead in self.beads if bead.locked)

    def positions(self) -> np.ndarray:
        return np.array([bead.position for bead in self.beads])

    # Forces

    def pair_forces(self, positions: np.ndarray) -> np.ndarray:
        """
        Spring plus repulsion force on every bead, shape (n, 3).

        Neighbors attract with h * r^(1 + beta), all other beads repel
        with k * r^-(2 + alpha). Pairs closer than epsilon are skipped.
        """
        p = self.params
        diff = positions[None, :, :] - positions[:, None, :]
        r = np.linalg.norm(diff, axis=-1)
        valid = r >= p.epsilon
        np.fill_diagonal(valid, False)
        safe_r = np.where(valid, r, 1.0)
        unit = diff / safe_r[..., None]
        magnitude = np.where(
            self._neighbors,
            p.h * safe_r ** (1.0 + p.beta),
            -p.k * safe_r ** -(2.0 + p.alpha),
        )
        magnitude = np.where(valid, magnitude, 0.0)
        return np.einsum("ij,ijk->ik", magnitude, unit)

    def anchor_forces(self, positions: np.ndarray) -> np.ndarray:
        """Spring force pulling every bead back to its anchor, scaled by anchor_weight."""
        p = self.params
        diff = self._anchors.vertices - positions
        r = np.linalg.norm(diff, axis=-1)
        valid = r >= p.epsilon
        safe_r = np.where(valid, r, 1.0)
        magnitude = np.where(valid, p.anchor_weight * p.h * safe_r ** (1.0 + p.beta), 0.0)
        return diff / safe_r[:, None] * magnitude[:, None]

    def _too_close(self, positions: np.ndarray, i: int) -> bool:
        others = self._guard_segments[i]
        if others.size == 0:
            return False
        n = len(positions)
        ends = np.roll(positions, -1, axis=0)
        own = np.array([(i - 1) % n, i])
        distances = segment_distances(
            positions[own][:, None, :], ends[own][:, None, :],
            positions[others][None, :, :], ends[others][None, :, :],
        )
        return bool(np.any(distances < self.params.d_close))

    # Simulation

    def step(self) -> int:
        """
        Advance the simulation by one tick.

        Forces are computed from the positions at the start of the tick.
        Beads are then moved one by one; a bead whose adjacent segments
        would come closer than d_close to another segment goes back to
        its previous position and is marked locked.

        Returns:
            Number of beads locked during this tick
        """
        p = self.params
        for bead in self.beads:
            bead.locked = False

        snapshot = self.positions()
        forces = self.pair_forces(snapshot)
        if p.use_anchors and p.anchor_weight > 0.0:
            forces = forces + self.anchor_forces(snapshot)

        working = snapshot.copy()
        for bead, force in zip(self.beads, forces):
            displacement = bead.integrate(force, p)
            bead.prev_position = bead.position.copy()
            working[bead.index] = bead.position + displacement
            if self._too_close(working, bead.index):
                working[bead.index] = bead.prev_position
                bead.locked = True
            bead.position = working[bead.index].copy()

        self._rope.set_vertices(working)
        self.last_displacement = float(np.max(np.linalg.norm(working - snapshot, axis=-1)))
        locked = self.locked_count
        if locked:
            logger.debug("Step locked %d of %d beads", locked, len(self.beads))
        return locked

    def relax(self, iterations: int = 1) -> int:
        """Run `iterations` steps; returns the total number of lock events."""
        return sum(self.step() for _ in range(iterations))

    def reset(self) -> None:
        """Put every bead back on its anchor, at rest and unlocked."""
        for bead, anchor in zip(self.beads, self._anchors.vertices):
            bead.position = anchor.copy()
            bead.prev_position = anchor.copy()
            bead.velocity = np.zeros(3)
            bead.acceleration = np.zeros(3)
            bead.locked = False
        self._rope = self._anchors.copy()
        self.last_displacement = 0.0
        self._check_consistency()

    def __repr__(self) -> str:
        return f"Knot(beads={len(self.beads)}, locked={self.locked_count})"


RelaxationEngine = Knot
