"""
gridknot high-level API

Keeps a grid diagram, its extracted curve and the relaxing knot in step,
which is what an interactive front-end needs: edit the grid with
Cromwell moves, and after every successful edit the curve is rebuilt and
the simulation restarted from the new shape.

QUICK START:
    from gridknot import KnotSession, catalog, relax_until_settled

    session = KnotSession(catalog.trefoil())
    session.apply("stabilize nw 1 0")
    report = relax_until_settled(session.knot, max_steps=500)
    print(report)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from . import catalog
from .curve import PolygonalCurve
from .diagram import GridDiagram
from .errors import GridKnotError
from .extractor import CurveExtraction, CurveExtractor
from .knot import Knot, SimulationParams
from .moves import CromwellMove, MoveHistory

logger = logging.getLogger(__name__)

MoveLike = Union[CromwellMove, str]


def load_diagram(source: str) -> GridDiagram:
    """
    Build a catalog diagram by name, or load one from a file path.

    Catalog names take precedence over files of the same name.
    """
    if source in catalog.CATALOG or not os.path.exists(source):
        return catalog.get(source)
    return GridDiagram.from_file(source)


@dataclass
class RelaxationReport:
    """Outcome of relax_until_settled."""
    steps: int
    settled: bool
    final_displacement: float
    locked: int
    perimeter_before: float
    perimeter_after: float

    def __str__(self) -> str:
        state = "settled" if self.settled else "not settled"
        return (f"{state} after {self.steps} steps "
                f"(max displacement {self.final_displacement:.2e}, {self.locked} locked, "
                f"perimeter {self.perimeter_before:.3f} -> {self.perimeter_after:.3f})")


def relax_until_settled(knot: Knot, max_steps: int = 1000, tolerance: float = 1e-5) -> RelaxationReport:
    """
    Step `knot` until no bead moves more than `tolerance` in one step.

    Stops after `max_steps` steps in any case.
    """
    before = knot.get_rope().perimeter()
    steps = 0
    settled = False
    while steps < max_steps:
        knot.step()
        steps += 1
        if knot.last_displacement < tolerance:
            settled = True
            break
    return RelaxationReport(
        steps=steps,
        settled=settled,
        final_displacement=knot.last_displacement,
        locked=knot.locked_count,
        perimeter_before=before,
        perimeter_after=knot.get_rope().perimeter(),
    )


class KnotSession:
    """
    A diagram being edited together with its relaxing knot.

    Args:
        diagram: The starting diagram (the session edits it in place)
        params: Simulation constants for every rebuilt knot
        warmup_iterations: Relaxation steps run after every rebuild
        lift_height: z offset of crossing vertices
    """

    def __init__(self, diagram: GridDiagram, params: Optional[SimulationParams] = None,
                 warmup_iterations: int = 3, lift_height: float = 1.0):
        self.diagram = diagram
        self.params = params if params is not None else SimulationParams()
        self.warmup_iterations = warmup_iterations
        self.lift_height = lift_height
        self.history = MoveHistory()
        self.extraction: Optional[CurveExtraction] = None
        self.knot: Optional[Knot] = None
        self.rebuild()

    @property
    def curve(self) -> PolygonalCurve:
        """The freshly extracted (unrelaxed) curve."""
        return self.extraction.curve

    def rebuild(self) -> None:
        """Extract the curve again and restart the simulation from it."""
        logger.info("Updating knot...")
        self.extraction = CurveExtractor(self.diagram, lift_height=self.lift_height).extract()
        self.knot = Knot(self.extraction.curve, self.params)
        self.knot.relax(self.warmup_iterations)
        logger.info(
            "Knot rebuilt: %d vertices, %d crossings",
            self.extraction.curve.get_number_of_vertices(), self.extraction.crossing_count,
        )

    def apply(self, move: MoveLike) -> None:
        """
        Apply a Cromwell move and rebuild the knot.

        Raises:
            CromwellError: if the move is illegal (nothing changes)
            ValueError: if `move` is text that does not parse
        """
        if isinstance(move, str):
            move = CromwellMove.parse(move)
        self.history.apply(move, self.diagram)
        logger.info("Applied %s", move)
        self.rebuild()

    def try_apply(self, move: MoveLike) -> Tuple[bool, str]:
        """
        Apply a move, reporting failure instead of raising.

        Returns:
            (True, description) on success, (False, error message) otherwise
        """
        try:
            self.apply(move)
        except (GridKnotError, ValueError) as exc:
            logger.warning("Move %s rejected: %s", move, exc)
            return False, str(exc)
        return True, f"Applied {move}"

    def undo(self) -> Optional[CromwellMove]:
        """Revert the last applied move; returns it (None if nothing to undo)."""
        move = self.history.undo(self.diagram)
        if move is not None:
            logger.info("Undid %s", move)
            self.rebuild()
        return move

    def step(self, iterations: int = 1) -> int:
        return self.knot.relax(iterations)

    def reset(self) -> None:
        self.knot.reset()

    def __repr__(self) -> str:
        return f"KnotSession(size={self.diagram.size}, moves={len(self.history)}, knot={self.knot!r})"
