"""
Curve extraction for gridknot.

Turns a grid diagram into a closed 3D polyline. The marks are visited
by alternating between "the X in this row" and "the O in this column",
which lists the corners of the knot projection. Wherever a vertical
strand crosses a horizontal one an extra vertex is inserted into the
vertical strand and lifted out of the plane, so verticals always pass
over horizontals. Finally every cell the strands run through gets a
vertex, which keeps the polyline grid-aligned with unit spacing.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from .curve import PolygonalCurve
from .diagram import Axis, Entry, GridDiagram
from .errors import CurveConstructionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Crossing:
    """
    A crossing of the projection.

    Attributes:
        row: Grid row of the crossing cell
        col: Grid column of the crossing cell
        index: Absolute (column-major) index of the crossing cell
        over_strand: Index of the vertical strand passing over
        under_strand: Index of the horizontal strand passing under
    """
    row: int
    col: int
    index: int
    over_strand: int
    under_strand: int


@dataclass
class CurveExtraction:
    """
    Everything produced while extracting a curve.

    Attributes:
        curve: The closed polyline
        traversal: Absolute indices of the visited marks, closed (2N + 1 entries)
        sequence: The traversal with crossing cells inserted, still closed
        crossings: All crossings, in the order they were inserted
        lifted_vertices: Curve vertex indices that were lifted
    """
    curve: PolygonalCurve
    traversal: List[int]
    sequence: List[int]
    crossings: List[Crossing] = field(default_factory=list)
    lifted_vertices: List[int] = field(default_factory=list)

    @property
    def crossing_count(self) -> int:
        return len(self.crossings)


def _between(a: int, b: int) -> range:
    """Integers strictly between a and b, walking from a towards b."""
    return range(a + 1, b) if a < b else range(a - 1, b, -1)


class CurveExtractor:
    """
    Builds the polyline of a grid diagram.

    Args:
        diagram: A valid grid diagram of a knot (one component)
        lift_height: z coordinate of lifted crossing vertices
        cell_size: World-space width of one grid cell
    """

    def __init__(self, diagram: GridDiagram, lift_height: float = 1.0, cell_size: float = 1.0):
        self.diagram = diagram
        self.lift_height = lift_height
        self.cell_size = cell_size

    def traverse(self) -> List[int]:
        """
        Visit every mark once, starting with the X/O pair of column 0.

        Columns connect X to O, rows connect O to X. The returned list
        ends with the starting index again, so a knot drawn on an N x N
        grid gives 2N + 1 entries.

        Raises:
            CurveConstructionError: if the loop closes early (a link)
        """
        d = self.diagram
        n = d.size
        x_row, o_row = d.find_xo(Axis.COL, 0)
        indices = [d.to_absolute(x_row, 0), d.to_absolute(o_row, 0)]
        seen = set(indices)
        line = o_row
        horizontal = True
        while True:
            if horizontal:
                nxt = d.find_index_of_first(Axis.ROW, line, Entry.X)
                index = d.to_absolute(line, nxt)
            else:
                nxt = d.find_index_of_first(Axis.COL, line, Entry.O)
                index = d.to_absolute(nxt, line)
            indices.append(index)
            if index in seen:
                break
            seen.add(index)
            line = nxt
            horizontal = not horizontal

        logger.debug("Traversal: %s", indices)
        if len(indices) != 2 * n + 1:
            raise CurveConstructionError(
                f"Error when constructing curve: the traversal closed after "
                f"{len(indices) - 1} of {2 * n} marks (the diagram has "
                f"{d.link_components()} components)"
            )
        return indices

    def find_crossings(self, traversal: List[int]) -> List[List[Crossing]]:
        """
        Crossings of every vertical strand, in the order it runs through them.

        Strand k of the result joins traversal[2k] to traversal[2k + 1].
        A crossing is counted only where the vertical strand passes
        strictly through the interior of a horizontal strand.
        """
        d = self.diagram
        n = d.size
        columns = [(traversal[2 * k], traversal[2 * k + 1]) for k in range(n)]
        rows = [(traversal[2 * k + 1], traversal[2 * k + 2]) for k in range(n)]

        spans = []
        for start, end in rows:
            (r, c1), (_, c2) = d.to_grid(start), d.to_grid(end)
            spans.append((r, min(c1, c2), max(c1, c2)))

        per_column = []
        for k, (start, end) in enumerate(columns):
            (si, j), (ei, _) = d.to_grid(start), d.to_grid(end)
            top, bottom = min(si, ei), max(si, ei)
            hits = [
                Crossing(row=r, col=j, index=d.to_absolute(r, j), over_strand=k, under_strand=m)
                for m, (r, left, right) in enumerate(spans)
                if left < j < right and top < r < bottom
            ]
            hits.sort(key=lambda c: c.row, reverse=si > ei)
            per_column.append(hits)
        return per_column

    def _coordinate(self, i: int, j: int, lift: bool) -> Tuple[float, float, float]:
        center = (self.diagram.size - 1) * 0.5
        x = (j - center) * self.cell_size
        y = (center - i) * self.cell_size
        return (x, y, self.lift_height if lift else 0.0)

    def extract(self) -> CurveExtraction:
        """Run the traversal, insert crossings and build the polyline."""
        d = self.diagram
        traversal = self.traverse()
        per_column = self.find_crossings(traversal)

        sequence = []
        for pos, index in enumerate(traversal):
            sequence.append(index)
            if pos % 2 == 0 and pos // 2 < d.size:
                sequence.extend(c.index for c in per_column[pos // 2])
        crossings = [c for hits in per_column for c in hits]
        logger.debug("Sequence with %d crossings: %s", len(crossings), sequence)

        lifted: Dict[int, Crossing] = {c.index: c for c in crossings}
        points = []
        lifted_vertices = []
        previous = None
        for index in sequence:
            i, j = d.to_grid(index)
            if previous is not None:
                pi, pj = previous
                if pi == i:
                    points.extend(self._coordinate(i, c, False) for c in _between(pj, j))
                else:
                    points.extend(self._coordinate(r, j, False) for r in _between(pi, i))
            if index in lifted:
                lifted_vertices.append(len(points))
            points.append(self._coordinate(i, j, index in lifted))
            previous = (i, j)

        # The last point repeats the first one and only marks closure
        points.pop()

        return CurveExtraction(
            curve=PolygonalCurve(np.array(points, dtype=float)),
            traversal=traversal,
            sequence=sequence,
            crossings=crossings,
            lifted_vertices=lifted_vertices,
        )

    def generate_curve(self) -> PolygonalCurve:
        return self.extract().curve


def generate_curve(diagram: GridDiagram, lift_height: float = 1.0, cell_size: float = 1.0) -> PolygonalCurve:
    """Extract the closed polyline of `diagram`."""
    return CurveExtractor(diagram, lift_height=lift_height, cell_size=cell_size).generate_curve()
