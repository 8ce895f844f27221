"""
Text visualizations for gridknot.

Since diagrams are small and the package has no graphics layer, grids,
knot projections and curve summaries are drawn as plain text:

- DiagramVisualizer: the grid itself, with optional highlighted cells
  (e.g. every cell where the next Cromwell move may be applied)
- DiagramVisualizer.render_projection: the knot projection drawn with
  '-' and '|' strands, verticals passing over horizontals
- CurveVisualizer: vertex count, perimeter, bounds and lifted vertices
"""

from typing import Iterable, List, Optional, Sequence, Set

from .curve import PolygonalCurve
from .diagram import Axis, Entry, GridDiagram, Position
from .extractor import CurveExtraction
from .moves import MoveType


class DiagramVisualizer:
    """
    Draws grid diagrams as text.

    Marks are shown as x / o, blanks as '.', and highlighted cells are
    wrapped in brackets.
    """

    def __init__(self, cell_width: int = 3):
        self.cell_width = max(cell_width, 3)

    def render(self, diagram: GridDiagram, highlight: Iterable[Position] = (),
               show_labels: bool = True) -> str:
        """
        Draw the grid.

        Args:
            diagram: The diagram to draw
            highlight: Cells to bracket
            show_labels: Whether to number rows and columns

        Returns:
            Multi-line string
        """
        marked: Set[Position] = set(highlight)
        chars = {Entry.X: "x", Entry.O: "o", Entry.BLANK: "."}
        lines = []
        n = diagram.size
        if show_labels:
            lines.append("    " + "".join(f"{j:^{self.cell_width}}" for j in range(n)))
        for i in range(n):
            cells = []
            for j in range(n):
                ch = chars[diagram.cell(i, j)]
                text = f"[{ch}]" if (i, j) in marked else ch
                cells.append(f"{text:^{self.cell_width}}")
            prefix = f"{i:>3} " if show_labels else ""
            lines.append(prefix + "".join(cells))
        return "\n".join(lines)

    def candidate_cells(self, diagram: GridDiagram, move_type: MoveType,
                        axis: Optional[Axis] = None) -> List[Position]:
        """
        Cells to highlight when choosing a target for `move_type`.

        Commutation highlights the marks of every row (or column) that
        may be exchanged with its successor; stabilization highlights
        every mark; destabilization highlights the upper-left corner of
        every collapsible block. Translation needs no target.
        """
        if move_type == MoveType.STABILIZATION:
            return diagram.stabilization_sites()
        if move_type == MoveType.DESTABILIZATION:
            return diagram.destabilization_sites()
        if move_type == MoveType.COMMUTATION:
            axis = axis or Axis.ROW
            cells = []
            for k in diagram.commutable_indices(axis):
                for pos in diagram.find_xo(axis, k):
                    cells.append((k, pos) if axis == Axis.ROW else (pos, k))
            return cells
        return []

    def render_projection(self, diagram: GridDiagram) -> str:
        """
        Draw the knot projection.

        Row strands are '-', column strands '|'; at a crossing the
        column strand is drawn since it passes over.
        """
        n = diagram.size
        canvas = [[" "] * n for _ in range(n)]
        for i in range(n):
            lo, hi = diagram.span(Axis.ROW, i)
            for j in range(lo + 1, hi):
                canvas[i][j] = "-"
        for j in range(n):
            lo, hi = diagram.span(Axis.COL, j)
            for i in range(lo + 1, hi):
                canvas[i][j] = "|"
        for i in range(n):
            for j in range(n):
                entry = diagram.cell(i, j)
                if entry != Entry.BLANK:
                    canvas[i][j] = "X" if entry == Entry.X else "O"
        return "\n".join("".join(row).rstrip() for row in canvas)


class CurveVisualizer:
    """Summarizes curves and extraction results."""

    def __init__(self, precision: int = 3):
        self.precision = precision

    def _point(self, point: Sequence[float]) -> str:
        return "(" + ", ".join(f"{c:.{self.precision}f}" for c in point) + ")"

    def summary(self, curve: PolygonalCurve, lifted: Iterable[int] = ()) -> str:
        lifted = list(lifted)
        lines = [f"Vertices: {curve.get_number_of_vertices()}",
                 f"Perimeter: {curve.perimeter():.{self.precision}f}"]
        if curve.get_number_of_vertices():
            low, high = curve.bounding_box()
            lines.append(f"Bounds: {self._point(low)} .. {self._point(high)}")
        if lifted:
            lines.append(f"Lifted vertices: {', '.join(str(i) for i in lifted)}")
        return "\n".join(lines)

    def extraction_summary(self, extraction: CurveExtraction) -> str:
        lines = [f"Traversal: {extraction.traversal}",
                 f"Crossings: {extraction.crossing_count}"]
        for c in extraction.crossings:
            lines.append(f"  cell ({c.row}, {c.col}): vertical strand {c.over_strand} "
                         f"over horizontal strand {c.under_strand}")
        lines.append(self.summary(extraction.curve, extraction.lifted_vertices))
        return "\n".join(lines)

    def vertex_listing(self, curve: PolygonalCurve, locked: Sequence[bool] = ()) -> str:
        """One line per vertex; locked beads are flagged with '*'."""
        lines = []
        for i, point in enumerate(curve.vertices):
            flag = " *" if i < len(locked) and locked[i] else ""
            lines.append(f"{i:>4} {self._point(point)}{flag}")
        return "\n".join(lines)
