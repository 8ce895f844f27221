"""
gridknot: Grid diagrams, Cromwell moves and knot relaxation

A knot is stored as a grid diagram - an N x N grid with one X and one O
in every row and column. The diagram can be edited with the four
Cromwell moves, which never change the knot type, and turned into a
closed 3D polyline whose vertical strands pass over its horizontal ones.
That polyline can then be relaxed by a bead-spring simulation that
keeps strands from passing through each other.

PIPELINE:
    GridDiagram -> CurveExtractor.extract() -> PolygonalCurve
                -> Knot(curve).step() ... -> relaxed PolygonalCurve
"""

from .errors import GridKnotError, InvalidDiagram, CromwellError, CurveConstructionError
from .diagram import GridDiagram, Entry, Direction, Axis, Cardinal
from .moves import CromwellMove, MoveType, MoveHistory
from .geometry import Segment, closest_vectors, segment_distances
from .curve import PolygonalCurve
from .extractor import CurveExtractor, CurveExtraction, Crossing, generate_curve
from .knot import Knot, Bead, SimulationParams, RelaxationEngine
from .visualizer import DiagramVisualizer, CurveVisualizer
from .api import KnotSession, RelaxationReport, load_diagram, relax_until_settled
from . import catalog

__version__ = "1.0.0"
__all__ = [
    # Errors
    "GridKnotError",
    "InvalidDiagram",
    "CromwellError",
    "CurveConstructionError",
    # Grid diagrams
    "GridDiagram",
    "Entry",
    "Direction",
    "Axis",
    "Cardinal",
    "CromwellMove",
    "MoveType",
    "MoveHistory",
    # Geometry
    "Segment",
    "closest_vectors",
    "segment_distances",
    "PolygonalCurve",
    # Curve extraction
    "CurveExtractor",
    "CurveExtraction",
    "Crossing",
    "generate_curve",
    # Relaxation
    "Knot",
    "Bead",
    "SimulationParams",
    "RelaxationEngine",
    # Visualization
    "DiagramVisualizer",
    "CurveVisualizer",
    # High-level API
    "KnotSession",
    "RelaxationReport",
    "load_diagram",
    "relax_until_settled",
    "catalog",
]
