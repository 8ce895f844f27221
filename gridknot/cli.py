"""
Command-line driver for gridknot.

Run with: python -m gridknot trefoil --move "stabilize nw 1 0" --steps 200
"""

import argparse
import logging
import sys
from typing import List, Optional

from .api import KnotSession, load_diagram, relax_until_settled
from .errors import GridKnotError
from .knot import SimulationParams
from .visualizer import CurveVisualizer, DiagramVisualizer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="gridknot",
        description="Edit a grid diagram with Cromwell moves and relax its 3D curve.",
    )
    ap.add_argument("diagram", help="Path to a comma-separated grid file, or a catalog name")
    ap.add_argument("--move", action="append", default=[], metavar="TEXT",
                    help='Cromwell move, e.g. "commute row 2" (repeatable, applied in order)')
    ap.add_argument("--steps", type=int, default=0, help="Maximum relaxation steps after the moves")
    ap.add_argument("--tolerance", type=float, default=1e-5,
                    help="Stop relaxing once no bead moves farther than this in one step")
    ap.add_argument("--warmup", type=int, default=3, help="Relaxation steps run after every rebuild")
    ap.add_argument("--no-anchors", action="store_true", help="Disable the pull towards the rest shape")
    ap.add_argument("--damping", type=float, default=None)
    ap.add_argument("--anchor-weight", type=float, default=None)
    ap.add_argument("--alpha", type=float, default=None, help="Repulsion exponent")
    ap.add_argument("--beta", type=float, default=None, help="Spring exponent")
    ap.add_argument("--h", type=float, default=None, help="Spring scale")
    ap.add_argument("--k", type=float, default=None, help="Repulsion scale")
    ap.add_argument("--show", action="store_true", help="Also draw the knot projection")
    ap.add_argument("--points", action="store_true", help="List the relaxed curve's vertices")
    ap.add_argument("-v", "--verbose", action="count", default=0,
                    help="-v for progress messages, -vv for debug output")
    return ap


def params_from_args(args: argparse.Namespace) -> SimulationParams:
    overrides = {
        name: getattr(args, name)
        for name in ("damping", "anchor_weight", "alpha", "beta", "h", "k")
        if getattr(args, name) is not None
    }
    return SimulationParams(use_anchors=not args.no_anchors, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    grid_viz = DiagramVisualizer()
    curve_viz = CurveVisualizer()
    try:
        params = params_from_args(args)
        session = KnotSession(load_diagram(args.diagram), params=params,
                              warmup_iterations=args.warmup)
        for text in args.move:
            session.apply(text)
    except (GridKnotError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(f"Grid diagram ({session.diagram.size}x{session.diagram.size}):")
    print(grid_viz.render(session.diagram))
    if args.show:
        print()
        print(grid_viz.render_projection(session.diagram))
    print()
    print(curve_viz.extraction_summary(session.extraction))

    if args.steps > 0:
        logger.info("Relaxing for at most %d steps", args.steps)
        report = relax_until_settled(session.knot, max_steps=args.steps, tolerance=args.tolerance)
        print()
        print(f"Relaxation: {report}")
    if args.points:
        print()
        print(curve_viz.vertex_listing(session.knot.get_rope(), session.knot.locked))
    return 0


if __name__ == "__main__":
    sys.exit(main())
