"""
Tests for the gridknot high-level API, catalog, visualizer and CLI.
"""

import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from gridknot import catalog
from gridknot.api import KnotSession, load_diagram, relax_until_settled
from gridknot.catalog import trefoil
from gridknot.cli import main
from gridknot.diagram import Axis, Cardinal
from gridknot.extractor import generate_curve
from gridknot.errors import CromwellError
from gridknot.knot import Knot, SimulationParams
from gridknot.moves import CromwellMove, MoveType
from gridknot.visualizer import CurveVisualizer, DiagramVisualizer


class TestCatalog(unittest.TestCase):
    """Tests for the ready-made diagrams."""

    def test_torus_knots(self):
        diagram = catalog.torus_knot(2, 3)
        self.assertEqual(diagram.size, 5)
        self.assertEqual(diagram.link_components(), 1)
        self.assertEqual(catalog.get("cinquefoil").size, 7)

    def test_torus_link_rejected(self):
        with self.assertRaises(ValueError):
            catalog.torus_knot(2, 4)
        with self.assertRaises(ValueError):
            catalog.torus_knot(0, 3)

    def test_unknown_name(self):
        with self.assertRaises(ValueError):
            catalog.get("figure-nine")

    def test_load_diagram(self):
        self.assertEqual(load_diagram("trefoil"), trefoil())
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "grid.csv")
            with open(path, "w") as f:
                f.write(catalog.unknot(3).to_text())
            self.assertEqual(load_diagram(path), catalog.unknot(3))

    def test_catalog_name_wins_over_file(self):
        """Test that a file named like a catalog entry does not shadow it."""
        cwd = os.getcwd()
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "trefoil"), "w") as f:
                f.write(catalog.unknot(3).to_text())
            os.chdir(tmp)
            try:
                self.assertEqual(load_diagram("trefoil"), trefoil())
            finally:
                os.chdir(cwd)


class TestKnotSession(unittest.TestCase):
    """Tests for editing a diagram with a live knot."""

    def setUp(self):
        self.session = KnotSession(trefoil(), warmup_iterations=1)

    def test_initial_knot(self):
        self.assertEqual(len(self.session.knot.beads), 32)
        self.assertEqual(self.session.extraction.crossing_count, 5)

    def test_apply_rebuilds(self):
        self.session.apply("stabilize nw 0 3")
        self.assertEqual(self.session.diagram.size, 7)
        self.assertEqual(len(self.session.history), 1)
        self.assertEqual(self.session.knot.get_anchors(), self.session.curve)
        self.assertEqual(len(self.session.knot.beads), self.session.curve.get_number_of_vertices())

    def test_apply_illegal_move(self):
        with self.assertRaises(CromwellError):
            self.session.apply(CromwellMove.commutation(Axis.ROW, 0))
        self.assertEqual(self.session.diagram, trefoil())
        self.assertEqual(len(self.session.history), 0)

    def test_try_apply(self):
        ok, message = self.session.try_apply("commute row 0")
        self.assertFalse(ok)
        self.assertIn("interleaved", message)
        ok, _ = self.session.try_apply("spin around")
        self.assertFalse(ok)
        ok, message = self.session.try_apply(CromwellMove.stabilization(Cardinal.SE, 2, 1))
        self.assertTrue(ok)
        self.assertIn("stabilize se 2 1", message)

    def test_undo(self):
        self.session.apply("translate up")
        move = self.session.undo()
        self.assertEqual(move.move_type, MoveType.TRANSLATION)
        self.assertEqual(self.session.diagram, trefoil())
        self.assertIsNone(self.session.undo())

    def test_step_and_reset(self):
        self.session.step(2)
        self.session.reset()
        self.assertEqual(self.session.knot.get_rope(), self.session.curve)


class TestRelaxUntilSettled(unittest.TestCase):
    """Tests for the relaxation driver."""

    def test_max_steps(self):
        knot = Knot(generate_curve(trefoil()))
        report = relax_until_settled(knot, max_steps=4, tolerance=0.0)
        self.assertEqual(report.steps, 4)
        self.assertFalse(report.settled)
        self.assertIn("not settled", str(report))

    def test_settles_immediately_with_loose_tolerance(self):
        knot = Knot(KnotSession(trefoil(), warmup_iterations=0).curve, SimulationParams())
        report = relax_until_settled(knot, max_steps=50, tolerance=1.0)
        self.assertEqual(report.steps, 1)
        self.assertTrue(report.settled)


class TestVisualizer(unittest.TestCase):
    """Tests for the text renderers."""

    def test_render(self):
        text = DiagramVisualizer().render(trefoil(), highlight=[(0, 3)], show_labels=False)
        lines = text.splitlines()
        self.assertEqual(len(lines), 6)
        self.assertIn("[x]", lines[0])

    def test_projection(self):
        lines = DiagramVisualizer().render_projection(trefoil()).splitlines()
        self.assertEqual(lines[3], "| |O|X")
        self.assertEqual(lines[0], " O-X")

    def test_candidate_cells(self):
        viz = DiagramVisualizer()
        self.assertEqual(len(viz.candidate_cells(trefoil(), MoveType.STABILIZATION)), 12)
        self.assertEqual(viz.candidate_cells(trefoil(), MoveType.COMMUTATION, Axis.COL), [])
        self.assertEqual(viz.candidate_cells(trefoil(), MoveType.TRANSLATION), [])

    def test_curve_summary(self):
        session = KnotSession(trefoil(), warmup_iterations=0)
        text = CurveVisualizer().extraction_summary(session.extraction)
        self.assertIn("Crossings: 5", text)
        self.assertIn("Vertices: 32", text)
        listing = CurveVisualizer().vertex_listing(session.curve)
        self.assertEqual(len(listing.splitlines()), 32)


class TestCommandLine(unittest.TestCase):
    """Smoke tests for the command-line driver."""

    def test_relax_catalog_knot(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["trefoil", "--steps", "2", "--show", "--warmup", "0"])
        self.assertEqual(code, 0)
        self.assertIn("Crossings: 5", out.getvalue())
        self.assertIn("Relaxation:", out.getvalue())

    def test_illegal_move_reported(self):
        err = io.StringIO()
        with redirect_stdout(io.StringIO()), redirect_stderr(err):
            code = main(["trefoil", "--move", "commute row 0"])
        self.assertEqual(code, 1)
        self.assertIn("error:", err.getvalue())

    def test_unknown_diagram(self):
        with redirect_stderr(io.StringIO()):
            self.assertEqual(main(["no-such-knot"]), 1)


if __name__ == "__main__":
    unittest.main()
