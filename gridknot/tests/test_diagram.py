"""
Tests for gridknot grid diagrams.

These tests verify:
1. Diagram validation and the text formats
2. Translation and commutation
3. Stabilization and destabilization
4. Queries used by front-ends (spans, candidate sites, components)
"""

import os
import random
import tempfile
import unittest

from gridknot.catalog import TREFOIL_ROWS, trefoil
from gridknot.diagram import Axis, Cardinal, Direction, Entry, GridDiagram
from gridknot.errors import CromwellError, GridKnotError, InvalidDiagram

# Two unlinked circles; rows 0/1 and 2/3 are nested and may be exchanged.
LINK_ROWS = [
    ".ox.",
    "x..o",
    "o..x",
    ".xo.",
]


class TestDiagramValidation(unittest.TestCase):
    """Tests for construction and parsing."""

    def test_valid_diagram(self):
        """Test that the trefoil grid is accepted."""
        diagram = trefoil()
        self.assertEqual(diagram.size, 6)
        self.assertEqual(diagram.cell(0, 1), Entry.O)
        self.assertEqual(diagram.cell(0, 3), Entry.X)
        self.assertEqual(diagram.cell(0, 0), Entry.BLANK)

    def test_empty_grid(self):
        with self.assertRaises(InvalidDiagram):
            GridDiagram([])

    def test_not_square(self):
        with self.assertRaises(InvalidDiagram):
            GridDiagram.from_strings(["xo", "ox", ".."])

    def test_row_with_two_x(self):
        """Test that a row must hold exactly one X and one O."""
        with self.assertRaises(InvalidDiagram):
            GridDiagram.from_strings(["xx", "oo"])

    def test_column_without_o(self):
        with self.assertRaises(InvalidDiagram):
            GridDiagram.from_strings(["xo", "xo"])

    def test_invalid_diagram_is_value_error(self):
        with self.assertRaises(ValueError):
            GridDiagram.from_strings(["x"])
        self.assertTrue(issubclass(InvalidDiagram, GridKnotError))

    def test_rows_must_be_sequences(self):
        with self.assertRaises(InvalidDiagram):
            GridDiagram([1, 2])
        with self.assertRaises(InvalidDiagram):
            GridDiagram(5)

    def test_non_integer_codes_rejected(self):
        """Test that only Entry values, tokens and integer codes are accepted."""
        with self.assertRaises(InvalidDiagram):
            GridDiagram([[1.5, 2], [2, 1]])
        with self.assertRaises(InvalidDiagram):
            GridDiagram([[None, 2], [2, 1]])
        with self.assertRaises(InvalidDiagram):
            GridDiagram([[3, 2], [2, 1]])
        self.assertEqual(GridDiagram([[1, 2], [2, 1]]).to_strings(), ["xo", "ox"])

    def test_from_text(self):
        """Test the comma-separated format."""
        diagram = GridDiagram.from_text("x,o\no,x\n")
        self.assertEqual(diagram.size, 2)
        self.assertEqual(diagram.cell(1, 0), Entry.O)

    def test_from_text_blank_field(self):
        text = "x,o, \n , ,x\no,x,o\n"
        with self.assertRaises(InvalidDiagram):
            # Row 1 has no 'o'
            GridDiagram.from_text(text)
        diagram = GridDiagram.from_text("x,o, \n ,x,o\no, ,x\n")
        self.assertEqual(diagram.cell(0, 2), Entry.BLANK)

    def test_from_text_unknown_token(self):
        with self.assertRaises(InvalidDiagram):
            GridDiagram.from_text("x,a\no,x\n")

    def test_text_round_trip(self):
        diagram = trefoil()
        self.assertEqual(GridDiagram.from_text(diagram.to_text()), diagram)
        self.assertTrue(diagram.to_text().endswith("\n"))

    def test_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "trefoil.csv")
            with open(path, "w") as f:
                f.write(trefoil().to_text())
            self.assertEqual(GridDiagram.from_file(path), trefoil())

    def test_from_strings_accepts_upper_case(self):
        diagram = GridDiagram.from_strings(["X_O", " OX", "oX."])
        self.assertEqual(diagram.to_strings(), ["x.o", ".ox", "ox."])

    def test_cell_out_of_range(self):
        with self.assertRaises(IndexError):
            trefoil().cell(6, 0)
        with self.assertRaises(IndexError):
            trefoil().row(-1)

    def test_copy_is_independent(self):
        diagram = trefoil()
        clone = diagram.copy()
        clone.translate(Direction.UP)
        self.assertEqual(diagram, trefoil())
        self.assertNotEqual(clone, diagram)


class TestDiagramQueries(unittest.TestCase):
    """Tests for spans, interleaving and candidate sites."""

    def test_find_xo(self):
        diagram = trefoil()
        self.assertEqual(diagram.find_xo(Axis.ROW, 0), (3, 1))
        self.assertEqual(diagram.find_xo(Axis.COL, 0), (1, 4))

    def test_span(self):
        self.assertEqual(trefoil().span(Axis.ROW, 3), (3, 5))

    def test_interleaving(self):
        """Test disjoint, nested and overlapping spans."""
        link = GridDiagram.from_strings(LINK_ROWS)
        self.assertFalse(link.are_interleaved(Axis.ROW, 0, 1))  # nested
        self.assertTrue(link.are_interleaved(Axis.ROW, 1, 2))   # shared endpoints
        diagram = trefoil()
        self.assertTrue(diagram.are_interleaved(Axis.ROW, 0, 1))

    def test_disjoint_spans(self):
        diagram = GridDiagram.from_strings(["xo..", "ox..", "..xo", "..ox"])
        self.assertFalse(diagram.are_interleaved(Axis.ROW, 1, 2))
        self.assertIn(1, diagram.commutable_indices(Axis.ROW))

    def test_absolute_indices(self):
        diagram = trefoil()
        self.assertEqual(diagram.to_absolute(3, 4), 27)
        self.assertEqual(diagram.to_grid(27), (3, 4))

    def test_link_components(self):
        self.assertEqual(trefoil().link_components(), 1)
        self.assertEqual(GridDiagram.from_strings(LINK_ROWS).link_components(), 2)

    def test_stabilization_sites(self):
        sites = trefoil().stabilization_sites()
        self.assertEqual(len(sites), 12)
        self.assertIn((0, 3), sites)

    def test_trefoil_has_no_commutations(self):
        diagram = trefoil()
        self.assertEqual(diagram.commutable_indices(Axis.ROW), [])
        self.assertEqual(diagram.commutable_indices(Axis.COL), [])


class TestTranslation(unittest.TestCase):
    """Tests for cyclic translation."""

    def test_translate_up(self):
        diagram = trefoil()
        diagram.translate(Direction.UP)
        self.assertEqual(diagram.to_strings(), TREFOIL_ROWS[1:] + TREFOIL_ROWS[:1])

    def test_translate_right(self):
        diagram = trefoil()
        diagram.translate(Direction.RIGHT)
        self.assertEqual(diagram.to_strings(), [row[-1] + row[:-1] for row in TREFOIL_ROWS])

    def test_translate_inverse(self):
        """Test that opposite translations cancel."""
        for direction in Direction:
            diagram = trefoil()
            diagram.translate(direction)
            diagram.translate(direction.opposite())
            self.assertEqual(diagram, trefoil())

    def test_full_cycle(self):
        diagram = trefoil()
        for _ in range(diagram.size):
            diagram.translate(Direction.LEFT)
        self.assertEqual(diagram, trefoil())


class TestCommutation(unittest.TestCase):
    """Tests for exchanging adjacent rows and columns."""

    def test_commute_rows(self):
        diagram = GridDiagram.from_strings(LINK_ROWS)
        diagram.commute(Axis.ROW, 0)
        self.assertEqual(diagram.to_strings()[:2], [LINK_ROWS[1], LINK_ROWS[0]])

    def test_commute_twice_is_identity(self):
        diagram = GridDiagram.from_strings(LINK_ROWS)
        diagram.commute(Axis.ROW, 2)
        diagram.commute(Axis.ROW, 2)
        self.assertEqual(diagram, GridDiagram.from_strings(LINK_ROWS))

    def test_commute_columns(self):
        diagram = GridDiagram.from_strings(["xo..", "ox..", "..xo", "..ox"])
        diagram.commute(Axis.COL, 1)
        self.assertEqual(diagram.to_strings(), ["x.o.", "o.x.", ".x.o", ".o.x"])

    def test_last_index_rejected(self):
        diagram = GridDiagram.from_strings(LINK_ROWS)
        with self.assertRaises(CromwellError) as ctx:
            diagram.commute(Axis.ROW, 3)
        self.assertIn("non-existing", str(ctx.exception))
        self.assertEqual(diagram, GridDiagram.from_strings(LINK_ROWS))

    def test_interleaved_rejected(self):
        """Test that a failed commutation leaves the grid unchanged."""
        diagram = trefoil()
        with self.assertRaises(CromwellError):
            diagram.commute(Axis.ROW, 0)
        self.assertEqual(diagram, trefoil())

    def test_negative_index_rejected(self):
        with self.assertRaises(CromwellError):
            trefoil().commute(Axis.COL, -1)


class TestStabilization(unittest.TestCase):
    """Tests for stabilization and destabilization."""

    def test_stabilize_nw(self):
        """Test the block created around an X."""
        diagram = trefoil()
        diagram.stabilize(Cardinal.NW, 0, 3)

        self.assertEqual(diagram.size, 7)
        self.assertEqual(diagram.cell(0, 3), Entry.BLANK)
        self.assertEqual(diagram.cell(0, 4), Entry.X)
        self.assertEqual(diagram.cell(1, 3), Entry.X)
        self.assertEqual(diagram.cell(1, 4), Entry.O)

    def test_stabilize_se(self):
        diagram = trefoil()
        diagram.stabilize(Cardinal.SE, 0, 1)

        self.assertEqual(diagram.cell(1, 2), Entry.BLANK)
        self.assertEqual(diagram.cell(1, 1), Entry.O)
        self.assertEqual(diagram.cell(0, 2), Entry.O)
        self.assertEqual(diagram.cell(0, 1), Entry.X)

    def test_round_trip_all_corners(self):
        """Test that destabilizing a fresh block restores the grid."""
        for corner in Cardinal:
            for i, j in [(0, 3), (0, 1), (5, 5), (4, 0)]:
                diagram = trefoil()
                diagram.stabilize(corner, i, j)
                self.assertEqual(diagram.link_components(), 1)
                self.assertIn((i, j), diagram.destabilization_sites())
                self.assertEqual(diagram.destabilize(i, j), corner)
                self.assertEqual(diagram, trefoil())

    def test_stabilize_blank_rejected(self):
        diagram = trefoil()
        with self.assertRaises(CromwellError):
            diagram.stabilize(Cardinal.NW, 0, 0)
        self.assertEqual(diagram, trefoil())

    def test_stabilize_out_of_range(self):
        with self.assertRaises(CromwellError):
            trefoil().stabilize(Cardinal.NE, 6, 0)

    def test_destabilize_valid_block(self):
        """Test a block holding two X's, one O and one blank."""
        diagram = GridDiagram.from_strings(["x.o", "ox.", ".ox"])
        self.assertEqual(diagram.destabilize(1, 1), Cardinal.NE)
        self.assertEqual(diagram.to_strings(), ["xo", "ox"])

    def test_destabilize_two_blanks_rejected(self):
        diagram = trefoil()
        with self.assertRaises(CromwellError):
            diagram.destabilize(0, 0)
        self.assertEqual(diagram, trefoil())

    def test_destabilize_out_of_range(self):
        with self.assertRaises(CromwellError):
            trefoil().destabilize(5, 0)


class TestMoveSequences(unittest.TestCase):
    """Tests for long runs of moves."""

    def test_random_moves_keep_invariant(self):
        """Test that successful and failed moves alike leave a valid knot grid."""
        rng = random.Random(7)
        diagram = trefoil()
        for _ in range(200):
            n = diagram.size
            choice = rng.randrange(4)
            try:
                if choice == 0:
                    diagram.translate(rng.choice(list(Direction)))
                elif choice == 1:
                    diagram.commute(rng.choice(list(Axis)), rng.randrange(n))
                elif choice == 2 and n < 10:
                    diagram.stabilize(rng.choice(list(Cardinal)), rng.randrange(n), rng.randrange(n))
                else:
                    diagram.destabilize(rng.randrange(n), rng.randrange(n))
            except CromwellError:
                pass
            # Re-validating the raw matrix raises if the invariant broke
            GridDiagram(diagram.cells)
            self.assertEqual(diagram.link_components(), 1)


if __name__ == "__main__":
    unittest.main()
