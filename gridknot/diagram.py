"""
Grid diagram representation for gridknot.

A grid diagram is an N x N grid in which every row and every column
holds exactly one X and exactly one O. Joining the X and O of every
column by a vertical strand and the X and O of every row by a
horizontal strand (with verticals passing over horizontals) draws a
knot projection.

The four Cromwell moves implemented here change the grid without
changing the knot type:

- Translation: cyclically shift all rows or all columns by one
- Commutation: exchange two adjacent, non-interleaved rows or columns
- Stabilization: replace a mark by a 2x2 block (grid grows by one)
- Destabilization: collapse such a 2x2 block (grid shrinks by one)

Every move validates its preconditions before touching the grid, so a
failed move leaves the diagram exactly as it was.
"""

import logging
from enum import Enum, IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import CromwellError, InvalidDiagram

logger = logging.getLogger(__name__)

Position = Tuple[int, int]


class Entry(IntEnum):
    """The content of one grid cell."""
    BLANK = 0
    X = 1
    O = 2

    def opposite(self) -> 'Entry':
        """Return the other mark type (BLANK has no opposite)."""
        if self == Entry.X:
            return Entry.O
        if self == Entry.O:
            return Entry.X
        raise ValueError("BLANK has no opposite mark")

    def to_token(self) -> str:
        """Token used by the comma-separated text format."""
        return _TOKENS[self]

    @classmethod
    def from_token(cls, token: str) -> 'Entry':
        """Parse a token of the comma-separated text format."""
        for entry, text in _TOKENS.items():
            if token == text:
                return entry
        raise InvalidDiagram(
            f"Unknown entry {token!r} - all entries should be 'x', 'o', or ' ' (blank)"
        )


_TOKENS = {Entry.X: "x", Entry.O: "o", Entry.BLANK: " "}

_COMPACT = {"x": Entry.X, "X": Entry.X, "o": Entry.O, "O": Entry.O,
            ".": Entry.BLANK, " ": Entry.BLANK, "_": Entry.BLANK}


class Direction(Enum):
    """Direction of a translation move."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    def opposite(self) -> 'Direction':
        return _OPPOSITE_DIRECTIONS[self]


_OPPOSITE_DIRECTIONS = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class Axis(Enum):
    """Rows or columns."""
    ROW = "row"
    COL = "col"

    def other(self) -> 'Axis':
        return Axis.COL if self == Axis.ROW else Axis.ROW


class Cardinal(Enum):
    """
    Corner of a 2x2 stabilization block.

    For stabilization and destabilization the corner names the cell of
    the block that is (or becomes) blank.
    """
    NW = "NW"
    SW = "SW"
    NE = "NE"
    SE = "SE"

    @property
    def offset(self) -> Position:
        """(row, col) offset of this corner inside a 2x2 block."""
        return _CORNER_OFFSETS[self]


_CORNER_OFFSETS = {
    Cardinal.NW: (0, 0),
    Cardinal.NE: (0, 1),
    Cardinal.SW: (1, 0),
    Cardinal.SE: (1, 1),
}

CellLike = Union[Entry, str, int]


def _coerce_entry(value: CellLike) -> Entry:
    if isinstance(value, Entry):
        return value
    if isinstance(value, str):
        return Entry.from_token(value)
    if isinstance(value, (int, np.integer)):
        try:
            return Entry(int(value))
        except ValueError:
            raise InvalidDiagram(f"Unknown entry {value!r}") from None
    raise InvalidDiagram(f"Unknown entry {value!r} of type {type(value).__name__}")


class GridDiagram:
    """
    An N x N grid diagram with one X and one O in every row and column.

    Cells are held in a numpy array of Entry codes, indexed as
    ``cells[row, col]`` with row 0 at the top and column 0 at the left.

    Attributes:
        size: Number of rows (equal to the number of columns)
    """

    def __init__(self, cells: Union[Sequence[Sequence[CellLike]], np.ndarray]):
        self._cells = self._build(cells)

    @staticmethod
    def _build(cells) -> np.ndarray:
        try:
            rows = [list(row) for row in cells]
        except TypeError:
            raise InvalidDiagram(
                "Invalid grid diagram - expected a sequence of rows, each a sequence of entries"
            ) from None
        n = len(rows)
        if n == 0:
            raise InvalidDiagram("Invalid grid diagram - the grid is empty")
        for i, row in enumerate(rows):
            if len(row) != n:
                raise InvalidDiagram(
                    f"Invalid grid diagram - row {i} has {len(row)} entries "
                    f"but the grid has {n} rows (the grid must be square)"
                )
        data = np.array([[_coerce_entry(v) for v in row] for row in rows], dtype=np.int8)
        GridDiagram._validate(data)
        return data

    @staticmethod
    def _validate(data: np.ndarray) -> None:
        n = data.shape[0]
        if data.ndim != 2 or data.shape[1] != n:
            raise InvalidDiagram("Invalid grid diagram - the grid must be square")
        for axis, name in ((1, "row"), (0, "column")):
            x_counts = np.count_nonzero(data == Entry.X, axis=axis)
            o_counts = np.count_nonzero(data == Entry.O, axis=axis)
            bad = np.flatnonzero((x_counts != 1) | (o_counts != 1))
            if bad.size:
                raise InvalidDiagram(
                    f"Invalid grid diagram - {name} {int(bad[0])} must contain exactly "
                    f"one 'x' and one 'o' entry"
                )

    @classmethod
    def from_text(cls, text: str) -> 'GridDiagram':
        """
        Parse the comma-separated grid format.

        One row per line, one field per cell; every field is exactly
        "x", "o" or a single space. Trailing empty lines are ignored.
        """
        lines = [line.rstrip("\r") for line in text.split("\n")]
        while lines and lines[-1] == "":
            lines.pop()
        rows = [[Entry.from_token(field) for field in line.split(",")] for line in lines]
        return cls(rows)

    @classmethod
    def from_file(cls, filepath: str) -> 'GridDiagram':
        """Load a diagram stored in the comma-separated grid format."""
        logger.info("Loading diagram from file: %s", filepath)
        with open(filepath, "r", newline="") as f:
            diagram = cls.from_text(f.read())
        logger.info("Loaded %dx%d diagram", diagram.size, diagram.size)
        return diagram

    @classmethod
    def from_strings(cls, rows: Iterable[str]) -> 'GridDiagram':
        """
        Build a diagram from compact row strings such as ``"x.o"``.

        "x"/"o" are marks (either case); ".", "_" and " " are blanks.
        """
        parsed = []
        for row in rows:
            try:
                parsed.append([_COMPACT[ch] for ch in row])
            except KeyError as exc:
                raise InvalidDiagram(f"Unknown entry {exc.args[0]!r} in row {row!r}") from None
        return cls(parsed)

    def to_text(self) -> str:
        """Serialize to the comma-separated grid format."""
        return "\n".join(
            ",".join(Entry(v).to_token() for v in row) for row in self._cells
        ) + "\n"

    def to_strings(self) -> List[str]:
        """Compact rows, the inverse of from_strings."""
        chars = {Entry.X: "x", Entry.O: "o", Entry.BLANK: "."}
        return ["".join(chars[Entry(v)] for v in row) for row in self._cells]

    def copy(self) -> 'GridDiagram':
        clone = GridDiagram.__new__(GridDiagram)
        clone._cells = self._cells.copy()
        return clone

    # Queries

    @property
    def size(self) -> int:
        return self._cells.shape[0]

    @property
    def cells(self) -> np.ndarray:
        """A copy of the raw cell matrix (Entry codes)."""
        return self._cells.copy()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise IndexError(f"Index {index} out of range for a {self.size}x{self.size} grid")

    def cell(self, i: int, j: int) -> Entry:
        """Return the entry at row i, column j."""
        self._check_index(i)
        self._check_index(j)
        return Entry(self._cells[i, j])

    def row(self, i: int) -> List[Entry]:
        self._check_index(i)
        return [Entry(v) for v in self._cells[i, :]]

    def col(self, j: int) -> List[Entry]:
        self._check_index(j)
        return [Entry(v) for v in self._cells[:, j]]

    def _line(self, axis: Axis, index: int) -> np.ndarray:
        self._check_index(index)
        return self._cells[index, :] if axis == Axis.ROW else self._cells[:, index]

    def find_index_of_first(self, axis: Axis, index: int, entry: Entry) -> int:
        """Position of the first `entry` along row (or column) `index`."""
        hits = np.flatnonzero(self._line(axis, index) == entry)
        if hits.size == 0:
            raise ValueError(f"No {entry.name} in {axis.value} {index}")
        return int(hits[0])

    def find_xo(self, axis: Axis, index: int) -> Tuple[int, int]:
        """Positions of the X and the O along row (or column) `index`."""
        return (self.find_index_of_first(axis, index, Entry.X),
                self.find_index_of_first(axis, index, Entry.O))

    def span(self, axis: Axis, index: int) -> Tuple[int, int]:
        """The [min, max] interval covered by the strand of a row or column."""
        x, o = self.find_xo(axis, index)
        return (min(x, o), max(x, o))

    def are_interleaved(self, axis: Axis, a: int, b: int) -> bool:
        """
        Check whether two rows (or columns) are interleaved.

        Their spans interleave unless they are disjoint or one lies
        strictly inside the other. Spans sharing an endpoint interleave.
        """
        a_lo, a_hi = self.span(axis, a)
        b_lo, b_hi = self.span(axis, b)
        disjoint = a_hi < b_lo or b_hi < a_lo
        nested = (b_lo < a_lo and a_hi < b_hi) or (a_lo < b_lo and b_hi < a_hi)
        return not (disjoint or nested)

    def to_absolute(self, i: int, j: int) -> int:
        """Flatten (row, col) to the column-major index used by curve traversal."""
        return i + j * self.size

    def to_grid(self, index: int) -> Position:
        """Inverse of to_absolute."""
        return (index % self.size, index // self.size)

    def link_components(self) -> int:
        """
        Count the closed components traced by the X/O connectivity.

        A knot has exactly one component; more than one means the grid
        encodes a link.
        """
        n = self.size
        o_row_in_col = [self.find_index_of_first(Axis.COL, j, Entry.O) for j in range(n)]
        x_col_in_row = [self.find_index_of_first(Axis.ROW, i, Entry.X) for i in range(n)]
        seen = set()
        components = 0
        for start in range(n):
            if start in seen:
                continue
            components += 1
            col = start
            while col not in seen:
                seen.add(col)
                col = x_col_in_row[o_row_in_col[col]]
        return components

    def commutable_indices(self, axis: Axis) -> List[int]:
        """Indices k for which commute(axis, k) is legal."""
        return [k for k in range(self.size - 1) if not self.are_interleaved(axis, k, k + 1)]

    def stabilization_sites(self) -> List[Position]:
        """All cells holding a mark (every one of them can be stabilized)."""
        rows, cols = np.nonzero(self._cells != Entry.BLANK)
        return [(int(i), int(j)) for i, j in zip(rows, cols)]

    def destabilization_sites(self) -> List[Position]:
        """Upper-left corners of every 2x2 block that can be destabilized."""
        n = self.size
        return [(i, j) for i in range(n - 1) for j in range(n - 1)
                if self._classify_block(i, j) is not None]

    # Cromwell moves

    def translate(self, direction: Direction) -> None:
        """
        Cyclically translate the grid by one cell.

        UP moves the first row to the bottom, DOWN the last row to the
        top, LEFT the first column to the right edge and RIGHT the last
        column to the left edge.
        """
        shift, axis = {
            Direction.UP: (-1, 0),
            Direction.DOWN: (1, 0),
            Direction.LEFT: (-1, 1),
            Direction.RIGHT: (1, 1),
        }[direction]
        self._commit(np.roll(self._cells, shift, axis=axis))
        logger.debug("Applied translation %s", direction.value)

    def commute(self, axis: Axis, index: int) -> None:
        """
        Exchange row (or column) `index` with `index + 1`.

        Raises:
            CromwellError: if `index + 1` does not exist or the two
                rows (or columns) are interleaved
        """
        if index == self.size - 1:
            raise CromwellError(
                "Cannot exchange row or column with non-existing adjacent row or column"
            )
        if not 0 <= index < self.size - 1:
            raise CromwellError(f"{axis.value.capitalize()} index {index} is out of range")
        if self.are_interleaved(axis, index, index + 1):
            raise CromwellError(
                "The specified rows (or columns) are interleaved and cannot be exchanged"
            )
        order = np.arange(self.size)
        order[[index, index + 1]] = order[[index + 1, index]]
        if axis == Axis.ROW:
            self._commit(self._cells[order, :])
        else:
            self._commit(self._cells[:, order])
        logger.debug("Applied commutation of %s %d and %d", axis.value, index, index + 1)

    def stabilize(self, corner: Cardinal, i: int, j: int) -> None:
        """
        Replace the mark at (i, j) with a 2x2 block.

        A new column is inserted beside column j and a new row beside
        row i so that the original cell becomes the blank `corner` of a
        block whose upper-left cell is (i, j). The two cells next to the
        blank receive the original mark and the diagonal cell receives
        the opposite mark.

        Raises:
            CromwellError: if (i, j) is outside the grid or blank
        """
        if not (0 <= i < self.size and 0 <= j < self.size):
            raise CromwellError(f"Grid position ({i}, {j}) is out of range")
        mark = Entry(self._cells[i, j])
        if mark == Entry.BLANK:
            raise CromwellError(
                "There is no 'x' or 'o' at the specified grid position: "
                "stabilization cannot be performed"
            )
        br, bc = corner.offset
        grown = np.insert(self._cells, j + 1 - bc, Entry.BLANK, axis=1)
        grown = np.insert(grown, i + 1 - br, Entry.BLANK, axis=0)
        grown[i + br, j + bc] = Entry.BLANK
        grown[i + br, j + 1 - bc] = mark
        grown[i + 1 - br, j + bc] = mark
        grown[i + 1 - br, j + 1 - bc] = mark.opposite()
        self._commit(grown)
        logger.debug("Applied %s stabilization at (%d, %d)", corner.value, i, j)

    def destabilize(self, i: int, j: int) -> Cardinal:
        """
        Collapse the 2x2 block whose upper-left cell is (i, j).

        The block must hold one blank, two copies of one mark and one of
        the other. The row and the column holding two marks are removed
        and the remaining cell, now at (i, j), gets the majority mark.

        Returns:
            The corner of the block that was blank

        Raises:
            CromwellError: if the block is out of range or malformed
        """
        if not (0 <= i < self.size - 1 and 0 <= j < self.size - 1):
            raise CromwellError(
                f"A 2x2 block cannot start at ({i}, {j}) in a {self.size}x{self.size} grid"
            )
        found = self._classify_block(i, j)
        if found is None:
            block = [Entry(v).to_token() for v in self._cells[i:i + 2, j:j + 2].ravel()]
            raise CromwellError(
                f"The 2x2 block at ({i}, {j}) must contain one blank, two of one mark "
                f"and one of the other (found {block}): destabilization cannot be performed"
            )
        corner, mark = found
        br, bc = corner.offset
        shrunk = np.delete(self._cells, i + 1 - br, axis=0)
        shrunk = np.delete(shrunk, j + 1 - bc, axis=1)
        shrunk[i, j] = mark
        self._commit(shrunk)
        logger.debug("Applied destabilization at (%d, %d), blank corner %s", i, j, corner.value)
        return corner

    def _classify_block(self, i: int, j: int) -> Optional[Tuple[Cardinal, Entry]]:
        """Blank corner and majority mark of a destabilizable block, else None."""
        block = self._cells[i:i + 2, j:j + 2]
        blanks = [c for c in Cardinal if block[c.offset] == Entry.BLANK]
        if len(blanks) != 1:
            return None
        corner = blanks[0]
        br, bc = corner.offset
        mark = Entry(block[br, 1 - bc])
        if block[1 - br, bc] != mark or block[1 - br, 1 - bc] != mark.opposite():
            return None
        return corner, mark

    def _commit(self, cells: np.ndarray) -> None:
        self._validate(cells)
        self._cells = np.ascontiguousarray(cells)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridDiagram):
            return NotImplemented
        return self._cells.shape == other._cells.shape and bool(np.all(self._cells == other._cells))

    __hash__ = None

    def __str__(self) -> str:
        return "\n".join(self.to_strings())

    def __repr__(self) -> str:
        return f"GridDiagram(size={self.size})"
