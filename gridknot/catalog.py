"""
Ready-made grid diagrams.

Small knots that are handy for demos, tests and the command line.
"""

from math import gcd
from typing import Callable, Dict, List

from .diagram import Entry, GridDiagram

TREFOIL_ROWS = [
    ".o.x..",
    "x.o...",
    ".x..o.",
    "...o.x",
    "o...x.",
    "..x..o",
]


def trefoil() -> GridDiagram:
    """A 6x6 diagram of the trefoil."""
    return GridDiagram.from_strings(TREFOIL_ROWS)


def torus_knot(p: int, q: int) -> GridDiagram:
    """
    The (p + q) x (p + q) grid of the torus knot T(p, q).

    Row i has its O on the diagonal and its X p columns to the right
    (cyclically). p and q must be coprime, otherwise the grid is a link.
    """
    if p < 1 or q < 1:
        raise ValueError("p and q must be positive")
    if gcd(p, q) != 1:
        raise ValueError(f"T({p}, {q}) is a link, not a knot")
    n = p + q
    cells: List[List[Entry]] = [[Entry.BLANK] * n for _ in range(n)]
    for i in range(n):
        cells[i][i] = Entry.O
        cells[i][(i + p) % n] = Entry.X
    return GridDiagram(cells)


def unknot(size: int = 2) -> GridDiagram:
    """An unknot drawn on a size x size grid (a staircase)."""
    if size < 2:
        raise ValueError("A grid diagram needs at least 2 rows")
    return torus_knot(1, size - 1)


CATALOG: Dict[str, Callable[[], GridDiagram]] = {
    "unknot": unknot,
    "trefoil": trefoil,
    "trefoil-5": lambda: torus_knot(2, 3),
    "cinquefoil": lambda: torus_knot(2, 5),
}


def get(name: str) -> GridDiagram:
    """Build the catalog diagram called `name`."""
    try:
        factory = CATALOG[name]
    except KeyError:
        raise ValueError(
            f"Unknown diagram {name!r}; available: {', '.join(sorted(CATALOG))}"
        ) from None
    return factory()
