"""
Exception types for gridknot.

Every error raised on purpose by the package derives from GridKnotError,
so front-ends can catch one type and show the message to the user.
"""


class GridKnotError(Exception):
    """Base class for all gridknot errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDiagram(GridKnotError, ValueError):
    """
    A grid diagram could not be built.

    Raised when the cell matrix is not square, when a row or column does
    not hold exactly one X and one O, or when a textual grid contains an
    unknown token.
    """


class CromwellError(GridKnotError):
    """
    A Cromwell move is not legal for the current diagram.

    The diagram is left untouched when this is raised.
    """


class CurveConstructionError(GridKnotError, RuntimeError):
    """The X/O traversal did not close after visiting every mark exactly once."""
