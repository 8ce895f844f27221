"""
Cromwell move records for gridknot.

A CromwellMove is a small value describing one edit of a grid diagram.
Records can be parsed from short commands ("commute row 2"), applied to
a GridDiagram, printed back, and inverted so an edit session can be
undone step by step.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .diagram import Axis, Cardinal, Direction, GridDiagram


class MoveType(Enum):
    TRANSLATION = "translate"
    COMMUTATION = "commute"
    STABILIZATION = "stabilize"
    DESTABILIZATION = "destabilize"


@dataclass(frozen=True)
class CromwellMove:
    """
    One Cromwell move.

    Attributes:
        move_type: Which of the four moves this is
        direction: Translation direction (TRANSLATION only)
        axis: Row or column (COMMUTATION only)
        corner: Blank corner of the 2x2 block (STABILIZATION only)
        position: (index,) for commutation, (i, j) for (de)stabilization
    """
    move_type: MoveType
    direction: Optional[Direction] = None
    axis: Optional[Axis] = None
    corner: Optional[Cardinal] = None
    position: Tuple[int, ...] = ()

    @classmethod
    def translation(cls, direction: Direction) -> 'CromwellMove':
        return cls(MoveType.TRANSLATION, direction=direction)

    @classmethod
    def commutation(cls, axis: Axis, index: int) -> 'CromwellMove':
        return cls(MoveType.COMMUTATION, axis=axis, position=(index,))

    @classmethod
    def stabilization(cls, corner: Cardinal, i: int, j: int) -> 'CromwellMove':
        return cls(MoveType.STABILIZATION, corner=corner, position=(i, j))

    @classmethod
    def destabilization(cls, i: int, j: int) -> 'CromwellMove':
        return cls(MoveType.DESTABILIZATION, position=(i, j))

    @classmethod
    def parse(cls, text: str) -> 'CromwellMove':
        """
        Parse a move command.

        Accepted forms (case-insensitive):
            translate up|down|left|right
            commute row|col INDEX
            stabilize nw|sw|ne|se I J
            destabilize I J
        """
        words = text.lower().split()
        if not words:
            raise ValueError("Empty move")
        name, args = words[0], words[1:]
        try:
            if name == MoveType.TRANSLATION.value and len(args) == 1:
                return cls.translation(Direction(args[0]))
            if name == MoveType.COMMUTATION.value and len(args) == 2:
                axis = Axis.COL if args[0] in ("col", "column") else Axis(args[0])
                return cls.commutation(axis, int(args[1]))
            if name == MoveType.STABILIZATION.value and len(args) == 3:
                return cls.stabilization(Cardinal(args[0].upper()), int(args[1]), int(args[2]))
            if name == MoveType.DESTABILIZATION.value and len(args) == 2:
                return cls.destabilization(int(args[0]), int(args[1]))
        except ValueError:
            raise ValueError(f"Invalid arguments in move {text!r}") from None
        raise ValueError(f"Unknown move {text!r}")

    def apply(self, diagram: GridDiagram) -> Optional[Cardinal]:
        """
        Apply this move to `diagram` in place.

        Returns the vacated corner for a destabilization, None otherwise.
        CromwellError propagates unchanged when the move is illegal.
        """
        if self.move_type == MoveType.TRANSLATION:
            diagram.translate(self.direction)
        elif self.move_type == MoveType.COMMUTATION:
            diagram.commute(self.axis, self.position[0])
        elif self.move_type == MoveType.STABILIZATION:
            diagram.stabilize(self.corner, *self.position)
        else:
            return diagram.destabilize(*self.position)
        return None

    def inverse(self, vacated: Optional[Cardinal] = None) -> 'CromwellMove':
        """
        The move that undoes this one.

        A destabilization only knows its inverse once applied, so the
        corner it returned has to be passed as `vacated`.
        """
        if self.move_type == MoveType.TRANSLATION:
            return CromwellMove.translation(self.direction.opposite())
        if self.move_type == MoveType.COMMUTATION:
            return self
        if self.move_type == MoveType.STABILIZATION:
            return CromwellMove.destabilization(*self.position)
        if vacated is None:
            raise ValueError("The inverse of a destabilization needs the vacated corner")
        return CromwellMove.stabilization(vacated, *self.position)

    def __str__(self) -> str:
        name = self.move_type.value
        if self.move_type == MoveType.TRANSLATION:
            return f"{name} {self.direction.value}"
        if self.move_type == MoveType.COMMUTATION:
            return f"{name} {self.axis.value} {self.position[0]}"
        if self.move_type == MoveType.STABILIZATION:
            return f"{name} {self.corner.value.lower()} {self.position[0]} {self.position[1]}"
        return f"{name} {self.position[0]} {self.position[1]}"


@dataclass
class MoveHistory:
    """
    Moves applied to a diagram, in order, with what is needed to undo them.

    Attributes:
        entries: (move, inverse) pairs, oldest first
    """
    entries: List[Tuple[CromwellMove, CromwellMove]] = field(default_factory=list)

    def apply(self, move: CromwellMove, diagram: GridDiagram) -> None:
        """Apply `move` and record it; nothing is recorded if it fails."""
        vacated = move.apply(diagram)
        self.entries.append((move, move.inverse(vacated)))

    def undo(self, diagram: GridDiagram) -> Optional[CromwellMove]:
        """Revert the last recorded move. Returns it, or None if empty."""
        if not self.entries:
            return None
        move, inverse = self.entries[-1]
        inverse.apply(diagram)
        self.entries.pop()
        return move

    def moves(self) -> List[CromwellMove]:
        return [move for move, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
