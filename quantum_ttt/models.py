"""
Pydantic Models for Quantum Tic-Tac-Toe Game State

Cells are integers 0..8, row-major on the 3x3 grid. A classical board is a
list of nine ``Optional[Player]`` entries.
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


BOARD_CELLS = 9


class Player(str, Enum):
    """Player symbol enumeration"""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Player":
        return Player.O if self is Player.X else Player.X


class GamePhase(str, Enum):
    """Session phase enumeration"""
    AWAITING_MOVE = "awaiting_move"
    PENDING_COLLAPSE = "pending_collapse"
    TERMINAL = "terminal"


class OutcomeKind(str, Enum):
    """Terminal outcome enumeration"""
    WIN = "win"
    DRAW = "draw"


Board = List[Optional[Player]]


class Move(BaseModel):
    """One turn's quantum placement.

    A move spans two distinct cells until collapse propagation fixes it to
    exactly one of them. ``resolved`` is the only field that changes after
    creation, and it is set at most once.
    """
    id: int = Field(gt=0)
    player: Player
    a: int = Field(ge=0, lt=BOARD_CELLS)
    b: int = Field(ge=0, lt=BOARD_CELLS)
    resolved: Optional[int] = None

    @model_validator(mode="after")
    def _check_cells(self) -> "Move":
        if self.a == self.b:
            raise ValueError(f"move {self.id} must span two distinct cells")
        if self.resolved is not None and self.resolved not in (self.a, self.b):
            raise ValueError(
                f"move {self.id} cannot resolve to {self.resolved}; "
                f"endpoints are {self.a} and {self.b}"
            )
        return self

    @property
    def cells(self) -> Tuple[int, int]:
        return (self.a, self.b)

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not None

    @property
    def label(self) -> str:
        """Ghost label such as ``X3``."""
        return f"{self.player.value}{self.id}"

    def touches(self, cell: int) -> bool:
        return cell == self.a or cell == self.b

    def other(self, cell: int) -> int:
        """Return the endpoint opposite ``cell``."""
        if cell == self.a:
            return self.b
        if cell == self.b:
            return self.a
        raise ValueError(f"cell {cell} is not an endpoint of move {self.id}")


class GhostMark(BaseModel):
    """An unresolved move's presence in one cell"""
    player: Player
    move_id: int = Field(alias="moveId")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def label(self) -> str:
        return f"{self.player.value}{self.move_id}"


class PendingCollapse(BaseModel):
    """Choice the chooser must make after a move closes a cycle"""
    cycle_move_ids: Tuple[int, ...] = Field(alias="cycleMoveIds")
    closer_move_id: int = Field(alias="closerMoveId")
    choice_cells: Tuple[int, int] = Field(alias="choiceCells")
    chooser: Player

    class Config:
        populate_by_name = True
        frozen = True


class GameOutcome(BaseModel):
    """Terminal result of a game.

    ``line`` is the first completed line in canonical order and decides
    ``winner``; ``lines`` lists every completed line on the board.
    """
    kind: OutcomeKind
    winner: Optional[Player] = None
    line: Optional[Tuple[int, int, int]] = None
    lines: Tuple[Tuple[int, int, int], ...] = ()

    class Config:
        frozen = True

    @property
    def is_draw(self) -> bool:
        return self.kind == OutcomeKind.DRAW


class PropagationConflict(BaseModel):
    """Diagnostic for a move propagation could not place.

    ``cell`` is the endpoint the move was forced towards; ``occupied_by`` is
    the player already holding it classically.
    """
    move_id: int = Field(alias="moveId")
    cell: int
    occupied_by: Optional[Player] = Field(None, alias="occupiedBy")

    class Config:
        populate_by_name = True
        frozen = True


class CollapseResult(BaseModel):
    """Output of one collapse resolution"""
    moves: List[Move]
    board: Board
    resolution_order: List[int] = Field(
        default_factory=list, alias="resolutionOrder"
    )
    conflicts: List[PropagationConflict] = Field(default_factory=list)
    steps: int = 0

    class Config:
        populate_by_name = True


class GameSnapshot(BaseModel):
    """Read-only view of a game session handed to the presentation layer"""
    session_id: str = Field(alias="sessionId")
    board: Tuple[Optional[Player], ...]
    moves: Tuple[Move, ...]
    current_player: Player = Field(alias="currentPlayer")
    phase: GamePhase
    pending_collapse: Optional[PendingCollapse] = Field(
        None, alias="pendingCollapse"
    )
    outcome: Optional[GameOutcome] = None
    ghosts: Tuple[Tuple[GhostMark, ...], ...] = ()
    free_cells: Tuple[int, ...] = Field((), alias="freeCells")
    diagnostics: Tuple[PropagationConflict, ...] = ()

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def unresolved_moves(self) -> List[Move]:
        return [m for m in self.moves if m.resolved is None]
