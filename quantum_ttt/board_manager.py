"""Board-level helpers for the quantum tic-tac-toe rules engine.

The classical board is a plain list of nine ``Optional[Player]`` cells,
row-major. Only classical marks take part in win detection; ghost marks
(unresolved moves) are derived from the move list on demand.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from .errors import InvalidSelectionError
from .models import (
    BOARD_CELLS,
    Board,
    GameOutcome,
    GhostMark,
    Move,
    OutcomeKind,
    Player,
)

__all__ = ["BoardManager", "WIN_LINES", "evaluate"]

# Canonical order: rows, then columns, then diagonals.
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class BoardManager:
    """Helper for classical-board queries.

    All methods are side-effect-free; callers pass in a board (or move
    list) and receive derived values.
    """

    @staticmethod
    def empty_board() -> Board:
        return [None] * BOARD_CELLS

    @staticmethod
    def is_valid_cell(cell: object) -> bool:
        # bool is an int subclass; True/False are not cells.
        return (
            isinstance(cell, int)
            and not isinstance(cell, bool)
            and 0 <= cell < BOARD_CELLS
        )

    @staticmethod
    def validate_cell(cell: object) -> int:
        """Return ``cell`` if it is on the board, else raise."""
        if not BoardManager.is_valid_cell(cell):
            raise InvalidSelectionError(
                f"cell {cell!r} is outside the board",
                rule_ref="cell-range",
                context={"cell": cell},
            )
        return cell  # type: ignore[return-value]

    @staticmethod
    def is_classical(board: Sequence[Player | None], cell: int) -> bool:
        return board[cell] is not None

    @staticmethod
    def free_cells(board: Sequence[Player | None]) -> list[int]:
        """Cells with no classical mark, in index order."""
        return [i for i, owner in enumerate(board) if owner is None]

    @staticmethod
    def completed_lines(
        board: Sequence[Player | None],
    ) -> list[tuple[tuple[int, int, int], Player]]:
        """Every win line fully owned by one player, in canonical order."""
        found = []
        for line in WIN_LINES:
            a, b, c = line
            owner = board[a]
            if owner is not None and owner == board[b] == board[c]:
                found.append((line, owner))
        return found

    @staticmethod
    def evaluate(board: Sequence[Player | None]) -> GameOutcome | None:
        """Return the game outcome for ``board``, or ``None`` if still open.

        The winner is the owner of the first completed line in canonical
        order. One collapse can complete lines for both players; those are
        all listed in ``lines`` but do not change who wins.
        """
        completed = BoardManager.completed_lines(board)
        if completed:
            line, winner = completed[0]
            return GameOutcome(
                kind=OutcomeKind.WIN,
                winner=winner,
                line=line,
                lines=tuple(found for found, _ in completed),
            )
        if all(owner is not None for owner in board):
            return GameOutcome(kind=OutcomeKind.DRAW)
        return None

    @staticmethod
    def ghosts_by_cell(moves: Iterable[Move]) -> list[list[GhostMark]]:
        """Ghost marks of the unresolved moves, grouped per cell."""
        ghosts: list[list[GhostMark]] = [[] for _ in range(BOARD_CELLS)]
        for move in moves:
            if move.resolved is not None:
                continue
            mark = GhostMark(player=move.player, move_id=move.id)
            ghosts[move.a].append(mark)
            ghosts[move.b].append(mark)
        return ghosts

    @staticmethod
    def summarize_board(board: Sequence[Player | None]) -> str:
        """Compact one-line rendering (``X.O|...|..X``) for debug logs."""
        cells = [owner.value if owner is not None else "." for owner in board]
        return "|".join("".join(cells[r * 3:r * 3 + 3]) for r in range(3))


def evaluate(board: Sequence[Player | None]) -> GameOutcome | None:
    """Module-level alias for :meth:`BoardManager.evaluate`."""
    return BoardManager.evaluate(board)
