"""Collapse resolution for cycle-closing moves.

Once the chooser fixes the closer's cell, every move sharing that cell is
forced to its other endpoint, which in turn forces its neighbours, and so
on. Resolution is a breadth-first fixed point over a work queue seeded with
``(closer_move_id, chosen_cell)``, followed by a sweep that catches any
unresolved move left touching a classical cell.

The resolver works on copies of the move list and board it is given and
returns them in a ``CollapseResult``; callers swap the new state in only if
resolution succeeds.
"""
from __future__ import annotations

import logging
import os
from collections import deque
from typing import Sequence

from .board_manager import BoardManager
from .errors import InvalidChoiceError, InvalidStateError, PropagationConflictError
from .metrics import record_propagation_conflict
from .models import Board, CollapseResult, Move, Player, PropagationConflict

logger = logging.getLogger(__name__)

__all__ = ["CollapseResolver", "resolve", "STRICT_PROPAGATION"]

# Raise PropagationConflictError instead of leaving the move unresolved.
STRICT_PROPAGATION = os.environ.get(
    "QTTT_STRICT_PROPAGATION",
    "0",
) in {"1", "true", "yes", "on"}


class CollapseResolver:
    """Single-use propagation over private copies of ``moves`` and ``board``."""

    def __init__(
        self,
        moves: Sequence[Move],
        board: Sequence[Player | None],
        strict: bool | None = None,
    ) -> None:
        self.moves: list[Move] = [m.model_copy() for m in moves]
        self.board: Board = list(board)
        self.strict = STRICT_PROPAGATION if strict is None else strict
        self._by_id = {m.id: m for m in self.moves}
        self._queue: deque[tuple[int, int]] = deque()
        self._conflicted: set[int] = set()
        self.resolution_order: list[int] = []
        self.conflicts: list[PropagationConflict] = []

    def _conflict(self, move: Move, cell: int) -> None:
        if move.id in self._conflicted:
            return
        occupied_by = self.board[cell]
        if self.strict:
            raise PropagationConflictError(
                f"move {move.id} is forced to cell {cell}, "
                f"already classical for {occupied_by.value if occupied_by else None}",
                move_id=move.id,
                cell=cell,
            )
        self._conflicted.add(move.id)
        self.conflicts.append(
            PropagationConflict(move_id=move.id, cell=cell, occupied_by=occupied_by)
        )
        record_propagation_conflict()
        logger.warning(
            "Propagation conflict: move %d forced to cell %d held by %s; "
            "leaving it unresolved",
            move.id,
            cell,
            occupied_by.value if occupied_by else None,
        )

    def _fix(self, move: Move, cell: int) -> None:
        move.resolved = cell
        self.board[cell] = move.player
        self.resolution_order.append(move.id)

    def apply_forced(self, move_id: int, cell: int) -> bool:
        """Resolve one dequeued ``(move_id, cell)`` entry.

        Returns ``True`` if the move was resolved. An entry for a move that
        is already resolved is a no-op. Every other unresolved move touching
        ``cell`` is queued towards its other endpoint.
        """
        move = self._by_id[move_id]
        if move.resolved is not None:
            return False
        if self.board[cell] is not None:
            # Claimed by another move after this entry was queued.
            self._conflict(move, cell)
            return False

        self._fix(move, cell)
        for other in self.moves:
            if other.resolved is not None or other.id == move.id:
                continue
            if not other.touches(cell):
                continue
            forced = other.other(cell)
            if self.board[forced] is None:
                self._queue.append((other.id, forced))
            else:
                self._conflict(other, forced)
        return True

    def sweep(self) -> None:
        """Force any unresolved move touching a classical cell.

        Repeats until a full pass changes nothing, since each forced
        resolution can pin a further move.
        """
        changed = True
        while changed:
            changed = False
            for move in self.moves:
                if move.resolved is not None or move.id in self._conflicted:
                    continue
                a_taken = self.board[move.a] is not None
                b_taken = self.board[move.b] is not None
                if a_taken and b_taken:
                    self._conflict(move, move.b)
                elif a_taken or b_taken:
                    self._fix(move, move.b if a_taken else move.a)
                    changed = True

    def run(self, closer_move_id: int, chosen_cell: int) -> CollapseResult:
        closer = self._by_id.get(closer_move_id)
        if closer is None:
            raise InvalidStateError(
                f"unknown closer move {closer_move_id}",
                context={"move_id": closer_move_id},
            )
        if closer.resolved is not None:
            raise InvalidStateError(
                f"closer move {closer_move_id} is already resolved",
                context={"move_id": closer_move_id, "resolved": closer.resolved},
            )
        if not closer.touches(chosen_cell):
            raise InvalidChoiceError(
                f"cell {chosen_cell} is not one of move {closer_move_id}'s cells",
                rule_ref="closer-endpoint",
                context={"cell": chosen_cell, "choices": list(closer.cells)},
            )
        if BoardManager.is_classical(self.board, chosen_cell):
            raise InvalidStateError(
                f"chosen cell {chosen_cell} is already classical",
                context={"cell": chosen_cell},
            )

        self._queue.append((closer_move_id, chosen_cell))
        while self._queue:
            move_id, cell = self._queue.popleft()
            self.apply_forced(move_id, cell)
        self.sweep()

        logger.info(
            "Collapse of move %d at cell %d resolved moves %s",
            closer_move_id,
            chosen_cell,
            self.resolution_order,
        )
        return CollapseResult(
            moves=self.moves,
            board=self.board,
            resolution_order=self.resolution_order,
            conflicts=self.conflicts,
            steps=len(self.resolution_order),
        )


def resolve(
    moves: Sequence[Move],
    board: Sequence[Player | None],
    closer_move_id: int,
    chosen_cell: int,
    strict: bool | None = None,
) -> CollapseResult:
    """Collapse the component containing ``closer_move_id``.

    ``moves`` and ``board`` are not modified; the updated copies are in the
    returned ``CollapseResult``.
    """
    return CollapseResolver(moves, board, strict=strict).run(
        closer_move_id, chosen_cell
    )
