"""Game session facade for quantum tic-tac-toe.

``GameSession`` owns one game's state and runs its state machine::

    AWAITING_MOVE --(move closes a cycle)--> PENDING_COLLAPSE
    PENDING_COLLAPSE --(collapse choice applied)--> AWAITING_MOVE
    any non-terminal --(win, draw or stalemate)--> TERMINAL

``TERMINAL`` is absorbing until ``reset()``. Commands either return a fresh
``GameSnapshot`` or raise a ``QuantumTTTError`` subclass describing the
rejection; a rejected command leaves the session untouched.

Sessions share no mutable state, so a host running many games keeps one
instance per game. Commands are synchronous and run to completion.
"""
from __future__ import annotations

import logging
import os
import uuid

from .board_manager import BoardManager
from .collapse import resolve
from .entanglement import EntanglementGraph
from .errors import (
    IllegalStateForChoiceError,
    IllegalStateForMoveError,
    InvalidChoiceError,
    InvalidSelectionError,
    QuantumTTTError,
)
from .metrics import (
    record_collapse,
    record_game_outcome,
    record_move,
    record_rejection,
)
from .models import (
    GameOutcome,
    GamePhase,
    GameSnapshot,
    Move,
    OutcomeKind,
    PendingCollapse,
    Player,
    PropagationConflict,
)

logger = logging.getLogger(__name__)

__all__ = ["GameSession"]


DEBUG_ENGINE = os.environ.get("QTTT_DEBUG_ENGINE") == "1"
# With fewer than two free cells no quantum move can be placed; end the game
# as a draw instead of waiting forever.
STALEMATE_IS_DRAW = os.environ.get(
    "QTTT_STALEMATE_IS_DRAW",
    "1",
) in {"1", "true", "yes", "on"}


class GameSession:
    """One quantum tic-tac-toe game.

    Attributes:
        session_id: Opaque identifier, stable across ``reset()``.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._init_state()

    def _init_state(self) -> None:
        self._board = BoardManager.empty_board()
        self._moves: list[Move] = []
        self._graph = EntanglementGraph()
        self._current_player = Player.X
        self._pending: PendingCollapse | None = None
        self._outcome: GameOutcome | None = None
        self._diagnostics: list[PropagationConflict] = []
        self._next_move_id = 1

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def phase(self) -> GamePhase:
        if self._outcome is not None:
            return GamePhase.TERMINAL
        if self._pending is not None:
            return GamePhase.PENDING_COLLAPSE
        return GamePhase.AWAITING_MOVE

    @property
    def current_player(self) -> Player:
        return self._current_player

    @property
    def outcome(self) -> GameOutcome | None:
        return self._outcome

    @property
    def pending_collapse(self) -> PendingCollapse | None:
        return self._pending

    @property
    def is_terminal(self) -> bool:
        return self._outcome is not None

    def legal_cells(self) -> list[int]:
        """Cells a new move may name right now (empty unless awaiting a move)."""
        if self.phase != GamePhase.AWAITING_MOVE:
            return []
        return BoardManager.free_cells(self._board)

    def snapshot(self) -> GameSnapshot:
        ghosts = BoardManager.ghosts_by_cell(self._moves)
        return GameSnapshot(
            session_id=self.session_id,
            board=tuple(self._board),
            moves=tuple(m.model_copy() for m in self._moves),
            current_player=self._current_player,
            phase=self.phase,
            pending_collapse=self._pending,
            outcome=self._outcome,
            ghosts=tuple(tuple(cell) for cell in ghosts),
            free_cells=tuple(BoardManager.free_cells(self._board)),
            diagnostics=tuple(self._diagnostics),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit_move(self, cell_a: int, cell_b: int) -> GameSnapshot:
        """Place the current player's quantum mark on two cells.

        If the new edge closes a cycle the session enters
        ``PENDING_COLLAPSE`` and the turn does not advance; the opponent
        must then call ``apply_collapse_choice``.
        """
        if self._outcome is not None or self._pending is not None:
            raise self._reject(
                IllegalStateForMoveError(
                    "moves are not accepted in this phase",
                    phase=self.phase.value,
                )
            )
        try:
            BoardManager.validate_cell(cell_a)
            BoardManager.validate_cell(cell_b)
        except InvalidSelectionError as e:
            self._reject(e)
            raise
        if cell_a == cell_b:
            raise self._reject(
                InvalidSelectionError(
                    "a quantum move needs two different cells",
                    rule_ref="distinct-cells",
                    context={"cells": [cell_a, cell_b]},
                )
            )
        taken = [c for c in (cell_a, cell_b) if BoardManager.is_classical(self._board, c)]
        if taken:
            raise self._reject(
                InvalidSelectionError(
                    f"cells {taken} already hold classical marks",
                    rule_ref="classical-cell",
                    context={"cells": [cell_a, cell_b], "taken": taken},
                )
            )

        move = Move(
            id=self._next_move_id,
            player=self._current_player,
            a=cell_a,
            b=cell_b,
        )
        cycle = self._graph.closes_cycle(move)
        self._moves.append(move)
        self._graph.add_move(move)
        self._next_move_id += 1
        record_move(move.player.value, closed_cycle=bool(cycle))
        logger.debug("Move %s placed on cells %d and %d", move.label, cell_a, cell_b)

        if cycle:
            self._pending = PendingCollapse(
                cycle_move_ids=tuple(cycle),
                closer_move_id=move.id,
                choice_cells=(cell_a, cell_b),
                chooser=move.player.opponent,
            )
            logger.info(
                "Move %s closed cycle %s; %s chooses between cells %d and %d",
                move.label,
                cycle,
                self._pending.chooser.value,
                cell_a,
                cell_b,
            )
        else:
            self._current_player = self._current_player.opponent
            self._check_terminal()
        self._trace("submit_move")
        return self.snapshot()

    def apply_collapse_choice(self, chosen_cell: int) -> GameSnapshot:
        """Fix the pending closer move at ``chosen_cell`` and propagate."""
        pending = self._pending
        if self._outcome is not None or pending is None:
            raise self._reject(
                IllegalStateForChoiceError(
                    "no collapse is pending",
                    phase=self.phase.value,
                )
            )
        if (
            not BoardManager.is_valid_cell(chosen_cell)
            or chosen_cell not in pending.choice_cells
        ):
            raise self._reject(
                InvalidChoiceError(
                    f"cell {chosen_cell!r} is not a candidate for move "
                    f"{pending.closer_move_id}",
                    rule_ref="closer-endpoint",
                    context={
                        "cell": chosen_cell,
                        "choices": list(pending.choice_cells),
                    },
                )
            )

        try:
            result = resolve(
                self._moves, self._board, pending.closer_move_id, chosen_cell
            )
        except QuantumTTTError as e:
            self._reject(e)
            raise

        self._moves = result.moves
        self._board = result.board
        self._diagnostics.extend(result.conflicts)
        self._graph = EntanglementGraph.from_moves(self._moves)
        self._pending = None
        record_collapse(pending.chooser.value)

        self._check_terminal()
        if self._outcome is None:
            # The chooser is the player after the one who closed the loop.
            self._current_player = pending.chooser
        self._trace("apply_collapse_choice")
        return self.snapshot()

    def reset(self) -> GameSnapshot:
        """Return to the empty initial state from any phase."""
        self._init_state()
        logger.debug("Session %s reset", self.session_id)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_terminal(self) -> None:
        outcome = BoardManager.evaluate(self._board)
        if (
            outcome is None
            and STALEMATE_IS_DRAW
            and len(BoardManager.free_cells(self._board)) < 2
        ):
            outcome = GameOutcome(kind=OutcomeKind.DRAW)
        if outcome is None:
            return
        self._outcome = outcome
        record_game_outcome(outcome.winner.value if outcome.winner else None)
        if outcome.is_draw:
            logger.info("Session %s ended in a draw", self.session_id)
        else:
            logger.info(
                "Session %s won by %s on line %s",
                self.session_id,
                outcome.winner.value,  # type: ignore[union-attr]
                outcome.line,
            )

    def _reject(self, error: QuantumTTTError) -> QuantumTTTError:
        record_rejection(error.code)
        logger.warning("Rejected command in session %s: %s", self.session_id, error)
        return error

    def _trace(self, command: str) -> None:
        if not DEBUG_ENGINE:
            return
        logger.debug(
            "[%s] after %s: phase=%s turn=%s board=%s unresolved=%s",
            self.session_id,
            command,
            self.phase.value,
            self._current_player.value,
            BoardManager.summarize_board(self._board),
            [m.label for m in self._moves if m.resolved is None],
        )
