"""Rules engine for Quantum Tic-Tac-Toe.

Usage:
    from quantum_ttt import GameSession

    session = GameSession()
    session.submit_move(0, 1)          # X
    session.submit_move(1, 2)          # O
    snap = session.submit_move(2, 0)   # X closes the 0-1-2 cycle
    snap = session.apply_collapse_choice(2)  # O picks where X3 lands
"""

from quantum_ttt.board_manager import WIN_LINES, BoardManager, evaluate
from quantum_ttt.collapse import CollapseResolver, resolve
from quantum_ttt.entanglement import EntanglementGraph, detect_cycle
from quantum_ttt.errors import (
    IllegalStateForChoiceError,
    IllegalStateForMoveError,
    InvalidChoiceError,
    InvalidMoveError,
    InvalidSelectionError,
    InvalidStateError,
    PropagationConflictError,
    QuantumTTTError,
    RulesViolationError,
)
from quantum_ttt.game_session import GameSession
from quantum_ttt.models import (
    CollapseResult,
    GameOutcome,
    GamePhase,
    GameSnapshot,
    GhostMark,
    Move,
    OutcomeKind,
    PendingCollapse,
    Player,
    PropagationConflict,
)

__all__ = [
    "BoardManager",
    "CollapseResolver",
    "CollapseResult",
    "EntanglementGraph",
    "GameOutcome",
    "GamePhase",
    "GameSession",
    "GameSnapshot",
    "GhostMark",
    "IllegalStateForChoiceError",
    "IllegalStateForMoveError",
    "InvalidChoiceError",
    "InvalidMoveError",
    "InvalidSelectionError",
    "InvalidStateError",
    "Move",
    "OutcomeKind",
    "PendingCollapse",
    "Player",
    "PropagationConflict",
    "PropagationConflictError",
    "QuantumTTTError",
    "RulesViolationError",
    "WIN_LINES",
    "detect_cycle",
    "evaluate",
    "resolve",
]
