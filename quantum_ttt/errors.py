"""
Quantum Tic-Tac-Toe Error Hierarchy

Unified exception hierarchy for the rules engine. Every rejection a
``GameSession`` command can produce is a ``QuantumTTTError`` subclass, so
a presentation layer can catch the base class and surface ``to_dict()``.

Usage:
    from quantum_ttt.errors import InvalidSelectionError, QuantumTTTError

    try:
        session.submit_move(3, 3)
    except QuantumTTTError as e:
        logger.warning(f"Rejected: {e.message} ({e.code})")
"""

from typing import Any

__all__ = [
    "IllegalStateForChoiceError",
    "IllegalStateForMoveError",
    "InvalidChoiceError",
    "InvalidMoveError",
    "InvalidSelectionError",
    "InvalidStateError",
    "PropagationConflictError",
    # Base error
    "QuantumTTTError",
    "RulesViolationError",
]


class QuantumTTTError(Exception):
    """Base exception for all rules-engine errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "QTTT_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(QuantumTTTError):
    """Command arguments that break a game rule.

    Attributes:
        rule_ref: Short name of the violated rule (e.g. "distinct-cells")
    """
    code: str = "RULES_VIOLATION"

    def __init__(
        self,
        message: str,
        rule_ref: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.rule_ref = rule_ref
        if rule_ref:
            self.context["rule_ref"] = rule_ref


class InvalidSelectionError(RulesViolationError):
    """Proposed move cells are equal, off the board, or already classical."""
    code: str = "INVALID_SELECTION"


class InvalidChoiceError(RulesViolationError):
    """Collapse choice is not one of the closer move's two cells."""
    code: str = "INVALID_CHOICE"


# =============================================================================
# Game State Errors
# =============================================================================


class InvalidMoveError(QuantumTTTError):
    """Command that cannot be applied in the current game phase.

    Raised when a command is well-formed but the session is in the wrong
    phase to accept it (terminal game, pending collapse, and so on).
    """
    code: str = "INVALID_MOVE"

    def __init__(
        self,
        message: str,
        phase: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.phase = phase
        if phase:
            self.context["phase"] = phase


class IllegalStateForMoveError(InvalidMoveError):
    """``submit_move`` while the game is terminal or a collapse is pending."""
    code: str = "ILLEGAL_STATE_FOR_MOVE"


class IllegalStateForChoiceError(InvalidMoveError):
    """``apply_collapse_choice`` while no collapse is pending."""
    code: str = "ILLEGAL_STATE_FOR_CHOICE"


class InvalidStateError(QuantumTTTError):
    """Corrupted or unexpected game state.

    Raised when the move graph or classical board is in a configuration
    that should not be reachable through normal play.
    """
    code: str = "INVALID_STATE"


class PropagationConflictError(InvalidStateError):
    """Collapse propagation tried to give one cell to two different moves.

    Only raised when ``QTTT_STRICT_PROPAGATION`` is enabled; otherwise the
    conflicting move is left unresolved and the conflict is reported as a
    diagnostic.
    """
    code: str = "PROPAGATION_CONFLICT"

    def __init__(
        self,
        message: str,
        move_id: int | None = None,
        cell: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.move_id = move_id
        self.cell = cell
        if move_id is not None:
            self.context["move_id"] = move_id
        if cell is not None:
            self.context["cell"] = cell
