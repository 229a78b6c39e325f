"""Prometheus metrics for the quantum tic-tac-toe rules engine.

Counters are process-wide and labeled so a host serving many sessions can
see move volume, rejection reasons, collapse frequency and how games end.
``PROPAGATION_CONFLICTS`` is the diagnostic channel for collapse
propagation that had to leave a move unresolved; in correct play it stays
at zero.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter


MOVES_TOTAL: Final[Counter] = Counter(
    "quantum_ttt_moves_total",
    "Total accepted quantum moves, labeled by player and whether they closed a cycle.",
    labelnames=("player", "result"),
)

REJECTIONS_TOTAL: Final[Counter] = Counter(
    "quantum_ttt_rejections_total",
    "Total rejected session commands, labeled by error code.",
    labelnames=("code",),
)

COLLAPSES_TOTAL: Final[Counter] = Counter(
    "quantum_ttt_collapses_total",
    "Total collapses applied, labeled by the player who chose the outcome.",
    labelnames=("chooser",),
)

PROPAGATION_CONFLICTS: Final[Counter] = Counter(
    "quantum_ttt_propagation_conflicts_total",
    "Moves left unresolved because propagation found their forced cell taken.",
)

GAME_OUTCOMES: Final[Counter] = Counter(
    "quantum_ttt_game_outcomes_total",
    "Total finished games, labeled by outcome (x_wins, o_wins, draw).",
    labelnames=("outcome",),
)


def record_move(player: str, closed_cycle: bool) -> None:
    MOVES_TOTAL.labels(
        player=player,
        result="cycle" if closed_cycle else "entangled",
    ).inc()


def record_rejection(code: str) -> None:
    REJECTIONS_TOTAL.labels(code=code).inc()


def record_collapse(chooser: str) -> None:
    COLLAPSES_TOTAL.labels(chooser=chooser).inc()


def record_propagation_conflict() -> None:
    PROPAGATION_CONFLICTS.inc()


def record_game_outcome(winner: str | None) -> None:
    """Record a finished game; ``winner`` is ``None`` for a draw."""
    outcome = f"{winner.lower()}_wins" if winner else "draw"
    GAME_OUTCOMES.labels(outcome=outcome).inc()
