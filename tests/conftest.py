"""
Shared pytest fixtures for quantum_ttt tests.

Game state fixtures are function-scoped so every test gets an isolated
session and fresh move objects.
"""

from pathlib import Path
import sys
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import pytest

# Ensure the repository root is on sys.path so `import quantum_ttt` works
# when pytest is run from another directory without an install.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from quantum_ttt.game_session import GameSession  # noqa: E402
from quantum_ttt.models import GameSnapshot, Move, Player  # noqa: E402


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def move_factory() -> Callable[..., Move]:
    """Factory for Move instances; the player alternates X/O by id by default."""

    def _create_move(
        move_id: int,
        a: int,
        b: int,
        player: Optional[Player] = None,
        resolved: Optional[int] = None,
    ) -> Move:
        if player is None:
            player = Player.X if move_id % 2 == 1 else Player.O
        return Move(id=move_id, player=player, a=a, b=b, resolved=resolved)

    return _create_move


@pytest.fixture
def chain_factory(move_factory) -> Callable[[Iterable[Tuple[int, int]]], List[Move]]:
    """Build moves 1..n from ``(a, b)`` pairs with alternating players."""

    def _create_chain(pairs: Iterable[Tuple[int, int]]) -> List[Move]:
        return [move_factory(i, a, b) for i, (a, b) in enumerate(pairs, start=1)]

    return _create_chain


@pytest.fixture
def board_factory() -> Callable[[str], List[Optional[Player]]]:
    """Parse a 9-character board string such as ``"XO.X....O"``."""

    def _create_board(layout: str) -> List[Optional[Player]]:
        cells = layout.replace("|", "").replace(" ", "")
        assert len(cells) == 9, f"board layout needs 9 cells, got {layout!r}"
        return [None if c == "." else Player(c) for c in cells]

    return _create_board


# =============================================================================
# SESSION FIXTURES
# =============================================================================


@pytest.fixture
def session() -> GameSession:
    return GameSession(session_id="test-session")


@pytest.fixture
def play() -> Callable[[GameSession, Sequence[Tuple[int, int]]], GameSnapshot]:
    """Submit a sequence of quantum moves and return the last snapshot."""

    def _play(
        game: GameSession, pairs: Sequence[Tuple[int, int]]
    ) -> GameSnapshot:
        snap = game.snapshot()
        for a, b in pairs:
            snap = game.submit_move(a, b)
        return snap

    return _play
