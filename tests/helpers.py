"""Assertion helpers shared by the rules-engine tests."""

from typing import Optional, Sequence

from quantum_ttt.board_manager import BoardManager
from quantum_ttt.models import Move, Player


def assert_board_consistent(moves: Sequence[Move], board: Sequence[Optional[Player]]) -> None:
    """Every classical cell belongs to exactly one resolved move of that player."""
    owners = {}
    for move in moves:
        if move.resolved is None:
            continue
        assert move.resolved in (move.a, move.b)
        assert move.resolved not in owners, (
            f"cell {move.resolved} claimed by moves {owners.get(move.resolved)} and {move.id}"
        )
        owners[move.resolved] = move.id
        assert board[move.resolved] == move.player
    for cell in BoardManager.free_cells(board):
        assert cell not in owners
    assert len(owners) == 9 - len(BoardManager.free_cells(board))


# Each round is (X pair, O pair, cell chosen for O's closing move). O's move
# repeats X's cells, so every round is a two-move collapse and X picks next.

# Classical X marks on 0, 4 and 8.
DIAGONAL_FOR_X = [((0, 1), (0, 1), 1), ((4, 5), (4, 5), 5), ((8, 7), (8, 7), 7)]

# Leaves XOX|XOO|OX. with no completed line and only cell 8 free.
ONE_FREE_CELL = [
    ((0, 1), (0, 1), 1),
    ((2, 4), (2, 4), 4),
    ((3, 5), (3, 5), 5),
    ((7, 6), (7, 6), 6),
]


def play_collapse_rounds(game, rounds):
    """Play two-move collapse rounds through the public session commands."""
    snap = game.snapshot()
    for x_pair, o_pair, choice in rounds:
        game.submit_move(*x_pair)
        game.submit_move(*o_pair)
        snap = game.apply_collapse_choice(choice)
    return snap
