"""Collapse propagation tests."""

import pytest

from quantum_ttt.board_manager import BoardManager
from quantum_ttt.collapse import CollapseResolver, resolve
from quantum_ttt.errors import (
    InvalidChoiceError,
    InvalidStateError,
    PropagationConflictError,
)
from quantum_ttt.models import Player, PropagationConflict
from tests.helpers import assert_board_consistent


X, O = Player.X, Player.O


def _resolved(moves):
    return {m.id: m.resolved for m in moves}


def test_triangle_choice_forces_chain(chain_factory):
    moves = chain_factory([(0, 1), (1, 2), (2, 0)])
    result = resolve(moves, BoardManager.empty_board(), 3, 2)

    assert result.board[:3] == [X, O, X]
    assert result.board[3:] == [None] * 6
    assert _resolved(result.moves) == {1: 0, 2: 1, 3: 2}
    assert result.resolution_order == [3, 2, 1]
    assert result.steps == 3
    assert result.conflicts == []
    assert_board_consistent(result.moves, result.board)


def test_other_choice_resolves_the_other_way(chain_factory):
    moves = chain_factory([(0, 1), (1, 2), (2, 0)])
    result = resolve(moves, BoardManager.empty_board(), 3, 0)

    assert result.board[:3] == [X, X, O]
    assert _resolved(result.moves) == {1: 1, 2: 2, 3: 0}
    assert result.resolution_order == [3, 1, 2]


def test_inputs_are_not_mutated(chain_factory):
    moves = chain_factory([(0, 1), (1, 2), (2, 0)])
    board = BoardManager.empty_board()
    resolve(moves, board, 3, 2)

    assert all(m.resolved is None for m in moves)
    assert board == [None] * 9


def test_branch_hanging_off_cycle_is_resolved(chain_factory):
    # 1:X(0,1) 2:O(1,2) 3:X(2,5) tail, 4:O(0,2) closes 0-1-2, 5:X(6,7) unrelated.
    moves = chain_factory([(0, 1), (1, 2), (2, 5), (0, 2), (6, 7)])
    result = resolve(moves, BoardManager.empty_board(), 4, 0)

    assert result.resolution_order == [4, 1, 2, 3]
    assert _resolved(result.moves) == {1: 1, 2: 2, 3: 5, 4: 0, 5: None}
    assert result.board[0] == O and result.board[1] == X
    assert result.board[2] == O and result.board[5] == X
    assert result.board[6] is None and result.board[7] is None
    assert_board_consistent(result.moves, result.board)


def test_steps_bounded_by_unresolved_moves(chain_factory):
    moves = chain_factory([(0, 3), (3, 1), (1, 4), (4, 2), (2, 5), (5, 0)])
    result = resolve(moves, BoardManager.empty_board(), 6, 5)

    assert result.steps == 6
    assert result.steps <= sum(1 for m in moves if m.resolved is None)
    assert all(m.resolved in (m.a, m.b) for m in result.moves)


def test_existing_classical_cells_are_kept(board_factory, move_factory):
    board = board_factory("....X....")
    moves = [move_factory(1, 3, 4, resolved=4, player=X)] + [
        move_factory(i + 2, a, b) for i, (a, b) in enumerate([(0, 1), (1, 0)])
    ]
    # Moves 2:O(0,1) and 3:X(1,0); move 3 closes the two-move cycle.
    result = resolve(moves, board, 3, 1)

    assert result.board[4] == X
    assert result.board[1] == X and result.board[0] == O
    assert _resolved(result.moves) == {1: 4, 2: 0, 3: 1}


class TestPreconditions:
    def test_choice_must_be_closer_endpoint(self, chain_factory):
        moves = chain_factory([(0, 1), (1, 2), (2, 0)])
        with pytest.raises(InvalidChoiceError) as exc_info:
            resolve(moves, BoardManager.empty_board(), 3, 1)
        assert exc_info.value.context["choices"] == [2, 0]

    def test_unknown_closer(self, chain_factory):
        moves = chain_factory([(0, 1)])
        with pytest.raises(InvalidStateError):
            resolve(moves, BoardManager.empty_board(), 9, 0)

    def test_resolved_closer(self, move_factory):
        moves = [move_factory(1, 0, 1, resolved=0)]
        with pytest.raises(InvalidStateError):
            resolve(moves, [X] + [None] * 8, 1, 1)


class TestIdempotence:
    def test_second_dequeue_of_resolved_move_is_noop(self, chain_factory):
        resolver = CollapseResolver(chain_factory([(0, 1)]), BoardManager.empty_board())

        assert resolver.apply_forced(1, 0) is True
        assert resolver.apply_forced(1, 0) is False
        assert resolver.apply_forced(1, 1) is False

        assert resolver.board[0] == X
        assert resolver.board[1] is None
        assert resolver.resolution_order == [1]
        assert resolver.conflicts == []

    def test_dequeue_onto_taken_cell_records_conflict(self, chain_factory, board_factory):
        resolver = CollapseResolver(
            chain_factory([(0, 1)]), board_factory("O........"), strict=False
        )

        assert resolver.apply_forced(1, 0) is False
        assert resolver.moves[0].resolved is None
        assert resolver.board[0] == O
        assert resolver.conflicts == [
            PropagationConflict(move_id=1, cell=0, occupied_by=O)
        ]


class TestConflicts:
    def test_forced_cell_already_classical_leaves_move_unresolved(
        self, chain_factory, board_factory
    ):
        # Malformed state: move 2 still spans cell 2, which O already holds.
        moves = chain_factory([(0, 1), (1, 2)])
        result = resolve(moves, board_factory("..O......"), 1, 1, strict=False)

        assert _resolved(result.moves) == {1: 1, 2: None}
        assert result.board[1] == X
        assert result.board[2] == O
        assert result.conflicts == [
            PropagationConflict(move_id=2, cell=2, occupied_by=O)
        ]

    def test_two_moves_competing_for_one_cell(self, move_factory):
        # Moves 1 and 2 are parallel and both unresolved (unreachable in play).
        moves = [
            move_factory(1, 0, 2, player=X),
            move_factory(2, 0, 2, player=O),
            move_factory(3, 0, 1, player=X),
        ]
        result = resolve(moves, BoardManager.empty_board(), 3, 0, strict=False)

        assert _resolved(result.moves) == {1: 2, 2: None, 3: 0}
        assert len(result.conflicts) == 1
        assert result.conflicts[0].move_id == 2
        assert_board_consistent(result.moves, result.board)

    def test_strict_mode_raises_and_leaves_inputs_alone(
        self, chain_factory, board_factory
    ):
        moves = chain_factory([(0, 1), (1, 2)])
        board = board_factory("..O......")
        with pytest.raises(PropagationConflictError) as exc_info:
            resolve(moves, board, 1, 1, strict=True)

        assert exc_info.value.move_id == 2
        assert exc_info.value.cell == 2
        assert all(m.resolved is None for m in moves)
        assert board[1] is None

    def test_sweep_resolves_moves_missed_by_queue(self, move_factory, board_factory):
        # Move 2 touches classical cell 3 but is not adjacent to the closer.
        moves = [move_factory(1, 0, 1, player=X), move_factory(2, 3, 5, player=O)]
        result = resolve(moves, board_factory("...X....."), 1, 0)

        assert _resolved(result.moves) == {1: 0, 2: 5}
        assert result.resolution_order == [1, 2]
        assert result.conflicts == []
