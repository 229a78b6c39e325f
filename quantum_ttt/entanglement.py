"""Entanglement graph over the nine board cells.

Every unresolved move is an undirected edge between its two cells. Adding
an edge whose endpoints are already connected closes a cycle, which is what
triggers a collapse.

Adjacency is an explicit mapping ``cell -> [(neighbor, move_id), ...]``
kept in insertion order, so breadth-first traversal (and therefore the
cycle a given state reports) is deterministic. Edges are tagged with their
move id rather than keyed by cell pair, so parallel edges never shadow one
another.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from .errors import InvalidStateError
from .models import BOARD_CELLS, Move

logger = logging.getLogger(__name__)

__all__ = ["EntanglementGraph", "detect_cycle"]


class EntanglementGraph:
    """Mutable adjacency structure for the unresolved moves of one game."""

    def __init__(self) -> None:
        self._adjacency: dict[int, list[tuple[int, int]]] = {
            cell: [] for cell in range(BOARD_CELLS)
        }
        self._edges: dict[int, tuple[int, int]] = {}

    @classmethod
    def from_moves(cls, moves: Iterable[Move]) -> "EntanglementGraph":
        """Build a graph from the unresolved members of ``moves``."""
        graph = cls()
        for move in moves:
            if move.resolved is None:
                graph.add_move(move)
        return graph

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, move_id: object) -> bool:
        return move_id in self._edges

    @property
    def move_ids(self) -> list[int]:
        return list(self._edges)

    def add_move(self, move: Move) -> None:
        if move.id in self._edges:
            raise InvalidStateError(
                f"move {move.id} is already in the entanglement graph",
                context={"move_id": move.id},
            )
        if move.resolved is not None:
            raise InvalidStateError(
                f"resolved move {move.id} cannot be entangled",
                context={"move_id": move.id, "resolved": move.resolved},
            )
        self._edges[move.id] = (move.a, move.b)
        self._adjacency[move.a].append((move.b, move.id))
        self._adjacency[move.b].append((move.a, move.id))

    def remove_move(self, move_id: int) -> None:
        a, b = self._edges.pop(move_id)
        self._adjacency[a] = [e for e in self._adjacency[a] if e[1] != move_id]
        self._adjacency[b] = [e for e in self._adjacency[b] if e[1] != move_id]

    def neighbors(self, cell: int) -> list[tuple[int, int]]:
        """``(neighbor, move_id)`` pairs for ``cell`` in insertion order."""
        return list(self._adjacency[cell])

    def has_edge(self, a: int, b: int) -> bool:
        return any(neighbor == b for neighbor, _ in self._adjacency[a])

    def find_path(self, start: int, goal: int) -> list[int] | None:
        """Breadth-first search from ``start`` to ``goal``.

        Returns the move ids of the edges along the path, in walk order from
        ``start``, or ``None`` when the two cells are not connected.
        """
        if start == goal:
            return []
        # cell -> (previous cell, move id of the edge used to reach it)
        prev: dict[int, tuple[int, int] | None] = {start: None}
        queue = deque([start])
        while queue:
            cell = queue.popleft()
            if cell == goal:
                break
            for neighbor, move_id in self._adjacency[cell]:
                if neighbor not in prev:
                    prev[neighbor] = (cell, move_id)
                    queue.append(neighbor)

        if goal not in prev:
            return None

        path: list[int] = []
        at = goal
        while prev[at] is not None:
            parent, move_id = prev[at]  # type: ignore[misc]
            path.append(move_id)
            at = parent
        path.reverse()
        return path

    def component(self, cell: int) -> set[int]:
        """Cells connected to ``cell`` (including ``cell`` itself)."""
        seen = {cell}
        queue = deque([cell])
        while queue:
            current = queue.popleft()
            for neighbor, _ in self._adjacency[current]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        return seen

    def closes_cycle(self, new_move: Move) -> list[int]:
        """Cycle move ids that ``new_move`` would close, or ``[]``.

        The graph is not modified; ``new_move`` must not already be in it.
        """
        if new_move.id in self._edges:
            raise InvalidStateError(
                f"move {new_move.id} is already in the entanglement graph",
                context={"move_id": new_move.id},
            )
        path = self.find_path(new_move.a, new_move.b)
        if path is None:
            return []
        cycle = path + [new_move.id]
        logger.debug(
            "Move %d (%d-%d) closes cycle %s", new_move.id, new_move.a, new_move.b, cycle
        )
        return cycle


def detect_cycle(unresolved_moves: Iterable[Move], new_move: Move) -> list[int]:
    """Return the ordered ids of the cycle ``new_move`` closes, or ``[]``.

    The ids along the existing path from ``new_move.a`` to ``new_move.b``
    come first, in walk order, and ``new_move.id`` is appended last. A move
    parallel to an existing edge closes a two-move cycle.
    """
    graph = EntanglementGraph.from_moves(unresolved_moves)
    return graph.closes_cycle(new_move)
