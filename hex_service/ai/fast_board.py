"""Flat, array-backed board used by the optimized MCTS playouts.

The root position is captured once; :meth:`FastHexBoard.reset` restores
it before every simulation by copying plain lists, which is far cheaper
than rebuilding a ``HexGame`` per iteration. Win checks go through the
embedded ``ConnectivityTracker``.
"""

from __future__ import annotations

import random

import numpy as np

from ..connectivity import ConnectivityTracker
from ..game_engine import HexGame
from ..models import EMPTY


class FastHexBoard:
    """Mutable playout board with O(1) move removal and win checks.

    Attributes:
        cells: Flat cell values.
        empty: Empty cell indices in arbitrary order.
        current_player: Side to move (1 or 2).
        winner: Winning side, or 0 while the game is open.
        history: ``(cell, side)`` moves played since the last reset.
    """

    def __init__(self, game: HexGame):
        self.size = game.size
        self.geometry = game.geometry

        flat = game.board.ravel()
        self._root_cells = flat.tolist()
        self._root_empty = np.flatnonzero(flat == EMPTY).tolist()
        self._root_slot = [-1] * self.geometry.cell_count
        for pos, idx in enumerate(self._root_empty):
            self._root_slot[idx] = pos
        self._root_player = int(game.current_player)
        self._root_filled = self.geometry.cell_count - len(self._root_empty)
        self._root_tracker = ConnectivityTracker.from_cells(self._root_cells, self.size)
        winner = self._root_tracker.winner()
        self._root_winner = int(winner) if winner is not None else 0
        if game.history:
            row, col, _ = game.history[-1]
            self._root_last_move = self.geometry.index(row, col)
        else:
            self._root_last_move = -1

        self.reset()

    def reset(self) -> None:
        self.cells = list(self._root_cells)
        self.empty = list(self._root_empty)
        self.slot = list(self._root_slot)
        self.tracker = self._root_tracker.copy()
        self.current_player = self._root_player
        self.filled = self._root_filled
        self.winner = self._root_winner
        self.last_move = self._root_last_move
        self.history: list[tuple[int, int]] = []

    def valid_moves(self) -> list[int]:
        if self.winner:
            return []
        banned = self.geometry.banned_first_move
        if self.filled == 0 and banned is not None:
            return [idx for idx in self.empty if idx != banned]
        return list(self.empty)

    def play(self, idx: int) -> int:
        """Place a stone for the side to move; return the winner (0 if none)."""
        side = self.current_player
        self.cells[idx] = side

        pos = self.slot[idx]
        tail = self.empty.pop()
        if tail != idx:
            self.empty[pos] = tail
            self.slot[tail] = pos
        self.slot[idx] = -1

        self.tracker.record_index(idx, side)
        self.filled += 1
        self.last_move = idx
        self.history.append((idx, side))
        if self.tracker.has_won(side):
            self.winner = side
        self.current_player = 3 - side
        return self.winner

    def bridge_reply(self) -> int:
        """Cell that restores a bridge the last move intruded on, or -1."""
        intrusion = self.last_move
        if intrusion < 0:
            return -1
        me = self.current_player
        cells = self.cells
        for a, b, other in self.geometry.carriers[intrusion]:
            if cells[a] == me and cells[b] == me and cells[other] == EMPTY:
                return other
        return -1

    def random_move(self, rng: random.Random) -> int:
        banned = self.geometry.banned_first_move if self.filled == 0 else None
        empty = self.empty
        while True:
            idx = empty[rng.randrange(len(empty))]
            if idx != banned:
                return idx

    def playout(self, rng: random.Random) -> int:
        """Play to the end: bridge replies first, otherwise uniform random."""
        while not self.winner and self.empty:
            idx = self.bridge_reply()
            if idx < 0:
                idx = self.random_move(rng)
            self.play(idx)
        return self.winner
