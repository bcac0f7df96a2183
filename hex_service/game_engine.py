"""
Hex board state and rules.

``HexGame`` is the canonical in-progress game: the grid, side to move,
move count, terminal status, winner, one-time swap eligibility and the
move log. It is mutated only through :meth:`HexGame.apply_move` and
:meth:`HexGame.apply_swap`. Win detection here is the breadth-first
reference check; search code uses ``ConnectivityTracker`` instead and
must agree with it.
"""

from __future__ import annotations

from collections import deque
import logging
from typing import List, Optional

import numpy as np

from .errors import InvalidStateError
from .hex_geometry import HexGeometry
from .models import (
    EMPTY,
    MAX_BOARD_SIZE,
    MIN_BOARD_SIZE,
    BoardSnapshot,
    Cell,
    MoveRecord,
    Side,
)

logger = logging.getLogger(__name__)


class HexGame:
    """Hex game state on an N x N rhombus.

    RED moves first and connects the top row to the bottom row, BLUE
    connects the left column to the right column.
    """

    def __init__(self, size: int = 11):
        if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
            raise InvalidStateError(
                "Unsupported board size",
                context={"size": size},
            )
        self.size = size
        self.geometry = HexGeometry.for_size(size)
        self.board = np.zeros((size, size), dtype=np.int8)
        self.current_player = Side.RED
        self.move_count = 0
        self.game_over = False
        self.winner: Optional[Side] = None
        self.swap_available = False
        self.history: List[tuple[int, int, Side]] = []

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def is_legal_move(self, row: int, col: int) -> bool:
        """In bounds, empty, and not the banned opening centre."""
        if not (0 <= row < self.size and 0 <= col < self.size):
            return False
        if self.board[row, col] != EMPTY:
            return False
        if (
            self.move_count == 0
            and self.geometry.banned_first_move == row * self.size + col
        ):
            return False
        return True

    def apply_move(self, row: int, col: int) -> bool:
        """Place a stone for the side to move.

        Returns False, leaving the state untouched, when the game is over
        or the move is illegal. On a win the side to move is left as the
        winner.
        """
        if self.game_over or not self.is_legal_move(row, col):
            return False

        mover = self.current_player
        self.board[row, col] = int(mover)
        self.history.append((row, col, mover))
        self.move_count += 1
        self.swap_available = self.move_count == 1

        if self.has_won(mover):
            self.game_over = True
            self.winner = mover
            self.swap_available = False
            return True

        self.current_player = mover.opponent
        return True

    def apply_swap(self) -> bool:
        """Recolour every stone and give the move back to RED.

        Only possible directly after the opening move, and only once.
        """
        if self.game_over or not self.swap_available or self.move_count != 1:
            return False

        red = self.board == Side.RED
        blue = self.board == Side.BLUE
        self.board[red] = int(Side.BLUE)
        self.board[blue] = int(Side.RED)
        self.history = [(r, c, side.opponent) for r, c, side in self.history]
        self.swap_available = False
        self.current_player = Side.RED
        logger.debug("Swap applied on %dx%d board", self.size, self.size)
        return True

    def valid_moves(self) -> List[Cell]:
        if self.game_over:
            return []
        moves = [
            (int(r), int(c)) for r, c in np.argwhere(self.board == EMPTY)
        ]
        if self.move_count == 0 and self.geometry.banned_first_move is not None:
            banned = self.geometry.coords(self.geometry.banned_first_move)
            moves = [m for m in moves if m != banned]
        return moves

    def neighbors(self, row: int, col: int) -> List[Cell]:
        idx = row * self.size + col
        return [self.geometry.coords(n) for n in self.geometry.neighbors[idx]]

    # ------------------------------------------------------------------
    # Connectivity (reference breadth-first implementation)
    # ------------------------------------------------------------------

    def _search_connection(self, side: Side) -> Optional[List[Cell]]:
        geo = self.geometry
        cells = self.board.ravel().tolist()
        parents: dict[int, int] = {}
        queue: deque[int] = deque()
        for idx in range(geo.cell_count):
            if cells[idx] == side and geo.touches_start_edge(idx, side):
                parents[idx] = -1
                queue.append(idx)

        while queue:
            idx = queue.popleft()
            if geo.touches_target_edge(idx, side):
                path = []
                while idx != -1:
                    path.append(geo.coords(idx))
                    idx = parents[idx]
                path.reverse()
                return path
            for n in geo.neighbors[idx]:
                if n not in parents and cells[n] == side:
                    parents[n] = idx
                    queue.append(n)
        return None

    def has_won(self, side: Side) -> bool:
        return self._search_connection(Side(side)) is not None

    def winning_path(self, side: Side) -> Optional[List[Cell]]:
        """One chain of ``side`` stones from its start edge to its target edge."""
        return self._search_connection(Side(side))

    # ------------------------------------------------------------------
    # Copies and snapshots
    # ------------------------------------------------------------------

    def copy(self) -> "HexGame":
        clone = HexGame.__new__(HexGame)
        clone.size = self.size
        clone.geometry = self.geometry
        clone.board = self.board.copy()
        clone.current_player = self.current_player
        clone.move_count = self.move_count
        clone.game_over = self.game_over
        clone.winner = self.winner
        clone.swap_available = self.swap_available
        clone.history = list(self.history)
        return clone

    def cells(self) -> List[int]:
        """Flat row-major list of cell values."""
        return self.board.ravel().tolist()

    def packed_key(self) -> bytes:
        """Compact canonical encoding of the grid, one byte per cell."""
        return self.board.tobytes()

    def to_snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            size=self.size,
            board=self.board.tolist(),
            current_player=self.current_player,
            move_count=self.move_count,
            game_over=self.game_over,
            winner=self.winner,
            swap_available=self.swap_available,
            history=[
                MoveRecord(row=r, col=c, player=side)
                for r, c, side in self.history
            ],
        )

    @classmethod
    def from_snapshot(cls, snapshot: BoardSnapshot) -> "HexGame":
        """Rebuild a game from a transmitted snapshot.

        Raises:
            InvalidStateError: If the snapshot is internally inconsistent.
        """
        size = snapshot.size
        if len(snapshot.board) != size or any(
            len(row) != size for row in snapshot.board
        ):
            raise InvalidStateError(
                "Board grid does not match board size",
                context={"size": size},
            )

        board = np.array(snapshot.board, dtype=np.int64)
        if not np.isin(board, (EMPTY, int(Side.RED), int(Side.BLUE))).all():
            raise InvalidStateError("Board contains invalid cell values")

        stones = int(np.count_nonzero(board))
        if stones != snapshot.move_count:
            raise InvalidStateError(
                "Move count does not match stones on board",
                context={"move_count": snapshot.move_count, "stones": stones},
            )
        if snapshot.game_over and snapshot.winner is None:
            raise InvalidStateError("Finished game has no winner")
        if snapshot.winner is not None and not snapshot.game_over:
            raise InvalidStateError(
                "Open game has a winner",
                context={"winner": Side(snapshot.winner).name},
            )

        # A swap turns RED's opening stone BLUE, so swapped games run one
        # stone behind for RED instead of one ahead.
        red = int(np.count_nonzero(board == Side.RED))
        blue = stones - red
        if red - blue not in (-1, 0, 1):
            raise InvalidStateError(
                "Stone counts cannot arise in play",
                context={"red": red, "blue": blue},
            )
        if not snapshot.game_over:
            expected = cls._expected_to_move(red, blue)
            if expected is not None and snapshot.current_player != expected:
                raise InvalidStateError(
                    "Side to move does not match stones on board",
                    context={
                        "current_player": Side(snapshot.current_player).name,
                        "red": red,
                        "blue": blue,
                    },
                )

        game = cls(size)
        game.board = board.astype(np.int8)
        game.current_player = Side(snapshot.current_player)
        game.move_count = snapshot.move_count
        game.game_over = snapshot.game_over
        game.winner = Side(snapshot.winner) if snapshot.winner is not None else None
        game.swap_available = snapshot.swap_available and snapshot.move_count == 1
        game.history = [(m.row, m.col, Side(m.player)) for m in snapshot.history]

        red_won = game.has_won(Side.RED)
        blue_won = game.has_won(Side.BLUE)
        if red_won and blue_won:
            raise InvalidStateError("Both sides have a connecting chain")
        connected = Side.RED if red_won else Side.BLUE if blue_won else None
        if connected != game.winner:
            raise InvalidStateError(
                "Winner flags do not match the board",
                context={
                    "winner": game.winner.name if game.winner else None,
                    "connected": connected.name if connected else None,
                },
            )
        return game

    @staticmethod
    def _expected_to_move(red: int, blue: int) -> Optional[Side]:
        """Side to move implied by the stone counts of an open game.

        Equal counts are ambiguous once stones are down: RED moves in a
        game without a swap, BLUE in a swapped one.
        """
        if red > blue:
            return Side.BLUE
        if blue > red:
            return Side.RED
        if red == 0:
            return Side.RED
        return None

    def __repr__(self) -> str:
        return (
            f"HexGame(size={self.size}, moves={self.move_count}, "
            f"to_move={self.current_player.name}, winner={self.winner})"
        )
