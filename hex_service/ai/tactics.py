"""Short-horizon tactical checks shared by the strategies.

All checks run on a ``ConnectivityTracker`` built from the position, so a
one-ply win test costs a neighbour scan rather than a board traversal.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..connectivity import ConnectivityTracker
from ..models import EMPTY, Cell, Side

logger = logging.getLogger(__name__)

# Two-move searches are only tried once the board is this empty or fuller
TWO_MOVE_WIN_MAX_EMPTY = 20

# Opening stones within this Manhattan distance of the centre get swapped
SWAP_CENTER_DISTANCE = 1


def legal_indices(game) -> list[int]:
    """Flat indices of the legal moves of ``game``."""
    if game.game_over:
        return []
    indices = np.flatnonzero(game.board.ravel() == EMPTY).tolist()
    banned = game.geometry.banned_first_move
    if game.move_count == 0 and banned is not None:
        indices = [idx for idx in indices if idx != banned]
    return indices


def build_tracker(game) -> ConnectivityTracker:
    return ConnectivityTracker.from_cells(game.cells(), game.size)


def find_winning_move(
    game,
    side: Optional[Side] = None,
    tracker: Optional[ConnectivityTracker] = None,
) -> Optional[Cell]:
    """A cell that wins on the spot for ``side`` (default: side to move)."""
    side = side or game.current_player
    tracker = tracker or build_tracker(game)
    for idx in legal_indices(game):
        if tracker.would_win(idx, side):
            return game.geometry.coords(idx)
    return None


def find_blocking_moves(
    game, tracker: Optional[ConnectivityTracker] = None
) -> list[Cell]:
    """Every cell where the opponent of the side to move would win next ply."""
    opponent = game.current_player.opponent
    tracker = tracker or build_tracker(game)
    return [
        game.geometry.coords(idx)
        for idx in legal_indices(game)
        if tracker.would_win(idx, opponent)
    ]


def find_two_move_win(
    game,
    side: Side,
    tracker: Optional[ConnectivityTracker] = None,
) -> Optional[Cell]:
    """A cell after which ``side`` has two or more distinct winning follow-ups."""
    tracker = tracker or build_tracker(game)
    empties = legal_indices(game)
    for first in empties:
        if tracker.would_win(first, side):
            continue
        branch = tracker.copy()
        branch.record_index(first, side)
        wins = 0
        for second in empties:
            if second != first and branch.would_win(second, side):
                wins += 1
                if wins >= 2:
                    return game.geometry.coords(first)
    return None


def find_virtual_connection_threat(game) -> Optional[Cell]:
    """An empty cell that sits in the carrier of two or more opponent bridges.

    Taking it forces the opponent to answer one bridge while the other
    stays contested.
    """
    opponent = game.current_player.opponent
    cells = game.cells()
    carriers = game.geometry.carriers
    for idx in legal_indices(game):
        threats = 0
        for a, b, other in carriers[idx]:
            if (
                cells[a] == opponent
                and cells[b] == opponent
                and cells[other] == EMPTY
            ):
                threats += 1
        if threats >= 2:
            return game.geometry.coords(idx)
    return None


def find_critical_move(
    game,
    block_any: bool = True,
    extended: bool = False,
) -> Optional[Cell]:
    """Immediate win, else forced block, else (optionally) deeper threats.

    Args:
        game: Position to inspect.
        block_any: When the opponent has several winning cells, return the
            first of them; otherwise only a single threat is answered.
        extended: Also look for two-move wins (own, then opponent's) and
            double bridge intrusions.

    Returns:
        The cell to play, or None when nothing is forced.
    """
    if game.game_over:
        return None
    tracker = build_tracker(game)

    win = find_winning_move(game, tracker=tracker)
    if win is not None:
        return win

    threats = find_blocking_moves(game, tracker=tracker)
    if len(threats) == 1 or (threats and block_any):
        return threats[0]

    if not extended:
        return None

    if len(legal_indices(game)) <= TWO_MOVE_WIN_MAX_EMPTY:
        move = find_two_move_win(game, game.current_player, tracker=tracker)
        if move is not None:
            return move
        move = find_two_move_win(
            game, game.current_player.opponent, tracker=tracker
        )
        if move is not None:
            logger.debug("Blocking opponent double threat at %s", move)
            return move

    return find_virtual_connection_threat(game)


def should_swap(game) -> bool:
    """Whether the second player should take the opening stone.

    Only the side that moves second may swap, once, directly after the
    first stone; it does so when that stone is close to the centre.
    """
    if game.game_over or not game.swap_available or game.move_count != 1:
        return False
    if game.current_player != Side.BLUE:
        return False
    if game.history:
        row, col, _ = game.history[0]
    else:
        row, col = (int(v) for v in np.argwhere(game.board != EMPTY)[0])
    center = game.size // 2
    return abs(row - center) + abs(col - center) <= SWAP_CENTER_DISTANCE
