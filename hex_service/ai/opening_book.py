"""Static opening tables for the first few plies.

The book is advisory: it returns a candidate cell or None, and every
candidate is checked against the board before it is returned. Duplicated
entries in a table weight the random draw towards them.
"""

from __future__ import annotations

import random
from typing import Optional

from ..models import Cell, Side

# Book is only consulted while move_count <= MAX_BOOK_PLY
MAX_BOOK_PLY = 4

FIRST_MOVES: dict[int, tuple[Cell, ...]] = {
    # Centre is illegal on 7x7; neighbours of the centre listed twice.
    7: (
        (2, 3), (3, 2), (3, 4), (4, 3),
        (2, 3), (3, 2), (3, 4), (4, 3),
        (2, 2), (2, 4), (4, 2), (4, 4),
    ),
    11: (
        (4, 5), (5, 4), (5, 6), (6, 5),
        (4, 4), (4, 6), (6, 4), (6, 6),
        (3, 5), (5, 3), (5, 7), (7, 5),
    ),
    13: (
        (5, 6), (6, 5), (6, 7), (7, 6),
        (5, 5), (5, 7), (7, 5), (7, 7),
    ),
}

# Sizes with a second-move response set
RESPONSE_SIZES = (7,)


def _default_first_moves(size: int) -> list[Cell]:
    center = size // 2
    offset = size // 6 or 1
    return [
        (center + dr, center + dc)
        for dr in range(-offset, offset + 1)
        for dc in range(-offset, offset + 1)
        if (dr, dc) != (0, 0)
    ]


def _second_move_responses(game) -> list[Cell]:
    """Cells around the opening stone, plus nearby cells close to the centre."""
    if not game.history:
        return []
    row, col, _ = game.history[0]
    center = game.size // 2
    responses = [
        cell for cell in game.neighbors(row, col) if game.is_legal_move(*cell)
    ]
    for dr in range(-2, 3):
        for dc in range(-2, 3):
            r, c = row + dr, col + dc
            if abs(r - center) + abs(c - center) <= 2 and game.is_legal_move(r, c):
                responses.append((r, c))
    return responses


def candidate_moves(game) -> list[Cell]:
    """All legal book candidates for the position (with repeats as weights)."""
    if game.game_over or game.move_count > MAX_BOOK_PLY:
        return []

    if game.move_count == 0:
        table = FIRST_MOVES.get(game.size)
        candidates = list(table) if table else _default_first_moves(game.size)
    elif (
        game.move_count == 1
        and game.size in RESPONSE_SIZES
        and game.current_player == Side.BLUE
    ):
        candidates = _second_move_responses(game)
    else:
        candidates = []

    return [cell for cell in candidates if game.is_legal_move(*cell)]


def get_opening_move(game, rng: random.Random) -> Optional[Cell]:
    """Pick a book move for ``game`` or return None to fall through to search."""
    candidates = candidate_moves(game)
    if not candidates:
        return None
    return rng.choice(candidates)
