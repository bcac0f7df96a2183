"""
Random AI implementation for Hex
Plays uniformly at random, optionally after a win/block check
"""

from __future__ import annotations

from ..game_engine import HexGame
from ..models import Cell
from . import tactics
from .base import BaseAI


class RandomAI(BaseAI):
    """AI that selects random legal moves.

    In smart mode it first takes an immediate win, then answers an
    immediate threat (a random one when there are several).
    """

    def select_move(self, game: HexGame) -> Cell | None:
        valid_moves = game.valid_moves()
        if not valid_moves:
            return None

        if self.config.smart_mode:
            tracker = tactics.build_tracker(game)
            win = tactics.find_winning_move(game, tracker=tracker)
            if win is not None:
                return win
            blocks = tactics.find_blocking_moves(game, tracker=tracker)
            if blocks:
                return self.get_random_element(blocks)

        return self.get_random_element(valid_moves)

    def evaluate_position(self, game: HexGame) -> float:
        """Random AI has no opinion; return a small random jitter."""
        return self.rng.uniform(-0.1, 0.1)
