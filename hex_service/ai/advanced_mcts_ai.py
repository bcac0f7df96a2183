"""
Optimized MCTS AI for Hex

Time-budgeted UCT+RAVE over a ``FastHexBoard``: one flat board restored
per iteration, union-find win checks, centrality priors for unvisited
children, and playouts that answer bridge intrusions. After each search
the visit distribution of the root is kept as a 0-100 confidence map for
the client's analysis overlay.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional

import numpy as np

from ..game_engine import HexGame
from ..models import Cell
from . import tactics
from .base import BaseAI
from .fast_board import FastHexBoard
from .search_tree import NO_PARENT, SearchTree

logger = logging.getLogger(__name__)


def score_key(row: int, col: int) -> str:
    return f"{row},{col}"


class AdvancedMCTSAI(BaseAI):
    """Wall-clock budgeted MCTS with RAVE and smart playouts"""

    supports_analytics = True

    EXPLORATION_CONSTANT = 0.8
    # RAVE bias b in beta = n_rave / (n_rave + n + b * n_rave * n)
    RAVE_BIAS = 500.0
    # Urgency of an unvisited child is FPU_BASE + prior + RAVE estimate
    FPU_BASE = 1.0
    DEFAULT_TIME_LIMIT_MS = 1000

    def __init__(self, side, config, game=None, clock=None):
        super().__init__(side, config, game=game, clock=clock)
        self.last_scores: Dict[str, float] = {}
        self.last_simulations = 0

    def select_move(self, game: HexGame) -> Optional[Cell]:
        valid_moves = game.valid_moves()
        if not valid_moves:
            self.last_scores = {}
            return None

        forced = tactics.find_critical_move(game, block_any=True)
        if forced is None:
            forced = self.get_opening_move(game)
        if forced is not None:
            self.last_scores = {score_key(*forced): 100.0}
            return forced

        return self.run_search(game)

    def get_normalized_scores(self) -> Dict[str, float]:
        """Confidence per "row,col" from the last search (0-100)."""
        return dict(self.last_scores)

    def run_search(self, game: HexGame) -> Optional[Cell]:
        board = FastHexBoard(game)
        if board.winner or not board.empty:
            self.last_scores = {}
            return None

        tree = SearchTree()
        root = tree.add_root(mover=3 - board.current_player)
        self._expand(tree, root, board)

        time_limit_ms = self.config.time_limit_ms or self.DEFAULT_TIME_LIMIT_MS
        max_iterations = self.config.simulations
        batch_size = self.config.batch_size

        start = self.clock()
        deadline = start + time_limit_ms / 1000.0
        iterations = 0
        done = False
        while not done:
            for _ in range(batch_size):
                self._run_simulation(tree, root, board)
                iterations += 1
                if max_iterations is not None and iterations >= max_iterations:
                    done = True
                    break
            if self.clock() >= deadline:
                done = True

        elapsed = self.clock() - start
        self.last_simulations = iterations
        logger.debug(
            "Advanced MCTS: %d sims in %.0fms (%.0f sims/s)",
            iterations,
            elapsed * 1000,
            iterations / elapsed if elapsed > 0 else 0.0,
        )

        self._update_scores(tree, root, game)
        best = self._best_child(tree, root)
        if best is None:
            return self.get_random_element(game.valid_moves())
        return game.geometry.coords(tree[best].move)

    def _run_simulation(self, tree: SearchTree, root: int, board: FastHexBoard) -> None:
        board.reset()

        idx = root
        node = tree[idx]
        while node.children and not node.terminal:
            idx = self._select_child(tree, idx)
            node = tree[idx]
            board.play(node.move)

        winner = board.winner
        if not winner:
            if not node.children and not node.terminal:
                self._expand(tree, idx, board)
            winner = board.playout(self.rng)
        else:
            node.terminal = True

        played: dict[int, set[int]] = {1: set(), 2: set()}
        for cell, side in board.history:
            played[side].add(cell)
        tree.backpropagate(idx, winner, played)

    def _expand(self, tree: SearchTree, idx: int, board: FastHexBoard) -> None:
        """Add a child per legal move with a centrality prior."""
        if board.winner:
            tree[idx].terminal = True
            return
        moves = board.valid_moves()
        if not moves:
            tree[idx].terminal = True
            return

        size = board.size
        center = (size - 1) / 2.0
        mover = board.current_player
        rows, cols = np.divmod(np.asarray(moves), size)
        priors = 1.0 - np.hypot(rows - center, cols - center) / size
        for move, prior in zip(moves, priors.tolist()):
            tree.add_child(idx, move, mover, prior=prior)

    def _select_child(self, tree: SearchTree, idx: int) -> int:
        parent = tree[idx]
        log_total = math.log(parent.visits or 1)

        best_idx = NO_PARENT
        best_value = -float("inf")
        for child_idx in parent.children:
            child = tree[child_idx]
            if child.visits == 0:
                value = self.FPU_BASE + child.prior + child.rave_value
            else:
                beta = child.rave_visits / (
                    child.rave_visits
                    + child.visits
                    + self.RAVE_BIAS * child.rave_visits * child.visits
                    + 1e-9
                )
                value = (
                    (1.0 - beta) * child.win_rate
                    + beta * child.rave_value
                    + self.EXPLORATION_CONSTANT * math.sqrt(log_total / child.visits)
                )
            if value > best_value:
                best_value = value
                best_idx = child_idx
        return best_idx

    @staticmethod
    def _best_child(tree: SearchTree, root: int) -> Optional[int]:
        best_idx = None
        best_visits = -1
        for child_idx in tree[root].children:
            if tree[child_idx].visits > best_visits:
                best_visits = tree[child_idx].visits
                best_idx = child_idx
        return best_idx

    def _update_scores(self, tree: SearchTree, root: int, game: HexGame) -> None:
        children = [tree[c] for c in tree[root].children]
        visits = np.array([c.visits for c in children], dtype=np.float64)
        self.last_scores = {}
        if not len(visits) or visits.max() <= 0:
            return
        confidence = visits / visits.max() * 100.0
        for child, score in zip(children, confidence.tolist()):
            if child.visits > 0:
                row, col = game.geometry.coords(child.move)
                self.last_scores[score_key(row, col)] = score
