"""
MCTS AI implementation for Hex

UCT tree search with RAVE (all-moves-as-first) statistics and
heuristic-guided playouts. Small boards and late positions are handed to
the bounded alpha-beta search instead, where it is both faster and
stronger.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from ..connectivity import ConnectivityTracker
from ..game_engine import HexGame
from ..models import EMPTY, AIConfig, Cell, Side
from . import tactics
from .base import BaseAI
from .minimax_ai import BoundedSearch
from .position_evaluator import placement_scores
from .search_tree import NO_PARENT, SearchTree

logger = logging.getLogger(__name__)


class MCTSAI(BaseAI):
    """Monte Carlo Tree Search AI with RAVE"""

    EXPLORATION_CONSTANT = 0.7
    RAVE_K = 2000.0
    # Runner-up overrides the most visited child within this visit band
    ROBUST_TOLERANCE = 0.05
    PLAYOUT_TEMPERATURE = 0.3
    DEFAULT_SIMULATIONS = 1000

    # Expansion-order scores
    WIN_PRIORITY = 10000.0
    BLOCK_PRIORITY = 5000.0
    EVAL_WEIGHT = 15.0
    FRIENDLY_NEIGHBOR_BONUS = 4.0
    ENEMY_NEIGHBOR_BONUS = 2.5
    CONNECTOR_BONUS = 10.0
    DOUBLE_BRIDGE_BONUS = 12.0
    EDGE_TEMPLATE_BONUS = 8.0
    OPENING_CENTER_WEIGHT = 0.7
    OPENING_PLIES = 6

    # Playout policy bonuses on top of the evaluator score
    PLAYOUT_NEIGHBOR_BONUS = 0.15
    PLAYOUT_EDGE_BONUS = 0.1

    # Boards larger than this only grow the tree every EXPANSION_INTERVAL
    # iterations
    PROGRESSIVE_WIDENING_SIZE = 11
    EXPANSION_INTERVAL = 50

    def __init__(self, side: Side, config: AIConfig, game=None, clock=None):
        super().__init__(side, config, game=game, clock=clock)
        self.bounded_search = BoundedSearch()
        self.last_simulations = 0

    def select_move(self, game: HexGame) -> Optional[Cell]:
        valid_moves = game.valid_moves()
        if not valid_moves:
            return None

        critical = tactics.find_critical_move(game, block_any=True, extended=True)
        if critical is not None:
            return critical

        book_move = self.get_opening_move(game)
        if book_move is not None:
            return book_move

        if self.config.use_heuristic_search and self.should_use_heuristic_search(game):
            max_depth, beam_width = self.heuristic_search_config(game)
            result = self.bounded_search.search(
                game,
                search_side=self.side,
                max_depth=max_depth,
                beam_width=beam_width,
            )
            if result.move is not None:
                return result.move

        return self.run_search(game)

    # ------------------------------------------------------------------
    # Hybrid mode
    # ------------------------------------------------------------------

    def should_use_heuristic_search(self, game: HexGame) -> bool:
        """Small boards and endgames go to the bounded search."""
        remaining = len(game.valid_moves())
        hard = self.config.difficulty == "hard"
        medium = self.config.difficulty == "medium"

        if remaining <= 15:
            return True
        if game.size <= 7 and remaining <= 25:
            return True
        if game.size <= 11 and (medium or hard) and remaining <= 35:
            return True
        if hard and remaining <= 40:
            return True
        return False

    def heuristic_search_config(self, game: HexGame) -> tuple[int, int]:
        """(max_depth, beam_width) by board size and empty cells left."""
        remaining = len(game.valid_moves())
        hard = self.config.difficulty == "hard"

        if game.size <= 7:
            if remaining > 30:
                return (5 if hard else 4), 12
            if remaining > 20:
                return (6 if hard else 5), 10
            if remaining > 10:
                return (8 if hard else 6), 8
            return (10 if hard else 8), 6
        if game.size <= 11:
            if remaining <= 15:
                return (7 if hard else 5), 7
            if remaining <= 25:
                return (5 if hard else 4), 8
            return 4, 10
        if remaining <= 12:
            return (6 if hard else 5), 6
        return 4, 8

    # ------------------------------------------------------------------
    # Tree search
    # ------------------------------------------------------------------

    def run_search(self, game: HexGame, simulations: Optional[int] = None) -> Optional[Cell]:
        """Run UCT+RAVE from ``game`` and return the chosen move.

        Args:
            game: Root position; it is copied, never modified.
            simulations: Iteration count, defaulting to the configured one.
                ``config.think_time`` (ms), when set, also stops the loop.
        """
        if game.game_over:
            return None

        budget = simulations or self.config.simulations or self.DEFAULT_SIMULATIONS
        deadline = None
        if self.config.think_time:
            deadline = self.clock() + self.config.think_time / 1000.0
        widening = game.size > self.PROGRESSIVE_WIDENING_SIZE

        tree = SearchTree()
        root = tree.add_root(mover=int(game.current_player.opponent), state=game.copy())
        start = self.clock()

        iterations = 0
        for i in range(budget):
            if deadline is not None and i > 0 and self.clock() >= deadline:
                break
            iterations += 1

            # Selection
            idx = root
            node = tree[idx]
            while not node.terminal and node.is_fully_expanded():
                idx = self._select_child(tree, idx)
                node = tree[idx]

            # Expansion
            if not node.terminal:
                if node.untried is None:
                    node.untried = self._prioritize_moves(node.state)
                if node.untried and (not widening or i % self.EXPANSION_INTERVAL == 0):
                    idx = self._expand(tree, idx)
                    node = tree[idx]

            # Simulation
            winner, playout = self._simulate(node.state)

            # Backpropagation
            played: dict[int, set[int]] = {Side.RED: set(), Side.BLUE: set()}
            walk = idx
            while walk != root:
                step = tree[walk]
                played[step.mover].add(step.move)
                walk = step.parent
            for cell, side in playout:
                played[side].add(cell)
            tree.backpropagate(idx, winner, played)

        self.last_simulations = iterations
        best = tree.robust_child(root, self.ROBUST_TOLERANCE)
        elapsed_ms = (self.clock() - start) * 1000
        logger.debug(
            "MCTS: %d simulations, %d nodes in %.0fms",
            iterations,
            len(tree),
            elapsed_ms,
        )
        if best is None:
            valid_moves = game.valid_moves()
            return valid_moves[0] if valid_moves else None
        return game.geometry.coords(best.move)

    def _select_child(self, tree: SearchTree, idx: int) -> int:
        parent = tree[idx]
        log_visits = math.log(max(parent.visits, 1))
        beta = math.sqrt(self.RAVE_K / (3 * parent.visits + self.RAVE_K))

        best_idx = NO_PARENT
        best_value = -float("inf")
        for child_idx in parent.children:
            child = tree[child_idx]
            if child.visits == 0:
                return child_idx
            value = (
                (1.0 - beta) * child.win_rate
                + beta * child.rave_value
                + self.EXPLORATION_CONSTANT * math.sqrt(log_visits / child.visits)
            )
            if value > best_value:
                best_value = value
                best_idx = child_idx
        return best_idx

    def _expand(self, tree: SearchTree, idx: int) -> int:
        node = tree[idx]
        move = node.untried.pop()
        state = node.state.copy()
        mover = int(state.current_player)
        state.apply_move(*state.geometry.coords(move))
        return tree.add_child(
            idx, move, mover, state=state, terminal=state.game_over
        )

    def _prioritize_moves(self, game: HexGame) -> list[int]:
        """Legal moves ordered for expansion, best last."""
        geo = game.geometry
        side = int(game.current_player)
        opponent = 3 - side
        cells = game.cells()
        tracker = ConnectivityTracker.from_cells(cells, game.size)
        moves = tactics.legal_indices(game)
        evals = placement_scores(cells, game.size, side, moves)
        center = game.size // 2
        last = game.size - 2

        scored = []
        for idx, evaluation in zip(moves, evals):
            if tracker.would_win(idx, side):
                scored.append((self.WIN_PRIORITY, idx))
                continue

            score = 0.0
            if tracker.would_win(idx, opponent):
                score += self.BLOCK_PRIORITY
            score += evaluation * self.EVAL_WEIGHT

            friendly = 0
            for n in geo.neighbors[idx]:
                if cells[n] == side:
                    friendly += 1
                    score += self.FRIENDLY_NEIGHBOR_BONUS
                elif cells[n] != EMPTY:
                    score += self.ENEMY_NEIGHBOR_BONUS
            if friendly >= 2:
                score += self.CONNECTOR_BONUS

            bridged = 0
            for partner, via1, via2 in geo.bridges[idx]:
                if (
                    cells[partner] == side
                    and cells[via1] == EMPTY
                    and cells[via2] == EMPTY
                ):
                    bridged += 1
            if bridged >= 2:
                score += self.DOUBLE_BRIDGE_BONUS

            row, col = geo.coords(idx)
            along, across = (row, col) if side == Side.RED else (col, row)
            if (along <= 1 or along >= last) and 0 < across < game.size - 1:
                score += self.EDGE_TEMPLATE_BONUS

            if game.move_count < self.OPENING_PLIES:
                distance = abs(row - center) + abs(col - center)
                score += (game.size - distance) * self.OPENING_CENTER_WEIGHT

            scored.append((score, idx))

        scored.sort(key=lambda item: item[0])
        return [idx for _, idx in scored]

    # ------------------------------------------------------------------
    # Playouts
    # ------------------------------------------------------------------

    def _simulate(self, game: HexGame) -> tuple[Optional[int], list[tuple[int, int]]]:
        """Play ``game`` out; return the winner and the (cell, side) sequence."""
        if game.game_over:
            return int(game.winner), []

        size = game.size
        cells = game.cells()
        tracker = ConnectivityTracker.from_cells(cells, size)
        empties = [i for i, v in enumerate(cells) if v == EMPTY]
        banned = game.geometry.banned_first_move if game.move_count == 0 else None
        side = int(game.current_player)
        moves: list[tuple[int, int]] = []

        while empties:
            candidates = empties
            if banned is not None:
                candidates = [i for i in empties if i != banned]
                banned = None
            idx = self._playout_move(cells, tracker, candidates, side, size)
            cells[idx] = side
            tracker.record_index(idx, side)
            moves.append((idx, side))
            if tracker.has_won(side):
                return side, moves
            empties.remove(idx)
            side = 3 - side

        winner = tracker.winner()
        return (int(winner) if winner is not None else None), moves

    def _playout_move(
        self,
        cells: list[int],
        tracker: ConnectivityTracker,
        empties: list[int],
        side: int,
        size: int,
    ) -> int:
        """Win, else block, else softmax over evaluator scores."""
        opponent = 3 - side
        block = None
        for idx in empties:
            if tracker.would_win(idx, side):
                return idx
            if block is None and tracker.would_win(idx, opponent):
                block = idx
        if block is not None:
            return block

        geo = tracker.geometry
        scores = placement_scores(cells, size, side, empties)
        for i, idx in enumerate(empties):
            friendly = 0
            for n in geo.neighbors[idx]:
                if cells[n] == side:
                    friendly += 1
            scores[i] += self.PLAYOUT_NEIGHBOR_BONUS * friendly
            if geo.edge_bits[idx]:
                scores[i] += self.PLAYOUT_EDGE_BONUS

        top = max(scores)
        weights = [math.exp((s - top) / self.PLAYOUT_TEMPERATURE) for s in scores]
        threshold = self.rng.random() * sum(weights)
        for idx, weight in zip(empties, weights):
            threshold -= weight
            if threshold <= 0:
                return idx
        return empties[-1]
