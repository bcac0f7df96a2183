"""
Minimax AI implementation for Hex

Depth-limited negamax with alpha-beta pruning, evaluator-ordered beam
truncation and a memo table keyed by the packed board.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Optional

from ..connectivity import ConnectivityTracker
from ..game_engine import HexGame
from ..models import EMPTY, AIConfig, Cell, Side
from . import tactics
from .base import BaseAI
from .bounded_transposition_table import (
    EXACT,
    LOWERBOUND,
    UPPERBOUND,
    BoundedTranspositionTable,
    MemoEntry,
)
from .position_evaluator import placement_scores, side_differential

logger = logging.getLogger(__name__)

# Score of a decided game, from the winner's point of view
WIN_SCORE = 1000.0
# Evaluator differentials are scaled into the same range as WIN_SCORE
EVAL_SCALE = 100.0
# Hard cap on recursion depth regardless of configuration
MAX_SEARCH_DEPTH = 32


@dataclass(slots=True)
class SearchResult:
    score: float
    move: Optional[Cell]
    nodes: int = 0
    depth: int = 0


class BoundedSearch:
    """Negamax search over flat cell lists.

    Values are always from the point of view of the side to move at the
    node. A winning placement is scored on the spot with ``WIN_SCORE``;
    depth-0 nodes are scored with the side differential of the evaluator.
    Only the ``beam_width`` best candidates (by evaluator score after
    placing the stone) are searched at each node.

    The memo table survives between calls so later searches in the same
    game can reuse earlier work; it is keyed by the full board, so entries
    from abandoned lines are simply never matched.
    """

    def __init__(
        self,
        max_depth: int = 4,
        beam_width: int = 10,
        table: Optional[BoundedTranspositionTable] = None,
    ):
        self.max_depth = max_depth
        self.beam_width = beam_width
        self.table = table if table is not None else BoundedTranspositionTable()
        self.nodes_visited = 0
        self._size = 0
        self._banned: Optional[int] = None
        self._search_side = 0

    def search(
        self,
        game: HexGame,
        search_side: Optional[Side] = None,
        max_depth: Optional[int] = None,
        beam_width: Optional[int] = None,
    ) -> SearchResult:
        """Search ``game`` from the side to move.

        Args:
            game: Position to search; it is not modified.
            search_side: Side the caller plays, part of the memo key.
            max_depth: Override of the configured depth for this call.
            beam_width: Override of the configured beam for this call.

        Returns:
            SearchResult with the value for the side to move and its best
            move (None when the game is already decided).
        """
        to_move = int(game.current_player)
        if game.game_over:
            score = WIN_SCORE if game.winner == to_move else -WIN_SCORE
            return SearchResult(score=score, move=None)

        cells = game.cells()
        empties = sum(1 for v in cells if v == EMPTY)
        depth = min(max_depth or self.max_depth, empties, MAX_SEARCH_DEPTH)
        beam = beam_width or self.beam_width

        self._size = game.size
        self._banned = game.geometry.banned_first_move
        self._search_side = int(search_side or to_move)
        self.nodes_visited = 0

        start = time.perf_counter()
        tracker = ConnectivityTracker.from_cells(cells, game.size)
        score, move = self._negamax(
            cells, tracker, to_move, depth, -float("inf"), float("inf"), beam
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            "Bounded search: depth=%d beam=%d nodes=%d score=%.1f time=%.0fms",
            depth,
            beam,
            self.nodes_visited,
            score,
            elapsed_ms,
        )
        return SearchResult(
            score=score,
            move=game.geometry.coords(move) if move is not None else None,
            nodes=self.nodes_visited,
            depth=depth,
        )

    def _order_moves(
        self,
        cells: list[int],
        tracker: ConnectivityTracker,
        side: int,
        beam: int,
    ) -> list[tuple[int, bool]]:
        """Candidates as (cell, wins_now), best first, cut to the beam."""
        empties = [idx for idx, v in enumerate(cells) if v == EMPTY]
        if self._banned is not None and len(empties) == len(cells):
            empties.remove(self._banned)

        scores = placement_scores(cells, self._size, side, empties)
        scored = []
        for idx, score in zip(empties, scores):
            if tracker.would_win(idx, side):
                scored.append((float("inf"), idx, True))
            else:
                scored.append((score, idx, False))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [(idx, wins) for _, idx, wins in scored[:beam]]

    def _negamax(
        self,
        cells: list[int],
        tracker: ConnectivityTracker,
        side: int,
        depth: int,
        alpha: float,
        beta: float,
        beam: int,
    ) -> tuple[float, Optional[int]]:
        self.nodes_visited += 1
        key = (bytes(cells), side, self._search_side)
        alpha_orig = alpha

        entry = self.table.probe(key, depth)
        if entry is not None:
            if entry.flag == EXACT:
                return entry.score, entry.move
            elif entry.flag == LOWERBOUND:
                alpha = max(alpha, entry.score)
            elif entry.flag == UPPERBOUND:
                beta = min(beta, entry.score)
            if alpha >= beta:
                return entry.score, entry.move

        if depth == 0:
            score = side_differential(cells, self._size, side) * EVAL_SCALE
            self.table.store(key, MemoEntry(score, depth, EXACT))
            return score, None

        candidates = self._order_moves(cells, tracker, side, beam)
        if not candidates:
            return side_differential(cells, self._size, side) * EVAL_SCALE, None

        # Winning placements sort first and nothing scores higher
        first, wins = candidates[0]
        if wins:
            self.table.store(key, MemoEntry(WIN_SCORE, depth, EXACT, first))
            return WIN_SCORE, first

        opponent = 3 - side
        best_score = -float("inf")
        best_move: Optional[int] = None
        for idx, _ in candidates:
            cells[idx] = side
            child = tracker.copy()
            child.record_index(idx, side)
            score = -self._negamax(
                cells, child, opponent, depth - 1, -beta, -alpha, beam
            )[0]
            cells[idx] = EMPTY

            if score > best_score:
                best_score = score
                best_move = idx
            alpha = max(alpha, score)
            if alpha >= beta:
                break

        flag = EXACT
        if best_score <= alpha_orig:
            flag = UPPERBOUND
        elif best_score >= beta:
            flag = LOWERBOUND
        self.table.store(key, MemoEntry(best_score, depth, flag, best_move))
        return best_score, best_move


class MinimaxAI(BaseAI):
    """AI using depth-limited alpha-beta search with beam truncation"""

    def __init__(self, side: Side, config: AIConfig, game=None, clock=None):
        super().__init__(side, config, game=game, clock=clock)
        self.search = BoundedSearch(
            max_depth=config.max_depth,
            beam_width=config.beam_width,
        )

    def select_move(self, game: HexGame) -> Optional[Cell]:
        valid_moves = game.valid_moves()
        if not valid_moves:
            return None

        critical = tactics.find_critical_move(game, block_any=False)
        if critical is not None:
            return critical

        book_move = self.get_opening_move(game)
        if book_move is not None:
            return book_move

        if self.should_pick_random_move():
            return self.get_random_element(valid_moves)

        result = self.search.search(game, search_side=self.side)
        return result.move or valid_moves[0]
