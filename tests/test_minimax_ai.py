"""Tests for the bounded alpha-beta search and MinimaxAI."""

import random

import pytest

from hex_service.ai.minimax_ai import WIN_SCORE, BoundedSearch, MinimaxAI
from hex_service.connectivity import ConnectivityTracker
from hex_service.game_engine import HexGame
from hex_service.models import EMPTY, AIConfig, Side

from conftest import game_from_rows


def _side_to_move_wins(cells, size, side, memo) -> bool:
    """Exhaustive game value: can ``side`` (to move) force a win?"""
    key = (tuple(cells), side)
    if key in memo:
        return memo[key]
    tracker = ConnectivityTracker.from_cells(cells, size)
    empties = [i for i, v in enumerate(cells) if v == EMPTY]
    result = any(tracker.would_win(idx, side) for idx in empties)
    if not result:
        for idx in empties:
            cells[idx] = side
            opponent_wins = _side_to_move_wins(cells, size, 3 - side, memo)
            cells[idx] = EMPTY
            if not opponent_wins:
                result = True
                break
    memo[key] = result
    return result


def _random_open_position(size: int, stones: int, seed: int) -> HexGame:
    rng = random.Random(seed)
    while True:
        game = HexGame(size)
        while game.move_count < stones and not game.game_over:
            game.apply_move(*rng.choice(game.valid_moves()))
        if not game.game_over:
            return game


class TestBoundedSearch:
    """Tests for BoundedSearch."""

    def test_takes_immediate_win(self, red_wins_next) -> None:
        result = BoundedSearch(max_depth=2, beam_width=5).search(red_wins_next)
        assert result.move == (3, 0)
        assert result.score == WIN_SCORE

    def test_decided_game_has_no_move(self, make_game) -> None:
        game = make_game(3, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0)])
        result = BoundedSearch().search(game)
        assert result.move is None
        # The winner is left as the side to move
        assert result.score == WIN_SCORE

    @pytest.mark.timeout(60)
    def test_full_width_search_is_exact_on_3x3(self) -> None:
        """Should find the first-player win from the empty 3x3 board."""
        game = HexGame(3)
        result = BoundedSearch().search(game, max_depth=9, beam_width=9)
        assert result.score == WIN_SCORE
        child = game.copy()
        assert child.apply_move(*result.move)
        memo: dict = {}
        assert not _side_to_move_wins(child.cells(), 3, int(child.current_player), memo)

    @pytest.mark.timeout(120)
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_matches_exhaustive_value_on_4x4(self, seed) -> None:
        """Should agree with brute force when depth and beam cover the board."""
        game = _random_open_position(4, 8, seed)
        cells = game.cells()
        empties = cells.count(EMPTY)
        side = int(game.current_player)

        result = BoundedSearch().search(game, max_depth=empties, beam_width=empties)
        expected = _side_to_move_wins(list(cells), 4, side, {})
        assert result.score == (WIN_SCORE if expected else -WIN_SCORE)
        assert game.is_legal_move(*result.move)

    def test_depth_capped_by_empty_cells(self, red_wins_next) -> None:
        result = BoundedSearch(max_depth=30).search(red_wins_next)
        assert result.depth == 10

    def test_per_call_limits_leave_defaults(self, red_wins_next) -> None:
        """Should apply depth and beam overrides to one search only."""
        search = BoundedSearch(max_depth=2, beam_width=5)
        assert search.search(red_wins_next, max_depth=4, beam_width=8).depth == 4
        assert (search.max_depth, search.beam_width) == (2, 5)
        assert search.search(red_wins_next).depth == 2
        assert not hasattr(search, "configure")

    def test_memo_persists_between_searches(self) -> None:
        """Should reuse stored entries when the same position is searched again."""
        game = _random_open_position(5, 6, seed=8)
        search = BoundedSearch(max_depth=2, beam_width=4)
        first = search.search(game, search_side=Side.RED)
        assert len(search.table) > 0
        hits_before = search.table.hits
        second = search.search(game, search_side=Side.RED)
        assert search.table.hits > hits_before
        assert second.score == first.score
        assert second.move == first.move

    def test_search_does_not_modify_game(self) -> None:
        game = _random_open_position(5, 6, seed=9)
        before = game.packed_key()
        BoundedSearch(max_depth=3, beam_width=5).search(game)
        assert game.packed_key() == before
        assert game.move_count == 6


class TestMinimaxAI:
    """Tests for move selection."""

    def _ai(self, side=Side.RED, **config) -> MinimaxAI:
        config.setdefault("rng_seed", 7)
        return MinimaxAI(side, AIConfig(**config))

    def test_takes_win(self, red_wins_next) -> None:
        assert self._ai().select_move(red_wins_next) == (3, 0)

    def test_blocks_single_threat(self, blue_threatens) -> None:
        assert self._ai().select_move(blue_threatens) == (0, 3)

    def test_no_move_when_game_over(self, make_game) -> None:
        game = make_game(3, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0)])
        assert self._ai().select_move(game) is None

    def test_opening_book_on_empty_board(self, make_game) -> None:
        game = make_game(7)
        move = self._ai(max_depth=3, beam_width=8).select_move(game)
        assert move != (3, 3)
        assert game.is_legal_move(*move)

    @pytest.mark.timeout(60)
    def test_search_move_is_legal_and_deterministic(self) -> None:
        game = _random_open_position(6, 8, seed=4)
        first = self._ai(side=game.current_player, max_depth=3, beam_width=6)
        second = self._ai(side=game.current_player, max_depth=3, beam_width=6)
        move = first.select_move(game)
        assert game.is_legal_move(*move)
        assert second.select_move(game) == move

    def test_full_randomness_plays_legal_move(self) -> None:
        game = _random_open_position(5, 4, seed=2)
        ai = self._ai(side=game.current_player, randomness=1.0, use_opening_book=False)
        for _ in range(5):
            assert game.is_legal_move(*ai.select_move(game))

    def test_evaluation_breakdown(self) -> None:
        game = game_from_rows(["R...", ".B..", "....", "...."])
        breakdown = self._ai().get_evaluation_breakdown(game)
        assert breakdown["total"] == pytest.approx(self._ai().evaluate_position(game))
