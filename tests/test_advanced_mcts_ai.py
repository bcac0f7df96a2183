"""Tests for the time-budgeted MCTS AI and its confidence map."""

import pytest

from hex_service.ai.advanced_mcts_ai import AdvancedMCTSAI, score_key
from hex_service.ai.mcts_ai import MCTSAI
from hex_service.game_engine import HexGame
from hex_service.models import AIConfig, Side

from conftest import FakeClock, play_moves


def _ai(side=Side.RED, clock=None, **config) -> AdvancedMCTSAI:
    config.setdefault("rng_seed", 7)
    config.setdefault("use_opening_book", False)
    return AdvancedMCTSAI(side, AIConfig(**config), clock=clock)


@pytest.mark.mcts
class TestAdvancedSearch:

    @pytest.mark.timeout(60)
    def test_simulation_cap_ends_search(self) -> None:
        """Should stop at the simulation cap long before the time limit."""
        ai = _ai(simulations=50, time_limit_ms=60000, batch_size=10)
        move = ai.select_move(HexGame(5))
        assert move is not None
        assert ai.last_simulations == 50

    def test_time_checked_between_batches(self) -> None:
        """Should finish the running batch before looking at the clock."""
        clock = FakeClock(step=1.0)
        ai = _ai(time_limit_ms=100, batch_size=7, clock=clock)
        move = ai.run_search(HexGame(5))
        assert move is not None
        assert ai.last_simulations == 7

    @pytest.mark.timeout(60)
    def test_confidence_map(self) -> None:
        ai = _ai(simulations=60, time_limit_ms=60000, batch_size=20)
        move = ai.run_search(HexGame(5))
        scores = ai.get_normalized_scores()

        assert scores
        assert max(scores.values()) == pytest.approx(100.0)
        assert all(0.0 < value <= 100.0 for value in scores.values())
        assert score_key(*move) in scores
        assert scores[score_key(*move)] == pytest.approx(100.0)

    @pytest.mark.timeout(60)
    def test_banned_centre_never_searched(self) -> None:
        ai = _ai(simulations=30, time_limit_ms=60000, batch_size=10)
        move = ai.run_search(HexGame(7))
        assert move != (3, 3)
        assert "3,3" not in ai.get_normalized_scores()

    @pytest.mark.timeout(60)
    def test_search_does_not_modify_game(self) -> None:
        game = play_moves(HexGame(5), [(2, 2), (1, 3)])
        before = game.packed_key()
        _ai(simulations=40, time_limit_ms=60000).run_search(game)
        assert game.packed_key() == before
        assert game.current_player == Side.RED


class TestAdvancedMoveSelection:

    def test_forced_move_scores(self, red_wins_next) -> None:
        """Should report a single full-confidence cell for a forced move."""
        ai = _ai(simulations=10)
        assert ai.select_move(red_wins_next) == (3, 0)
        assert ai.get_normalized_scores() == {"3,0": 100.0}

    def test_blocks_threat(self, blue_threatens) -> None:
        ai = _ai(simulations=10)
        assert ai.select_move(blue_threatens) == (0, 3)

    def test_game_over_clears_scores(self, red_wins_next) -> None:
        ai = _ai(simulations=10)
        ai.select_move(red_wins_next)

        finished = red_wins_next.copy()
        assert finished.apply_move(3, 0)
        assert ai.select_move(finished) is None
        assert ai.get_normalized_scores() == {}

    def test_scores_are_a_copy(self, red_wins_next) -> None:
        ai = _ai(simulations=10)
        ai.select_move(red_wins_next)
        ai.get_normalized_scores()["0,0"] = 1.0
        assert "0,0" not in ai.get_normalized_scores()

    def test_supports_analytics(self) -> None:
        assert AdvancedMCTSAI.supports_analytics
        assert not MCTSAI.supports_analytics
