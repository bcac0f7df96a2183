"""Tests for HexGame rules, swap and snapshots."""

import pytest
from pydantic import ValidationError

from hex_service.errors import InvalidStateError
from hex_service.game_engine import HexGame
from hex_service.models import BoardSnapshot, Side

from conftest import play_moves, snapshot_from_rows


class TestNewGame:
    """Tests for the initial position."""

    def test_defaults(self) -> None:
        """Should start empty with RED to move and no swap."""
        game = HexGame()
        assert game.size == 11
        assert game.current_player == Side.RED
        assert game.move_count == 0
        assert not game.game_over
        assert game.winner is None
        assert not game.swap_available
        assert game.history == []
        assert len(game.valid_moves()) == 121

    @pytest.mark.parametrize("size", [1, 20])
    def test_rejects_unsupported_size(self, size) -> None:
        """Should refuse sizes outside 2..19."""
        with pytest.raises(InvalidStateError):
            HexGame(size)


class TestMoves:
    """Tests for move legality and turn order."""

    def test_apply_move_alternates_sides(self, make_game) -> None:
        """Should place a stone and hand the move to the opponent."""
        game = make_game(5)
        assert game.apply_move(2, 2)
        assert game.board[2, 2] == Side.RED
        assert game.current_player == Side.BLUE
        assert game.move_count == 1
        assert game.history == [(2, 2, Side.RED)]

    @pytest.mark.parametrize("move", [(2, 2), (-1, 0), (0, 5), (5, 5)])
    def test_illegal_move_leaves_state_unchanged(self, make_game, move) -> None:
        """Should return False for occupied or out-of-range cells."""
        game = make_game(5, [(2, 2)])
        before = game.packed_key()
        assert not game.apply_move(*move)
        assert game.packed_key() == before
        assert game.move_count == 1
        assert game.current_player == Side.BLUE

    def test_centre_banned_as_first_move_on_7x7(self, make_game) -> None:
        """Should forbid only the opening centre stone on 7x7."""
        game = make_game(7)
        assert not game.is_legal_move(3, 3)
        assert not game.apply_move(3, 3)
        assert game.move_count == 0
        assert (3, 3) not in game.valid_moves()
        assert len(game.valid_moves()) == 48

        assert game.apply_move(2, 3)
        assert game.is_legal_move(3, 3)
        assert game.apply_move(3, 3)

        game = make_game(7)
        assert game.apply_move(0, 0)
        assert game.swap_available

    def test_centre_allowed_on_other_sizes(self, make_game) -> None:
        """Should allow the centre opening on boards other than 7x7."""
        game = make_game(5)
        assert game.is_legal_move(2, 2)
        game = make_game(9)
        assert game.is_legal_move(4, 4)

    def test_neighbors_follow_hex_directions(self, make_game) -> None:
        """Should list the six hex neighbours clipped to the board."""
        game = make_game(3)
        assert game.neighbors(0, 0) == [(0, 1), (1, 0)]
        assert game.neighbors(1, 1) == [(0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1)]
        assert game.neighbors(0, 2) == [(0, 1), (1, 1), (1, 2)]


class TestWinDetection:
    """Tests for game end."""

    def test_red_connects_top_to_bottom(self, make_game) -> None:
        """Should end the game with RED as winner and RED still to move."""
        game = make_game(3, [(0, 0), (0, 1), (1, 0), (1, 1)])
        assert not game.game_over
        assert game.apply_move(2, 0)
        assert game.game_over
        assert game.winner == Side.RED
        assert game.current_player == Side.RED
        assert game.valid_moves() == []
        assert not game.apply_move(2, 2)

    def test_blue_connects_left_to_right(self, make_game) -> None:
        """Should detect a BLUE row as a win."""
        game = make_game(3, [(0, 0), (1, 0), (0, 1), (1, 1), (2, 2), (1, 2)])
        assert game.game_over
        assert game.winner == Side.BLUE

    def test_winning_path(self, make_game) -> None:
        """Should return the connecting chain from start to target edge."""
        game = make_game(4, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0)])
        assert game.winner == Side.RED
        assert game.winning_path(Side.RED) == [(0, 0), (1, 0), (2, 0), (3, 0)]
        assert game.winning_path(Side.BLUE) is None

    def test_diagonal_neighbours_connect(self, make_game) -> None:
        """Should connect stones along the (1, -1) direction."""
        game = make_game(3, [(0, 2), (0, 0), (1, 1), (1, 0), (2, 0)])
        assert game.winner == Side.RED
        assert game.winning_path(Side.RED) == [(0, 2), (1, 1), (2, 0)]

    def test_no_winner_on_open_board(self, make_game) -> None:
        game = make_game(5, [(0, 0), (4, 4), (1, 0)])
        assert not game.has_won(Side.RED)
        assert not game.has_won(Side.BLUE)


class TestSwap:
    """Tests for the one-time swap after the opening stone."""

    def test_swap_recolours_opening_stone(self, make_game) -> None:
        """Should turn RED's stone blue and give the move back to RED."""
        game = make_game(5, [(2, 2)])
        assert game.swap_available
        assert game.apply_swap()
        assert game.board[2, 2] == Side.BLUE
        assert game.current_player == Side.RED
        assert game.history == [(2, 2, Side.BLUE)]
        assert not game.swap_available

    def test_swap_only_once(self, make_game) -> None:
        game = make_game(5, [(2, 2)])
        assert game.apply_swap()
        assert not game.apply_swap()

    def test_swap_unavailable_outside_second_ply(self, make_game) -> None:
        """Should refuse a swap on an empty board or after two stones."""
        assert not make_game(5).apply_swap()
        game = make_game(5, [(2, 2), (1, 1)])
        assert not game.swap_available
        assert not game.apply_swap()

    def test_swap_lost_after_reply(self, make_game) -> None:
        """Should withdraw the swap once BLUE places a stone instead."""
        game = make_game(5, [(2, 2)])
        play_moves(game, [(0, 0)])
        assert not game.swap_available


class TestCopiesAndSnapshots:
    """Tests for copy, packed key and snapshot round-trips."""

    def test_copy_is_independent(self, make_game) -> None:
        game = make_game(5, [(2, 2)])
        clone = game.copy()
        clone.apply_move(1, 1)
        assert game.board[1, 1] == 0
        assert game.move_count == 1
        assert len(game.history) == 1

    def test_packed_key(self, make_game) -> None:
        """Should encode one byte per cell and change with the board."""
        game = make_game(5)
        key = game.packed_key()
        assert len(key) == 25
        game.apply_move(0, 0)
        assert game.packed_key() != key

    def test_snapshot_round_trip(self, make_game) -> None:
        """Should rebuild an equivalent game from its snapshot."""
        game = make_game(5, [(2, 2), (1, 3), (3, 1)])
        restored = HexGame.from_snapshot(game.to_snapshot())
        assert restored.packed_key() == game.packed_key()
        assert restored.current_player == game.current_player
        assert restored.move_count == game.move_count
        assert restored.history == game.history
        assert restored.swap_available == game.swap_available

    def test_snapshot_uses_camel_case_aliases(self, make_game) -> None:
        game = make_game(5, [(2, 2)])
        data = game.to_snapshot().model_dump(by_alias=True)
        assert data["currentPlayer"] == Side.BLUE
        assert data["moveCount"] == 1
        assert data["swapAvailable"] is True
        assert data["history"] == [{"row": 2, "col": 2, "player": Side.RED}]

        parsed = BoardSnapshot.model_validate(data)
        assert HexGame.from_snapshot(parsed).packed_key() == game.packed_key()

    def test_finished_game_round_trip(self, make_game) -> None:
        game = make_game(3, [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0)])
        restored = HexGame.from_snapshot(game.to_snapshot())
        assert restored.game_over
        assert restored.winner == Side.RED
        assert restored.valid_moves() == []

    def test_move_count_mismatch_is_invalid(self) -> None:
        """Should refuse a snapshot whose move count disagrees with the stones."""
        snapshot = snapshot_from_rows(["R..", "...", "..."], move_count=3)
        with pytest.raises(InvalidStateError) as excinfo:
            HexGame.from_snapshot(snapshot)
        assert excinfo.value.code == "INVALID_STATE"

    def test_game_over_without_winner_is_invalid(self) -> None:
        snapshot = snapshot_from_rows(["R..", "...", "..."], game_over=True)
        with pytest.raises(InvalidStateError):
            HexGame.from_snapshot(snapshot)

    def test_winner_on_open_game_is_invalid(self) -> None:
        snapshot = snapshot_from_rows(["R..", "...", "..."], winner=Side.RED)
        with pytest.raises(InvalidStateError):
            HexGame.from_snapshot(snapshot)

    def test_unreachable_stone_counts_are_invalid(self) -> None:
        """Should refuse boards where one side is two or more stones ahead."""
        snapshot = snapshot_from_rows(["RRRR", "....", "....", "...."])
        with pytest.raises(InvalidStateError) as excinfo:
            HexGame.from_snapshot(snapshot)
        assert excinfo.value.message == "Stone counts cannot arise in play"

    @pytest.mark.parametrize("rows, player", [
        (["R..", "...", "..."], Side.RED),
        (["...", "...", "..."], Side.BLUE),
        (["B..", "...", "..."], Side.BLUE),
    ])
    def test_wrong_side_to_move_is_invalid(self, rows, player) -> None:
        snapshot = snapshot_from_rows(rows, current_player=player)
        with pytest.raises(InvalidStateError) as excinfo:
            HexGame.from_snapshot(snapshot)
        assert excinfo.value.message == "Side to move does not match stones on board"

    def test_unflagged_connection_is_invalid(self) -> None:
        """Should refuse an open game where RED already connects."""
        snapshot = snapshot_from_rows(["R..", "R.B", "R.B"], current_player=Side.BLUE)
        with pytest.raises(InvalidStateError) as excinfo:
            HexGame.from_snapshot(snapshot)
        assert excinfo.value.message == "Winner flags do not match the board"

    def test_winner_without_connection_is_invalid(self) -> None:
        snapshot = snapshot_from_rows(
            ["R..", "..B", "R.."],
            current_player=Side.RED,
            game_over=True,
            winner=Side.RED,
        )
        with pytest.raises(InvalidStateError) as excinfo:
            HexGame.from_snapshot(snapshot)
        assert excinfo.value.message == "Winner flags do not match the board"

    def test_swapped_game_round_trip(self, make_game) -> None:
        """Should accept RED trailing by a stone after a swap."""
        game = make_game(5, [(2, 2)])
        assert game.apply_swap()
        play_moves(game, [(0, 0), (1, 3)])
        assert game.current_player == Side.RED
        assert int((game.board == Side.RED).sum()) == 1
        restored = HexGame.from_snapshot(game.to_snapshot())
        assert restored.packed_key() == game.packed_key()
        assert restored.current_player == Side.RED

        play_moves(game, [(4, 4)])
        restored = HexGame.from_snapshot(game.to_snapshot())
        assert restored.current_player == Side.BLUE

    def test_non_square_grid_rejected_by_schema(self) -> None:
        with pytest.raises(ValidationError):
            BoardSnapshot(size=3, board=[[0, 0, 0], [0, 0]], currentPlayer=1)

    def test_bad_cell_value_rejected_by_schema(self) -> None:
        with pytest.raises(ValidationError):
            BoardSnapshot(size=2, board=[[0, 3], [0, 0]])

    def test_grid_checked_for_unvalidated_snapshots(self) -> None:
        """Should still catch a bad grid on a snapshot built without validation."""
        snapshot = BoardSnapshot.model_construct(
            size=3,
            board=[[0, 0], [0, 0]],
            current_player=Side.RED,
            move_count=0,
            game_over=False,
            winner=None,
            swap_available=False,
            history=[],
        )
        with pytest.raises(InvalidStateError):
            HexGame.from_snapshot(snapshot)
