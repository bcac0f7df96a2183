"""
Shared pytest fixtures for the Hex AI service tests.

Game fixtures are function-scoped so every test gets its own board.
"""

from pathlib import Path
import sys
from typing import Callable, Iterable, List, Optional, Tuple

import pytest


# =============================================================================
# PROMETHEUS REGISTRY FIX
# =============================================================================
# Modules that register Prometheus metrics at import time can be imported
# more than once under different paths during collection. Re-registration
# of an identical metric is turned into a no-op instead of an error.


def _patch_prometheus_registry():
    """Patch Prometheus registry to handle duplicate metric registration gracefully."""
    try:
        from prometheus_client.registry import CollectorRegistry

        _original_register = CollectorRegistry.register

        def _safe_register(self, collector):
            """Register collector, ignoring duplicates."""
            try:
                return _original_register(self, collector)
            except ValueError as e:
                if "Duplicated timeseries" not in str(e):
                    raise

        # Only patch once
        if not getattr(CollectorRegistry, "_patched_for_tests", False):
            CollectorRegistry.register = _safe_register
            CollectorRegistry._patched_for_tests = True

    except ImportError:
        # prometheus_client not installed, no patching needed
        pass


# Apply patch immediately at conftest load time (before test collection)
_patch_prometheus_registry()

# Make `import hex_service` work when pytest is run from any directory
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hex_service.game_engine import HexGame  # noqa: E402
from hex_service.models import BoardSnapshot, Side  # noqa: E402


Move = Tuple[int, int]


def play_moves(game: HexGame, moves: Iterable[Move]) -> HexGame:
    """Apply moves in order, failing the test on any illegal one."""
    for row, col in moves:
        assert game.apply_move(row, col), f"illegal move {(row, col)} in {game!r}"
    return game


def snapshot_from_rows(
    rows: List[str],
    current_player: Optional[Side] = None,
    **overrides,
) -> BoardSnapshot:
    """Build a snapshot from strings like "R.B." (R=red, B=blue, .=empty).

    The move count is the number of stones and, unless given, the side to
    move follows from the stone counts (RED moves when they are equal).
    """
    values = {".": 0, "R": int(Side.RED), "B": int(Side.BLUE)}
    board = [[values[ch] for ch in row] for row in rows]
    red = sum(row.count("R") for row in rows)
    blue = sum(row.count("B") for row in rows)
    if current_player is None:
        current_player = Side.RED if red == blue else Side.BLUE
    data = dict(
        size=len(rows),
        board=board,
        current_player=current_player,
        move_count=red + blue,
    )
    data.update(overrides)
    return BoardSnapshot(**data)


def game_from_rows(rows: List[str], current_player: Optional[Side] = None) -> HexGame:
    return HexGame.from_snapshot(snapshot_from_rows(rows, current_player))


class FakeClock:
    """Monotonic clock that advances by ``step`` seconds on every read."""

    def __init__(self, start: float = 0.0, step: float = 0.0):
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.calls += 1
        return value


@pytest.fixture
def make_game() -> Callable[..., HexGame]:
    """Factory fixture: make_game(size, moves) -> HexGame."""

    def _make(size: int = 5, moves: Iterable[Move] = ()) -> HexGame:
        return play_moves(HexGame(size), moves)

    return _make


@pytest.fixture
def red_wins_next() -> HexGame:
    """4x4, RED to move, (3, 0) completes RED's first column."""
    return game_from_rows([
        "RB..",
        "RB..",
        "RB..",
        "....",
    ])


@pytest.fixture
def blue_threatens() -> HexGame:
    """4x4, RED to move, BLUE wins at (0, 3) unless it is blocked."""
    return game_from_rows([
        "BBB.",
        "....",
        "R...",
        "RR..",
    ])


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
