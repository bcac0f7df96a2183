"""
Base AI Player class for Hex
Abstract base class that all strategies inherit from
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import random
import time
from typing import Any, Callable, ClassVar, Dict, List, Optional

from ..game_engine import HexGame
from ..models import AIConfig, Cell, Side
from . import opening_book, tactics
from .position_evaluator import evaluation_breakdown, evaluate_position

Clock = Callable[[], float]


def derive_seed(config: AIConfig, side: int) -> int:
    """
    Derive a deterministic RNG seed when no ``rng_seed`` is configured.

    Mixes the difficulty label and the side into a 32-bit value so that two
    engines at different difficulties (or on opposite sides) do not share a
    random stream. Callers that need reproducibility across processes
    should pass ``rng_seed`` explicitly.
    """
    label = sum((i + 1) * ord(ch) for i, ch in enumerate(config.difficulty))
    base = (label * 1_000_003) ^ (int(side) * 97_911)
    return int(base & 0xFFFFFFFF)


class BaseAI(ABC):
    """Abstract base class for all strategies"""

    # Strategies that expose a per-cell confidence map set this to True
    supports_analytics: ClassVar[bool] = False

    def __init__(
        self,
        side: Side,
        config: AIConfig,
        game: Optional[HexGame] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize AI player

        Args:
            side: The side this AI plays
            config: AI configuration settings
            game: Optional initial board, kept for strategies that want to
                warm up on the starting position
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.side = Side(side)
        self.config = config
        self.game = game
        self.clock: Clock = clock or time.perf_counter

        # Per-instance RNG used for every stochastic choice (book draws,
        # playouts, tie-breaks). A fixed rng_seed makes the engine
        # reproducible.
        if self.config.rng_seed is not None:
            self.rng_seed: int = int(self.config.rng_seed)
        else:
            self.rng_seed = derive_seed(self.config, self.side)
        self.rng: random.Random = random.Random(self.rng_seed)

    def set_side(self, side: Side) -> None:
        self.side = Side(side)

    @abstractmethod
    def select_move(self, game: HexGame) -> Optional[Cell]:
        """
        Select the move to play in ``game``

        Args:
            game: Current position; it is not modified

        Returns:
            Selected (row, col) or None if there is no legal move
        """

    def evaluate_position(self, game: HexGame) -> float:
        """Heuristic score of ``game`` for this AI's side (higher is better)."""
        return evaluate_position(game, self.side)

    def get_evaluation_breakdown(self, game: HexGame) -> Dict[str, float]:
        """
        Get detailed breakdown of position evaluation

        Returns:
            Dictionary with the evaluator's features and their weighted total
        """
        return evaluation_breakdown(game.cells(), game.size, self.side)

    def should_swap(self, game: HexGame) -> bool:
        """Whether this AI, moving second, takes the opening stone."""
        return self.side == game.current_player and tactics.should_swap(game)

    def get_opening_move(self, game: HexGame) -> Optional[Cell]:
        if not self.config.use_opening_book:
            return None
        return opening_book.get_opening_move(game, self.rng)

    def should_pick_random_move(self) -> bool:
        """
        Determine if AI should pick a random move based on randomness setting

        Returns:
            True if should pick random move
        """
        if not self.config.randomness:
            return False
        return self.rng.random() < self.config.randomness

    def get_random_element(self, items: List[Any]) -> Optional[Any]:
        """
        Get random element from list

        Args:
            items: List of items

        Returns:
            Random element or None if list is empty
        """
        if not items:
            return None
        return self.rng.choice(items)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(side={self.side.name}, "
            f"difficulty={self.config.difficulty})"
        )
