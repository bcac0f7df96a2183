"""Strategy registry for the Hex AI service.

Every opponent the service can field is described here: display metadata,
the named difficulty presets it offers, and the class that implements it.
All AI creation should go through this factory so that presets, seeding
and validation of the strategy/difficulty pair happen in one place.

Usage:
    from hex_service.ai.factory import AIFactory

    # List strategies and their difficulties for a lobby screen
    AIFactory.get_available_ais()

    # Create an AI from a strategy id and difficulty key
    ai = AIFactory.create("mcts", "medium", Side.BLUE, seed=42)

    # Register a custom implementation
    AIFactory.register("my-ai", MyAI, metadata)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional, TypedDict

from ..errors import UnknownDifficultyError, UnknownStrategyError
from ..models import AIConfig, AIType, Side

if TYPE_CHECKING:
    from ..game_engine import HexGame
    from .base import BaseAI, Clock

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Type definitions
# -----------------------------------------------------------------------------


class DifficultyPreset(TypedDict):
    """A named difficulty: display strings plus ``AIConfig`` overrides.

    ``config`` uses the camelCase keys of the client protocol; it is
    validated through ``AIConfig`` when the AI is created.
    """
    name: str
    description: str
    config: dict[str, Any]


class StrategyMetadata(TypedDict):
    id: str
    name: str
    description: str
    author: str
    version: str
    supportsAnalytics: bool
    difficulties: dict[str, DifficultyPreset]


# -----------------------------------------------------------------------------
# Built-in strategies
# -----------------------------------------------------------------------------

# NOTE: MCTS simulation counts are sized for the Python engine; thinkTime
# caps each search so large boards stay responsive.
BUILTIN_STRATEGIES: dict[AIType, StrategyMetadata] = {
    AIType.RANDOM: {
        "id": AIType.RANDOM.value,
        "name": "Random AI",
        "description": "Makes random moves (for testing)",
        "author": "Built-in",
        "version": "1.0",
        "supportsAnalytics": False,
        "difficulties": {
            "easy": {
                "name": "Pure Random",
                "description": "Completely random moves",
                "config": {"smartMode": False},
            },
            "medium": {
                "name": "Smart Random",
                "description": "Random with basic tactics",
                "config": {"smartMode": True},
            },
        },
    },
    AIType.HEURISTIC: {
        "id": AIType.HEURISTIC.value,
        "name": "Heuristic AI",
        "description": "Minimax with position evaluation",
        "author": "Built-in",
        "version": "1.0",
        "supportsAnalytics": False,
        "difficulties": {
            "easy": {
                "name": "Easy",
                "description": "Shallow search (depth 3)",
                "config": {"maxDepth": 3, "beamWidth": 8},
            },
            "medium": {
                "name": "Medium",
                "description": "Moderate search (depth 4)",
                "config": {"maxDepth": 4, "beamWidth": 10},
            },
            "hard": {
                "name": "Hard",
                "description": "Deep search (depth 6)",
                "config": {"maxDepth": 6, "beamWidth": 12},
            },
        },
    },
    AIType.MCTS: {
        "id": AIType.MCTS.value,
        "name": "MCTS AI",
        "description": "Monte Carlo Tree Search with advanced heuristics",
        "author": "Built-in",
        "version": "1.0",
        "supportsAnalytics": False,
        "difficulties": {
            "easy": {
                "name": "Easy",
                "description": "Quick lookahead (200 simulations)",
                "config": {"simulations": 200, "thinkTime": 2000},
            },
            "medium": {
                "name": "Medium",
                "description": "Balanced MCTS (500 simulations)",
                "config": {"simulations": 500, "thinkTime": 5000},
            },
            "hard": {
                "name": "Hard",
                "description": "Hybrid deep search (1200 simulations)",
                "config": {"simulations": 1200, "thinkTime": 10000},
            },
        },
    },
    AIType.ADVANCED_MCTS: {
        "id": AIType.ADVANCED_MCTS.value,
        "name": "Super Hex",
        "description": "MCTS with Bridge Detection & RAVE",
        "author": "Built-in",
        "version": "2.2",
        "supportsAnalytics": True,
        "difficulties": {
            "easy": {
                "name": "Fast",
                "description": "Quick search (100ms)",
                "config": {"timeLimit": 100},
            },
            "medium": {
                "name": "Balanced",
                "description": "Deep search (1s)",
                "config": {"timeLimit": 1000},
            },
            "hard": {
                "name": "Strong",
                "description": "Deepest search (4s)",
                "config": {"timeLimit": 4000},
            },
            "extreme": {
                "name": "Extreme",
                "description": "Max power (15s)",
                "config": {"timeLimit": 15000},
            },
        },
    },
}


class AIFactory:
    """Centralized factory for creating AI instances.

    Built-in strategies are resolved lazily by ``AIType`` so importing the
    registry does not import every search implementation. Custom
    strategies registered at runtime take precedence over built-ins with
    the same id.
    """

    # Maps string identifiers to (constructor, metadata). Constructors are
    # called as constructor(side, config, game=..., clock=...).
    _custom_registry: dict[str, tuple[Callable[..., BaseAI], StrategyMetadata]] = {}

    # Cache for imported AI classes (lazy loading)
    _class_cache: dict[AIType, type[BaseAI]] = {}

    @classmethod
    def register(
        cls,
        identifier: str,
        constructor: Callable[..., BaseAI],
        metadata: Optional[StrategyMetadata] = None,
    ) -> None:
        """Register a custom AI implementation.

        Args:
            identifier: Unique string identifier for the strategy
            constructor: Callable that creates AI instances
            metadata: Display metadata and difficulty presets. Defaults to
                a single ``default`` difficulty with no overrides.
        """
        if metadata is None:
            doc = getattr(constructor, "__doc__", None) or "Custom AI"
            metadata = {
                "id": identifier,
                "name": identifier,
                "description": doc.strip().split("\n")[0],
                "author": "Custom",
                "version": "1.0",
                "supportsAnalytics": bool(
                    getattr(constructor, "supports_analytics", False)
                ),
                "difficulties": {
                    "default": {
                        "name": "Default",
                        "description": "Default configuration",
                        "config": {},
                    },
                },
            }
        else:
            metadata = {**metadata, "id": identifier}

        if identifier in cls._custom_registry:
            logger.warning(f"Overwriting existing custom AI: {identifier}")
        cls._custom_registry[identifier] = (constructor, metadata)
        logger.debug(f"Registered custom AI: {identifier}")

    @classmethod
    def unregister(cls, identifier: str) -> bool:
        """Unregister a custom AI implementation.

        Returns:
            True if the identifier was found and removed, False otherwise
        """
        if identifier in cls._custom_registry:
            del cls._custom_registry[identifier]
            logger.debug(f"Unregistered custom AI: {identifier}")
            return True
        return False

    @classmethod
    def list_registered(cls) -> dict[str, str]:
        """Map every known identifier to a one-line description."""
        result = {}
        for ai_type in AIType:
            result[ai_type.value] = f"Built-in: {BUILTIN_STRATEGIES[ai_type]['name']}"
        for identifier, (_, metadata) in cls._custom_registry.items():
            result[identifier] = f"Custom: {metadata['description']}"
        return result

    @classmethod
    def get_metadata(cls, ai_id: str) -> StrategyMetadata:
        """Metadata for ``ai_id``.

        Raises:
            UnknownStrategyError: If no strategy has this id
        """
        if ai_id in cls._custom_registry:
            return cls._custom_registry[ai_id][1]
        try:
            return BUILTIN_STRATEGIES[AIType(ai_id)]
        except ValueError:
            raise UnknownStrategyError(ai_id) from None

    @classmethod
    def get_available_ais(cls) -> list[StrategyMetadata]:
        """Metadata of every strategy, built-ins first."""
        result = [
            copy.deepcopy(metadata)
            for ai_type, metadata in BUILTIN_STRATEGIES.items()
            if ai_type.value not in cls._custom_registry
        ]
        result.extend(
            copy.deepcopy(metadata) for _, metadata in cls._custom_registry.values()
        )
        return result

    @classmethod
    def get_difficulties(cls, ai_id: str) -> list[str]:
        return list(cls.get_metadata(ai_id)["difficulties"])

    @classmethod
    def supports_analytics(cls, ai_id: str) -> bool:
        return bool(cls.get_metadata(ai_id).get("supportsAnalytics", False))

    @classmethod
    def build_config(
        cls,
        ai_id: str,
        difficulty: str,
        seed: Optional[int] = None,
    ) -> AIConfig:
        """Validated ``AIConfig`` for a strategy's difficulty preset.

        Raises:
            UnknownStrategyError: If no strategy has this id
            UnknownDifficultyError: If the strategy has no such preset
        """
        difficulties = cls.get_metadata(ai_id)["difficulties"]
        if difficulty not in difficulties:
            raise UnknownDifficultyError(ai_id, difficulty)

        overrides = dict(difficulties[difficulty]["config"])
        overrides["difficulty"] = difficulty
        if seed is not None:
            overrides["rngSeed"] = seed
        return AIConfig(**overrides)

    @classmethod
    def _get_ai_class(cls, ai_type: AIType) -> type[BaseAI]:
        """Get the AI class for a given type, with lazy loading."""
        if ai_type in cls._class_cache:
            return cls._class_cache[ai_type]

        # Lazy imports to avoid circular dependencies
        if ai_type == AIType.RANDOM:
            from .random_ai import RandomAI
            ai_class = RandomAI
        elif ai_type == AIType.HEURISTIC:
            from .minimax_ai import MinimaxAI
            ai_class = MinimaxAI
        elif ai_type == AIType.MCTS:
            from .mcts_ai import MCTSAI
            ai_class = MCTSAI
        elif ai_type == AIType.ADVANCED_MCTS:
            from .advanced_mcts_ai import AdvancedMCTSAI
            ai_class = AdvancedMCTSAI
        else:
            raise UnknownStrategyError(str(ai_type))

        cls._class_cache[ai_type] = ai_class
        return ai_class

    @classmethod
    def create(
        cls,
        ai_id: str,
        difficulty: str,
        side: Side,
        game: Optional[HexGame] = None,
        seed: Optional[int] = None,
        clock: Optional[Clock] = None,
    ) -> BaseAI:
        """Create an AI instance for a strategy and difficulty.

        Args:
            ai_id: Strategy identifier (built-in or registered)
            difficulty: Difficulty key of that strategy
            side: The side the AI plays
            game: Optional initial board handed to the constructor
            seed: RNG seed; when omitted one is derived from the preset
            clock: Time source for time-budgeted searches

        Raises:
            UnknownStrategyError: If no strategy has this id
            UnknownDifficultyError: If the strategy has no such preset
        """
        config = cls.build_config(ai_id, difficulty, seed=seed)

        if ai_id in cls._custom_registry:
            constructor = cls._custom_registry[ai_id][0]
        else:
            constructor = cls._get_ai_class(AIType(ai_id))

        ai = constructor(Side(side), config, game=game, clock=clock)
        logger.debug(f"Created {ai!r} for strategy {ai_id}")
        return ai
