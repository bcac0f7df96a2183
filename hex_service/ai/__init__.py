"""AI implementations for Hex.

The recommended way to get an opponent is through the factory, which
applies the named difficulty presets:

    from hex_service.ai import AIFactory

    ai = AIFactory.create("advanced-hex", "hard", Side.BLUE)
    move = ai.select_move(game)

For direct access to AI classes (advanced usage):

    from hex_service.ai import BaseAI, MinimaxAI, MCTSAI, AdvancedMCTSAI

Layout:
- base.py: BaseAI abstract base class
- factory.py: strategy registry and difficulty presets
- random_ai.py: uniform random play with an optional tactical filter
- minimax_ai.py: bounded alpha-beta search with beam truncation
- mcts_ai.py: UCT + RAVE with heuristic playouts and a hybrid mode
- advanced_mcts_ai.py: time-budgeted MCTS over a flat playout board
- position_evaluator.py: resistance / centre / edge / bridge features
- tactics.py: win, block and bridge-threat detection, swap decision
"""

from .base import BaseAI
from .factory import (
    BUILTIN_STRATEGIES,
    AIFactory,
    DifficultyPreset,
    StrategyMetadata,
)

# Lazy-load AI implementations to avoid circular imports
_AI_CLASSES = {
    "RandomAI": "hex_service.ai.random_ai",
    "MinimaxAI": "hex_service.ai.minimax_ai",
    "MCTSAI": "hex_service.ai.mcts_ai",
    "AdvancedMCTSAI": "hex_service.ai.advanced_mcts_ai",
}


def __getattr__(name: str):
    """Lazy loading for AI implementation classes."""
    if name in _AI_CLASSES:
        import importlib
        module = importlib.import_module(_AI_CLASSES[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "BUILTIN_STRATEGIES",
    "AIFactory",
    "BaseAI",
    "DifficultyPreset",
    "StrategyMetadata",
    *_AI_CLASSES,
]
