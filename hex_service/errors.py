"""
Hex AI Service Error Hierarchy

Unified exception hierarchy for consistent error handling across the engine.
All custom exceptions inherit from HexServiceError for easy catching and
filtering.

Invalid moves are not exceptions: ``HexGame.apply_move`` returns False for
them because they are an ordinary event during interactive play.

Usage:
    from hex_service.errors import ConfigurationError

    try:
        ai = AIFactory.create("mcts", "hard", Side.BLUE)
    except ConfigurationError as e:
        logger.warning(f"Bad strategy selection: {e.message}")
"""

from typing import Any

__all__ = [
    # AI errors
    "AIError",
    "AINotInitializedError",
    # Configuration errors
    "ConfigurationError",
    # Base error
    "HexServiceError",
    # Board state errors
    "InvalidStateError",
    "SessionBusyError",
    "UnknownDifficultyError",
    "UnknownStrategyError",
]


class HexServiceError(Exception):
    """Base exception for all Hex AI service errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "HEX_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Board State Errors
# =============================================================================


class InvalidStateError(HexServiceError):
    """Corrupted or inconsistent board snapshot.

    Raised when a transmitted snapshot cannot describe a reachable
    position (wrong grid shape, stray cell values, stone count that
    disagrees with the move count).
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(HexServiceError):
    """Invalid strategy selection or settings.

    Raised at setup time, before any search begins.
    """
    code: str = "CONFIGURATION_ERROR"


class UnknownStrategyError(ConfigurationError):
    """No strategy is registered under the requested identifier."""
    code: str = "UNKNOWN_STRATEGY"

    def __init__(
        self,
        ai_id: str,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(f"AI with id '{ai_id}' not found", context=context)
        self.ai_id = ai_id
        self.context["ai_id"] = ai_id


class UnknownDifficultyError(ConfigurationError):
    """The strategy has no preset with the requested difficulty key."""
    code: str = "UNKNOWN_DIFFICULTY"

    def __init__(
        self,
        ai_id: str,
        difficulty: str,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(
            f"Difficulty '{difficulty}' not found for AI '{ai_id}'",
            context=context,
        )
        self.ai_id = ai_id
        self.difficulty = difficulty
        self.context["ai_id"] = ai_id
        self.context["difficulty"] = difficulty


# =============================================================================
# AI Errors
# =============================================================================


class AIError(HexServiceError):
    """Base class for AI-related errors."""
    code: str = "AI_ERROR"


class AINotInitializedError(AIError):
    """A move or score request arrived before the session was initialized."""
    code: str = "AI_NOT_INITIALIZED"

    def __init__(self, message: str = "AI not initialized", context=None):
        super().__init__(message, context=context)


class SessionBusyError(AIError):
    """A second request arrived while a search was still running."""
    code: str = "SESSION_BUSY"
