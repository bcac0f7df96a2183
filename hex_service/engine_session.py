"""
Engine session: the request/response boundary between a host and one AI.

A session holds at most one strategy instance. Requests follow the
``init`` / ``getMove`` / ``getScores`` / ``shouldSwap`` contract and every
failure is turned into an error response, so a bad snapshot or a fault in
a search never propagates into the host.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .ai.base import BaseAI, Clock
from .ai.factory import AIFactory
from .errors import (
    AINotInitializedError,
    ConfigurationError,
    HexServiceError,
    InvalidStateError,
    SessionBusyError,
)
from .game_engine import HexGame
from .models import EngineOperation, EngineRequest, EngineResponse, Side

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = "medium"
DEFAULT_SIDE = Side.BLUE


class EngineSession:
    """One AI opponent serving requests for a single game.

    The host must not send a second request while one is running; if it
    does, the second request is refused with a ``SESSION_BUSY`` error
    instead of waiting.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock
        self.ai: Optional[BaseAI] = None
        self.ai_id: Optional[str] = None
        self.difficulty: Optional[str] = None
        self.side: Side = DEFAULT_SIDE
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self.ai is not None

    def handle(self, request: EngineRequest) -> EngineResponse:
        """Process one request and return its response (never raises)."""
        operation = request.operation
        if not self._lock.acquire(blocking=False):
            error = SessionBusyError("A request is already in progress")
            logger.warning("Rejected %s: %s", operation.value, error)
            return EngineResponse(operation=operation, error=error.message)

        try:
            if operation == EngineOperation.INIT:
                return self._init(request)
            if operation == EngineOperation.GET_MOVE:
                return self._get_move(request)
            if operation == EngineOperation.GET_SCORES:
                return self._get_scores(request)
            return self._should_swap(request)
        except HexServiceError as e:
            logger.warning("%s failed: %s", operation.value, e)
            return EngineResponse(operation=operation, error=e.message)
        except Exception as e:
            logger.error("Error handling %s: %s", operation.value, str(e), exc_info=True)
            return EngineResponse(operation=operation, error=str(e) or type(e).__name__)
        finally:
            self._lock.release()

    def _init(self, request: EngineRequest) -> EngineResponse:
        if not request.ai_id:
            raise ConfigurationError("aiId is required for init")
        difficulty = request.difficulty or DEFAULT_DIFFICULTY
        side = Side(request.player) if request.player is not None else DEFAULT_SIDE

        game = (
            HexGame.from_snapshot(request.game_state)
            if request.game_state is not None
            else None
        )
        ai = AIFactory.create(
            request.ai_id,
            difficulty,
            side,
            game=game,
            seed=request.seed,
            clock=self.clock,
        )

        self.ai = ai
        self.ai_id = request.ai_id
        self.difficulty = difficulty
        self.side = side
        logger.info("Session initialized: ai=%s difficulty=%s side=%s", self.ai_id, difficulty, side.name)
        return EngineResponse(operation=request.operation)

    def _require_game(self, request: EngineRequest) -> HexGame:
        if self.ai is None:
            raise AINotInitializedError()
        if request.game_state is None:
            raise InvalidStateError("gameState is required")
        return HexGame.from_snapshot(request.game_state)

    def _get_move(self, request: EngineRequest) -> EngineResponse:
        game = self._require_game(request)
        side = Side(request.player) if request.player is not None else self.side
        self.ai.set_side(side)

        move = self.ai.select_move(game)
        return EngineResponse(
            operation=request.operation,
            move=list(move) if move is not None else None,
        )

    def _get_scores(self, request: EngineRequest) -> EngineResponse:
        # Strategies without a confidence map report no scores, not an error
        if self.ai is None or not self.ai.supports_analytics:
            return EngineResponse(operation=request.operation, scores=None)
        return EngineResponse(
            operation=request.operation,
            scores=self.ai.get_normalized_scores(),
        )

    def _should_swap(self, request: EngineRequest) -> EngineResponse:
        game = self._require_game(request)
        if request.player is not None:
            self.ai.set_side(Side(request.player))
        return EngineResponse(
            operation=request.operation,
            swap=self.ai.should_swap(game),
        )
