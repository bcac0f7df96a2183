"""
Hex AI Service - FastAPI Application
Provides AI move selection, confidence maps and engine sessions
"""

from dataclasses import dataclass
import logging
import threading
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from . import __version__
from .ai.factory import AIFactory
from .config import ServiceSettings
from .engine_session import EngineSession
from .errors import ConfigurationError, InvalidStateError
from .game_engine import HexGame
from .logging_config import setup_logging
from .metrics import (
    AI_MOVE_LATENCY,
    AI_MOVE_REQUESTS,
    AI_SESSION_CACHE_SIZE,
    observe_ai_move_start,
    record_simulations,
)
from .models import (
    AIType,
    BoardSnapshot,
    EngineOperation,
    EngineRequest,
    EngineResponse,
    Side,
)

settings = ServiceSettings.from_env()

# Configure logging
setup_logging("hex_service", level=settings.log_level)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Hex AI Service",
    description="AI move selection and analysis service for Hex",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Engine sessions cache
@dataclass
class CachedSession:
    session: EngineSession
    created_at: float
    last_access: float


_session_lock = threading.Lock()
sessions: Dict[str, CachedSession] = {}


def _prune_sessions(now: float) -> None:
    """Drop idle sessions, then the least recently used beyond the cap."""
    if not sessions:
        return

    expired = [
        key
        for key, entry in sessions.items()
        if now - entry.last_access > settings.session_ttl_sec
    ]
    for key in expired:
        sessions.pop(key, None)

    if len(sessions) > settings.session_max:
        entries_by_age = sorted(sessions.items(), key=lambda kv: kv[1].last_access)
        overflow = len(sessions) - settings.session_max
        for key, _entry in entries_by_age[:overflow]:
            sessions.pop(key, None)

    AI_SESSION_CACHE_SIZE.set(len(sessions))


def _get_or_create_session(session_id: str) -> EngineSession:
    now = time.time()
    with _session_lock:
        entry = sessions.get(session_id)
        if entry is None:
            entry = CachedSession(session=EngineSession(), created_at=now, last_access=now)
            sessions[session_id] = entry
        entry.last_access = now
        _prune_sessions(now)
        AI_SESSION_CACHE_SIZE.set(len(sessions))
        return entry.session


class MoveRequest(BaseModel):
    """Request model for stateless AI move selection"""
    game_state: BoardSnapshot = Field(alias="gameState")
    ai_id: str = Field(AIType.ADVANCED_MCTS.value, alias="aiId")
    difficulty: str = "medium"
    player: Optional[Side] = None
    seed: Optional[int] = Field(
        None,
        ge=0,
        le=0x7FFFFFFF,
        description="Optional RNG seed for deterministic AI behavior",
    )

    class Config:
        populate_by_name = True


class MoveResponse(BaseModel):
    """Response model for AI move selection"""
    move: Optional[List[int]]
    scores: Optional[Dict[str, float]] = None
    evaluation: float
    thinking_time_ms: int
    ai_id: str
    difficulty: str


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "service": "Hex AI Service",
        "status": "running",
        "version": __version__,
    }


@app.get("/health")
async def health_check():
    """Health check for container orchestration"""
    return {"status": "healthy"}


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint (text exposition format)."""
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.get("/ai/strategies")
async def list_strategies():
    """Registered strategies with their difficulty presets"""
    return {"strategies": AIFactory.get_available_ais()}


def _choose_move(request: MoveRequest) -> MoveResponse:
    game = HexGame.from_snapshot(request.game_state)
    side = request.player or game.current_player
    ai = AIFactory.create(request.ai_id, request.difficulty, side, seed=request.seed)

    start_time = time.time()
    move = ai.select_move(game)
    thinking_time = int((time.time() - start_time) * 1000)
    evaluation = ai.evaluate_position(game)
    record_simulations(request.ai_id, ai)

    scores = ai.get_normalized_scores() if ai.supports_analytics else None
    return MoveResponse(
        move=list(move) if move is not None else None,
        scores=scores,
        evaluation=evaluation,
        thinking_time_ms=thinking_time,
        ai_id=request.ai_id,
        difficulty=request.difficulty,
    )


@app.post("/ai/move", response_model=MoveResponse)
async def get_ai_move(request: MoveRequest):
    """
    Get AI-selected move for a board snapshot.

    Configuration errors (unknown strategy or difficulty) and inconsistent
    snapshots are client errors (400); anything else is a 500.
    """
    start_time = time.time()
    labels_ai_id, labels_difficulty = observe_ai_move_start(
        request.ai_id, request.difficulty
    )

    def _record(outcome: str) -> None:
        AI_MOVE_REQUESTS.labels(labels_ai_id, labels_difficulty, outcome).inc()
        AI_MOVE_LATENCY.labels(labels_ai_id, labels_difficulty).observe(
            time.time() - start_time
        )

    try:
        response = await run_in_threadpool(_choose_move, request)
    except ConfigurationError as e:
        _record("config_error")
        logger.warning("Rejected AI move request: %s", e)
        raise HTTPException(status_code=400, detail=e.to_dict())
    except InvalidStateError as e:
        _record("invalid_state")
        logger.warning("Rejected AI move request: %s", e)
        raise HTTPException(status_code=400, detail=e.to_dict())
    except Exception as e:
        _record("error")
        logger.error("Error generating AI move: %s", str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    _record("success")
    logger.info(
        "AI move: ai=%s, difficulty=%s, time=%dms, eval=%.2f",
        request.ai_id,
        request.difficulty,
        response.thinking_time_ms,
        response.evaluation,
    )
    return response


@app.post("/ai/session/{session_id}", response_model=EngineResponse)
async def session_request(session_id: str, request: EngineRequest):
    """Engine message contract for one game, backed by a cached session"""
    session = _get_or_create_session(session_id)
    start_time = time.time()

    response = await run_in_threadpool(session.handle, request)

    if request.operation == EngineOperation.GET_MOVE and session.ai_id is not None:
        labels = observe_ai_move_start(session.ai_id, session.difficulty)
        outcome = "error" if response.error else "success"
        AI_MOVE_REQUESTS.labels(*labels, outcome).inc()
        AI_MOVE_LATENCY.labels(*labels).observe(time.time() - start_time)
        if not response.error:
            record_simulations(session.ai_id, session.ai)
    return response


@app.delete("/ai/sessions")
async def clear_sessions():
    """Drop every cached engine session"""
    with _session_lock:
        removed = len(sessions)
        sessions.clear()
        AI_SESSION_CACHE_SIZE.set(0)
    logger.info("Engine sessions cleared")
    return {"status": "sessions cleared", "sessions_removed": removed}


@app.get("/ai/sessions/stats")
async def session_stats() -> Dict[str, Any]:
    """Return basic stats about the in-process session cache."""
    now = time.time()
    with _session_lock:
        _prune_sessions(now)
        count = len(sessions)
        AI_SESSION_CACHE_SIZE.set(count)
    return {
        "count": count,
        "max": settings.session_max,
        "ttl_sec": settings.session_ttl_sec,
    }


if __name__ == "__main__":
    import uvicorn

    # When run directly (e.g. via `python -m hex_service.main`), bind to
    # 0.0.0.0 and respect HEX_AI_SERVICE_PORT.
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
