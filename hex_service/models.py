"""
Pydantic Models for the Hex AI service
Mirrors the board snapshot and engine message shapes used by the web client
"""

from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


# Cell coordinates (row, col) used at every public boundary
Cell = Tuple[int, int]

EMPTY = 0

MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 19


class Side(IntEnum):
    """Stone colours. RED connects top-bottom, BLUE connects left-right."""
    RED = 1
    BLUE = 2

    @property
    def opponent(self) -> "Side":
        return Side.BLUE if self is Side.RED else Side.RED


class AIType(str, Enum):
    """Built-in strategy identifiers"""
    RANDOM = "random"
    HEURISTIC = "heuristic"
    MCTS = "mcts"
    ADVANCED_MCTS = "advanced-hex"


class EngineOperation(str, Enum):
    """Operations accepted by an engine session"""
    INIT = "init"
    GET_MOVE = "getMove"
    GET_SCORES = "getScores"
    SHOULD_SWAP = "shouldSwap"


class MoveRecord(BaseModel):
    """One entry of the move log"""
    row: int = Field(ge=0)
    col: int = Field(ge=0)
    player: Side


class BoardSnapshot(BaseModel):
    """Serializable board state.

    The grid shape and cell values are checked here. Checks that need
    game semantics (stone counts, side to move, winner flags) are done by
    ``HexGame.from_snapshot`` and raise ``InvalidStateError``.
    """
    size: int = Field(ge=MIN_BOARD_SIZE, le=MAX_BOARD_SIZE)
    board: List[List[int]]
    current_player: Side = Field(Side.RED, alias="currentPlayer")
    move_count: int = Field(0, ge=0, alias="moveCount")
    game_over: bool = Field(False, alias="gameOver")
    winner: Optional[Side] = None
    swap_available: bool = Field(False, alias="swapAvailable")
    history: List[MoveRecord] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _check_grid(self) -> "BoardSnapshot":
        if len(self.board) != self.size:
            raise ValueError(f"board has {len(self.board)} rows, expected {self.size}")
        for row in self.board:
            if len(row) != self.size:
                raise ValueError(f"board row has {len(row)} cells, expected {self.size}")
            if any(value not in (EMPTY, Side.RED, Side.BLUE) for value in row):
                raise ValueError("board cells must be 0, 1 or 2")
        return self


class AIConfig(BaseModel):
    """AI configuration.

    Only the fields relevant to a given strategy are read by it; the
    difficulty presets in ``hex_service.ai.factory`` fill them in.
    """
    difficulty: str = "medium"
    rng_seed: Optional[int] = Field(None, alias="rngSeed")
    randomness: Optional[float] = Field(None, ge=0, le=1)
    smart_mode: bool = Field(False, alias="smartMode")
    max_depth: int = Field(4, ge=1, le=32, alias="maxDepth")
    beam_width: int = Field(10, ge=1, le=361, alias="beamWidth")
    simulations: Optional[int] = Field(None, ge=1)
    time_limit_ms: Optional[int] = Field(None, ge=1, alias="timeLimit")
    think_time: Optional[int] = Field(None, ge=1, alias="thinkTime")
    batch_size: int = Field(100, ge=1, alias="batchSize")
    use_opening_book: bool = Field(True, alias="useOpeningBook")
    use_heuristic_search: bool = Field(True, alias="useHeuristicSearch")

    class Config:
        populate_by_name = True


class EngineRequest(BaseModel):
    """Request accepted by an engine session"""
    operation: EngineOperation
    ai_id: Optional[str] = Field(None, alias="aiId")
    difficulty: Optional[str] = None
    player: Optional[Side] = None
    game_state: Optional[BoardSnapshot] = Field(None, alias="gameState")
    seed: Optional[int] = None

    class Config:
        populate_by_name = True


class EngineResponse(BaseModel):
    """Response produced by an engine session"""
    operation: EngineOperation
    move: Optional[List[int]] = None
    scores: Optional[Dict[str, float]] = None
    swap: Optional[bool] = None
    error: Optional[str] = None

    class Config:
        populate_by_name = True
