"""
Pydantic Schemas - Request/response models for presentation and network layers.

These models define the contract between a client layer and the engine.
The engine itself never sees them; GameService translates in both
directions.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been closed
- JOIN_REJECTED: Table full or game already started
- START_REJECTED: Wrong player count or game already started
- NOT_YOUR_TURN / FORCED_COUP / INVALID_TARGET / ILLEGAL_ACTION /
  WRONG_PHASE: Action rejected by the rules engine
- UNKNOWN_PLAYER: Player id is not seated at this table
- VALIDATION_ERROR: Game settings rejected by EngineConfig
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.cards import ActionKind, CardKind
from ..engine_core.action import ResponseKind
from ..engine_core.state import GamePhase


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    JOIN_REJECTED = "JOIN_REJECTED"
    START_REJECTED = "START_REJECTED"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    FORCED_COUP = "FORCED_COUP"
    INVALID_TARGET = "INVALID_TARGET"
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    WRONG_PHASE = "WRONG_PHASE"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: int
    name: str
    coins: int
    influence_count: int
    is_alive: bool
    is_ready: bool = False
    has_left: bool = False
    is_current_turn: bool = False
    cards: Optional[list[CardKind]] = Field(
        None, description="Only present for the requesting player's own seat"
    )

    model_config = {"from_attributes": True}


class ActionInfo(BaseModel):
    """An attempted action."""
    player_id: int
    action_kind: ActionKind
    target_id: Optional[int] = None
    claimed_card: Optional[CardKind] = None

    model_config = {"from_attributes": True}


class PendingInfo(BaseModel):
    """The open response window."""
    action: ActionInfo
    responders: list[int] = Field(default_factory=list)
    time_remaining: float = 0.0


class LegalActionInfo(BaseModel):
    """One action the current player may submit."""
    action_kind: ActionKind
    target_id: Optional[int] = None


# =============================================================================
# Requests
# =============================================================================

class CreateGameRequest(BaseModel):
    """Open a new table."""
    max_players: Optional[int] = Field(None, description="2-6, checked against EngineConfig")
    response_time_limit: Optional[float] = Field(None, description="Seconds, must be positive")
    seed: Optional[int] = None
    table_name: Optional[str] = None


class JoinRequest(BaseModel):
    session_id: str
    name: str = Field(min_length=1, max_length=32)


class StartRequest(BaseModel):
    session_id: str
    first_player_id: Optional[int] = None


class ActionRequest(BaseModel):
    """Current player's action."""
    session_id: str
    player_id: int
    action_kind: ActionKind
    target_id: Optional[int] = None


class ResponseRequest(BaseModel):
    """Allow, challenge or block the pending action."""
    session_id: str
    player_id: int
    response: ResponseKind
    claimed_card: Optional[CardKind] = None


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Session summary."""
    session_id: str
    phase: GamePhase
    players: list[PlayerInfo] = Field(default_factory=list)
    max_players: int
    response_time_limit: float
    created_at: float
    table_name: Optional[str] = None
    api_version: str = "v1"


class JoinResponse(BaseModel):
    session_id: str
    player_id: int
    name: str


class GameStateResponse(BaseModel):
    """Full observable state for one viewer."""
    session_id: str
    phase: GamePhase
    turn_number: int
    current_player_id: Optional[int] = None
    deck_size: int
    players: list[PlayerInfo] = Field(default_factory=list)
    pending: Optional[PendingInfo] = None
    legal_actions: list[LegalActionInfo] = Field(default_factory=list)
    winner_id: Optional[int] = None


class ActionResponse(BaseModel):
    """Outcome of submitting an action."""
    session_id: str
    success: bool
    awaiting_responses: bool = False
    action: Optional[ActionInfo] = None
    state_changes: list[str] = Field(default_factory=list)


class EventInfo(BaseModel):
    """One engine notification."""
    kind: str
    sequence: int
    phase: Optional[GamePhase] = None
    player_id: Optional[int] = None
    action: Optional[ActionInfo] = None
    winner_id: Optional[int] = None
    details: dict[str, Any] = Field(default_factory=dict)


class EventsResponse(BaseModel):
    session_id: str
    events: list[EventInfo] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Structured error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
