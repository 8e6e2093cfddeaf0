"""
API Module - Client-facing boundary of the engine.

Client layers (UI, network server) talk to GameService with pydantic
requests and get pydantic responses back:
1. Create a table
2. Join players and start
3. Submit actions and responses
4. Poll state and events

Transport is the client layer's job; nothing here opens sockets.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinRequest,
    StartRequest,
    ActionRequest,
    ResponseRequest,
    # Responses
    SessionResponse,
    JoinResponse,
    GameStateResponse,
    ActionResponse,
    EventsResponse,
    ErrorResponse,
    # Shared
    ActionInfo,
    EventInfo,
    PendingInfo,
    PlayerInfo,
    LegalActionInfo,
    ErrorCode,
)
from .service import GameService

__all__ = [
    # Requests
    "CreateGameRequest",
    "JoinRequest",
    "StartRequest",
    "ActionRequest",
    "ResponseRequest",
    # Responses
    "SessionResponse",
    "JoinResponse",
    "GameStateResponse",
    "ActionResponse",
    "EventsResponse",
    "ErrorResponse",
    # Shared
    "ActionInfo",
    "EventInfo",
    "PendingInfo",
    "PlayerInfo",
    "LegalActionInfo",
    "ErrorCode",
    # Service
    "GameService",
]
