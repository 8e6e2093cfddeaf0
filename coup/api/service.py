"""
Game Service - Translation layer between client requests and engines.

The service:
1. Resolves sessions by id
2. Translates requests to engine calls
3. Formats snapshots and events as pydantic responses

This layer is framework-agnostic: a socket server, an HTTP app or a
local UI can all sit on top of it. It carries no transport of its own.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from pydantic import ValidationError

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
    LegalActionInfo,
    PendingInfo,
    PlayerInfo,
    # Enums
    ErrorCode,
)
from ..engine_core.config import EngineConfig
from ..engine_core.events import GameEvent
from ..engine_core.state import GameSnapshot
from ..session import GameSessionManager, GameSession

logger = logging.getLogger(__name__)


@dataclass
class GameService:
    """
    Main service for client layers.

    Usage:
        service = GameService()

        session = service.create_game(CreateGameRequest())
        alice = service.join(JoinRequest(session_id=session.session_id, name="Alice"))
        ...
        service.start(StartRequest(session_id=session.session_id))
        service.perform_action(ActionRequest(...))
        events = service.poll_events(session.session_id)
    """
    session_manager: GameSessionManager = field(default_factory=GameSessionManager)

    def create_game(self, request: CreateGameRequest) -> SessionResponse | ErrorResponse:
        """
        Open a new table with optional per-game overrides.

        Overrides are validated by EngineConfig; out-of-range values come
        back as VALIDATION_ERROR and no session is created.
        """
        overrides = {
            key: value
            for key, value in {
                "max_players": request.max_players,
                "response_time_limit": request.response_time_limit,
                "seed": request.seed,
            }.items()
            if value is not None
        }
        try:
            config = EngineConfig.model_validate(
                {**self.session_manager.config.model_dump(), **overrides}
            )
        except ValidationError as e:
            return ErrorResponse(
                error="Invalid game settings",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={
                    "errors": [
                        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ]
                },
            )
        session = self.session_manager.create_session(
            config=config,
            metadata={"table_name": request.table_name},
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)
        return self._session_to_response(session)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def end_game(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def join(self, request: JoinRequest) -> JoinResponse | ErrorResponse:
        session = self.session_manager.get_session(request.session_id)
        if not session:
            return self._session_not_found(request.session_id)

        engine = session.engine
        if not engine.add_player(request.name):
            return ErrorResponse(
                error="Table is full or the game has already started",
                error_code=ErrorCode.JOIN_REJECTED,
            )
        player = engine.players[-1]
        return JoinResponse(
            session_id=session.session_id,
            player_id=player.player_id,
            name=player.name,
        )

    def leave(self, session_id: str, player_id: int) -> bool | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)
        return session.engine.remove_player(player_id)

    def start(self, request: StartRequest) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(request.session_id)
        if not session:
            return self._session_not_found(request.session_id)

        if not session.engine.start_game(first_player_id=request.first_player_id):
            return ErrorResponse(
                error="Game cannot start (player count or phase)",
                error_code=ErrorCode.START_REJECTED,
                details={"players": len(session.engine.players)},
            )
        return self.get_game_state(session.session_id)

    def perform_action(self, request: ActionRequest) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(request.session_id)
        if not session:
            return self._session_not_found(request.session_id)

        result = session.engine.perform_action(
            request.player_id,
            request.action_kind,
            request.target_id,
        )
        if not result.success:
            return ErrorResponse(
                error=result.error or "Action rejected",
                error_code=ErrorCode(result.error_code),
            )
        return ActionResponse(
            session_id=session.session_id,
            success=True,
            awaiting_responses=result.awaiting_responses,
            action=ActionInfo.model_validate(result.action),
            state_changes=result.state_changes,
        )

    def respond(self, request: ResponseRequest) -> GameStateResponse | ErrorResponse:
        """
        Submit a response to the pending action.

        The engine ignores responses that do not apply; the returned state
        shows whether anything happened.
        """
        session = self.session_manager.get_session(request.session_id)
        if not session:
            return self._session_not_found(request.session_id)
        if session.engine.get_player(request.player_id) is None:
            return ErrorResponse(
                error=f"Player {request.player_id} is not seated",
                error_code=ErrorCode.UNKNOWN_PLAYER,
            )

        session.engine.respond_to_action(
            request.player_id,
            request.response,
            request.claimed_card,
        )
        return self.get_game_state(session.session_id, viewer_id=request.player_id)

    def get_game_state(
        self,
        session_id: str,
        viewer_id: int | None = None,
    ) -> GameStateResponse | ErrorResponse:
        """
        Full game state as seen by viewer_id.

        Without a viewer every hand is shown (spectator/debug tooling).
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)

        engine = session.engine
        snapshot = engine.snapshot(viewer_id=viewer_id)
        legal = []
        if snapshot.current_player_id is not None and viewer_id in (None, snapshot.current_player_id):
            legal = [
                LegalActionInfo(action_kind=kind, target_id=target)
                for kind, target in engine.legal_actions(snapshot.current_player_id)
            ]
        return self._snapshot_to_response(session_id, snapshot, legal)

    def poll_events(self, session_id: str) -> EventsResponse | ErrorResponse:
        """Drain and return the session's buffered events."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)
        return EventsResponse(
            session_id=session_id,
            events=[self._event_to_info(event) for event in session.events.drain()],
        )

    # -------------------------------------------------------------------------
    # Conversion helpers
    # -------------------------------------------------------------------------

    def _session_not_found(self, session_id: str) -> ErrorResponse:
        logger.debug("Session %s not found", session_id)
        return ErrorResponse(
            error="Session not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"session_id": session_id},
        )

    def _session_to_response(self, session: GameSession) -> SessionResponse:
        engine = session.engine
        snapshot = engine.snapshot()
        return SessionResponse(
            session_id=session.session_id,
            phase=snapshot.phase,
            players=self._player_infos(snapshot, show_cards=False),
            max_players=engine.config.max_players,
            response_time_limit=engine.config.response_time_limit,
            created_at=session.created_at,
            table_name=session.metadata.get("table_name"),
        )

    def _player_infos(self, snapshot: GameSnapshot, show_cards: bool = True) -> list[PlayerInfo]:
        return [
            PlayerInfo(
                player_id=view.player_id,
                name=view.name,
                coins=view.coins,
                influence_count=view.influence_count,
                is_alive=view.is_alive,
                is_ready=view.is_ready,
                has_left=view.has_left,
                is_current_turn=view.player_id == snapshot.current_player_id,
                cards=list(view.cards) if show_cards and view.cards is not None else None,
            )
            for view in snapshot.players
        ]

    def _snapshot_to_response(
        self,
        session_id: str,
        snapshot: GameSnapshot,
        legal: list[LegalActionInfo],
    ) -> GameStateResponse:
        pending = None
        if snapshot.pending_action is not None:
            pending = PendingInfo(
                action=ActionInfo.model_validate(snapshot.pending_action),
                responders=sorted(snapshot.pending_responders),
                time_remaining=snapshot.time_remaining or 0.0,
            )
        return GameStateResponse(
            session_id=session_id,
            phase=snapshot.phase,
            turn_number=snapshot.turn_number,
            current_player_id=snapshot.current_player_id,
            deck_size=snapshot.deck_size,
            players=self._player_infos(snapshot),
            pending=pending,
            legal_actions=legal,
            winner_id=snapshot.winner_id,
        )

    def _event_to_info(self, event: GameEvent) -> EventInfo:
        return EventInfo(
            kind=event.kind.value,
            sequence=event.sequence,
            phase=event.phase,
            player_id=event.player_id,
            action=ActionInfo.model_validate(event.action) if event.action else None,
            winner_id=event.winner_id,
            details=dict(event.details),
        )
