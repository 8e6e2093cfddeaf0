"""
Session Manager - Creates and tracks game sessions.

LIFECYCLE:
1. Host creates a session -> fresh engine, in-memory only
2. Players join, the host starts the game
3. Intents flow into the session's engine; events buffer in its queue
4. Game ends or host closes -> session removed, timers cancelled

PERSISTENCE RULES:
- NO database: a session lives and dies with the process
- Engines are never shared or reached globally; callers go through the
  manager with a session id
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import threading
import time
import uuid

from ..engine_core.config import EngineConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventQueue
from ..engine_core.state import GamePhase
from ..engine_core.timer import Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    LOBBY = "lobby"  # Waiting for players
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Host closed or stale


@dataclass
class GameSession:
    """
    One game and its outbound event buffer.

    The session holds the engine by reference; nothing else does.
    """
    session_id: str
    engine: GameEngine
    created_at: float
    events: EventQueue = field(default_factory=EventQueue)
    closed: bool = False

    metadata: dict[str, Any] = field(default_factory=dict)
    _unsubscribe: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def state(self) -> SessionState:
        if self.closed:
            return SessionState.ABANDONED
        phase = self.engine.phase
        if phase == GamePhase.WAITING_FOR_PLAYERS:
            return SessionState.LOBBY
        if phase == GamePhase.GAME_OVER:
            return SessionState.GAME_OVER
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        return self.state in {SessionState.LOBBY, SessionState.ACTIVE}


class GameSessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their own engine
    - Look sessions up by id
    - Close sessions and clean up stale ones

    All sessions share one scheduler so a single timer backend serves
    every response window.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.config = config or EngineConfig()
        self.scheduler = scheduler or ThreadingScheduler()
        self._sessions: dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        config: EngineConfig | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> GameSession:
        """
        Create a new session in the lobby state.

        Args:
            config: Per-session overrides (defaults to the manager config)
            metadata: Free-form host data (table name, ...)
        """
        session_id = str(uuid.uuid4())
        engine = GameEngine(config=config or self.config, scheduler=self.scheduler)
        session = GameSession(
            session_id=session_id,
            engine=engine,
            created_at=time.time(),
            metadata=metadata or {},
        )
        session._unsubscribe = engine.events.subscribe(session.events)

        with self._lock:
            self._sessions[session_id] = session
        logger.info("Created session %s", session_id)
        return session

    def get_session(self, session_id: str) -> GameSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        Close a session and drop it.

        Any open response window is cancelled so no timer fires into a
        discarded engine.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.engine.reset()
        if session._unsubscribe is not None:
            session._unsubscribe()
        session.events.drain()
        session.closed = True
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        with self._lock:
            sessions = list(self._sessions.items())
        return [sid for sid, session in sessions if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        End finished sessions older than max_age.

        Returns the ids that were removed.
        """
        now = time.time()
        with self._lock:
            sessions = list(self._sessions.items())
        stale = [
            sid for sid, session in sessions
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in stale:
            self.end_session(session_id)
        return stale
