"""
Events - Outbound notifications from the engine.

Presentation and network layers observe the engine instead of reaching
into it. Every event is published after the state mutation it describes,
in mutation order, with a per-engine sequence number.

Two ways to consume:
- EventBus.subscribe(listener): push, called synchronously
- EventQueue: pull, buffers events until drained
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING
import itertools
import threading

if TYPE_CHECKING:
    from .action import GameAction
    from .state import GamePhase


class EventKind(Enum):
    """Kinds of notifications."""
    STATE_CHANGED = "state_changed"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    ACTION_PERFORMED = "action_performed"
    GAME_ENDED = "game_ended"

    TURN_CHANGED = "turn_changed"
    RESPONSE_REQUESTED = "response_requested"
    CHALLENGE_RESOLVED = "challenge_resolved"
    ACTION_BLOCKED = "action_blocked"
    INFLUENCE_LOST = "influence_lost"


@dataclass(frozen=True)
class GameEvent:
    """
    One notification.

    Only the fields relevant to the kind are set:
    - STATE_CHANGED: phase
    - PLAYER_JOINED / PLAYER_LEFT / TURN_CHANGED / INFLUENCE_LOST: player_id
    - ACTION_PERFORMED / RESPONSE_REQUESTED / ACTION_BLOCKED: action
    - CHALLENGE_RESOLVED: action, player_id (the challenger)
    - GAME_ENDED: winner_id
    """
    kind: EventKind
    sequence: int
    phase: GamePhase | None = None
    player_id: int | None = None
    action: GameAction | None = None
    winner_id: int | None = None
    details: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[GameEvent], None]


class EventBus:
    """Explicit observer list."""

    def __init__(self):
        self._listeners: list[Listener] = []
        self._sequence = itertools.count(1)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, kind: EventKind, **fields: Any) -> GameEvent:
        """Build the next event and deliver it to every listener."""
        event = GameEvent(kind=kind, sequence=next(self._sequence), **fields)
        for listener in list(self._listeners):
            listener(event)
        return event


class EventQueue:
    """
    Buffering listener for pull-style consumers.

    Usage:
        queue = EventQueue()
        engine.events.subscribe(queue)
        ...
        for event in queue.drain():
            render(event)
    """

    def __init__(self):
        self._events: list[GameEvent] = []
        self._lock = threading.Lock()

    def __call__(self, event: GameEvent) -> None:
        with self._lock:
            self._events.append(event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def drain(self) -> list[GameEvent]:
        """Return and clear every buffered event."""
        with self._lock:
            events = self._events
            self._events = []
        return events

    def peek(self) -> list[GameEvent]:
        with self._lock:
            return list(self._events)
