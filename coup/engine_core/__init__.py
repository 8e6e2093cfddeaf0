"""
Engine Core - Authoritative rules engine for one Coup game.

The engine is the runtime that:
1. Seats players and deals from the Court deck
2. Validates actions against the rules
3. Runs the challenge/block response window and its timeout
4. Resolves effects and influence loss
5. Advances turns and detects the winner
6. Notifies observers after every state change
"""

from .cards import ActionKind, Card, CardDefinition, CardKind, CARD_DEFINITIONS
from .deck import Deck
from .player import Player
from .action import ActionResult, GameAction, ResponseKind
from .state import GamePhase, GameSnapshot, PendingResponse, PlayerView
from .events import EventBus, EventKind, EventQueue, GameEvent
from .timer import ManualScheduler, Scheduler, ThreadingScheduler, TimerHandle
from .errors import CoupError, IllegalAction, InvalidTarget, InvariantViolation, OutOfStateCall
from .config import EngineConfig, configure_logging
from .engine import GameEngine
from . import rules

__all__ = [
    "ActionKind",
    "Card",
    "CardDefinition",
    "CardKind",
    "CARD_DEFINITIONS",
    "Deck",
    "Player",
    "ActionResult",
    "GameAction",
    "ResponseKind",
    "GamePhase",
    "GameSnapshot",
    "PendingResponse",
    "PlayerView",
    "EventBus",
    "EventKind",
    "EventQueue",
    "GameEvent",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "CoupError",
    "IllegalAction",
    "InvalidTarget",
    "InvariantViolation",
    "OutOfStateCall",
    "EngineConfig",
    "configure_logging",
    "GameEngine",
    "rules",
]
