"""
Game State - Phases, the pending response window, and read-only snapshots.

Design principles:
- The pending response is an explicit optional value: present only while
  the engine waits for responses, replaced (never edited) as responders
  drop out, and discarded before resolution begins.
- Snapshots are copies: presentation layers can hold them without seeing
  later mutations.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from .action import GameAction
from .cards import CardKind

if TYPE_CHECKING:
    from .timer import TimerHandle


class GamePhase(Enum):
    """Engine states."""
    WAITING_FOR_PLAYERS = "waiting_for_players"
    STARTING = "starting"
    PLAYING = "playing"
    WAITING_FOR_RESPONSE = "waiting_for_response"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PendingResponse:
    """
    A contestable action waiting on other players.

    responders shrinks as each entitled player answers; the deadline is on
    the engine scheduler's clock.
    """
    action: GameAction
    responders: frozenset[int]
    deadline: float
    timer: TimerHandle | None = field(default=None, compare=False)

    def without(self, player_id: int) -> PendingResponse:
        """Return a copy with the player removed from the responders."""
        return replace(self, responders=self.responders - {player_id})

    @property
    def is_settled(self) -> bool:
        """Every entitled player has answered."""
        return not self.responders

    def time_remaining(self, now: float) -> float:
        return max(0.0, self.deadline - now)


@dataclass(frozen=True)
class PlayerView:
    """
    What a viewer may see about one player.

    cards is only filled for the viewer's own seat (or for everyone when
    no viewer is given, for debugging/spectator tooling).
    """
    player_id: int
    name: str
    coins: int
    influence_count: int
    is_alive: bool
    is_ready: bool
    has_left: bool
    cards: tuple[CardKind, ...] | None = None


@dataclass(frozen=True)
class GameSnapshot:
    """Complete observable state at a point in time."""
    phase: GamePhase
    players: tuple[PlayerView, ...]
    current_player_id: int | None
    deck_size: int
    turn_number: int
    pending_action: GameAction | None = None
    pending_responders: frozenset[int] = frozenset()
    time_remaining: float | None = None
    winner_id: int | None = None

    def get_player(self, player_id: int) -> PlayerView | None:
        for view in self.players:
            if view.player_id == player_id:
                return view
        return None
