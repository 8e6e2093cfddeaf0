"""
Player State - Per-participant mutable state.

A player is created on join and never deleted: turn order indexes into a
fixed roster, so a player who leaves or loses all influence keeps their
slot and is simply no longer alive.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .cards import ActionKind, Card, CardKind
from .errors import InvariantViolation

STARTING_COINS = 2
MAX_INFLUENCES = 2


@dataclass
class Player:
    """
    State for a single player.

    Alive is derived from the hand: a player with no influence left is out.
    """
    player_id: int
    name: str
    coins: int = STARTING_COINS
    influences: list[Card] = field(default_factory=list)

    # Lobby/connection flags
    is_ready: bool = False
    has_left: bool = False

    @property
    def is_alive(self) -> bool:
        return len(self.influences) > 0

    @property
    def influence_count(self) -> int:
        return len(self.influences)

    @property
    def influence_kinds(self) -> list[CardKind]:
        return [card.kind for card in self.influences]

    def add_influence(self, card: Card) -> None:
        """Add a card to the hand. Capacity is MAX_INFLUENCES."""
        if len(self.influences) >= MAX_INFLUENCES:
            raise InvariantViolation(
                f"{self.name} already holds {MAX_INFLUENCES} influences"
            )
        self.influences.append(card)

    def remove_influence(self, kind: CardKind | None = None) -> Card | None:
        """
        Remove one card from the hand and return it.

        With no kind given, the first card in hand order goes.
        Returns None if the hand is empty or holds no card of that kind.
        """
        if not self.influences:
            return None
        if kind is None:
            return self.influences.pop(0)
        for i, card in enumerate(self.influences):
            if card.kind == kind:
                return self.influences.pop(i)
        return None

    def take_all_influences(self) -> list[Card]:
        """Empty the hand, returning every card in hand order."""
        cards = self.influences
        self.influences = []
        return cards

    def has_influence(self, kind: CardKind) -> bool:
        return any(card.kind == kind for card in self.influences)

    def can_afford(self, cost: int) -> bool:
        return self.coins >= cost

    def spend_coins(self, amount: int) -> None:
        """Spend coins, never going below zero."""
        self.coins = max(0, self.coins - amount)

    def gain_coins(self, amount: int) -> None:
        self.coins += amount

    def can_block(self, action_kind: ActionKind) -> bool:
        """Check the real hand for a card that blocks the action."""
        return any(card.can_block(action_kind) for card in self.influences)

    def __str__(self) -> str:
        return f"{self.name} (#{self.player_id})"
