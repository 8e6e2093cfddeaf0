"""
Cards - Role cards and the actions they enable or block.

Card structure:
- Kind (Duke, Assassin, Captain, Ambassador, Contessa)
- Primary action the card justifies (Contessa has none)
- Actions the card can block

The deck holds CARDS_PER_KIND copies of each kind. Cards are immutable;
they move between the deck and hands but are never created mid-game.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class CardKind(Enum):
    """The five role kinds."""
    DUKE = "duke"
    ASSASSIN = "assassin"
    CAPTAIN = "captain"
    AMBASSADOR = "ambassador"
    CONTESSA = "contessa"


class ActionKind(Enum):
    """Actions a player can take on their turn."""
    # General actions (no card claimed)
    INCOME = "income"
    FOREIGN_AID = "foreign_aid"
    COUP = "coup"

    # Character actions (claim a card)
    TAX = "tax"  # Duke
    ASSASSINATE = "assassinate"  # Assassin
    STEAL = "steal"  # Captain
    EXCHANGE = "exchange"  # Ambassador


@dataclass(frozen=True)
class CardDefinition:
    """Static data for one card kind."""
    kind: CardKind
    name: str
    description: str
    primary_action: ActionKind | None = None
    blockable_actions: frozenset[ActionKind] = field(default_factory=frozenset)


CARD_DEFINITIONS: dict[CardKind, CardDefinition] = {
    CardKind.DUKE: CardDefinition(
        kind=CardKind.DUKE,
        name="Duke",
        description="Take 3 coins (Tax). Blocks Foreign Aid.",
        primary_action=ActionKind.TAX,
        blockable_actions=frozenset({ActionKind.FOREIGN_AID}),
    ),
    CardKind.ASSASSIN: CardDefinition(
        kind=CardKind.ASSASSIN,
        name="Assassin",
        description="Pay 3 coins to force an opponent to lose influence (Assassinate).",
        primary_action=ActionKind.ASSASSINATE,
    ),
    CardKind.CAPTAIN: CardDefinition(
        kind=CardKind.CAPTAIN,
        name="Captain",
        description="Take 2 coins from another player (Steal). Blocks stealing.",
        primary_action=ActionKind.STEAL,
        blockable_actions=frozenset({ActionKind.STEAL}),
    ),
    CardKind.AMBASSADOR: CardDefinition(
        kind=CardKind.AMBASSADOR,
        name="Ambassador",
        description="Exchange cards with the Court deck. Blocks stealing.",
        primary_action=ActionKind.EXCHANGE,
        blockable_actions=frozenset({ActionKind.STEAL}),
    ),
    CardKind.CONTESSA: CardDefinition(
        kind=CardKind.CONTESSA,
        name="Contessa",
        description="Blocks assassination.",
        blockable_actions=frozenset({ActionKind.ASSASSINATE}),
    ),
}


@dataclass(frozen=True, eq=False)
class Card:
    """
    A physical card.

    Equality is identity: two Dukes are different cards, which keeps
    list.remove() on hands and the deck unambiguous.
    """
    kind: CardKind

    @property
    def definition(self) -> CardDefinition:
        return CARD_DEFINITIONS[self.kind]

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def primary_action(self) -> ActionKind | None:
        return self.definition.primary_action

    @property
    def blockable_actions(self) -> frozenset[ActionKind]:
        return self.definition.blockable_actions

    def can_block(self, action_kind: ActionKind) -> bool:
        """Check whether this card can block the given action."""
        return action_kind in self.definition.blockable_actions

    def __repr__(self) -> str:
        return f"Card({self.name})"
