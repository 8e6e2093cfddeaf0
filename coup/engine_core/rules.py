"""
Rules - Pure predicates and tables for legality, costs and the win condition.

Nothing here holds state. The engine consults these functions; so can
presentation layers that want to grey out impossible choices.

Roster: the full, fixed list of players indexed by player_id.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Sequence

from .cards import ActionKind, CardKind, CARD_DEFINITIONS
from .deck import CARDS_PER_KIND, DECK_SIZE  # noqa: F401 (re-exported)
from .errors import InvariantViolation
from .player import MAX_INFLUENCES, STARTING_COINS  # noqa: F401 (re-exported)

if TYPE_CHECKING:
    from .action import GameAction
    from .player import Player

MIN_PLAYERS = 2
MAX_PLAYERS = 6
STARTING_INFLUENCES = 2
COUP_COST = 7
ASSASSINATE_COST = 3
FORCED_COUP_THRESHOLD = 10

_REQUIRED_CARDS: dict[ActionKind, CardKind] = {
    ActionKind.TAX: CardKind.DUKE,
    ActionKind.ASSASSINATE: CardKind.ASSASSIN,
    ActionKind.STEAL: CardKind.CAPTAIN,
    ActionKind.EXCHANGE: CardKind.AMBASSADOR,
}

_BLOCKABLE = frozenset({ActionKind.FOREIGN_AID, ActionKind.STEAL, ActionKind.ASSASSINATE})
_TARGETED = frozenset({ActionKind.COUP, ActionKind.ASSASSINATE, ActionKind.STEAL})

_COSTS = {
    ActionKind.COUP: COUP_COST,
    ActionKind.ASSASSINATE: ASSASSINATE_COST,
}

_GAINS = {
    ActionKind.INCOME: 1,
    ActionKind.FOREIGN_AID: 2,
    ActionKind.TAX: 3,
    ActionKind.STEAL: 2,  # upper bound, limited by the target's purse
}


def is_valid_player_count(count: int) -> bool:
    return MIN_PLAYERS <= count <= MAX_PLAYERS


def required_card(action_kind: ActionKind) -> CardKind:
    """
    Card that justifies a character action.

    Only defined for challengeable actions; income, foreign aid and coup
    claim nothing.
    """
    try:
        return _REQUIRED_CARDS[action_kind]
    except KeyError:
        raise ValueError(f"{action_kind.value} does not claim a card") from None


def can_be_challenged(action_kind: ActionKind) -> bool:
    return action_kind in _REQUIRED_CARDS


def can_be_blocked(action_kind: ActionKind) -> bool:
    return action_kind in _BLOCKABLE


def requires_target(action_kind: ActionKind) -> bool:
    return action_kind in _TARGETED


def blocking_cards(action_kind: ActionKind) -> list[CardKind]:
    """Card kinds that may be claimed to block the action, in enum order."""
    return [
        kind for kind in CardKind
        if action_kind in CARD_DEFINITIONS[kind].blockable_actions
    ]


def action_cost(action_kind: ActionKind) -> int:
    return _COSTS.get(action_kind, 0)


def action_gain(action_kind: ActionKind) -> int:
    return _GAINS.get(action_kind, 0)


def is_valid_target(target_id: int | None, actor_id: int, roster: Sequence[Player]) -> bool:
    """Target must exist, be alive, and not be the actor."""
    if target_id is None or target_id < 0 or target_id >= len(roster):
        return False
    if target_id == actor_id:
        return False
    return roster[target_id].is_alive


def _living_others(actor_id: int, roster: Sequence[Player]) -> set[int]:
    return {p.player_id for p in roster if p.is_alive and p.player_id != actor_id}


def potential_blockers(action: GameAction, roster: Sequence[Player]) -> set[int]:
    """
    Players entitled to block.

    Foreign aid: every other living player (Duke).
    Steal / assassinate: only the living target.
    """
    if action.action_kind == ActionKind.FOREIGN_AID:
        return _living_others(action.player_id, roster)
    if action.action_kind in (ActionKind.STEAL, ActionKind.ASSASSINATE):
        if is_valid_target(action.target_id, action.player_id, roster):
            return {action.target_id}
    return set()


def potential_challengers(action: GameAction, roster: Sequence[Player]) -> set[int]:
    """Every living player except the actor, for actions that claim a card."""
    if not can_be_challenged(action.action_kind):
        return set()
    return _living_others(action.player_id, roster)


def can_perform_action(player: Player, action: GameAction, roster: Sequence[Player]) -> bool:
    """
    Whether the player may submit the action.

    Character actions are bluffable, so holding the card is not required.
    """
    if not player.is_alive:
        return False

    kind = action.action_kind
    if kind in (ActionKind.INCOME, ActionKind.FOREIGN_AID, ActionKind.TAX, ActionKind.EXCHANGE):
        return True
    if kind == ActionKind.COUP:
        return player.can_afford(COUP_COST) and is_valid_target(action.target_id, player.player_id, roster)
    if kind == ActionKind.ASSASSINATE:
        return player.can_afford(ASSASSINATE_COST) and is_valid_target(action.target_id, player.player_id, roster)
    if kind == ActionKind.STEAL:
        return is_valid_target(action.target_id, player.player_id, roster)
    return False


def is_forced_coup(player: Player) -> bool:
    return player.coins >= FORCED_COUP_THRESHOLD


def alive_count(roster: Sequence[Player]) -> int:
    return sum(1 for p in roster if p.is_alive)


def is_game_over(roster: Sequence[Player]) -> bool:
    return alive_count(roster) <= 1


def winner_id(roster: Sequence[Player]) -> int | None:
    """
    Id of the sole living player.

    Returns None while more than one player is alive. Zero living players
    cannot happen in a well-formed game.
    """
    alive = [p.player_id for p in roster if p.is_alive]
    if not alive:
        raise InvariantViolation("winner requested with no living players")
    if len(alive) > 1:
        return None
    return alive[0]


def legal_actions(player: Player, roster: Sequence[Player]) -> list[tuple[ActionKind, int | None]]:
    """
    Enumerate every (action, target) the player may submit right now.

    Honors forced coup. Used by UIs to show available actions.
    """
    from .action import GameAction

    if not player.is_alive:
        return []

    kinds = [ActionKind.COUP] if is_forced_coup(player) else list(ActionKind)
    targets = [
        p.player_id for p in roster
        if is_valid_target(p.player_id, player.player_id, roster)
    ]

    actions: list[tuple[ActionKind, int | None]] = []
    for kind in kinds:
        candidates = targets if requires_target(kind) else [None]
        for target in candidates:
            action = GameAction.create(player.player_id, kind, target)
            if can_perform_action(player, action, roster):
                actions.append((kind, target))
    return actions
