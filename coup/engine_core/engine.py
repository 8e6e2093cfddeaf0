"""
Engine - The authoritative turn/response state machine.

The engine is the single point of state mutation. It owns the deck and
the roster for one game; collaborators submit intents and observe events.

States:
    WAITING_FOR_PLAYERS -> STARTING -> PLAYING <-> WAITING_FOR_RESPONSE -> GAME_OVER

Flow for one action:
1. perform_action() validates against the rules
2. Contestable actions open a response window (challengers + blockers)
3. respond_to_action() / the response timer close the window
4. The outcome is resolved (effect, challenge, or block)
5. The turn advances to the next living player, or the game ends

Every public entry point runs under one re-entrant lock, so network
handlers and the response timer may call in from different threads.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable
import logging
import random
import threading

from . import rules
from .action import ActionResult, GameAction, ResponseKind
from .cards import ActionKind, Card, CardKind
from .config import EngineConfig
from .deck import Deck
from .errors import IllegalAction, InvalidTarget, InvariantViolation, OutOfStateCall
from .events import EventBus, EventKind
from .player import Player
from .state import GamePhase, GameSnapshot, PendingResponse, PlayerView
from .timer import Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

# Picks which card a player sacrifices. Returning None (or a kind the
# player does not hold) falls back to the first card in hand.
DiscardChooser = Callable[[Player], "CardKind | None"]


class GameEngine:
    """
    One game instance.

    Usage:
        engine = GameEngine(EngineConfig(response_time_limit=10))
        engine.events.subscribe(render)

        engine.add_player("Alice")
        engine.add_player("Bob")
        engine.start_game()

        result = engine.perform_action(engine.current_player.player_id, ActionKind.TAX)
        if result.awaiting_responses:
            engine.respond_to_action(other_id, ResponseKind.CHALLENGE)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        discard_chooser: DiscardChooser | None = None,
    ):
        self.config = config or EngineConfig()
        self.scheduler = scheduler or ThreadingScheduler()
        self.discard_chooser = discard_chooser
        self.events = EventBus()

        self._rng = rng if rng is not None else random.Random(self.config.seed)
        self._lock = threading.RLock()
        self._initialize()

    def _initialize(self) -> None:
        self.phase = GamePhase.WAITING_FOR_PLAYERS
        self.players: list[Player] = []
        self.deck = Deck.create_standard(rng=self._rng)
        self.deck.shuffle()
        self.revealed: list[Card] = []  # lost influences, face up
        self.current_player_idx = 0
        self.turn_number = 0
        self.winner_id: int | None = None
        self.action_history: list[GameAction] = []
        self._pending: PendingResponse | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def pending(self) -> PendingResponse | None:
        """The open response window, if any."""
        return self._pending

    @property
    def current_player(self) -> Player | None:
        if self.phase not in (GamePhase.PLAYING, GamePhase.WAITING_FOR_RESPONSE):
            return None
        return self.players[self.current_player_idx]

    @property
    def last_action(self) -> GameAction | None:
        return self.action_history[-1] if self.action_history else None

    def get_player(self, player_id: int) -> Player | None:
        if 0 <= player_id < len(self.players):
            return self.players[player_id]
        return None

    def is_player_turn(self, player_id: int) -> bool:
        return self.phase == GamePhase.PLAYING and self.current_player_idx == player_id

    def legal_actions(self, player_id: int) -> list[tuple[ActionKind, int | None]]:
        """Actions the player could submit right now (empty if not their turn)."""
        with self._lock:
            if not self.is_player_turn(player_id):
                return []
            return rules.legal_actions(self.players[player_id], self.players)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def add_player(self, name: str) -> bool:
        """Seat a new player. Only while waiting for players."""
        with self._lock:
            if self.phase != GamePhase.WAITING_FOR_PLAYERS:
                logger.debug("Rejected join of %s: game already started", name)
                return False
            if len(self._seated()) >= self.config.max_players:
                logger.debug("Rejected join of %s: table full", name)
                return False

            player = Player(player_id=len(self.players), name=name)
            self.players.append(player)
            logger.info("%s joined", player)
            self.events.publish(EventKind.PLAYER_JOINED, player_id=player.player_id)

            if rules.is_valid_player_count(len(self._seated())):
                logger.debug("Game can start with %d players", len(self._seated()))
            return True

    def set_ready(self, player_id: int, ready: bool = True) -> bool:
        with self._lock:
            player = self.get_player(player_id)
            if self.phase != GamePhase.WAITING_FOR_PLAYERS or player is None or player.has_left:
                return False
            player.is_ready = ready
            return True

    def start_game(self, first_player_id: int | None = None) -> bool:
        """
        Deal and begin.

        The first player is drawn at random from the seated players unless
        first_player_id is given.
        """
        with self._lock:
            if self.phase != GamePhase.WAITING_FOR_PLAYERS:
                return False
            seated = self._seated()
            if not rules.is_valid_player_count(len(seated)):
                logger.debug("Cannot start with %d players", len(seated))
                return False
            if first_player_id is not None and first_player_id not in {p.player_id for p in seated}:
                return False

            self._set_phase(GamePhase.STARTING)

            self.deck = Deck.create_standard(rng=self._rng)
            self.deck.shuffle()
            self.revealed = []
            for player in seated:
                player.coins = rules.STARTING_COINS
                player.influences = []
                for _ in range(rules.STARTING_INFLUENCES):
                    card = self.deck.draw()
                    if card is None:
                        raise InvariantViolation("deck ran out while dealing")
                    player.add_influence(card)

            if first_player_id is None:
                first_player_id = self._rng.choice([p.player_id for p in seated])
            self.current_player_idx = first_player_id
            self.turn_number = 1
            self.check_card_conservation()

            self._set_phase(GamePhase.PLAYING)
            logger.info(
                "Game started with %d players; %s goes first",
                len(seated), self.players[first_player_id],
            )
            self.events.publish(EventKind.TURN_CHANGED, player_id=first_player_id)
            return True

    def remove_player(self, player_id: int) -> bool:
        """
        A player leaves (disconnect or quit).

        Their cards go back to the deck, which makes them not alive. A
        pending response they owed counts as Allow; an action they were
        waiting on is dropped.

        The implicit Allow holds for a departing target too: a steal still
        takes the leaver's coins, and an assassination still costs the
        actor its fee even though there is no influence left to remove.
        """
        with self._lock:
            player = self.get_player(player_id)
            if player is None or player.has_left:
                return False

            player.has_left = True
            player.is_ready = False
            cards = player.take_all_influences()
            if cards:
                self.deck.return_and_shuffle(cards)
            logger.info("%s left", player)
            self.events.publish(EventKind.PLAYER_LEFT, player_id=player_id)

            if self.phase not in (GamePhase.PLAYING, GamePhase.WAITING_FOR_RESPONSE):
                return True

            self.check_card_conservation()
            if rules.is_game_over(self.players):
                self._end_game()
                return True

            pending = self._pending
            if self.phase == GamePhase.WAITING_FOR_RESPONSE and pending is not None:
                if pending.action.player_id == player_id:
                    self._close_response_window()
                    self._advance_turn()
                elif player_id in pending.responders:
                    self._pending = pending.without(player_id)
                    if self._pending.is_settled:
                        self._close_response_window()
                        self._resolve_action(pending.action)
            elif self.current_player_idx == player_id:
                self._advance_turn()
            return True

    def reset(self) -> None:
        """Drop the current game and return to an empty lobby."""
        with self._lock:
            self._close_response_window()
            self._initialize()
            logger.info("Engine reset")
            self.events.publish(EventKind.STATE_CHANGED, phase=self.phase)

    # ------------------------------------------------------------------
    # Actions and responses
    # ------------------------------------------------------------------

    def perform_action(
        self,
        player_id: int,
        action_kind: ActionKind,
        target_id: int | None = None,
    ) -> ActionResult:
        """
        Submit the current player's action.

        Rejected calls return a failed ActionResult and change nothing.
        """
        with self._lock:
            try:
                action = self._validate_action(player_id, action_kind, target_id)
            except (IllegalAction, OutOfStateCall) as e:
                logger.debug("Rejected %s from player %s: %s", action_kind, player_id, e)
                return ActionResult.failure(str(e), error_code=e.code)

            self.action_history.append(action)
            logger.info("Action: %s", action.describe())

            responders: set[int] = set()
            if rules.can_be_challenged(action_kind) or rules.can_be_blocked(action_kind):
                responders = (
                    rules.potential_challengers(action, self.players)
                    | rules.potential_blockers(action, self.players)
                )

            if responders:
                self._open_response_window(action, responders)
                return ActionResult.accepted(
                    action,
                    awaiting_responses=True,
                    changes=[f"Waiting on players {sorted(responders)}"],
                )

            changes = self._resolve_action(action)
            return ActionResult.accepted(action, changes=changes)

    def respond_to_action(
        self,
        player_id: int,
        response: ResponseKind,
        claimed_card: CardKind | None = None,
    ) -> None:
        """
        Answer the pending action.

        Calls made outside a response window, by players not entitled to
        respond, or with a response that does not apply to the action are
        ignored.
        """
        with self._lock:
            pending = self._pending
            if self.phase != GamePhase.WAITING_FOR_RESPONSE or pending is None:
                logger.debug("Ignored %s from player %s: no pending action", response, player_id)
                return
            if player_id not in pending.responders:
                logger.debug("Ignored %s from player %s: not a responder", response, player_id)
                return

            action = pending.action
            if response == ResponseKind.CHALLENGE and not rules.can_be_challenged(action.action_kind):
                logger.debug("Ignored challenge of unchallengeable %s", action.action_kind.value)
                return
            if response == ResponseKind.BLOCK:
                claimed_card = self._check_block_claim(player_id, action, claimed_card)
                if claimed_card is None:
                    return

            self._pending = pending.without(player_id)

            if response == ResponseKind.CHALLENGE:
                self._close_response_window()
                self._resolve_challenge(action, player_id)
            elif response == ResponseKind.BLOCK:
                self._close_response_window()
                self._resolve_block(action, player_id, claimed_card)
            elif self._pending.is_settled:
                self._close_response_window()
                self._resolve_action(action)

    def _check_block_claim(
        self,
        player_id: int,
        action: GameAction,
        claimed_card: CardKind | None,
    ) -> CardKind | None:
        """
        Validate who blocks and with what claim.

        The claim is checked against the rules table only, never against
        the blocker's real hand.
        """
        if player_id not in rules.potential_blockers(action, self.players):
            logger.debug("Ignored block by player %s: not entitled", player_id)
            return None
        allowed = rules.blocking_cards(action.action_kind)
        if claimed_card is None:
            return allowed[0]
        if claimed_card not in allowed:
            logger.debug(
                "Ignored block by player %s: %s cannot block %s",
                player_id, claimed_card.value, action.action_kind.value,
            )
            return None
        return claimed_card

    def _validate_action(
        self,
        player_id: int,
        action_kind: ActionKind,
        target_id: int | None,
    ) -> GameAction:
        if self.phase != GamePhase.PLAYING:
            raise OutOfStateCall(f"Cannot act while {self.phase.value}")
        if player_id != self.current_player_idx:
            raise IllegalAction(f"Not player {player_id}'s turn", code="NOT_YOUR_TURN")

        player = self.players[player_id]
        if not player.is_alive:
            raise IllegalAction(f"{player} is out of the game")
        if rules.is_forced_coup(player) and action_kind != ActionKind.COUP:
            raise IllegalAction(
                f"{player} holds {player.coins} coins and must coup",
                code="FORCED_COUP",
            )

        action = GameAction.create(player_id, action_kind, target_id)
        if rules.requires_target(action_kind) and not rules.is_valid_target(
            action.target_id, player_id, self.players
        ):
            raise InvalidTarget(f"Invalid target {target_id} for {action_kind.value}")
        if not rules.can_perform_action(player, action, self.players):
            raise IllegalAction(
                f"{player} cannot afford {action_kind.value} "
                f"({rules.action_cost(action_kind)} coins)"
            )
        return action

    # ------------------------------------------------------------------
    # Response window
    # ------------------------------------------------------------------

    def _open_response_window(self, action: GameAction, responders: set[int]) -> None:
        limit = self.config.response_time_limit
        pending = PendingResponse(
            action=action,
            responders=frozenset(responders),
            deadline=self.scheduler.now() + limit,
        )
        handle = self.scheduler.call_later(limit, lambda: self._on_response_timeout(action))
        self._pending = replace(pending, timer=handle)

        self._set_phase(GamePhase.WAITING_FOR_RESPONSE)
        self.events.publish(
            EventKind.RESPONSE_REQUESTED,
            action=action,
            details={"responders": sorted(responders), "time_limit": limit},
        )

    def _close_response_window(self) -> None:
        if self._pending is not None and self._pending.timer is not None:
            self._pending.timer.cancel()
        self._pending = None

    def _on_response_timeout(self, action: GameAction) -> None:
        """Deadline reached: the remaining responders allow the action."""
        with self._lock:
            pending = self._pending
            if (
                self.phase != GamePhase.WAITING_FOR_RESPONSE
                or pending is None
                or pending.action is not action
            ):
                logger.debug("Stale response timer for %s ignored", action.describe())
                return
            logger.info("Response window for %s timed out", action.describe())
            self._close_response_window()
            self._resolve_action(action)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve_challenge(self, action: GameAction, challenger_id: int) -> None:
        actor = self.players[action.player_id]
        challenger = self.players[challenger_id]
        required = rules.required_card(action.action_kind)

        if actor.has_influence(required):
            logger.info("%s's challenge failed: %s holds %s", challenger, actor, required.value)
            self._lose_influence(challenger_id)
            self._return_and_redraw(actor, required)
            self.events.publish(
                EventKind.CHALLENGE_RESOLVED,
                action=action,
                player_id=challenger_id,
                details={"succeeded": False, "revealed": required.value},
            )
            self._resolve_action(action)
            return

        logger.info("%s's challenge succeeded: %s lacks %s", challenger, actor, required.value)
        self._lose_influence(action.player_id)
        self.events.publish(
            EventKind.CHALLENGE_RESOLVED,
            action=action,
            player_id=challenger_id,
            details={"succeeded": True},
        )
        self._finish_turn()

    def _resolve_block(self, action: GameAction, blocker_id: int, claimed_card: CardKind) -> None:
        # Blocks are not verified and cannot be counter-challenged.
        logger.info(
            "%s blocked %s claiming %s",
            self.players[blocker_id], action.describe(), claimed_card.value,
        )
        self.events.publish(
            EventKind.ACTION_BLOCKED,
            action=action,
            player_id=blocker_id,
            details={"claimed_card": claimed_card.value},
        )
        self._finish_turn()

    def _resolve_action(self, action: GameAction) -> list[str]:
        """Apply the action's effect, then end the turn or the game."""
        handler = self._get_handler(action.action_kind)
        changes = handler(action)
        for change in changes:
            logger.info(change)

        self.check_card_conservation()
        self.events.publish(EventKind.ACTION_PERFORMED, action=action, details={"changes": changes})
        self._finish_turn()
        return changes

    def _get_handler(self, action_kind: ActionKind) -> Callable[[GameAction], list[str]]:
        handlers = {
            ActionKind.INCOME: self._handle_income,
            ActionKind.FOREIGN_AID: self._handle_foreign_aid,
            ActionKind.TAX: self._handle_tax,
            ActionKind.COUP: self._handle_coup,
            ActionKind.ASSASSINATE: self._handle_assassinate,
            ActionKind.STEAL: self._handle_steal,
            ActionKind.EXCHANGE: self._handle_exchange,
        }
        return handlers[action_kind]

    def _handle_income(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        actor.gain_coins(rules.action_gain(ActionKind.INCOME))
        return [f"{actor.name} took income ({actor.coins} coins)"]

    def _handle_foreign_aid(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        actor.gain_coins(rules.action_gain(ActionKind.FOREIGN_AID))
        return [f"{actor.name} took foreign aid ({actor.coins} coins)"]

    def _handle_tax(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        actor.gain_coins(rules.action_gain(ActionKind.TAX))
        return [f"{actor.name} collected tax ({actor.coins} coins)"]

    def _handle_coup(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        target = self.players[action.target_id]
        actor.spend_coins(rules.COUP_COST)
        self._lose_influence(target.player_id)
        return [f"{actor.name} launched a coup against {target.name}"]

    def _handle_assassinate(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        target = self.players[action.target_id]
        actor.spend_coins(rules.ASSASSINATE_COST)
        self._lose_influence(target.player_id)
        return [f"{actor.name} assassinated {target.name}"]

    def _handle_steal(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        target = self.players[action.target_id]
        amount = min(rules.action_gain(ActionKind.STEAL), target.coins)
        target.spend_coins(amount)
        actor.gain_coins(amount)
        return [f"{actor.name} stole {amount} coins from {target.name}"]

    def _handle_exchange(self, action: GameAction) -> list[str]:
        actor = self.players[action.player_id]
        self.deck.return_and_shuffle(actor.take_all_influences())
        to_draw = min(rules.STARTING_INFLUENCES, len(self.deck))
        for _ in range(to_draw):
            actor.add_influence(self.deck.draw())
        return [f"{actor.name} exchanged cards with the deck"]

    def _lose_influence(self, player_id: int, kind: CardKind | None = None) -> Card | None:
        """
        Remove one influence from a player and reveal it.

        Which card: explicit kind, else the discard chooser, else the first
        card in hand.
        """
        player = self.players[player_id]
        if not player.is_alive:
            return None

        if kind is None and self.discard_chooser is not None:
            kind = self.discard_chooser(player)
        card = player.remove_influence(kind) if kind is not None else None
        if card is None:
            card = player.remove_influence()

        self.revealed.append(card)
        eliminated = not player.is_alive
        logger.info("%s lost influence (%s)", player, card.name)
        if eliminated:
            logger.info("%s is out of the game", player)
        self.events.publish(
            EventKind.INFLUENCE_LOST,
            player_id=player_id,
            details={"card": card.kind.value, "eliminated": eliminated},
        )
        return card

    def _return_and_redraw(self, player: Player, kind: CardKind) -> None:
        """Shuffle the proven card back and draw a replacement."""
        card = player.remove_influence(kind)
        if card is None:
            raise InvariantViolation(f"{player} does not hold {kind.value}")
        self.deck.return_and_shuffle([card])
        replacement = self.deck.draw()
        if replacement is not None:
            player.add_influence(replacement)

    def _finish_turn(self) -> None:
        if rules.is_game_over(self.players):
            self._end_game()
        else:
            self._advance_turn()

    def _advance_turn(self) -> None:
        """Move to the next living player, wrapping around the roster."""
        self._pending = None

        count = len(self.players)
        idx = self.current_player_idx
        for _ in range(count):
            idx = (idx + 1) % count
            if self.players[idx].is_alive:
                break
        else:
            raise InvariantViolation("no living player to take the next turn")

        self.current_player_idx = idx
        self.turn_number += 1
        logger.debug("Turn %d: %s", self.turn_number, self.players[idx])
        self._set_phase(GamePhase.PLAYING)
        self.events.publish(EventKind.TURN_CHANGED, player_id=idx)

    def _end_game(self) -> None:
        self._close_response_window()
        try:
            winner = rules.winner_id(self.players)
        except InvariantViolation:
            logger.error("Game ended with no living players")
            raise
        self.winner_id = winner
        self._set_phase(GamePhase.GAME_OVER)
        logger.info("Game over; winner: %s", self.players[winner])
        self.events.publish(EventKind.GAME_ENDED, winner_id=winner)

    def _set_phase(self, phase: GamePhase) -> None:
        if phase == self.phase:
            return
        self.phase = phase
        self.events.publish(EventKind.STATE_CHANGED, phase=phase)

    # ------------------------------------------------------------------
    # Invariants and views
    # ------------------------------------------------------------------

    def _seated(self) -> list[Player]:
        return [p for p in self.players if not p.has_left]

    def check_card_conservation(self) -> None:
        """Deck + hands + revealed cards always add up to the full deck."""
        in_hands = sum(p.influence_count for p in self.players)
        total = len(self.deck) + in_hands + len(self.revealed)
        if total != rules.DECK_SIZE:
            logger.error(
                "Card count mismatch: deck=%d hands=%d revealed=%d",
                len(self.deck), in_hands, len(self.revealed),
            )
            raise InvariantViolation(f"{total} cards in play, expected {rules.DECK_SIZE}")

    def snapshot(self, viewer_id: int | None = None) -> GameSnapshot:
        """
        Copy of the observable state.

        With a viewer, only that player's own cards are shown.
        """
        with self._lock:
            views = tuple(
                PlayerView(
                    player_id=p.player_id,
                    name=p.name,
                    coins=p.coins,
                    influence_count=p.influence_count,
                    is_alive=p.is_alive,
                    is_ready=p.is_ready,
                    has_left=p.has_left,
                    cards=(
                        tuple(p.influence_kinds)
                        if viewer_id is None or viewer_id == p.player_id
                        else None
                    ),
                )
                for p in self.players
            )
            pending = self._pending
            current = self.current_player
            return GameSnapshot(
                phase=self.phase,
                players=views,
                current_player_id=current.player_id if current else None,
                deck_size=len(self.deck),
                turn_number=self.turn_number,
                pending_action=pending.action if pending else None,
                pending_responders=pending.responders if pending else frozenset(),
                time_remaining=pending.time_remaining(self.scheduler.now()) if pending else None,
                winner_id=self.winner_id,
            )

    def describe(self) -> str:
        """Multi-line debug summary of the game."""
        with self._lock:
            lines = [
                f"State: {self.phase.value}",
                f"Players: {len(self.players)}",
                f"Deck: {len(self.deck)} cards",
                f"Current player: {self.current_player_idx}",
            ]
            for p in self.players:
                cards = ", ".join(card.name for card in p.influences)
                lines.append(
                    f"Player {p.player_id}: {p.name} | Coins: {p.coins} | "
                    f"Alive: {p.is_alive} | Cards: [{cards}]"
                )
            if self._pending is not None:
                lines.append(
                    f"Pending: {self._pending.action.describe()} "
                    f"awaiting {sorted(self._pending.responders)}"
                )
            return "\n".join(lines)

