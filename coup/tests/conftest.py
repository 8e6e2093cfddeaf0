"""
Pytest fixtures for Coup tests.
"""

import random

import pytest

from ..engine_core.cards import CardKind
from ..engine_core.config import EngineConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventQueue
from ..engine_core.timer import ManualScheduler

RESPONSE_TIME = 15.0


def rig_hands(engine: GameEngine, hands: dict[int, list[CardKind]]) -> None:
    """
    Give players exactly these card kinds.

    Every listed player's cards go back to the deck first, then matching
    cards are pulled out of it, so the card count stays conserved.
    """
    for player_id in hands:
        engine.deck.cards.extend(engine.players[player_id].take_all_influences())
    for player_id, kinds in hands.items():
        player = engine.players[player_id]
        for kind in kinds:
            card = next(c for c in engine.deck.cards if c.kind == kind)
            engine.deck.cards.remove(card)
            player.add_influence(card)


def total_cards(engine: GameEngine) -> int:
    return (
        len(engine.deck)
        + sum(p.influence_count for p in engine.players)
        + len(engine.revealed)
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(response_time_limit=RESPONSE_TIME, seed=1234)


@pytest.fixture
def lobby_engine(config, scheduler) -> GameEngine:
    """Engine with nobody seated yet."""
    return GameEngine(config=config, scheduler=scheduler, rng=random.Random(1234))


@pytest.fixture
def make_game(config, scheduler):
    """
    Factory for a started game.

    Players are named P0..Pn-1; P0 moves first unless told otherwise.
    """
    def _make(num_players: int = 3, first_player_id: int = 0, **engine_kwargs) -> GameEngine:
        engine = GameEngine(
            config=config,
            scheduler=scheduler,
            rng=random.Random(1234),
            **engine_kwargs,
        )
        for i in range(num_players):
            assert engine.add_player(f"P{i}")
        assert engine.start_game(first_player_id=first_player_id)
        return engine

    return _make


@pytest.fixture
def three_player_game(make_game) -> GameEngine:
    """
    3-player game, P0 to move.

    P0: Duke, Captain   P1: Contessa, Assassin   P2: Ambassador, Contessa
    """
    engine = make_game(3)
    rig_hands(engine, {
        0: [CardKind.DUKE, CardKind.CAPTAIN],
        1: [CardKind.CONTESSA, CardKind.ASSASSIN],
        2: [CardKind.AMBASSADOR, CardKind.CONTESSA],
    })
    return engine


@pytest.fixture
def event_log(three_player_game) -> EventQueue:
    queue = EventQueue()
    three_player_game.events.subscribe(queue)
    return queue
