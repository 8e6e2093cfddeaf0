"""
Tests for the game engine.

Tests:
- Lobby (joining, capacity, starting)
- Turn order and rejections
- Unchallenged action effects
- Forced coup and game end
- Card conservation across random play
"""

import random

import pytest

from ..engine_core.action import ResponseKind
from ..engine_core.cards import ActionKind, CardKind
from ..engine_core.config import EngineConfig
from ..engine_core.engine import GameEngine
from ..engine_core.errors import InvariantViolation
from ..engine_core.state import GamePhase
from ..engine_core.timer import ManualScheduler
from .conftest import rig_hands, total_cards


class TestLobby:
    """Tests for joining and starting."""

    def test_new_engine_waits_for_players(self, lobby_engine):
        assert lobby_engine.phase == GamePhase.WAITING_FOR_PLAYERS
        assert lobby_engine.players == []
        assert len(lobby_engine.deck) == 15
        assert lobby_engine.current_player is None

    def test_players_get_sequential_ids(self, lobby_engine):
        for name in ("Alice", "Bob", "Carol"):
            assert lobby_engine.add_player(name)
        assert [p.player_id for p in lobby_engine.players] == [0, 1, 2]
        assert lobby_engine.players[1].name == "Bob"

    def test_table_capacity(self, lobby_engine):
        for i in range(6):
            assert lobby_engine.add_player(f"P{i}")
        assert not lobby_engine.add_player("P6")
        assert len(lobby_engine.players) == 6

    def test_configured_capacity(self, scheduler):
        engine = GameEngine(config=EngineConfig(max_players=3), scheduler=scheduler)
        for i in range(3):
            assert engine.add_player(f"P{i}")
        assert not engine.add_player("P3")

    def test_cannot_start_alone(self, lobby_engine):
        lobby_engine.add_player("Alice")
        assert not lobby_engine.start_game()
        assert lobby_engine.phase == GamePhase.WAITING_FOR_PLAYERS

    def test_start_deals_two_cards_and_two_coins(self, lobby_engine):
        for name in ("Alice", "Bob", "Carol"):
            lobby_engine.add_player(name)
        assert lobby_engine.start_game()

        assert lobby_engine.phase == GamePhase.PLAYING
        assert lobby_engine.turn_number == 1
        assert len(lobby_engine.deck) == 9
        for player in lobby_engine.players:
            assert player.influence_count == 2
            assert player.coins == 2
        assert lobby_engine.current_player in lobby_engine.players

    def test_start_with_chosen_first_player(self, lobby_engine):
        lobby_engine.add_player("Alice")
        lobby_engine.add_player("Bob")
        assert lobby_engine.start_game(first_player_id=1)
        assert lobby_engine.current_player_idx == 1

    def test_start_with_unknown_first_player_rejected(self, lobby_engine):
        lobby_engine.add_player("Alice")
        lobby_engine.add_player("Bob")
        assert not lobby_engine.start_game(first_player_id=4)
        assert lobby_engine.phase == GamePhase.WAITING_FOR_PLAYERS

    def test_cannot_join_or_restart_after_start(self, make_game):
        engine = make_game(2)
        assert not engine.add_player("Late")
        assert not engine.start_game()
        assert len(engine.players) == 2

    def test_seeded_engines_deal_identically(self, scheduler):
        def dealt(seed):
            engine = GameEngine(config=EngineConfig(seed=seed), scheduler=scheduler)
            engine.add_player("A")
            engine.add_player("B")
            engine.start_game()
            return [p.influence_kinds for p in engine.players], engine.current_player_idx

        assert dealt(77) == dealt(77)

    def test_leaving_lobby_frees_a_seat(self, lobby_engine):
        for i in range(6):
            lobby_engine.add_player(f"P{i}")
        assert lobby_engine.remove_player(2)
        assert lobby_engine.add_player("P6")
        assert lobby_engine.players[6].player_id == 6

    def test_set_ready(self, lobby_engine):
        lobby_engine.add_player("Alice")
        assert lobby_engine.set_ready(0)
        assert lobby_engine.players[0].is_ready
        assert not lobby_engine.set_ready(3)

    def test_reset_returns_to_empty_lobby(self, make_game):
        engine = make_game(3)
        engine.perform_action(0, ActionKind.INCOME)
        engine.reset()
        assert engine.phase == GamePhase.WAITING_FOR_PLAYERS
        assert engine.players == []
        assert engine.action_history == []
        assert len(engine.deck) == 15


class TestTurnOrder:
    """Tests for whose turn it is and rejected submissions."""

    def test_income_advances_turn(self, three_player_game):
        engine = three_player_game
        result = engine.perform_action(0, ActionKind.INCOME)

        assert result.success
        assert not result.awaiting_responses
        assert engine.players[0].coins == 3
        assert engine.current_player_idx == 1
        assert engine.turn_number == 2
        assert engine.phase == GamePhase.PLAYING

    def test_turn_wraps_around(self, three_player_game):
        engine = three_player_game
        for player_id in (0, 1, 2):
            assert engine.perform_action(player_id, ActionKind.INCOME)
        assert engine.current_player_idx == 0

    def test_not_your_turn(self, three_player_game):
        engine = three_player_game
        result = engine.perform_action(1, ActionKind.INCOME)
        assert not result
        assert result.error_code == "NOT_YOUR_TURN"
        assert engine.players[1].coins == 2
        assert engine.current_player_idx == 0

    def test_wrong_phase_in_lobby(self, lobby_engine):
        lobby_engine.add_player("Alice")
        result = lobby_engine.perform_action(0, ActionKind.INCOME)
        assert result.error_code == "WRONG_PHASE"

    @pytest.mark.parametrize("target", [0, 3, -1, None])
    def test_invalid_steal_target(self, three_player_game, target):
        result = three_player_game.perform_action(0, ActionKind.STEAL, target_id=target)
        assert not result
        assert result.error_code == "INVALID_TARGET"
        assert three_player_game.phase == GamePhase.PLAYING

    def test_cannot_target_dead_player(self, three_player_game):
        engine = three_player_game
        engine.remove_player(1)
        engine.players[0].coins = 7
        result = engine.perform_action(0, ActionKind.COUP, target_id=1)
        assert result.error_code == "INVALID_TARGET"

    def test_rejection_leaves_history_untouched(self, three_player_game):
        three_player_game.perform_action(1, ActionKind.TAX)
        assert three_player_game.action_history == []

    def test_eliminated_players_are_skipped(self, three_player_game):
        engine = three_player_game
        engine.remove_player(1)
        engine.perform_action(0, ActionKind.INCOME)
        assert engine.current_player_idx == 2

    def test_legal_actions_only_for_current_player(self, three_player_game):
        assert three_player_game.legal_actions(1) == []
        legal = three_player_game.legal_actions(0)
        assert (ActionKind.INCOME, None) in legal
        assert (ActionKind.STEAL, 2) in legal


class TestActionEffects:
    """Tests for actions that resolve without a response window."""

    def test_coup_costs_seven_and_takes_influence(self, three_player_game):
        engine = three_player_game
        engine.players[0].coins = 8
        result = engine.perform_action(0, ActionKind.COUP, target_id=1)

        assert result.success and not result.awaiting_responses
        assert engine.players[0].coins == 1
        assert engine.players[1].influence_kinds == [CardKind.ASSASSIN]
        assert [c.kind for c in engine.revealed] == [CardKind.CONTESSA]
        assert engine.current_player_idx == 1

    def test_coup_with_six_coins_rejected(self, three_player_game):
        engine = three_player_game
        engine.players[0].coins = 6
        result = engine.perform_action(0, ActionKind.COUP, target_id=1)
        assert result.error_code == "ILLEGAL_ACTION"
        assert engine.players[0].coins == 6
        assert engine.players[1].influence_count == 2

    def test_assassinate_with_two_coins_rejected(self, three_player_game):
        engine = three_player_game
        result = engine.perform_action(0, ActionKind.ASSASSINATE, target_id=1)
        assert not result
        assert result.error_code == "ILLEGAL_ACTION"
        assert engine.players[0].coins == 2
        assert engine.current_player_idx == 0

    def test_result_carries_changes(self, three_player_game):
        result = three_player_game.perform_action(0, ActionKind.INCOME)
        assert result.state_changes == ["P0 took income (3 coins)"]
        assert three_player_game.last_action is result.action


class TestForcedCoup:
    """Tests for the ten-coin rule."""

    @pytest.mark.parametrize("kind", [ActionKind.INCOME, ActionKind.TAX, ActionKind.FOREIGN_AID])
    def test_only_coup_allowed(self, three_player_game, kind):
        engine = three_player_game
        engine.players[0].coins = 10
        result = engine.perform_action(0, kind)
        assert result.error_code == "FORCED_COUP"
        assert engine.players[0].coins == 10

    def test_coup_allowed(self, three_player_game):
        engine = three_player_game
        engine.players[0].coins = 10
        assert engine.perform_action(0, ActionKind.COUP, target_id=2)
        assert engine.players[0].coins == 3

    def test_legal_actions_reflect_forced_coup(self, three_player_game):
        three_player_game.players[0].coins = 12
        legal = three_player_game.legal_actions(0)
        assert {kind for kind, _ in legal} == {ActionKind.COUP}


class TestGameEnd:
    """Tests for elimination and the winner."""

    def test_two_coups_win_two_player_game(self, make_game):
        engine = make_game(2)
        engine.players[0].coins = 14

        engine.perform_action(0, ActionKind.COUP, target_id=1)
        assert engine.players[0].coins == 7
        assert engine.players[1].influence_count == 1

        engine.perform_action(1, ActionKind.INCOME)
        engine.perform_action(0, ActionKind.COUP, target_id=1)

        assert engine.phase == GamePhase.GAME_OVER
        assert engine.winner_id == 0
        assert engine.current_player is None
        assert total_cards(engine) == 15

    def test_no_actions_after_game_over(self, make_game):
        engine = make_game(2)
        rig_hands(engine, {0: [CardKind.DUKE, CardKind.DUKE], 1: [CardKind.CAPTAIN]})
        engine.players[0].coins = 7
        engine.perform_action(0, ActionKind.COUP, target_id=1)

        assert engine.phase == GamePhase.GAME_OVER
        result = engine.perform_action(1, ActionKind.INCOME)
        assert result.error_code == "WRONG_PHASE"

    def test_last_opponent_leaving_ends_game(self, make_game):
        engine = make_game(2)
        engine.remove_player(1)
        assert engine.phase == GamePhase.GAME_OVER
        assert engine.winner_id == 0
        assert total_cards(engine) == 15

    def test_leaving_current_player_advances_turn(self, three_player_game):
        engine = three_player_game
        engine.remove_player(0)
        assert engine.current_player_idx == 1
        assert engine.phase == GamePhase.PLAYING
        assert len(engine.deck) == 11


class TestConservation:
    """Tests for the card count invariant."""

    def test_tampering_detected(self, three_player_game):
        three_player_game.deck.draw()
        with pytest.raises(InvariantViolation):
            three_player_game.check_card_conservation()

    @pytest.mark.parametrize("seed", range(8))
    def test_random_play_conserves_cards(self, seed):
        rng = random.Random(seed)
        scheduler = ManualScheduler()
        engine = GameEngine(
            config=EngineConfig(seed=seed, response_time_limit=5),
            scheduler=scheduler,
        )
        for i in range(rng.randint(2, 6)):
            engine.add_player(f"P{i}")
        engine.start_game()

        for _ in range(300):
            if engine.phase == GamePhase.GAME_OVER:
                break
            assert total_cards(engine) == 15

            if engine.phase == GamePhase.WAITING_FOR_RESPONSE:
                responder = rng.choice(sorted(engine.pending.responders))
                response = rng.choice(list(ResponseKind))
                engine.respond_to_action(responder, response)
                if engine.phase == GamePhase.WAITING_FOR_RESPONSE and rng.random() < 0.3:
                    scheduler.advance(5)
                continue

            actor = engine.current_player
            legal = engine.legal_actions(actor.player_id)
            if actor.coins >= 10:
                assert {kind for kind, _ in legal} == {ActionKind.COUP}
            kind, target = rng.choice(legal)
            assert engine.perform_action(actor.player_id, kind, target)

        assert total_cards(engine) == 15
        for player in engine.players:
            assert player.coins >= 0
            assert player.influence_count <= 2
