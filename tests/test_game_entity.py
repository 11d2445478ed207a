import dataclasses
import unittest
from itertools import permutations

from domain.errors import InvalidStateError, PreconditionError, WriteConflictError
from domain.game import GameEntity
from domain.models import (
    GameStatus,
    Player,
    PlayerDecision,
    TurnOutcome,
    User,
)


ROCK = PlayerDecision.ROCK
PAPER = PlayerDecision.PAPER
SCISSORS = PlayerDecision.SCISSORS


def _user(user_id: str, name: str) -> User:
    return User(id=user_id, first_name=name, last_name="")


class GameEntityTests(unittest.TestCase):
    def setUp(self) -> None:
        self.alice = _user("alice-id", "Alice")
        self.bob = _user("bob-id", "Bob")

    def _started_game(self, turns_count: int = 1) -> GameEntity:
        game = GameEntity(turns_count)
        game.add_player(self.alice)
        game.add_player(self.bob)
        return game

    def test_new_game_is_waiting_with_no_players(self):
        game = GameEntity(3)
        self.assertEqual(game.status, GameStatus.WAITING_TO_START)
        self.assertEqual(game.turns_count, 3)
        self.assertEqual(game.current_turn_index, 0)
        self.assertEqual(game.players, ())
        self.assertTrue(game.id)
        self.assertNotEqual(game.id, GameEntity(3).id)

    def test_first_player_keeps_game_waiting(self):
        game = GameEntity(1)
        game.add_player(self.alice)
        self.assertEqual(game.status, GameStatus.WAITING_TO_START)
        self.assertEqual(len(game.players), 1)
        player = game.players[0]
        self.assertEqual(player.user_id, "alice-id")
        self.assertEqual(player.name, "Alice")
        self.assertEqual(player.score, 0)
        self.assertIsNone(player.decision)

    def test_name_is_snapshotted_at_join(self):
        game = GameEntity(1)
        game.add_player(self.alice)
        self.alice.first_name = "Alicia"
        self.assertEqual(game.players[0].name, "Alice")

    def test_players_view_is_detached(self):
        game = self._started_game()
        game.players[0].score = 42
        game.players[0].decision = ROCK
        self.assertEqual(game.players[0].score, 0)
        self.assertIsNone(game.players[0].decision)

    def test_same_user_can_be_added_twice(self):
        game = GameEntity(1)
        game.add_player(self.alice)
        game.add_player(self.alice)
        self.assertEqual(game.status, GameStatus.PLAYING)
        self.assertEqual([p.user_id for p in game.players], ["alice-id", "alice-id"])

    def test_scenario_a_rock_beats_scissors(self):
        game = self._started_game(turns_count=1)
        self.assertEqual(game.status, GameStatus.PLAYING)

        game.set_player_decision("alice-id", ROCK)
        game.set_player_decision("bob-id", SCISSORS)
        turn = game.finish_turn()

        self.assertEqual(turn.winner_id, "alice-id")
        self.assertEqual(turn.game_id, game.id)
        self.assertEqual(turn.turn_index, 0)
        alice, bob = game.players
        self.assertEqual(alice.score, 1)
        self.assertEqual(bob.score, 0)
        self.assertEqual(game.current_turn_index, 1)
        self.assertTrue(game.is_finished())
        # Status is not advanced automatically.
        self.assertEqual(game.status, GameStatus.PLAYING)

        results = {r.user_id: r for r in turn.players}
        self.assertEqual(results["alice-id"].result, TurnOutcome.WON)
        self.assertEqual(results["alice-id"].decision, ROCK)
        self.assertEqual(results["bob-id"].result, TurnOutcome.LOST)
        self.assertEqual(results["bob-id"].decision, SCISSORS)
        self.assertEqual(results["bob-id"].name, "Bob")

    def test_scenario_b_identical_decisions_draw(self):
        game = self._started_game(turns_count=1)
        game.set_player_decision("alice-id", PAPER)
        game.set_player_decision("bob-id", PAPER)

        turn = game.finish_turn()

        self.assertIsNone(turn.winner_id)
        self.assertTrue(all(r.result is TurnOutcome.DRAW for r in turn.players))
        self.assertEqual([p.score for p in game.players], [0, 0])

    def test_scenario_c_second_turn_after_reset(self):
        game = self._started_game(turns_count=2)
        game.set_player_decision("alice-id", ROCK)
        game.set_player_decision("bob-id", PAPER)
        first = game.finish_turn()

        self.assertEqual(first.winner_id, "bob-id")
        self.assertFalse(game.is_finished())
        self.assertTrue(all(p.decision is None for p in game.players))

        game.set_player_decision("alice-id", SCISSORS)
        game.set_player_decision("bob-id", PAPER)
        second = game.finish_turn()

        self.assertEqual(second.turn_index, 1)
        self.assertEqual(second.winner_id, "alice-id")
        self.assertEqual([p.score for p in game.players], [1, 1])
        self.assertEqual(game.current_turn_index, 2)
        self.assertTrue(game.is_finished())

    def test_scenario_d_third_player_rejected(self):
        game = self._started_game()
        with self.assertRaises(InvalidStateError) as ctx:
            game.add_player(_user("carol-id", "Carol"))
        self.assertEqual(str(ctx.exception), "Playing")
        self.assertEqual(ctx.exception.status, GameStatus.PLAYING)
        self.assertEqual(len(game.players), 2)

    def test_add_player_to_canceled_game_fails(self):
        game = GameEntity(1)
        game.cancel()
        with self.assertRaises(InvalidStateError):
            game.add_player(self.alice)

    def test_every_pair_of_distinct_decisions_has_one_winner(self):
        beats = {ROCK: SCISSORS, SCISSORS: PAPER, PAPER: ROCK}
        for alice_choice, bob_choice in permutations(PlayerDecision, 2):
            with self.subTest(alice=alice_choice, bob=bob_choice):
                game = self._started_game()
                game.set_player_decision("alice-id", alice_choice)
                game.set_player_decision("bob-id", bob_choice)
                turn = game.finish_turn()

                expected = "alice-id" if beats[alice_choice] is bob_choice else "bob-id"
                self.assertEqual(turn.winner_id, expected)
                outcomes = sorted(r.result.value for r in turn.players)
                self.assertEqual(outcomes, ["lost", "won"])

    def test_beats_relation(self):
        self.assertTrue(ROCK.beats(SCISSORS))
        self.assertTrue(SCISSORS.beats(PAPER))
        self.assertTrue(PAPER.beats(ROCK))
        self.assertFalse(SCISSORS.beats(ROCK))
        self.assertFalse(ROCK.beats(ROCK))

    def test_decision_before_game_started_fails(self):
        game = GameEntity(1)
        game.add_player(self.alice)
        with self.assertRaises(InvalidStateError) as ctx:
            game.set_player_decision("alice-id", ROCK)
        self.assertEqual(ctx.exception.status, GameStatus.WAITING_TO_START)
        self.assertIsNone(game.players[0].decision)

    def test_second_decision_in_same_turn_conflicts(self):
        game = self._started_game()
        game.set_player_decision("alice-id", ROCK)
        with self.assertRaises(WriteConflictError) as ctx:
            game.set_player_decision("alice-id", PAPER)
        self.assertEqual(ctx.exception.decision, ROCK)
        self.assertEqual(game.players[0].decision, ROCK)

    def test_decision_for_unknown_user_is_ignored(self):
        game = self._started_game()
        game.set_player_decision("stranger-id", ROCK)
        self.assertTrue(all(p.decision is None for p in game.players))
        self.assertFalse(game.have_decision_of_every_player)

    def test_finish_turn_without_all_decisions_leaves_state_unchanged(self):
        game = self._started_game()
        game.set_player_decision("alice-id", ROCK)

        with self.assertRaises(PreconditionError):
            game.finish_turn()

        self.assertEqual(game.current_turn_index, 0)
        self.assertEqual(game.players[0].decision, ROCK)
        self.assertIsNone(game.players[1].decision)
        self.assertEqual([p.score for p in game.players], [0, 0])

    def test_have_decision_is_vacuously_true_without_players(self):
        game = GameEntity(1)
        self.assertTrue(game.have_decision_of_every_player)
        with self.assertRaises(InvalidStateError):
            game.finish_turn()
        self.assertEqual(game.current_turn_index, 0)

    def test_finish_turn_after_last_turn_fails(self):
        game = GameEntity(
            turns_count=1,
            game_id="g1",
            status=GameStatus.PLAYING,
            current_turn_index=1,
            players=[
                Player(user_id="alice-id", name="Alice", score=1, decision=ROCK),
                Player(user_id="bob-id", name="Bob", decision=PAPER),
            ],
        )
        with self.assertRaises(InvalidStateError):
            game.finish_turn()
        self.assertEqual(game.current_turn_index, 1)

    def test_turn_result_does_not_alias_players(self):
        game = self._started_game(turns_count=2)
        game.set_player_decision("alice-id", ROCK)
        game.set_player_decision("bob-id", ROCK)
        turn = game.finish_turn()

        self.assertEqual([r.decision for r in turn.players], [ROCK, ROCK])
        self.assertIsInstance(turn.players, tuple)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            turn.winner_id = "x"
        with self.assertRaises(dataclasses.FrozenInstanceError):
            turn.players[0].result = TurnOutcome.WON

    def test_cancel_waiting_and_playing_games(self):
        waiting = GameEntity(1)
        waiting.cancel()
        self.assertEqual(waiting.status, GameStatus.CANCELED)
        self.assertTrue(waiting.is_finished())

        playing = self._started_game()
        playing.cancel()
        self.assertEqual(playing.status, GameStatus.CANCELED)

    def test_cancel_finished_game_is_noop(self):
        game = self._started_game(turns_count=1)
        game.set_player_decision("alice-id", ROCK)
        game.set_player_decision("bob-id", SCISSORS)
        game.finish_turn()

        game.cancel()
        self.assertEqual(game.status, GameStatus.PLAYING)

        finished = GameEntity(1, game_id="g2", status=GameStatus.FINISHED)
        finished.cancel()
        self.assertEqual(finished.status, GameStatus.FINISHED)

    def test_zero_turn_game_is_finished_immediately(self):
        game = GameEntity(0)
        self.assertTrue(game.is_finished())
        game.cancel()
        self.assertEqual(game.status, GameStatus.WAITING_TO_START)

    def test_game_does_not_share_players_passed_to_constructor(self):
        players = [
            Player(user_id="alice-id", name="Alice"),
            Player(user_id="bob-id", name="Bob"),
        ]
        game = GameEntity(
            turns_count=1,
            game_id="stored",
            status=GameStatus.PLAYING,
            players=players,
        )

        players[0].score = 99
        players[1].decision = PAPER
        self.assertEqual(game.players[0].score, 0)
        self.assertIsNone(game.players[1].decision)

        game.set_player_decision("alice-id", ROCK)
        game.set_player_decision("bob-id", SCISSORS)
        game.finish_turn()

        self.assertEqual(game.players[0].score, 1)
        self.assertEqual(players[0].score, 99)
        self.assertEqual(players[1].decision, PAPER)

    def test_rehydrated_game_keeps_state(self):
        players = [
            Player(user_id="alice-id", name="Alice", score=2, decision=PAPER),
            Player(user_id="bob-id", name="Bob", score=1),
        ]
        game = GameEntity(
            turns_count=5,
            game_id="stored",
            status=GameStatus.PLAYING,
            current_turn_index=3,
            players=players,
        )
        self.assertEqual(game.id, "stored")
        self.assertEqual(game.current_turn_index, 3)
        self.assertEqual(game.players[0].decision, PAPER)

        with self.assertRaises(WriteConflictError):
            game.set_player_decision("alice-id", ROCK)

        game.set_player_decision("bob-id", ROCK)
        turn = game.finish_turn()
        self.assertEqual(turn.turn_index, 3)
        self.assertEqual(turn.winner_id, "alice-id")
        self.assertEqual(game.players[0].score, 3)

    def test_parse_decision(self):
        self.assertIs(PlayerDecision.parse("Rock"), ROCK)
        self.assertIs(PlayerDecision.parse("/paper"), PAPER)
        self.assertIs(PlayerDecision.parse(" SCISSORS "), SCISSORS)
        with self.assertRaises(ValueError):
            PlayerDecision.parse("lizard")


if __name__ == "__main__":
    unittest.main()
