from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from domain.errors import InvalidStateError, WriteConflictError
from domain.game import GameEntity
from domain.models import GameStatus, PlayerDecision, TurnResult, User
from domain.repositories import (
    GameRepository,
    IdentityRepository,
    TurnRepository,
    UserRepository,
)


logger = logging.getLogger(__name__)

MAX_TURNS_COUNT = 10


@dataclass
class ExternalContext:
    """
    Information about the caller from a particular channel (Telegram, Discord).

    The application layer never depends on concrete SDK types; it only sees
    this small context object.
    """

    provider: str
    provider_user_id: str
    first_name: str
    last_name: str


@dataclass
class BroadcastMessage:
    """A message that should be delivered to a particular user."""

    user_id: str
    text: str


@dataclass
class GameOperationResult:
    """Result of an operation that changes a game."""

    success: bool
    error_message: Optional[str] = None
    game: Optional[GameEntity] = None
    turn: Optional[TurnResult] = None
    broadcasts: List[BroadcastMessage] = field(default_factory=list)


@dataclass
class GameStatusResult:
    success: bool
    error_message: Optional[str] = None
    game: Optional[GameEntity] = None
    turns: List[TurnResult] = field(default_factory=list)


def _validate_turns_count(turns_count: int) -> Optional[str]:
    if turns_count < 1 or turns_count > MAX_TURNS_COUNT:
        return f"Number of turns must be between 1 and {MAX_TURNS_COUNT}."
    return None


def _resolve_user(
    external_ctx: ExternalContext,
    identity_repo: IdentityRepository,
) -> User:
    return identity_repo.get_or_create_user_from_external(
        external_ctx.provider,
        external_ctx.provider_user_id,
        external_ctx.first_name,
        external_ctx.last_name,
    )


def _find_current_game(user: User, game_repo: GameRepository) -> Optional[GameEntity]:
    """Return the unfinished game the user is seated at, if any."""

    if user.current_game_id is None:
        return None
    game = game_repo.find_by_id(user.current_game_id)
    if game is None or game.is_finished():
        return None
    return game


def _broadcast_to_players(game: GameEntity, text: str) -> List[BroadcastMessage]:
    return [BroadcastMessage(user_id=p.user_id, text=text) for p in game.players]


def _release_players(
    game: GameEntity,
    user_repo: UserRepository,
    game_completed: bool,
) -> None:
    """Detach every player from `game`, counting it as played if completed."""

    for player in game.players:
        user = user_repo.get_user(player.user_id)
        if user is None or user.current_game_id != game.id:
            continue
        user.current_game_id = None
        if game_completed:
            user.games_played += 1
        user_repo.update_user(user)


def describe_scoreboard(game: GameEntity) -> str:
    lines = [f"{p.name}: {p.score}" for p in game.players]
    lines.append(f"Turn {game.current_turn_index}/{game.turns_count}")
    return "\n".join(lines)


def describe_turn(turn: TurnResult) -> str:
    lines = [f"Turn {turn.turn_index + 1}:"]
    lines.extend(
        f"{p.name} - {p.decision.value} ({p.result.value})" for p in turn.players
    )
    if turn.winner_id is None:
        lines.append("Draw!")
    else:
        winner = next(p for p in turn.players if p.user_id == turn.winner_id)
        lines.append(f"{winner.name} wins the turn.")
    return "\n".join(lines)


def create_game(
    external_ctx: ExternalContext,
    turns_count: int,
    identity_repo: IdentityRepository,
    user_repo: UserRepository,
    game_repo: GameRepository,
) -> GameOperationResult:
    """
    Open a new game and seat the caller as its first player.

    A user can only be seated at one unfinished game at a time.
    """

    error = _validate_turns_count(turns_count)
    if error:
        return GameOperationResult(success=False, error_message=error)

    user = _resolve_user(external_ctx, identity_repo)

    if _find_current_game(user, game_repo) is not None:
        return GameOperationResult(
            success=False,
            error_message="You are already in a game. Leave it first.",
        )

    game = GameEntity(turns_count)
    game.add_player(user)
    game_repo.insert(game)

    user.current_game_id = game.id
    user_repo.update_user(user)

    logger.info("User %s created game %s (%d turns)", user.id, game.id, turns_count)

    text = f"Game {game.id} created for {turns_count} turns. Waiting for an opponent."
    return GameOperationResult(
        success=True,
        game=game,
        broadcasts=[BroadcastMessage(user_id=user.id, text=text)],
    )


def list_open_games(game_repo: GameRepository, limit: int = 10) -> List[GameEntity]:
    """Return games that are still waiting for an opponent."""

    return game_repo.find_by_status(GameStatus.WAITING_TO_START, limit)


def join_game(
    external_ctx: ExternalContext,
    game_id: str,
    identity_repo: IdentityRepository,
    user_repo: UserRepository,
    game_repo: GameRepository,
) -> GameOperationResult:
    """
    Seat the caller at an existing game.

    The game itself does not prevent the same user from joining twice,
    so that check happens here.
    """

    user = _resolve_user(external_ctx, identity_repo)

    game = game_repo.find_by_id(game_id)
    if game is None:
        return GameOperationResult(success=False, error_message="Game not found.")

    if any(p.user_id == user.id for p in game.players):
        return GameOperationResult(
            success=False,
            error_message="You have already joined this game.",
        )

    if _find_current_game(user, game_repo) is not None:
        return GameOperationResult(
            success=False,
            error_message="You are already in another game. Leave it first.",
        )

    try:
        game.add_player(user)
    except InvalidStateError as exc:
        logger.debug("User %s can not join game %s: %s", user.id, game.id, exc)
        return GameOperationResult(
            success=False,
            error_message=f"This game can not be joined, it is {exc.status.value}.",
        )

    game_repo.update(game)

    user.current_game_id = game.id
    user_repo.update_user(user)

    if game.status is GameStatus.PLAYING:
        logger.info("Game %s started", game.id)
        names = " vs ".join(p.name for p in game.players)
        text = (
            f"Game started: {names}, {game.turns_count} turns.\n"
            "Choose rock, paper or scissors."
        )
        broadcasts = _broadcast_to_players(game, text)
    else:
        broadcasts = [
            BroadcastMessage(user_id=user.id, text="Joined. Waiting for an opponent.")
        ]

    return GameOperationResult(success=True, game=game, broadcasts=broadcasts)


def make_decision(
    external_ctx: ExternalContext,
    decision: PlayerDecision,
    identity_repo: IdentityRepository,
    user_repo: UserRepository,
    game_repo: GameRepository,
    turn_repo: TurnRepository,
    game_id: Optional[str] = None,
) -> GameOperationResult:
    """
    Record the caller's decision for the current turn.

    Once every player has decided the turn is finished and stored, and its
    outcome is broadcast to the table. When the last turn is played the
    final score is announced and the players are released.

    `game_id` guards against stale buttons: when given, it must name the
    caller's current game.
    """

    user = _resolve_user(external_ctx, identity_repo)

    game = _find_current_game(user, game_repo)
    if game is None:
        return GameOperationResult(success=False, error_message="You are not in a game.")
    if game_id is not None and game.id != game_id:
        return GameOperationResult(
            success=False,
            error_message="That game is no longer active.",
        )

    try:
        game.set_player_decision(user.id, decision)
    except InvalidStateError as exc:
        logger.debug("Decision rejected for game %s: %s", game.id, exc)
        return GameOperationResult(
            success=False,
            error_message="The game has not started yet.",
            game=game,
        )
    except WriteConflictError as exc:
        return GameOperationResult(
            success=False,
            error_message=f"You already chose {exc.decision.value} this turn.",
            game=game,
        )

    if not game.have_decision_of_every_player:
        game_repo.update(game)
        text = f"You chose {decision.value}. Waiting for your opponent."
        return GameOperationResult(
            success=True,
            game=game,
            broadcasts=[BroadcastMessage(user_id=user.id, text=text)],
        )

    turn = game.finish_turn()
    turn_repo.insert(turn)
    game_repo.update(game)

    logger.info(
        "Game %s finished turn %d, winner=%s", game.id, turn.turn_index, turn.winner_id
    )

    text = describe_turn(turn)
    if game.is_finished():
        logger.info("Game %s is over", game.id)
        text = f"{text}\n\nGame over!\n{describe_scoreboard(game)}"
        _release_players(game, user_repo, game_completed=True)

    return GameOperationResult(
        success=True,
        game=game,
        turn=turn,
        broadcasts=_broadcast_to_players(game, text),
    )


def leave_game(
    external_ctx: ExternalContext,
    identity_repo: IdentityRepository,
    user_repo: UserRepository,
    game_repo: GameRepository,
) -> GameOperationResult:
    """Cancel the caller's current game and release everyone seated at it."""

    user = _resolve_user(external_ctx, identity_repo)

    game = _find_current_game(user, game_repo)
    if game is None:
        return GameOperationResult(success=False, error_message="You are not in a game.")

    game.cancel()
    game_repo.update(game)
    _release_players(game, user_repo, game_completed=False)

    logger.info("User %s left game %s, game canceled", user.id, game.id)

    text = f"{user.name} left. Game {game.id} was canceled."
    return GameOperationResult(
        success=True,
        game=game,
        broadcasts=_broadcast_to_players(game, text),
    )


def get_game_status(
    external_ctx: ExternalContext,
    identity_repo: IdentityRepository,
    game_repo: GameRepository,
    turn_repo: TurnRepository,
    turns_count: int = 5,
) -> GameStatusResult:
    """Return the caller's current game together with its latest turns."""

    user = _resolve_user(external_ctx, identity_repo)

    game = _find_current_game(user, game_repo)
    if game is None:
        return GameStatusResult(success=False, error_message="You are not in a game.")

    turns = turn_repo.get_last_turns(game.id, turns_count)
    return GameStatusResult(success=True, game=game, turns=turns)


def cancel_waiting_games(
    user_repo: UserRepository,
    game_repo: GameRepository,
    limit: int = 100,
) -> int:
    """
    Cancel games that never found an opponent.

    Meant to be run periodically by the hosting process. Returns the
    number of canceled games.
    """

    games = game_repo.find_by_status(GameStatus.WAITING_TO_START, limit)
    for game in games:
        game.cancel()
        game_repo.update(game)
        _release_players(game, user_repo, game_completed=False)

    if games:
        logger.info("Canceled %d games waiting to start", len(games))
    return len(games)
