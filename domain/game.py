from __future__ import annotations

import uuid
from dataclasses import replace
from typing import List, Optional, Tuple

from .errors import InvalidStateError, PreconditionError, WriteConflictError
from .models import (
    GameStatus,
    Player,
    PlayerDecision,
    PlayerTurnResult,
    TurnOutcome,
    TurnResult,
    User,
)


PLAYERS_PER_GAME = 2


class GameEntity:
    """
    A rock/paper/scissors game played over a fixed number of turns.

    The game owns its players; they are only ever changed through the
    methods below. Persistence layers rebuild a stored game by passing the
    full state to the constructor.

    Note that running out of turns does not move `status` to FINISHED:
    `is_finished()` is the authoritative check.
    """

    def __init__(
        self,
        turns_count: int,
        game_id: Optional[str] = None,
        status: GameStatus = GameStatus.WAITING_TO_START,
        current_turn_index: int = 0,
        players: Optional[List[Player]] = None,
    ) -> None:
        self._id = game_id or uuid.uuid4().hex
        self._status = status
        self._turns_count = turns_count
        self._current_turn_index = current_turn_index
        self._players: List[Player] = [replace(p) for p in players] if players else []

    @property
    def id(self) -> str:
        return self._id

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def turns_count(self) -> int:
        return self._turns_count

    @property
    def current_turn_index(self) -> int:
        return self._current_turn_index

    @property
    def players(self) -> Tuple[Player, ...]:
        # Copies, so callers cannot change scores or decisions behind our back.
        return tuple(replace(p) for p in self._players)

    def add_player(self, user: User) -> None:
        if self._status is not GameStatus.WAITING_TO_START:
            raise InvalidStateError(self._status)

        self._players.append(Player(user_id=user.id, name=user.name))

        if len(self._players) == PLAYERS_PER_GAME:
            self._status = GameStatus.PLAYING

    def is_finished(self) -> bool:
        return (
            self._status in (GameStatus.FINISHED, GameStatus.CANCELED)
            or self._current_turn_index >= self._turns_count
        )

    def cancel(self) -> None:
        if not self.is_finished():
            self._status = GameStatus.CANCELED

    @property
    def have_decision_of_every_player(self) -> bool:
        return all(p.decision is not None for p in self._players)

    def set_player_decision(self, user_id: str, decision: PlayerDecision) -> None:
        """
        Record `decision` for the player with `user_id`.

        An unknown `user_id` is ignored.
        """

        if self._status is not GameStatus.PLAYING:
            raise InvalidStateError(self._status)

        matches = [p for p in self._players if p.user_id == user_id]
        for player in matches:
            if player.decision is not None:
                raise WriteConflictError(player.decision)

        for player in matches:
            player.decision = decision

    def finish_turn(self) -> TurnResult:
        """
        Resolve the current turn and start the next one.

        Returns a detached `TurnResult`; every player's decision is cleared
        and the turn index advances by one.
        """

        if not self.have_decision_of_every_player:
            raise PreconditionError("Not all players made decisions")
        if self._status is not GameStatus.PLAYING or self.is_finished():
            raise InvalidStateError(self._status)

        decisions = list(dict.fromkeys(p.decision for p in self._players))

        winner: Optional[Player] = None
        if len(decisions) == 2:
            winning = _get_winning_decision(decisions[0], decisions[1])
            winner = next(p for p in self._players if p.decision is winning)

        results = []
        for player in self._players:
            if winner is None:
                outcome = TurnOutcome.DRAW
            elif player is winner:
                outcome = TurnOutcome.WON
            else:
                outcome = TurnOutcome.LOST
            results.append(
                PlayerTurnResult(
                    user_id=player.user_id,
                    name=player.name,
                    decision=player.decision,
                    result=outcome,
                )
            )

        turn = TurnResult(
            game_id=self._id,
            turn_index=self._current_turn_index,
            players=tuple(results),
            winner_id=winner.user_id if winner is not None else None,
        )

        if winner is not None:
            winner.score += 1
        for player in self._players:
            player.decision = None
        self._current_turn_index += 1

        return turn

    def __repr__(self) -> str:
        return (
            f"GameEntity(id={self._id!r}, status={self._status.value}, "
            f"turn={self._current_turn_index}/{self._turns_count}, "
            f"players={len(self._players)})"
        )


def _get_winning_decision(d1: PlayerDecision, d2: PlayerDecision) -> PlayerDecision:
    return d1 if d1.beats(d2) else d2
