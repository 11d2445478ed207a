from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class GameStatus(str, Enum):
    WAITING_TO_START = "WaitingToStart"
    PLAYING = "Playing"
    FINISHED = "Finished"
    CANCELED = "Canceled"


class PlayerDecision(str, Enum):
    """
    A player's choice for a single turn.

    The three values form a cycle: every decision beats exactly one other
    decision and loses to the remaining one.
    """

    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"

    def beats(self, other: PlayerDecision) -> bool:
        return _BEATS[self] is other

    @classmethod
    def parse(cls, text: str) -> PlayerDecision:
        """Parse a decision name such as "Rock" or "/paper"."""

        try:
            return cls(text.strip().lstrip("/!").lower())
        except ValueError:
            raise ValueError(f"Unknown decision: {text}") from None


_BEATS = {
    PlayerDecision.ROCK: PlayerDecision.SCISSORS,
    PlayerDecision.SCISSORS: PlayerDecision.PAPER,
    PlayerDecision.PAPER: PlayerDecision.ROCK,
}


class TurnOutcome(str, Enum):
    WON = "won"
    LOST = "lost"
    DRAW = "draw"


@dataclass
class User:
    """
    Domain representation of a player's account.

    This model is intentionally simple and independent of any
    particular transport (Telegram, Discord) or database schema.
    A game only reads `id` and `name` when the user joins it.
    """

    id: str
    first_name: str
    last_name: str
    games_played: int = 0
    current_game_id: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Player:
    """
    A user seated at a particular game.

    `name` is a snapshot taken when the user joined; it is not re-synced
    if the account is renamed later. `decision` is only set between a
    decision being submitted and the turn being finished.
    """

    user_id: str
    name: str
    score: int = 0
    decision: Optional[PlayerDecision] = None


@dataclass(frozen=True)
class PlayerTurnResult:
    user_id: str
    name: str
    decision: PlayerDecision
    result: TurnOutcome


@dataclass(frozen=True)
class TurnResult:
    """
    Immutable record of a finished turn.

    `winner_id` is None when the turn was a draw.
    """

    game_id: str
    turn_index: int
    players: Tuple[PlayerTurnResult, ...]
    winner_id: Optional[str] = None
