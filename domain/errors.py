from __future__ import annotations

from .models import GameStatus, PlayerDecision


class GameError(Exception):
    """Base class for misuse of the game state machine."""


class InvalidStateError(GameError):
    """The operation is not allowed while the game is in `status`."""

    def __init__(self, status: GameStatus) -> None:
        super().__init__(status.value)
        self.status = status


class WriteConflictError(GameError):
    """The player already made a decision during the current turn."""

    def __init__(self, decision: PlayerDecision) -> None:
        super().__init__(decision.value)
        self.decision = decision


class PreconditionError(GameError):
    pass
