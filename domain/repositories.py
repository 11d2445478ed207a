from __future__ import annotations

from typing import List, Optional, Protocol

from .game import GameEntity
from .models import GameStatus, TurnResult, User


class UserRepository(Protocol):
    """
    Abstraction over user persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `User` domain model.
    - Hiding any SQL / driver details from the application layer.
    """

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user with the given internal ID, or None if not found."""

        ...

    def add_user(self, user: User) -> None:
        """Persist a new user."""

        ...

    def update_user(self, user: User) -> None:
        """Overwrite the stored name, game counter and current game of `user`."""

        ...


class IdentityRepository(Protocol):
    """
    Maps external identities (Telegram/Discord) to internal user IDs.

    The application layer should work exclusively with internal user IDs
    and leave provider-specific identifiers to this abstraction.
    """

    def get_or_create_user_from_external(
        self,
        provider: str,
        provider_user_id: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """
        Return the user linked to the external identity, creating both the
        user and the link on first contact.
        """

        ...

    def find_user_by_external(
        self,
        provider: str,
        provider_user_id: str,
    ) -> Optional[User]:
        """Return the user mapped to the given external identity, if any."""

        ...

    def get_external_ids_for_user(
        self,
        provider: str,
        user_id: str,
    ) -> List[str]:
        """
        Return all external IDs (e.g. Telegram chat IDs) associated with
        a given internal user ID for the specified provider.
        """

        ...


class GameRepository(Protocol):
    """
    Persistence abstraction for games.

    A stored game is exactly `(id, status, turns_count, current_turn_index,
    players)`; every player keeps its user ID, name, score and pending
    decision.
    """

    def insert(self, game: GameEntity) -> None:
        ...

    def find_by_id(self, game_id: str) -> Optional[GameEntity]:
        ...

    def update(self, game: GameEntity) -> None:
        ...

    def delete(self, game_id: str) -> None:
        """
        Remove a stored game.

        Games never delete themselves and the bots keep canceled and
        finished games as records; this is for storage maintenance only.
        """

        ...

    def find_by_status(self, status: GameStatus, limit: int = 50) -> List[GameEntity]:
        """Return up to `limit` games currently in `status`."""

        ...


class TurnRepository(Protocol):
    """
    Stores finished turns. Games keep no history of their own.
    """

    def insert(self, turn: TurnResult) -> None:
        ...

    def get_last_turns(self, game_id: str, count: int) -> List[TurnResult]:
        """Return the last `count` turns of a game, oldest first."""

        ...
