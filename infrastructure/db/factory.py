from __future__ import annotations

from dataclasses import dataclass

from config import Settings
from domain.repositories import (
    GameRepository,
    IdentityRepository,
    TurnRepository,
    UserRepository,
)


@dataclass
class Repositories:
    users: UserRepository
    identities: IdentityRepository
    games: GameRepository
    turns: TurnRepository


def create_repositories(settings: Settings) -> Repositories:
    """Build the repository set for the configured database backend."""

    if settings.db_backend == "sqlite":
        from infrastructure.db.game_repository_sqlite import SqliteGameRepository
        from infrastructure.db.identity_repository_sqlite import SqliteIdentityRepository
        from infrastructure.db.turn_repository_sqlite import SqliteTurnRepository
        from infrastructure.db.user_repository_sqlite import SqliteUserRepository

        users = SqliteUserRepository(settings.db_path)
        return Repositories(
            users=users,
            identities=SqliteIdentityRepository(settings.db_path, users),
            games=SqliteGameRepository(settings.db_path),
            turns=SqliteTurnRepository(settings.db_path),
        )

    if settings.db_backend == "postgres":
        from infrastructure.db.game_repository_postgres import PostgresGameRepository
        from infrastructure.db.identity_repository_postgres import (
            PostgresIdentityRepository,
        )
        from infrastructure.db.turn_repository_postgres import PostgresTurnRepository
        from infrastructure.db.user_repository_postgres import PostgresUserRepository

        users = PostgresUserRepository(settings.db_params)
        return Repositories(
            users=users,
            identities=PostgresIdentityRepository(settings.db_params, users),
            games=PostgresGameRepository(settings.db_params),
            turns=PostgresTurnRepository(settings.db_params),
        )

    raise ValueError(f"Unsupported DB_BACKEND: {settings.db_backend}")
