from __future__ import annotations

from typing import Optional

import psycopg2

from domain.models import User
from domain.repositories import UserRepository


class PostgresUserRepository(UserRepository):
    """
    Postgres-backed implementation of `UserRepository`.

    This class is responsible for translating between rows of the `users`
    table and the `User` domain model.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id TEXT PRIMARY KEY,
                        first_name TEXT NOT NULL,
                        last_name TEXT NOT NULL,
                        games_played INTEGER NOT NULL DEFAULT 0,
                        current_game_id TEXT
                    )
                    """
                )
                conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> User:
        return User(
            id=str(row[0]),
            first_name=row[1],
            last_name=row[2],
            games_played=int(row[3]),
            current_game_id=row[4],
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, first_name, last_name, games_played, current_game_id
                    FROM users
                    WHERE id = %s
                    """,
                    (user_id,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def add_user(self, user: User) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO users
                        (id, first_name, last_name, games_played, current_game_id)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (
                        user.id,
                        user.first_name,
                        user.last_name,
                        user.games_played,
                        user.current_game_id,
                    ),
                )
                conn.commit()

    def update_user(self, user: User) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE users
                    SET first_name = %s,
                        last_name = %s,
                        games_played = %s,
                        current_game_id = %s
                    WHERE id = %s
                    """,
                    (
                        user.first_name,
                        user.last_name,
                        user.games_played,
                        user.current_game_id,
                        user.id,
                    ),
                )
                conn.commit()
