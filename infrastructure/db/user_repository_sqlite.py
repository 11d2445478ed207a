from __future__ import annotations

import sqlite3
from typing import Optional

from domain.models import User
from domain.repositories import UserRepository


class SqliteUserRepository(UserRepository):
    """
    SQLite-backed implementation of `UserRepository`.

    This repository owns the `users` table and maps rows to the `User`
    domain model. It is self-initialising: the table is created if needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
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
    def _to_domain(row: sqlite3.Row) -> User:
        return User(
            id=str(row[0]),
            first_name=row[1],
            last_name=row[2],
            games_played=int(row[3]),
            current_game_id=row[4],
        )

    def get_user(self, user_id: str) -> Optional[User]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, first_name, last_name, games_played, current_game_id
                FROM users
                WHERE id = ?
                """,
                (user_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def add_user(self, user: User) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO users
                    (id, first_name, last_name, games_played, current_game_id)
                VALUES (?, ?, ?, ?, ?)
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
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE users
                SET first_name = ?, last_name = ?, games_played = ?, current_game_id = ?
                WHERE id = ?
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
