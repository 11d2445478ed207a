from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.game import GameEntity
from domain.models import GameStatus
from domain.repositories import GameRepository
from infrastructure.db.serialization import players_from_json, players_to_json


class SqliteGameRepository(GameRepository):
    """
    SQLite-backed implementation of `GameRepository`.

    Scalar game fields live in columns of the `games` table; the roster,
    including pending decisions, is kept as a JSON document.
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
                CREATE TABLE IF NOT EXISTS games (
                    id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    turns_count INTEGER NOT NULL,
                    current_turn_index INTEGER NOT NULL DEFAULT 0,
                    players TEXT NOT NULL DEFAULT '[]'
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS games_status ON games (status)")
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> GameEntity:
        return GameEntity(
            game_id=str(row[0]),
            status=GameStatus(row[1]),
            turns_count=int(row[2]),
            current_turn_index=int(row[3]),
            players=players_from_json(row[4]),
        )

    def insert(self, game: GameEntity) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO games (id, status, turns_count, current_turn_index, players)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    game.id,
                    game.status.value,
                    game.turns_count,
                    game.current_turn_index,
                    players_to_json(game.players),
                ),
            )
            conn.commit()

    def find_by_id(self, game_id: str) -> Optional[GameEntity]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, status, turns_count, current_turn_index, players
                FROM games
                WHERE id = ?
                """,
                (game_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def update(self, game: GameEntity) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE games
                SET status = ?, current_turn_index = ?, players = ?
                WHERE id = ?
                """,
                (
                    game.status.value,
                    game.current_turn_index,
                    players_to_json(game.players),
                    game.id,
                ),
            )
            conn.commit()

    def delete(self, game_id: str) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM games WHERE id = ?", (game_id,))
            conn.commit()

    def find_by_status(self, status: GameStatus, limit: int = 50) -> List[GameEntity]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, status, turns_count, current_turn_index, players
                FROM games
                WHERE status = ?
                ORDER BY rowid
                LIMIT ?
                """,
                (status.value, limit),
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]
