from __future__ import annotations

from typing import List, Optional

import psycopg2

from domain.game import GameEntity
from domain.models import GameStatus
from domain.repositories import GameRepository
from infrastructure.db.serialization import players_from_json, players_to_json


class PostgresGameRepository(GameRepository):
    """
    Postgres-backed implementation of `GameRepository`.

    Same layout as the SQLite variant: scalar columns plus the roster as
    JSON text.
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
                    CREATE TABLE IF NOT EXISTS games (
                        id TEXT PRIMARY KEY,
                        status TEXT NOT NULL,
                        turns_count INTEGER NOT NULL,
                        current_turn_index INTEGER NOT NULL DEFAULT 0,
                        players TEXT NOT NULL DEFAULT '[]',
                        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                    )
                    """
                )
                cur.execute("CREATE INDEX IF NOT EXISTS games_status ON games (status)")
                conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> GameEntity:
        return GameEntity(
            game_id=str(row[0]),
            status=GameStatus(row[1]),
            turns_count=int(row[2]),
            current_turn_index=int(row[3]),
            players=players_from_json(row[4]),
        )

    def insert(self, game: GameEntity) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO games (id, status, turns_count, current_turn_index, players)
                    VALUES (%s, %s, %s, %s, %s)
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
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, status, turns_count, current_turn_index, players
                    FROM games
                    WHERE id = %s
                    """,
                    (game_id,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def update(self, game: GameEntity) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE games
                    SET status = %s, current_turn_index = %s, players = %s
                    WHERE id = %s
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
            with conn.cursor() as cur:
                cur.execute("DELETE FROM games WHERE id = %s", (game_id,))
                conn.commit()

    def find_by_status(self, status: GameStatus, limit: int = 50) -> List[GameEntity]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, status, turns_count, current_turn_index, players
                    FROM games
                    WHERE status = %s
                    ORDER BY created_at
                    LIMIT %s
                    """,
                    (status.value, limit),
                )
                rows = cur.fetchall()
                return [self._to_domain(row) for row in rows]
