from __future__ import annotations

from typing import List

import psycopg2

from domain.models import TurnResult
from domain.repositories import TurnRepository
from infrastructure.db.serialization import turn_players_from_json, turn_players_to_json


class PostgresTurnRepository(TurnRepository):
    """Postgres-backed implementation of `TurnRepository`."""

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
                    CREATE TABLE IF NOT EXISTS game_turns (
                        game_id TEXT NOT NULL,
                        turn_index INTEGER NOT NULL,
                        winner_id TEXT,
                        players TEXT NOT NULL,
                        PRIMARY KEY (game_id, turn_index)
                    )
                    """
                )
                conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> TurnResult:
        return TurnResult(
            game_id=str(row[0]),
            turn_index=int(row[1]),
            winner_id=row[2],
            players=turn_players_from_json(row[3]),
        )

    def insert(self, turn: TurnResult) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO game_turns (game_id, turn_index, winner_id, players)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (
                        turn.game_id,
                        turn.turn_index,
                        turn.winner_id,
                        turn_players_to_json(turn.players),
                    ),
                )
                conn.commit()

    def get_last_turns(self, game_id: str, count: int) -> List[TurnResult]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT game_id, turn_index, winner_id, players
                    FROM game_turns
                    WHERE game_id = %s
                    ORDER BY turn_index DESC
                    LIMIT %s
                    """,
                    (game_id, count),
                )
                rows = cur.fetchall()
                return [self._to_domain(row) for row in reversed(rows)]
