from __future__ import annotations

import sqlite3
import uuid
from typing import List, Optional

from domain.models import User
from domain.repositories import IdentityRepository, UserRepository


class SqliteIdentityRepository(IdentityRepository):
    """
    SQLite-backed implementation of `IdentityRepository`.

    Links (provider, provider_user_id) pairs to internal user IDs through
    the `user_identities` table. A pair is linked at most once; the first
    link written wins.
    """

    def __init__(self, db_path: str, user_repo: UserRepository) -> None:
        self._db_path = db_path
        self._user_repo = user_repo
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_identities (
                    provider TEXT NOT NULL,
                    provider_user_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    PRIMARY KEY (provider, provider_user_id)
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS user_identities_user
                ON user_identities (provider, user_id)
                """
            )
            conn.commit()

    def _linked_user_id(self, provider: str, provider_user_id: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT user_id FROM user_identities
                WHERE provider = ? AND provider_user_id = ?
                """,
                (provider, provider_user_id),
            ).fetchone()
        return str(row[0]) if row else None

    def _link(self, provider: str, provider_user_id: str, user_id: str) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO user_identities (provider, provider_user_id, user_id)
                VALUES (?, ?, ?)
                ON CONFLICT (provider, provider_user_id) DO NOTHING
                """,
                (provider, provider_user_id, user_id),
            )
            conn.commit()

    def get_or_create_user_from_external(
        self,
        provider: str,
        provider_user_id: str,
        first_name: str,
        last_name: str,
    ) -> User:
        existing = self.find_user_by_external(provider, provider_user_id)
        if existing is not None:
            return existing

        user = User(id=uuid.uuid4().hex, first_name=first_name, last_name=last_name)
        self._user_repo.add_user(user)
        self._link(provider, provider_user_id, user.id)

        # A concurrent handler may have linked this identity first; the
        # stored link wins over the user created here.
        return self.find_user_by_external(provider, provider_user_id) or user

    def find_user_by_external(
        self,
        provider: str,
        provider_user_id: str,
    ) -> Optional[User]:
        user_id = self._linked_user_id(provider, provider_user_id)
        if user_id is None:
            return None
        return self._user_repo.get_user(user_id)

    def get_external_ids_for_user(self, provider: str, user_id: str) -> List[str]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT provider_user_id FROM user_identities
                WHERE provider = ? AND user_id = ?
                ORDER BY provider_user_id
                """,
                (provider, user_id),
            ).fetchall()
        return [str(row[0]) for row in rows]
