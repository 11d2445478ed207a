from __future__ import annotations

import uuid
from typing import List, Optional

import psycopg2

from domain.models import User
from domain.repositories import IdentityRepository, UserRepository


class PostgresIdentityRepository(IdentityRepository):
    """
    Postgres-backed implementation of `IdentityRepository`.

    It uses a dedicated `user_identities` table to map external identities
    (provider + provider_user_id) to internal user IDs stored in the `users`
    table managed by `PostgresUserRepository`.
    """

    def __init__(self, db_params: dict, user_repo: UserRepository) -> None:
        self._db_params = db_params
        self._user_repo = user_repo
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS user_identities (
                        provider TEXT NOT NULL,
                        provider_user_id TEXT NOT NULL,
                        user_id TEXT NOT NULL,
                        PRIMARY KEY (provider, provider_user_id)
                    )
                    """
                )
                conn.commit()

    def _get_internal_user_id(
        self,
        provider: str,
        provider_user_id: str,
    ) -> Optional[str]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT user_id
                    FROM user_identities
                    WHERE provider = %s AND provider_user_id = %s
                    """,
                    (provider, provider_user_id),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return str(row[0])

    def _insert_mapping(
        self,
        provider: str,
        provider_user_id: str,
        user_id: str,
    ) -> None:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO user_identities (provider, provider_user_id, user_id)
                    VALUES (%s, %s, %s)
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

        user = User(
            id=uuid.uuid4().hex,
            first_name=first_name,
            last_name=last_name,
        )
        self._user_repo.add_user(user)
        self._insert_mapping(provider, provider_user_id, user.id)

        # Another worker may have linked this identity first; the stored
        # mapping wins.
        return self.find_user_by_external(provider, provider_user_id) or user

    def find_user_by_external(
        self,
        provider: str,
        provider_user_id: str,
    ) -> Optional[User]:
        user_id = self._get_internal_user_id(provider, provider_user_id)
        if user_id is None:
            return None
        return self._user_repo.get_user(user_id)

    def get_external_ids_for_user(
        self,
        provider: str,
        user_id: str,
    ) -> List[str]:
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT provider_user_id
                    FROM user_identities
                    WHERE provider = %s AND user_id = %s
                    """,
                    (provider, user_id),
                )
                rows = cur.fetchall()
                return [str(row[0]) for row in rows]
