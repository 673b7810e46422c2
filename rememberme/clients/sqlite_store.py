"""SQLite-backed triplet storage."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rememberme.clients.base import tokens_match
from rememberme.models.triplet import Triplet, TripletState


def _to_epoch(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


class SQLiteTripletStore:
    """Triplets in a single table keyed by (identity, persistent_token)."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS login_triplets (
                    identity TEXT NOT NULL,
                    persistent_token TEXT NOT NULL,
                    current_token TEXT NOT NULL,
                    expires_at REAL NOT NULL,
                    PRIMARY KEY (identity, persistent_token)
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS login_triplets_expires_at
                ON login_triplets (expires_at)
                """
            )

    def find_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        *,
        now: Optional[datetime] = None,
    ) -> TripletState:
        now = now or datetime.now(timezone.utc)
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT current_token FROM login_triplets
                WHERE identity = ? AND persistent_token = ? AND expires_at > ?
                """,
                (identity, persistent_token, _to_epoch(now)),
            ).fetchone()
        if not row:
            return TripletState.NOT_FOUND
        if not tokens_match(row["current_token"], current_token):
            return TripletState.INVALID
        return TripletState.FOUND

    def store_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        expires_at: datetime,
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO login_triplets
                    (identity, persistent_token, current_token, expires_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(identity, persistent_token) DO UPDATE SET
                    current_token = excluded.current_token,
                    expires_at = excluded.expires_at
                """,
                (identity, persistent_token, current_token, _to_epoch(expires_at)),
            )

    def replace_triplet(
        self,
        identity: str,
        new_current_token: str,
        persistent_token: str,
        expires_at: datetime,
        *,
        expected_current_token: Optional[str] = None,
    ) -> bool:
        # Single UPDATE statement; the optional token guard makes it a compare-and-swap.
        query = """
            UPDATE login_triplets SET current_token = ?, expires_at = ?
            WHERE identity = ? AND persistent_token = ?
        """
        params: list = [new_current_token, _to_epoch(expires_at), identity, persistent_token]
        if expected_current_token is not None:
            query += " AND current_token = ?"
            params.append(expected_current_token)
        with self._connect() as conn:
            cursor = conn.execute(query, params)
        return cursor.rowcount == 1

    def clean_triplet(self, identity: str, persistent_token: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM login_triplets WHERE identity = ? AND persistent_token = ?",
                (identity, persistent_token),
            )
        return cursor.rowcount > 0

    def clean_all_triplets(self, identity: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM login_triplets WHERE identity = ?",
                (identity,),
            )
        return cursor.rowcount

    def clean_expired_tokens(self, cutoff: datetime) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM login_triplets WHERE expires_at <= ?",
                (_to_epoch(cutoff),),
            )
        return cursor.rowcount

    def list_triplets(self, identity: Optional[str] = None) -> list[Triplet]:
        """Return stored triplets, optionally restricted to one identity."""
        query = "SELECT * FROM login_triplets"
        params: tuple = ()
        if identity is not None:
            query += " WHERE identity = ?"
            params = (identity,)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            Triplet(
                identity=row["identity"],
                current_token=row["current_token"],
                persistent_token=row["persistent_token"],
                expires_at=datetime.fromtimestamp(row["expires_at"], tz=timezone.utc),
            )
            for row in rows
        ]


__all__ = ["SQLiteTripletStore"]
