"""
Users and Watchlists
====================

Read-side interfaces the notification pipeline depends on, plus a SQLite
implementation.

- ``UserDirectory.list_users_with_email()``: every user that can receive mail
- ``WatchlistStore.symbols_for_email(email)``: symbols tracked by that user

Both lookups degrade to ``[]`` on storage errors (logged) so one bad read
does not sink a batch run.  Watchlist entries are keyed by user id; the
email lookup resolves the user first.
"""

from __future__ import annotations

import asyncio
import sqlite3
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from .config import get_settings
from .logging_utils import get_logger

log = get_logger("user_store")

MAX_WATCHLIST_SIZE = 50


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str = ""


@runtime_checkable
class UserDirectory(Protocol):
    async def list_users_with_email(self) -> List[User]: ...


@runtime_checkable
class WatchlistStore(Protocol):
    async def symbols_for_email(self, email: str) -> List[str]: ...


_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY NOT NULL,
    email TEXT UNIQUE,
    name TEXT,
    country TEXT,
    investment_goals TEXT,
    risk_tolerance TEXT,
    preferred_industry TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS watchlist (
    user_id TEXT NOT NULL,
    symbol TEXT NOT NULL,
    company TEXT,
    added_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (user_id, symbol)
);

CREATE INDEX IF NOT EXISTS idx_watchlist_user ON watchlist(user_id);
"""


class SQLiteUserStore:
    """SQLite-backed ``UserDirectory`` and ``WatchlistStore``."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = str(db_path or get_settings().db_path)
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        if not self._initialized:
            conn.executescript(_SCHEMA)
            conn.commit()
            self._initialized = True
        return conn

    # ------------------------------------------------------------------
    # Writes (admin / seeding)
    # ------------------------------------------------------------------

    def add_user(
        self,
        email: str,
        name: str = "",
        user_id: Optional[str] = None,
        **profile: str,
    ) -> User:
        user = User(id=user_id or uuid.uuid4().hex, email=email.strip(), name=name)
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO users (id, email, name, country, investment_goals, "
                "risk_tolerance, preferred_industry) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    user.id,
                    user.email,
                    user.name,
                    profile.get("country"),
                    profile.get("investment_goals"),
                    profile.get("risk_tolerance"),
                    profile.get("preferred_industry"),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        log.info("user_added user_id=%s", user.id)
        return user

    def add_symbol(self, user_id: str, symbol: str, company: str = "") -> bool:
        symbol = symbol.strip().upper()
        if not symbol:
            return False
        conn = self._connect()
        try:
            count = conn.execute(
                "SELECT COUNT(*) FROM watchlist WHERE user_id = ?", (user_id,)
            ).fetchone()[0]
            if count >= MAX_WATCHLIST_SIZE:
                log.warning("watchlist_full user_id=%s max=%d", user_id, MAX_WATCHLIST_SIZE)
                return False
            cur = conn.execute(
                "INSERT OR IGNORE INTO watchlist (user_id, symbol, company) VALUES (?, ?, ?)",
                (user_id, symbol, company),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def remove_symbol(self, user_id: str, symbol: str) -> bool:
        conn = self._connect()
        try:
            cur = conn.execute(
                "DELETE FROM watchlist WHERE user_id = ? AND symbol = ?",
                (user_id, symbol.strip().upper()),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def find_user_by_email(self, email: str) -> Optional[User]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT id, email, name FROM users WHERE email = ?", (email,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return User(id=row["id"], email=row["email"], name=row["name"] or "")

    # ------------------------------------------------------------------
    # Reads used by the pipeline
    # ------------------------------------------------------------------

    def _list_users_with_email(self) -> List[User]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT id, email, name FROM users "
                "WHERE email IS NOT NULL AND TRIM(email) != '' ORDER BY created_at, id"
            ).fetchall()
        finally:
            conn.close()
        return [User(id=r["id"], email=r["email"], name=r["name"] or "") for r in rows]

    def _symbols_for_email(self, email: str) -> List[str]:
        user = self.find_user_by_email(email)
        if user is None:
            return []
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT symbol FROM watchlist WHERE user_id = ? ORDER BY added_at, symbol",
                (user.id,),
            ).fetchall()
        finally:
            conn.close()
        return [r["symbol"] for r in rows]

    async def list_users_with_email(self) -> List[User]:
        try:
            return await asyncio.to_thread(self._list_users_with_email)
        except sqlite3.Error as e:
            log.error("list_users_failed err=%s", e)
            return []

    async def symbols_for_email(self, email: str) -> List[str]:
        try:
            return await asyncio.to_thread(self._symbols_for_email, email)
        except sqlite3.Error as e:
            log.error("watchlist_lookup_failed email=%s err=%s", email, e)
            return []
