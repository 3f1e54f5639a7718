"""
Database module for persistent storage.
Uses SQLite for player accounts: balance and statistics.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Dict, List, Optional

from crapstable.config import settings
from crapstable.core.accounts import ACCOUNT_FIELDS, MUTABLE_FIELDS, PlayerAccount, new_account_id, utc_now
from crapstable.core.exceptions import AccountExistsError, AccountNotFoundError
from crapstable.core.logger import get_logger

logger = get_logger("database")


class Database:
    """Thread-safe SQLite database wrapper for player accounts."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else settings.paths.get_db_path()
        self._local = threading.local()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initializing database at {self.db_path}")
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path), check_same_thread=False
            )
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    def close(self):
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None

    def _init_db(self):
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute(
            f"""
            CREATE TABLE IF NOT EXISTS accounts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id TEXT UNIQUE NOT NULL,
                username TEXT UNIQUE NOT NULL,
                current_money INTEGER DEFAULT {int(settings.economy.starting_money)},
                total_wins INTEGER DEFAULT 0,
                total_losses INTEGER DEFAULT 0,
                current_win_streak INTEGER DEFAULT 0,
                best_win_streak INTEGER DEFAULT 0,
                total_games_played INTEGER DEFAULT 0,
                total_money_won INTEGER DEFAULT 0,
                total_money_lost INTEGER DEFAULT 0,
                total_loaned INTEGER DEFAULT 0,
                last_updated TEXT DEFAULT CURRENT_TIMESTAMP,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """
        )
        conn.commit()

    # ==================== Accounts ====================

    def create_account(
        self,
        username: str,
        account_id: Optional[str] = None,
        current_money: Optional[int] = None,
    ) -> PlayerAccount:
        """Create a new account. Raises AccountExistsError on a taken username or id."""
        if self.username_exists(username):
            raise AccountExistsError("Username already exists")

        account = PlayerAccount(
            username=username,
            account_id=account_id or new_account_id(),
            current_money=current_money,
        )

        conn = self._get_connection()
        cursor = conn.cursor()
        columns = ", ".join(ACCOUNT_FIELDS)
        placeholders = ", ".join("?" for _ in ACCOUNT_FIELDS)
        try:
            cursor.execute(
                f"INSERT INTO accounts ({columns}) VALUES ({placeholders})",
                tuple(account.to_row().values()),
            )
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise AccountExistsError("Account ID already exists")

        logger.info(f"Created account '{username}' ({account.account_id})")
        return account

    def username_exists(self, username: str) -> bool:
        cursor = self._get_connection().cursor()
        cursor.execute("SELECT 1 FROM accounts WHERE username = ?", (username,))
        return cursor.fetchone() is not None

    def _fetch_one(self, column: str, value: str) -> PlayerAccount:
        cursor = self._get_connection().cursor()
        cursor.execute(f"SELECT * FROM accounts WHERE {column} = ?", (value,))
        row = cursor.fetchone()
        if row is None:
            raise AccountNotFoundError(value)
        return PlayerAccount.from_row(row)

    def get_account_by_username(self, username: str) -> PlayerAccount:
        return self._fetch_one("username", username)

    def get_account(self, account_id: str) -> PlayerAccount:
        return self._fetch_one("account_id", account_id)

    def update_account(self, account_id: str, changes: Dict) -> PlayerAccount:
        """
        Overwrite balance/statistics fields. Keys missing from ``changes``
        (or set to None) keep their stored value.
        """
        values = [changes.get(key) for key in MUTABLE_FIELDS]
        assignments = ",\n                ".join(
            f"{key} = COALESCE(?, {key})" for key in MUTABLE_FIELDS
        )

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute(
            f"""
            UPDATE accounts SET
                {assignments},
                last_updated = ?
            WHERE account_id = ?
        """,
            (*values, utc_now(), account_id),
        )
        conn.commit()

        if cursor.rowcount == 0:
            raise AccountNotFoundError(account_id)
        return self.get_account(account_id)

    def save_account(self, account: PlayerAccount) -> PlayerAccount:
        """Write an in-memory account back in full."""
        return self.update_account(
            account.account_id, {key: getattr(account, key) for key in MUTABLE_FIELDS}
        )

    def delete_account(self, account_id: str):
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM accounts WHERE account_id = ?", (account_id,))
        conn.commit()
        if cursor.rowcount == 0:
            raise AccountNotFoundError(account_id)
        logger.info(f"Deleted account {account_id}")

    def get_leaderboard(self, limit: int = 10) -> List[PlayerAccount]:
        """Richest players first."""
        cursor = self._get_connection().cursor()
        cursor.execute(
            "SELECT * FROM accounts ORDER BY current_money DESC, username ASC LIMIT ?",
            (limit,),
        )
        return [PlayerAccount.from_row(row) for row in cursor.fetchall()]


_db: Optional[Database] = None


def get_db() -> Database:
    """Shared database instance, created on first use. Overridable in FastAPI."""
    global _db
    if _db is None:
        _db = Database()
    return _db
