"""
Save storage backed by SQLite.

Two tables: users (credentials) and game_saves (one JSON game document per
row, owned by a user). Every public method opens its own connection, so a
store can be shared across request handlers.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from models import GameState
from schemas import InvalidSaveDocument, parse_game_state

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """The save store could not be read or written."""


class SaveNotFoundError(PersistenceError):
    pass


class SaveIntegrityError(PersistenceError):
    """A stored document does not describe a valid game."""


@dataclass(frozen=True)
class SaveRecord:
    id: int
    user_id: int
    name: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    password_hash: str
    salt: str


SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        salt TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS game_saves (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id),
        name TEXT NOT NULL,
        game_state TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_game_saves_user ON game_saves(user_id);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SaveStore:
    """SQLite-backed persistence for users and saved games."""

    def __init__(self, db_path: str = "tycoon.db"):
        self.db_path = db_path
        self.init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Could not open save database {self.db_path}: {e}")
            raise PersistenceError(str(e)) from e
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Save database error: {e}")
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    def init_db(self):
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, username: str, password_hash: str, salt: str) -> int:
        """
        Insert a user row.

        Raises:
            sqlite3.IntegrityError: if the username is already taken
        """
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO users (username, password_hash, salt) VALUES (?, ?, ?)",
                (username, password_hash, salt),
            )
            return cur.lastrowid

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, password_hash, salt FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        return UserRecord(*row) if row else None

    # ------------------------------------------------------------------
    # Saves
    # ------------------------------------------------------------------

    def save(self, user_id: int, name: str, state: GameState) -> int:
        """Store a snapshot of ``state`` and return the new save id."""
        document = json.dumps(state.to_dict())
        stamp = _now()
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO game_saves (user_id, name, game_state, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (user_id, name, document, stamp, stamp),
            )
            save_id = cur.lastrowid
        logger.info(f"Saved game '{name}' for user {user_id} as save {save_id}")
        return save_id

    def load(self, save_id: int) -> GameState:
        """
        Load and validate a saved game.

        Raises:
            SaveNotFoundError: no save with that id
            SaveIntegrityError: the stored document is not a valid game
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT game_state FROM game_saves WHERE id = ?", (save_id,)
            ).fetchone()
        if row is None:
            raise SaveNotFoundError(f"save {save_id} not found")
        try:
            return parse_game_state(json.loads(row[0]))
        except (json.JSONDecodeError, InvalidSaveDocument) as e:
            logger.error(f"Save {save_id} failed validation: {e}")
            raise SaveIntegrityError(f"save {save_id} is corrupt") from e

    def get(self, save_id: int) -> SaveRecord:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, user_id, name, created_at, updated_at FROM game_saves WHERE id = ?",
                (save_id,),
            ).fetchone()
        if row is None:
            raise SaveNotFoundError(f"save {save_id} not found")
        return SaveRecord(*row)

    def list(self, user_id: int) -> List[SaveRecord]:
        """Saves of a user, most recently updated first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, user_id, name, created_at, updated_at FROM game_saves "
                "WHERE user_id = ? ORDER BY updated_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [SaveRecord(*row) for row in rows]

    def update(self, save_id: int, name: Optional[str] = None, state: Optional[GameState] = None) -> SaveRecord:
        """Rename a save and/or overwrite its snapshot."""
        assignments = ["updated_at = ?"]
        params: list = [_now()]
        if name is not None:
            assignments.append("name = ?")
            params.append(name)
        if state is not None:
            assignments.append("game_state = ?")
            params.append(json.dumps(state.to_dict()))
        params.append(save_id)

        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE game_saves SET {', '.join(assignments)} WHERE id = ?", params
            )
            if cur.rowcount == 0:
                raise SaveNotFoundError(f"save {save_id} not found")
        return self.get(save_id)

    def delete(self, save_id: int):
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM game_saves WHERE id = ?", (save_id,))
            if cur.rowcount == 0:
                raise SaveNotFoundError(f"save {save_id} not found")
        logger.info(f"Deleted save {save_id}")
