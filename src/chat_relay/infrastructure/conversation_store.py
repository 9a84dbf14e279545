"""Conversation log persistence.

Stores every message of every conversation in an append-only SQLite table.
Messages are never updated or deleted; a conversation is simply the set of
rows sharing a ``conversation_id``.
"""

from __future__ import annotations

import sqlite3
import threading
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

from loguru import logger

from chat_relay.domain.errors import StoreError
from chat_relay.domain.models import ROLES, Message

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS messages (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    conversation_id TEXT NOT NULL,
    role TEXT NOT NULL CHECK(role IN ('system', 'user', 'assistant')),
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation
    ON messages(conversation_id, created_at);
"""

_TIMESTAMP_STEP = timedelta(microseconds=1)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ConversationStore:
    """Append-only message log stored in a dedicated SQLite file."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None
        self._write_lock = threading.Lock()
        self._last_created_at: datetime | None = None

    def connect(self) -> None:
        """Open (or create) the database and ensure the schema exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.executescript(_SCHEMA_SQL)
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open conversation store at {self.db_path}: {exc}") from exc
        logger.info("Conversation store ready at {}", self.db_path)

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StoreError("conversation store is not connected")
        return self.conn

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, conversation_id: str, role: str, content: str) -> Message:
        """Persist a message and return it with its ID and timestamp."""
        if role not in ROLES:
            raise ValueError(f"invalid role {role!r}; expected one of {', '.join(ROLES)}")
        conn = self._connection()
        msg_id = str(uuid.uuid4())

        with self._write_lock:
            created_at = self._next_timestamp()
            try:
                conn.execute(
                    "INSERT INTO messages (id, conversation_id, role, content, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (msg_id, conversation_id, role, content, created_at),
                )
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StoreError(
                    f"failed to append {role} message to conversation {conversation_id}: {exc}"
                ) from exc

        logger.debug("Appended {} message {} to conversation {}", role, msg_id, conversation_id)
        return Message(
            id=msg_id,
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=created_at,
        )

    def _next_timestamp(self) -> str:
        """Return a strictly increasing UTC timestamp for this store instance."""
        now = datetime.now(UTC)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + _TIMESTAMP_STEP
        self._last_created_at = now
        return now.isoformat(timespec="microseconds")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def recent_messages(self, conversation_id: str, limit: int) -> list[Message]:
        """Return up to *limit* messages of a conversation, newest first."""
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        rows = self._query(
            "SELECT * FROM messages WHERE conversation_id = ? "
            "ORDER BY created_at DESC, seq DESC LIMIT ?",
            (conversation_id, limit),
        )
        return [self._row_to_message(row) for row in rows]

    def list_messages(self, conversation_id: str) -> list[Message]:
        """Return all messages of a conversation, ordered chronologically."""
        rows = self._query(
            "SELECT * FROM messages WHERE conversation_id = ? ORDER BY created_at ASC, seq ASC",
            (conversation_id,),
        )
        return [self._row_to_message(row) for row in rows]

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        conn = self._connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"conversation store query failed: {exc}") from exc

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        return Message(
            id=row["id"],
            conversation_id=row["conversation_id"],
            role=row["role"],
            content=row["content"],
            created_at=row["created_at"],
        )
