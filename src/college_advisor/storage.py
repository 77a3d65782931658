"""SQLite storage for advising sessions and their messages."""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .core import Message, Session

logger = logging.getLogger(__name__)


class MessageStore:
    """SQLite-backed storage for sessions and messages."""

    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._migrate()
        logger.info("Opened message store at %s", db_path)

    def _migrate(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                citations TEXT,
                timestamp TEXT NOT NULL,
                session_id TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_messages_session
                ON messages(session_id, timestamp);
        """)
        self.conn.commit()

    def create_session(self, session_id: str) -> Session:
        now = datetime.now(timezone.utc)
        self.conn.execute(
            "INSERT OR IGNORE INTO sessions (id, created_at, updated_at) VALUES (?, ?, ?)",
            (session_id, now.isoformat(), now.isoformat()),
        )
        self.conn.commit()
        return self.get_session(session_id)

    def get_session(self, session_id: str) -> Session | None:
        row = self.conn.execute(
            "SELECT id, created_at, updated_at FROM sessions WHERE id = ?", (session_id,)
        ).fetchone()
        if row is None:
            return None
        return Session(
            id=row["id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def create_message(
        self,
        role: str,
        content: str,
        session_id: str,
        citations: list[str] | None = None,
        timestamp: datetime | None = None,
    ) -> Message:
        """Persist a message and bump its session's update time."""
        msg = Message(
            id=str(uuid.uuid4()),
            role=role,
            content=content,
            timestamp=timestamp or datetime.now(timezone.utc),
            session_id=session_id,
            citations=citations or None,
        )
        self.conn.execute(
            """INSERT INTO messages (id, role, content, citations, timestamp, session_id)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                msg.id,
                msg.role,
                msg.content,
                json.dumps(msg.citations) if msg.citations else None,
                msg.timestamp.isoformat(),
                msg.session_id,
            ),
        )
        self.conn.execute(
            "UPDATE sessions SET updated_at = ? WHERE id = ?",
            (msg.timestamp.isoformat(), session_id),
        )
        self.conn.commit()
        return msg

    def get_messages_by_session(self, session_id: str) -> list[Message]:
        """Return a session's messages, oldest first."""
        rows = self.conn.execute(
            """SELECT id, role, content, citations, timestamp, session_id
               FROM messages WHERE session_id = ?
               ORDER BY timestamp, rowid""",
            (session_id,),
        ).fetchall()
        return [_row_to_message(row) for row in rows]

    def close(self):
        self.conn.close()


def _row_to_message(row: sqlite3.Row) -> Message:
    citations = None
    if row["citations"]:
        try:
            citations = json.loads(row["citations"])
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable citations on message %s", row["id"])
    return Message(
        id=row["id"],
        role=row["role"],
        content=row["content"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        session_id=row["session_id"],
        citations=citations,
    )
