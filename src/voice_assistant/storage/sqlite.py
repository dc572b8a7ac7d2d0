"""SQLite-backed conversation history."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from types import TracebackType

from ..core.config import StorageSettings
from ..core.interfaces import ChatTitleProvider
from ..core.models import ChatMessage, ChatSummary
from ..intelligence.titles import DEFAULT_CHAT_TITLE

LOGGER = logging.getLogger(__name__)

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


def serialize_datetime(value: datetime) -> str:
    """Serialise ``value`` to ISO 8601, normalising timezone-aware values."""
    if value.tzinfo is None:
        return value.isoformat()
    return value.astimezone().isoformat()


class SqliteConversationStore:
    """Persist exchanges grouped into titled chats and replay the current one.

    The newest chat is the current chat. The first exchange recorded into an
    untitled chat asks ``titler`` for a title.
    """

    def __init__(
        self,
        settings: StorageSettings,
        *,
        titler: ChatTitleProvider | None = None,
    ) -> None:
        """Open the database and apply migrations."""
        self._settings = settings
        self._titler = titler
        db_path = Path(settings.db_path)
        if str(db_path) != ":memory:":
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._enable_foreign_keys()
        self._apply_migrations()

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteConversationStore:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # ConversationSink / ConversationHistory API ------------------------------
    async def record_exchange(
        self, transcript: str, reply: str, created_at: datetime
    ) -> None:
        """Append the exchange to the current chat and title a new chat."""
        chat_id = await asyncio.to_thread(
            self.save_exchange, transcript, reply, created_at
        )
        if await asyncio.to_thread(self.chat_title, chat_id) is not None:
            return
        if self._titler is None:
            title = DEFAULT_CHAT_TITLE
        else:
            title = await self._titler.generate_title(transcript)
        await asyncio.to_thread(self.rename_chat, chat_id, title)
        LOGGER.info("Chat %s titled %r", chat_id, title)

    async def recent_messages(self, limit: int) -> list[ChatMessage]:
        """Return up to ``limit`` most recent messages of the current chat."""
        return await asyncio.to_thread(self.load_recent_messages, limit)

    # Synchronous API ---------------------------------------------------------
    def start_chat(self, created_at: datetime) -> int:
        """Open a new untitled chat; later exchanges are appended to it."""
        stamp = serialize_datetime(created_at)
        with self._lock, self._connection:
            cursor = self._connection.execute(
                "INSERT INTO chats (created_at, updated_at) VALUES (?, ?)",
                (stamp, stamp),
            )
        chat_id = int(cursor.lastrowid)
        LOGGER.info("Started chat %s", chat_id)
        return chat_id

    def save_exchange(self, transcript: str, reply: str, created_at: datetime) -> int:
        """Insert an exchange into the current chat and return the chat id."""
        if not transcript.strip():
            raise ValueError("Transcript is required")
        stamp = serialize_datetime(created_at)
        with self._lock, self._connection:
            chat_id = self._current_chat_id()
            if chat_id is None:
                cursor = self._connection.execute(
                    "INSERT INTO chats (created_at, updated_at) VALUES (?, ?)",
                    (stamp, stamp),
                )
                chat_id = int(cursor.lastrowid)
            cursor = self._connection.execute(
                "INSERT INTO exchanges (chat_id, created_at) VALUES (?, ?)",
                (chat_id, stamp),
            )
            exchange_id = int(cursor.lastrowid)
            self._connection.executemany(
                "INSERT INTO messages (exchange_id, role, content) VALUES (?, ?, ?)",
                (
                    (exchange_id, USER_ROLE, transcript),
                    (exchange_id, ASSISTANT_ROLE, reply),
                ),
            )
            self._connection.execute(
                "UPDATE chats SET updated_at = ? WHERE id = ?", (stamp, chat_id)
            )
        LOGGER.debug("Recorded exchange %s in chat %s", exchange_id, chat_id)
        return chat_id

    def load_recent_messages(self, limit: int) -> list[ChatMessage]:
        """Return the newest ``limit`` messages of the current chat, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            chat_id = self._current_chat_id()
            if chat_id is None:
                return []
            rows = self._connection.execute(
                """
                SELECT role, content FROM (
                    SELECT m.id, m.role, m.content
                    FROM messages AS m
                    JOIN exchanges AS e ON e.id = m.exchange_id
                    WHERE e.chat_id = ?
                    ORDER BY m.id DESC
                    LIMIT ?
                ) ORDER BY id ASC
                """,
                (chat_id, limit),
            ).fetchall()
        return [ChatMessage(role=row["role"], content=row["content"]) for row in rows]

    def chat_title(self, chat_id: int) -> str | None:
        """Return the stored title of ``chat_id``, ``None`` while untitled."""
        with self._lock:
            row = self._connection.execute(
                "SELECT title FROM chats WHERE id = ?", (chat_id,)
            ).fetchone()
        return None if row is None else row["title"]

    def rename_chat(self, chat_id: int, title: str) -> None:
        """Store ``title`` for ``chat_id``."""
        with self._lock, self._connection:
            self._connection.execute(
                "UPDATE chats SET title = ? WHERE id = ?", (title, chat_id)
            )

    def list_chats(self, limit: int = 20) -> list[ChatSummary]:
        """Return the newest chats first, with their exchange counts."""
        with self._lock:
            rows = self._connection.execute(
                """
                SELECT c.id, c.title, c.updated_at, COUNT(e.id) AS exchange_count
                FROM chats AS c
                LEFT JOIN exchanges AS e ON e.chat_id = c.id
                GROUP BY c.id
                ORDER BY c.id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [
            ChatSummary(
                chat_id=int(row["id"]),
                title=row["title"],
                updated_at=row["updated_at"],
                exchange_count=int(row["exchange_count"]),
            )
            for row in rows
        ]

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _current_chat_id(self) -> int | None:
        row = self._connection.execute("SELECT MAX(id) FROM chats").fetchone()
        return None if row[0] is None else int(row[0])

    def _enable_foreign_keys(self) -> None:
        with self._connection:
            self._connection.execute("PRAGMA foreign_keys = ON")

    def _apply_migrations(self) -> None:
        schema_dir = Path(__file__).resolve().parent / "schema"
        for migration in sorted(schema_dir.glob("*.sql")):
            LOGGER.debug("Applying migration %s", migration.name)
            script = migration.read_text(encoding="utf-8")
            with self._connection:
                self._connection.executescript(script)


__all__ = ["SqliteConversationStore"]
