"""SQLite conversation store backend.

Provides persistent conversation storage using a SQLite database file.
Uses aiosqlite for async access.
"""

import logging
from datetime import datetime
from pathlib import Path
from uuid import uuid4

try:
    import aiosqlite
    AIOSQLITE_AVAILABLE = True
except ImportError:
    AIOSQLITE_AVAILABLE = False
    aiosqlite = None

from ..errors import StoreError
from .base import ConversationNotFoundError, ConversationStore
from .models import Conversation, Message, MessageRole, utcnow

logger = logging.getLogger(__name__)


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Conversations and messages live in two tables; deleting a
    conversation cascades to its messages through a foreign key.
    """

    def __init__(self, path: str | Path = "./logomuse_conversations.db"):
        if not AIOSQLITE_AVAILABLE:
            raise ImportError(
                "SQLite store backend requires aiosqlite. "
                "Install with: pip install aiosqlite"
            )

        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database connection and create the schema."""
        if self._connection is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._connection = await aiosqlite.connect(self._db_path)
            await self._connection.execute("PRAGMA foreign_keys = ON")
            await self._create_schema()
        except aiosqlite.Error as e:
            raise StoreError(f"Could not open conversation database {self._db_path}: {e}") from e
        logger.debug("Opened conversation database at %s", self._db_path)

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                role TEXT NOT NULL,
                text TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_conversation
            ON messages(conversation_id, timestamp, seq)
        """)

        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _db(self) -> "aiosqlite.Connection":
        if self._connection is None:
            raise StoreError("SQLite store is not connected; call connect() first")
        return self._connection

    async def _exists(self, conversation_id: str) -> bool:
        try:
            async with self._db().execute(
                "SELECT 1 FROM conversations WHERE id = ?",
                (conversation_id,)
            ) as cursor:
                return await cursor.fetchone() is not None
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to look up conversation {conversation_id}: {e}") from e

    async def create_conversation(self, title: str) -> str:
        conversation_id = uuid4().hex
        try:
            await self._db().execute(
                "INSERT INTO conversations (id, title, created_at) VALUES (?, ?, ?)",
                (conversation_id, title, utcnow().isoformat())
            )
            await self._db().commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to create conversation: {e}") from e
        return conversation_id

    async def list_conversations(self) -> list[Conversation]:
        try:
            async with self._db().execute(
                """
                SELECT id, title, created_at
                FROM conversations
                ORDER BY created_at DESC, seq DESC
                """
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to list conversations: {e}") from e

        try:
            return [
                Conversation(id=cid, title=title, created_at=datetime.fromisoformat(created_at))
                for cid, title, created_at in rows
            ]
        except ValueError as e:
            raise StoreError(f"Corrupt conversation row: {e}") from e

    async def list_messages(self, conversation_id: str) -> list[Message]:
        if not await self._exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        try:
            async with self._db().execute(
                """
                SELECT role, text, timestamp
                FROM messages
                WHERE conversation_id = ?
                ORDER BY timestamp ASC, seq ASC
                """,
                (conversation_id,)
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to load messages for {conversation_id}: {e}") from e

        try:
            return [
                Message(role=MessageRole(role), text=text, timestamp=datetime.fromisoformat(ts))
                for role, text, ts in rows
            ]
        except ValueError as e:
            raise StoreError(f"Corrupt message row in {conversation_id}: {e}") from e

    async def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        text: str
    ) -> Message:
        if not await self._exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        message = Message(role=role, text=text, timestamp=utcnow())
        try:
            await self._db().execute(
                """
                INSERT INTO messages (conversation_id, role, text, timestamp)
                VALUES (?, ?, ?, ?)
                """,
                (conversation_id, message.role.value, message.text, message.timestamp.isoformat())
            )
            await self._db().commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to append message to {conversation_id}: {e}") from e
        return message

    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        try:
            cursor = await self._db().execute(
                "UPDATE conversations SET title = ? WHERE id = ?",
                (title, conversation_id)
            )
            await self._db().commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to rename conversation {conversation_id}: {e}") from e
        if cursor.rowcount == 0:
            raise ConversationNotFoundError(conversation_id)

    async def delete_conversation(self, conversation_id: str) -> None:
        try:
            # ON DELETE CASCADE only fires when foreign_keys is enabled
            await self._db().execute(
                "DELETE FROM messages WHERE conversation_id = ?",
                (conversation_id,)
            )
            await self._db().execute(
                "DELETE FROM conversations WHERE id = ?",
                (conversation_id,)
            )
            await self._db().commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to delete conversation {conversation_id}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
