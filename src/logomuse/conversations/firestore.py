"""Cloud Firestore conversation store backend.

Uses the same document layout as the hosted web app:

    conversations/{conversation_id}            {title, createdAt}
    conversations/{conversation_id}/messages/  {role, text, timestamp}

Timestamps are assigned client-side at write time.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from ..errors import StoreError
from .base import ConversationNotFoundError, ConversationStore
from .models import Conversation, Message, MessageRole, utcnow

logger = logging.getLogger(__name__)

CONVERSATIONS_COLLECTION = "conversations"
MESSAGES_COLLECTION = "messages"

# Firestore rejects batches with more than 500 writes
MAX_BATCH_WRITES = 500


def _as_utc(value: datetime) -> datetime:
    """Normalize Firestore DatetimeWithNanoseconds to a plain aware datetime."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)


class FirestoreConversationStore(ConversationStore):
    """Firestore-backed conversation store.

    Hidden design decisions:
    - AsyncClient construction and project selection
    - Sub-collection layout for messages
    - Batched cascade delete of message documents
    """

    def __init__(
        self,
        project: str | None = None,
        client: Any | None = None,
        collection: str = CONVERSATIONS_COLLECTION,
        **client_kwargs: Any
    ):
        """Initialize Firestore store.

        Args:
            project: GCP project id (None uses application default)
            client: Pre-built ``firestore.AsyncClient`` (mainly for tests)
            collection: Root collection name
            **client_kwargs: Additional kwargs for AsyncClient
        """
        self._project = project
        self._client_kwargs = client_kwargs
        self._client = client
        self._collection = collection

    async def connect(self) -> None:
        """Create the Firestore client if one was not injected."""
        if self._client is None:
            self._client = firestore.AsyncClient(project=self._project, **self._client_kwargs)
            logger.debug("Created Firestore client for project %s", self._project or "<default>")

    async def disconnect(self) -> None:
        """Release the Firestore client.

        Note: The AsyncClient opens its gRPC channel lazily and needs no
        explicit close, but we implement this for interface consistency.
        """
        self._client = None

    def _conversations(self):
        if self._client is None:
            raise StoreError("Firestore store is not connected; call connect() first")
        return self._client.collection(self._collection)

    def _messages(self, conversation_id: str):
        return self._conversations().document(conversation_id).collection(MESSAGES_COLLECTION)

    async def _require(self, conversation_id: str) -> None:
        snapshot = await self._conversations().document(conversation_id).get()
        if not snapshot.exists:
            raise ConversationNotFoundError(conversation_id)

    async def create_conversation(self, title: str) -> str:
        doc_ref = self._conversations().document()
        try:
            await doc_ref.set({"title": title, "createdAt": utcnow()})
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to create conversation: {e}") from e
        return doc_ref.id

    async def list_conversations(self) -> list[Conversation]:
        query = self._conversations().order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        )
        conversations = []
        try:
            async for snapshot in query.stream():
                data = snapshot.to_dict() or {}
                conversations.append(Conversation(
                    id=snapshot.id,
                    title=data.get("title", ""),
                    created_at=_as_utc(data["createdAt"]),
                ))
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to list conversations: {e}") from e
        except (KeyError, AttributeError, ValueError) as e:
            raise StoreError(f"Malformed conversation document: {e!r}") from e
        return conversations

    async def list_messages(self, conversation_id: str) -> list[Message]:
        messages = []
        try:
            await self._require(conversation_id)
            query = self._messages(conversation_id).order_by("timestamp")
            async for snapshot in query.stream():
                data = snapshot.to_dict() or {}
                messages.append(Message(
                    role=MessageRole(data["role"]),
                    text=data.get("text", ""),
                    timestamp=_as_utc(data["timestamp"]),
                ))
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to load messages for {conversation_id}: {e}") from e
        except (KeyError, AttributeError, ValueError) as e:
            raise StoreError(f"Malformed message document in {conversation_id}: {e!r}") from e
        return messages

    async def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        text: str
    ) -> Message:
        message = Message(role=role, text=text, timestamp=utcnow())
        try:
            await self._require(conversation_id)
            await self._messages(conversation_id).add({
                "role": message.role.value,
                "text": message.text,
                "timestamp": message.timestamp,
            })
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to append message to {conversation_id}: {e}") from e
        return message

    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        try:
            await self._conversations().document(conversation_id).update({"title": title})
        except gcp_exceptions.NotFound as e:
            raise ConversationNotFoundError(conversation_id) from e
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to rename conversation {conversation_id}: {e}") from e

    async def delete_conversation(self, conversation_id: str) -> None:
        try:
            messages = self._messages(conversation_id)
            batch = self._client.batch()
            pending = 0
            async for snapshot in messages.stream():
                batch.delete(snapshot.reference)
                pending += 1
                if pending == MAX_BATCH_WRITES:
                    await batch.commit()
                    batch = self._client.batch()
                    pending = 0
            if pending:
                await batch.commit()

            await self._conversations().document(conversation_id).delete()
        except gcp_exceptions.GoogleAPICallError as e:
            raise StoreError(f"Failed to delete conversation {conversation_id}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "firestore"
