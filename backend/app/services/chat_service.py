# backend/app/services/chat_service.py
"""
Chat Service: one-to-one threads between users.

Threads and messages are keyed by external identity UUIDs, so every entry
point first resolves the caller's local id through the identity bridge.
Message text is encrypted before it reaches the repository and decrypted on
the way out; the thread preview is kept in plaintext.

The realtime mirror is best-effort: it runs after the local commit and its
failures are logged, never raised.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import IMAGE_PREVIEW_TEXT, UNKNOWN_PARTICIPANT_PREFIX
from ..core.crypto import decrypt_message, encrypt_message
from ..core.exceptions import (
    EmptyMessageException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..integrations.realtime_mirror import NullRealtimeMirror, RealtimeMirror
from ..integrations.supabase_client import SupabaseError
from ..models.chat_thread import ChatThread
from ..models.message import Message
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .identity_bridge import IdentityBridgeService

logger = logging.getLogger(__name__)


@dataclass
class ThreadSummary:
    """A thread as seen by one participant."""

    thread: ChatThread
    unread_count: int
    other_participant_uuid: Optional[str]
    other_participant_name: str
    other_participant_avatar: Optional[str]


@dataclass
class MessageView:
    """A message with its text decrypted for the reader."""

    id: str
    thread_id: str
    sender_uuid: str
    text: Optional[str]
    image_url: Optional[str]
    is_read: bool
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> "MessageView":
        return cls(
            id=message.id,
            thread_id=message.thread_id,
            sender_uuid=message.sender_uuid,
            text=decrypt_message(message.text),
            image_url=message.image_url,
            is_read=bool(message.is_read),
            created_at=message.created_at,
        )


def preview_for(plain_text: Optional[str], image_url: Optional[str]) -> Optional[str]:
    """Thread preview: the plaintext, or the image placeholder for image-only messages."""
    if plain_text:
        return plain_text
    if image_url:
        return IMAGE_PREVIEW_TEXT
    return None


def clamp_message_limit(limit: Optional[int]) -> int:
    """Page size for message listings, bounded by the configured maximum."""
    effective = limit if limit is not None else settings.chat_messages_default_limit
    return max(1, min(int(effective), settings.chat_messages_max_limit))


def unknown_participant_name(external_uuid: Optional[str]) -> str:
    suffix = (external_uuid or "")[:5] or "?????"
    return f"{UNKNOWN_PARTICIPANT_PREFIX} {suffix}"


class ChatService(BaseService):
    """
    Service layer for messaging.

    Handles:
    - Thread creation (idempotent per participant pair)
    - Sending, listing and deleting messages
    - Unread counters and read receipts
    - Garbage collection of threads whose last message was deleted
    """

    def __init__(
        self,
        db: Session,
        identity_bridge: Optional[IdentityBridgeService] = None,
        mirror: Optional[RealtimeMirror] = None,
    ):
        super().__init__(db)
        self.identity_bridge = identity_bridge or IdentityBridgeService(db)
        self.mirror: RealtimeMirror = mirror or NullRealtimeMirror()
        self.thread_repository = RepositoryFactory.create_chat_thread_repository(db)
        self.message_repository = RepositoryFactory.create_message_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    # Helpers

    def _mirror(self, action: str, call: Callable[[], Any]) -> None:
        try:
            call()
        except SupabaseError as exc:
            prometheus_metrics.inc_best_effort_failure("realtime_mirror")
            self.logger.warning(
                "Realtime mirror update failed",
                extra={"action": action, "error": str(exc)},
            )

    def _get_thread_for(self, thread_id: str, requester_id: int) -> Tuple[ChatThread, str]:
        """Load a thread and check the requester takes part in it."""
        thread = self.thread_repository.get_by_id(thread_id)
        if thread is None:
            raise NotFoundException("Chat not found", details={"thread_id": thread_id})
        requester_uuid = self.identity_bridge.require_external_uuid(requester_id)
        if not thread.is_participant(requester_uuid):
            raise ForbiddenException(
                "You are not a participant in this chat", details={"thread_id": thread_id}
            )
        return thread, requester_uuid

    # Threads

    @BaseService.measure_operation("create_or_get_thread")
    def create_or_get_thread(self, requester_id: int, other_user_id: int) -> Tuple[ChatThread, bool]:
        """
        Return the thread between the two users, creating it when missing.

        Returns:
            Tuple of (thread, created)

        Raises:
            NotFoundException: the other user does not exist
            ValidationException: requester and other user are the same
            IdentityNotFoundException: either user has no resolvable identity
        """
        if int(other_user_id) == int(requester_id):
            raise ValidationException("You cannot start a chat with yourself", code="SELF_CHAT")
        if self.user_repository.get_by_id(int(other_user_id)) is None:
            raise NotFoundException("User not found", details={"user_id": other_user_id})

        requester_uuid = self.identity_bridge.require_external_uuid(requester_id)
        other_uuid = self.identity_bridge.require_external_uuid(int(other_user_id))

        with self.transaction():
            thread, created = self.thread_repository.get_or_create(requester_uuid, other_uuid)

        if created:
            self.log_operation("create_thread", thread_id=thread.id, requester_id=requester_id)
            self._mirror("upsert_thread", lambda: self.mirror.upsert_thread(thread))
        return thread, created

    @BaseService.measure_operation("list_threads")
    def list_threads(self, requester_id: int) -> List[ThreadSummary]:
        """Caller's threads, most recent activity first."""
        requester_uuid = self.identity_bridge.require_external_uuid(requester_id)
        threads = self.thread_repository.list_for_participant(requester_uuid)

        other_uuids = {thread.other_participant(requester_uuid) for thread in threads}
        users_by_uuid: dict[str, User] = {}
        local_ids = {}
        for other_uuid in other_uuids:
            if not other_uuid:
                continue
            local_id = self.identity_bridge.resolve_local_user_id(other_uuid)
            if local_id is not None:
                local_ids[other_uuid] = local_id
        users = self.user_repository.get_many(local_ids.values())
        for other_uuid, local_id in local_ids.items():
            if local_id in users:
                users_by_uuid[other_uuid] = users[local_id]

        summaries = []
        for thread in threads:
            other_uuid = thread.other_participant(requester_uuid)
            other_user = users_by_uuid.get(other_uuid) if other_uuid else None
            summaries.append(
                ThreadSummary(
                    thread=thread,
                    unread_count=thread.unread_for(requester_uuid),
                    other_participant_uuid=other_uuid,
                    other_participant_name=(
                        other_user.name if other_user and other_user.name else unknown_participant_name(other_uuid)
                    ),
                    other_participant_avatar=other_user.avatar_url if other_user else None,
                )
            )
        return summaries

    @BaseService.measure_operation("delete_thread")
    def delete_thread(self, thread_id: str, requester_id: int) -> None:
        """Delete a thread and all of its messages; participants only."""
        thread, _ = self._get_thread_for(thread_id, requester_id)
        with self.transaction():
            self.thread_repository.delete(thread.id)
        self.log_operation("delete_thread", thread_id=thread_id, requester_id=requester_id)
        self._mirror("delete_thread", lambda: self.mirror.delete_thread(thread_id))

    # Messages

    @BaseService.measure_operation("send_message")
    def send_message(
        self,
        thread_id: str,
        sender_id: int,
        text: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Message:
        """
        Store a message and bump the recipient's unread counter.

        The returned row carries the encrypted text as stored.
        """
        text = text if text and text.strip() else None
        image_url = image_url or None
        if text is None and image_url is None:
            raise EmptyMessageException()

        thread, sender_uuid = self._get_thread_for(thread_id, sender_id)
        sent_at = datetime.now(timezone.utc)

        with self.transaction():
            message = self.message_repository.create(
                thread_id=thread.id,
                sender_uuid=sender_uuid,
                text=encrypt_message(text),
                image_url=image_url,
                is_read=False,
                created_at=sent_at,
            )
            self.thread_repository.record_new_message(
                thread,
                sender_uuid=sender_uuid,
                preview=preview_for(text, image_url),
                sent_at=sent_at,
            )

        self.log_operation("send_message", thread_id=thread.id, message_id=message.id)
        self._mirror("upsert_thread", lambda: self.mirror.upsert_thread(thread))
        self._mirror("insert_message", lambda: self.mirror.insert_message(message))
        return message

    @BaseService.measure_operation("get_messages")
    def get_messages(
        self,
        thread_id: str,
        requester_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[MessageView]:
        """Messages of a thread, newest first, with text decrypted."""
        thread, _ = self._get_thread_for(thread_id, requester_id)
        effective_limit = clamp_message_limit(limit)
        effective_offset = max(0, int(offset or 0))

        messages = self.message_repository.list_for_thread(
            thread.id, limit=effective_limit, offset=effective_offset
        )
        return [MessageView.from_message(message) for message in messages]

    @BaseService.measure_operation("mark_read")
    def mark_read(self, thread_id: str, requester_id: int) -> ChatThread:
        """Zero the caller's unread counter and flag received messages as read."""
        thread, reader_uuid = self._get_thread_for(thread_id, requester_id)
        with self.transaction():
            self.message_repository.mark_read_for_reader(thread.id, reader_uuid)
            self.thread_repository.reset_unread(thread, reader_uuid)
        self._mirror("upsert_thread", lambda: self.mirror.upsert_thread(thread))
        return thread

    @BaseService.measure_operation("delete_message")
    def delete_message(self, message_id: str, requester_id: int) -> bool:
        """
        Delete one of the caller's own messages.

        When it was the last message in the thread the thread goes too;
        otherwise the preview is rebuilt from the newest remaining message.

        Returns:
            True when the thread was deleted along with the message
        """
        message = self.message_repository.get_by_id(message_id)
        if message is None:
            raise NotFoundException("Message not found", details={"message_id": message_id})
        requester_uuid = self.identity_bridge.require_external_uuid(requester_id)
        if message.sender_uuid != requester_uuid:
            raise ForbiddenException(
                "Only the sender can delete this message", details={"message_id": message_id}
            )

        thread_id = message.thread_id
        thread_deleted = False
        with self.transaction():
            self.message_repository.delete(message.id)
            thread = self.thread_repository.get_by_id(thread_id)
            if thread is not None:
                newest = self.message_repository.newest_in_thread(thread_id)
                if newest is None:
                    self.thread_repository.delete(thread_id)
                    thread_deleted = True
                else:
                    self.thread_repository.set_preview(
                        thread,
                        preview=preview_for(decrypt_message(newest.text), newest.image_url),
                        timestamp=newest.created_at,
                        sender_uuid=newest.sender_uuid,
                    )

        self.log_operation(
            "delete_message",
            message_id=message_id,
            thread_id=thread_id,
            thread_deleted=thread_deleted,
        )
        self._mirror("delete_message", lambda: self.mirror.delete_message(message_id))
        if thread_deleted:
            self._mirror("delete_thread", lambda: self.mirror.delete_thread(thread_id))
        elif thread is not None:
            self._mirror("upsert_thread", lambda: self.mirror.upsert_thread(thread))
        return thread_deleted
