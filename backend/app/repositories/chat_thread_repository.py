# backend/app/repositories/chat_thread_repository.py
"""
Chat Thread Repository for one-to-one messaging.

Provides data access for threads keyed by participant UUID pairs, including
atomic unread counter updates and preview maintenance.
"""

from datetime import datetime
from typing import List, Optional, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, is_integrity_violation
from ..models.chat_thread import ChatThread, make_pair_key
from .base_repository import BaseRepository


class ChatThreadRepository(BaseRepository[ChatThread]):
    """
    Repository for ChatThread entity operations.

    Handles:
    - Finding or creating the thread for a participant pair
    - Listing threads for a participant
    - Unread counters and last-message previews
    """

    def __init__(self, db: Session):
        super().__init__(db, ChatThread)

    def find_by_pair(self, uuid_a: str, uuid_b: str) -> Optional[ChatThread]:
        """
        Find the thread between two participants regardless of argument order.

        ``pair_key`` stores the sorted pair, so one equality check covers both
        orderings.
        """
        return cast(Optional[ChatThread], self.find_one_by(pair_key=make_pair_key(uuid_a, uuid_b)))

    def get_or_create(self, creator_uuid: str, other_uuid: str) -> tuple[ChatThread, bool]:
        """
        Get an existing thread or create a new one.

        Safe under concurrency: when a racing insert wins the unique ``pair_key``,
        the loser re-reads and returns the winner's row.

        Returns:
            Tuple of (thread, created) where created is True if new
        """
        existing = self.find_by_pair(creator_uuid, other_uuid)
        if existing:
            return existing, False

        try:
            thread = self.create(
                participant1_uuid=creator_uuid,
                participant2_uuid=other_uuid,
                pair_key=make_pair_key(creator_uuid, other_uuid),
                unread_count_for_1=0,
                unread_count_for_2=0,
            )
        except RepositoryException as exc:
            if not is_integrity_violation(exc):
                raise
            winner = self.find_by_pair(creator_uuid, other_uuid)
            if winner is None:
                raise
            self.logger.info(
                "Concurrent thread creation resolved to existing thread",
                extra={"thread_id": winner.id},
            )
            return winner, False

        return thread, True

    def list_for_participant(self, external_uuid: str, limit: int = 100) -> List[ChatThread]:
        """Threads the participant is in, most recently active first (empty threads last)."""
        query = (
            self.db.query(ChatThread)
            .filter(
                or_(
                    ChatThread.participant1_uuid == external_uuid,
                    ChatThread.participant2_uuid == external_uuid,
                )
            )
            .order_by(
                ChatThread.last_timestamp.is_(None),
                ChatThread.last_timestamp.desc(),
                ChatThread.created_at.desc(),
            )
            .limit(limit)
        )
        return self._execute_query(query)

    def record_new_message(
        self,
        thread: ChatThread,
        *,
        sender_uuid: str,
        preview: str,
        sent_at: datetime,
    ) -> ChatThread:
        """
        Bump the recipient's unread counter and refresh the preview.

        The increment is a single UPDATE ... SET col = col + 1 so concurrent
        sends never lose a count.
        """
        if sender_uuid == thread.participant1_uuid:
            counter = ChatThread.unread_count_for_2
        else:
            counter = ChatThread.unread_count_for_1

        try:
            self.db.query(ChatThread).filter(ChatThread.id == thread.id).update(
                {
                    counter: counter + 1,
                    ChatThread.last_message: preview,
                    ChatThread.last_timestamp: sent_at,
                    ChatThread.last_sender_uuid: sender_uuid,
                },
                synchronize_session=False,
            )
            self.db.flush()
            self.db.refresh(thread)
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating thread {thread.id}: {str(e)}")
            raise RepositoryException(f"Failed to update chat thread: {str(e)}") from e
        return thread

    def reset_unread(self, thread: ChatThread, reader_uuid: str) -> ChatThread:
        """Zero the reader's own unread counter."""
        if reader_uuid == thread.participant1_uuid:
            thread.unread_count_for_1 = 0
        elif reader_uuid == thread.participant2_uuid:
            thread.unread_count_for_2 = 0
        self.flush()
        return thread

    def set_preview(
        self,
        thread: ChatThread,
        *,
        preview: Optional[str],
        timestamp: Optional[datetime],
        sender_uuid: Optional[str],
    ) -> ChatThread:
        thread.last_message = preview
        thread.last_timestamp = timestamp
        thread.last_sender_uuid = sender_uuid
        self.flush()
        return thread
