# backend/app/repositories/message_repository.py
"""
Message Repository for chat messages.

Messages are stored with encrypted text; this layer never decrypts.
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.message import Message
from .base_repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entity operations."""

    def __init__(self, db: Session):
        super().__init__(db, Message)

    def list_for_thread(self, thread_id: str, limit: int = 50, offset: int = 0) -> List[Message]:
        """Messages of a thread, newest first."""
        query = (
            self.db.query(Message)
            .filter(Message.thread_id == thread_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self._execute_query(query)

    def newest_in_thread(self, thread_id: str) -> Optional[Message]:
        rows = self.list_for_thread(thread_id, limit=1)
        return rows[0] if rows else None

    def mark_read_for_reader(self, thread_id: str, reader_uuid: str) -> int:
        """Flag every message the reader received in the thread as read."""
        try:
            updated = (
                self.db.query(Message)
                .filter(
                    Message.thread_id == thread_id,
                    Message.sender_uuid != reader_uuid,
                    Message.is_read.is_(False),
                )
                .update({Message.is_read: True}, synchronize_session=False)
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking messages read in {thread_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark messages read: {str(e)}") from e
        return int(updated or 0)
