# backend/app/models/message.py
"""
Chat message model.

``text`` is stored encrypted (``<iv hex>:<cipher hex>``); see app.core.crypto.
A message must carry text, an image URL, or both.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Message(Base):
    """Single message inside a chat thread."""

    __tablename__ = "chat_messages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    thread_id = Column(
        String(26), ForeignKey("chat_threads.id", ondelete="CASCADE"), nullable=False
    )
    sender_uuid = Column(String(36), nullable=False)
    text = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    thread = relationship("ChatThread", back_populates="messages")

    __table_args__ = (
        CheckConstraint(
            "text IS NOT NULL OR image_url IS NOT NULL", name="ck_chat_messages_has_content"
        ),
        Index("idx_chat_messages_thread_created", "thread_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message {self.id} thread={self.thread_id} sender={self.sender_uuid}>"
