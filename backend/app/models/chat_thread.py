# backend/app/models/chat_thread.py
"""
Chat thread model for one-to-one messaging.

Participants are identified by their external identity UUIDs. Each unordered
pair has at most one thread: ``pair_key`` stores the two UUIDs sorted and is
unique, so a concurrent create for the same pair fails at insert time.

Unread counters are named after their reader. ``unread_count_for_1`` counts
the messages participant 1 has not read yet (sent by participant 2).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


def make_pair_key(uuid_a: str, uuid_b: str) -> str:
    """Order-independent key for a participant pair."""
    low, high = sorted((uuid_a, uuid_b))
    return f"{low}:{high}"


class ChatThread(Base):
    """
    Conversation between exactly two participants.

    Attributes:
        participant1_uuid / participant2_uuid: External UUIDs in creation order
        pair_key: Sorted participant UUIDs, unique
        last_message: Plaintext preview of the newest message ("Imagem" for images)
        last_timestamp: Time of the newest message
        last_sender_uuid: Sender of the newest message
        unread_count_for_1 / unread_count_for_2: Unread counters per reader
    """

    __tablename__ = "chat_threads"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    participant1_uuid = Column(String(36), nullable=False)
    participant2_uuid = Column(String(36), nullable=False)
    pair_key = Column(String(80), nullable=False, unique=True)
    last_message = Column(Text, nullable=True)
    last_timestamp = Column(DateTime(timezone=True), nullable=True)
    last_sender_uuid = Column(String(36), nullable=True)
    unread_count_for_1 = Column(Integer, nullable=False, default=0)
    unread_count_for_2 = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    messages = relationship(
        "Message",
        back_populates="thread",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("participant1_uuid <> participant2_uuid", name="ck_chat_threads_distinct"),
        CheckConstraint(
            "unread_count_for_1 >= 0 AND unread_count_for_2 >= 0",
            name="ck_chat_threads_unread_non_negative",
        ),
        Index("idx_chat_threads_participant1", "participant1_uuid"),
        Index("idx_chat_threads_participant2", "participant2_uuid"),
        Index("idx_chat_threads_last_timestamp", "last_timestamp"),
    )

    def is_participant(self, external_uuid: str) -> bool:
        return external_uuid in (self.participant1_uuid, self.participant2_uuid)

    def other_participant(self, external_uuid: str) -> Optional[str]:
        if external_uuid == self.participant1_uuid:
            return self.participant2_uuid
        if external_uuid == self.participant2_uuid:
            return self.participant1_uuid
        return None

    def unread_for(self, external_uuid: str) -> int:
        if external_uuid == self.participant1_uuid:
            return self.unread_count_for_1 or 0
        if external_uuid == self.participant2_uuid:
            return self.unread_count_for_2 or 0
        return 0

    def __repr__(self) -> str:
        return f"<ChatThread {self.id} {self.participant1_uuid}<->{self.participant2_uuid}>"
