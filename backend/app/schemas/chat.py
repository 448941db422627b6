# backend/app/schemas/chat.py
"""
Pydantic schemas for the chat API.

Thread and message ids are ULIDs; participants are external identity UUIDs.
Keys are snake_case to match the realtime store the mobile client reads.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ._strict_base import StrictRequestModel
from .base_responses import DeleteResponse


class CreateThreadRequest(StrictRequestModel):
    """Start (or reopen) a chat with another local user."""

    participant2_id: int = Field(..., description="Local id of the other user")


class SendMessageRequest(StrictRequestModel):
    text: Optional[str] = Field(None, max_length=4000)
    image_url: Optional[str] = Field(None, max_length=1024)


class ThreadResponse(BaseModel):
    id: str
    participant1_uuid: str
    participant2_uuid: str
    last_message: Optional[str] = None
    last_timestamp: Optional[datetime] = None
    last_sender_uuid: Optional[str] = None
    unread_count_for_1: int = 0
    unread_count_for_2: int = 0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CreateThreadResponse(BaseModel):
    thread: ThreadResponse
    created: bool


class ThreadListItem(BaseModel):
    """A thread as seen by the caller."""

    id: str
    other_participant_uuid: Optional[str] = None
    other_participant_name: str
    other_participant_avatar: Optional[str] = None
    last_message: Optional[str] = None
    last_timestamp: Optional[datetime] = None
    last_sender_uuid: Optional[str] = None
    unread_count: int = 0


class ThreadListResponse(BaseModel):
    threads: List[ThreadListItem] = Field(default_factory=list)


class MessageResponse(BaseModel):
    id: str
    thread_id: str
    sender_uuid: str
    text: Optional[str] = None
    image_url: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MessagesResponse(BaseModel):
    messages: List[MessageResponse] = Field(default_factory=list)
    limit: int
    offset: int


class MarkReadResponse(BaseModel):
    thread_id: str
    unread_count: int = 0


class DeleteMessageResponse(DeleteResponse):
    """Deletion result; ``thread_deleted`` is set when it was the last message."""

    thread_deleted: bool = False
