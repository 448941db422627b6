# backend/app/routes/v1/chat.py
"""
Chat routes - API v1

Versioned messaging endpoints under /api/v1/chat.
All business logic delegated to ChatService.

Endpoints:
    POST /                          -> Create or reopen a thread with a user
    GET /                           -> Caller's threads
    DELETE /{thread_id}             -> Delete a thread and its messages
    POST /{thread_id}/messages      -> Send a message
    GET /{thread_id}/messages       -> Messages, newest first
    POST /{thread_id}/read          -> Mark the thread read for the caller
    DELETE /messages/{message_id}   -> Delete own message
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from ...api.dependencies import get_chat_service, get_current_user_id, require_database
from ...core.exceptions import DomainException
from ...models.chat_thread import ChatThread
from ...schemas.base_responses import DeleteResponse
from ...schemas.chat import (
    CreateThreadRequest,
    CreateThreadResponse,
    DeleteMessageResponse,
    MarkReadResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageRequest,
    ThreadListItem,
    ThreadListResponse,
    ThreadResponse,
)
from ...services.chat_service import ChatService, ThreadSummary, clamp_message_limit

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["chat-v1"], dependencies=[Depends(require_database)])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _thread_list_item(summary: ThreadSummary) -> ThreadListItem:
    thread: ChatThread = summary.thread
    return ThreadListItem(
        id=thread.id,
        other_participant_uuid=summary.other_participant_uuid,
        other_participant_name=summary.other_participant_name,
        other_participant_avatar=summary.other_participant_avatar,
        last_message=thread.last_message,
        last_timestamp=thread.last_timestamp,
        last_sender_uuid=thread.last_sender_uuid,
        unread_count=summary.unread_count,
    )


# =============================================================================
# Thread Endpoints
# =============================================================================


@router.post(
    "",
    response_model=CreateThreadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Thread already existed"}},
)
async def create_or_get_thread(
    response: Response,
    payload: CreateThreadRequest = Body(...),
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> CreateThreadResponse:
    """Open the thread with another user; 201 when created, 200 when it already existed."""
    try:
        thread, created = await asyncio.to_thread(
            chat_service.create_or_get_thread, current_user_id, payload.participant2_id
        )
    except DomainException as e:
        handle_domain_exception(e)

    if not created:
        response.status_code = status.HTTP_200_OK
    return CreateThreadResponse(thread=ThreadResponse.model_validate(thread), created=created)


@router.get("", response_model=ThreadListResponse)
async def list_threads(
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> ThreadListResponse:
    """Caller's threads, most recent activity first."""
    try:
        summaries = await asyncio.to_thread(chat_service.list_threads, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ThreadListResponse(threads=[_thread_list_item(summary) for summary in summaries])


@router.delete("/messages/{message_id}", response_model=DeleteMessageResponse)
async def delete_message(
    message_id: str,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> DeleteMessageResponse:
    """Delete one of the caller's messages; an emptied thread is deleted with it."""
    try:
        thread_deleted = await asyncio.to_thread(
            chat_service.delete_message, message_id, current_user_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteMessageResponse(
        success=True,
        message="Message deleted",
        thread_deleted=thread_deleted,
    )


@router.delete("/{thread_id}", response_model=DeleteResponse)
async def delete_thread(
    thread_id: str,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> DeleteResponse:
    try:
        await asyncio.to_thread(chat_service.delete_thread, thread_id, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(success=True, message="Chat deleted")


# =============================================================================
# Message Endpoints
# =============================================================================


@router.post(
    "/{thread_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    thread_id: str,
    payload: SendMessageRequest = Body(...),
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    """
    Send a message to a thread.

    The response echoes the row as stored, so ``text`` is the encrypted form.
    """
    try:
        message = await asyncio.to_thread(
            chat_service.send_message,
            thread_id,
            current_user_id,
            text=payload.text,
            image_url=payload.image_url,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return MessageResponse.model_validate(message)


@router.get("/{thread_id}/messages", response_model=MessagesResponse)
async def get_messages(
    thread_id: str,
    limit: Optional[int] = Query(None, description="Page size, clamped to [1, 200]"),
    offset: int = Query(0, ge=0),
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> MessagesResponse:
    """Messages of a thread, newest first, decrypted."""
    try:
        views = await asyncio.to_thread(
            chat_service.get_messages, thread_id, current_user_id, limit, offset
        )
    except DomainException as e:
        handle_domain_exception(e)
    return MessagesResponse(
        messages=[MessageResponse.model_validate(view) for view in views],
        limit=clamp_message_limit(limit),
        offset=offset,
    )


@router.post("/{thread_id}/read", response_model=MarkReadResponse)
async def mark_read(
    thread_id: str,
    current_user_id: int = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
) -> MarkReadResponse:
    """Zero the caller's unread counter for the thread."""
    try:
        thread = await asyncio.to_thread(chat_service.mark_read, thread_id, current_user_id)
    except DomainException as e:
        handle_domain_exception(e)
    return MarkReadResponse(thread_id=thread.id, unread_count=0)
