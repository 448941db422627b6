"""
Best-effort mirror of chat threads and messages into Supabase tables.

Mobile clients subscribe to the ``chats`` and ``messages`` tables through
Supabase Realtime. The relational store stays authoritative; mirror failures
are the caller's to log and skip.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import SecretStr

from .supabase_client import SupabaseHttpClient


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class RealtimeMirror(Protocol):
    def upsert_thread(self, thread: Any) -> None: ...

    def delete_thread(self, thread_id: str) -> None: ...

    def insert_message(self, message: Any) -> None: ...

    def delete_message(self, message_id: str) -> None: ...


class SupabaseRealtimeMirror(SupabaseHttpClient):
    """PostgREST writes against the realtime-enabled tables."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str | SecretStr,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url=base_url, service_key=service_key, timeout=timeout, transport=transport)

    def upsert_thread(self, thread: Any) -> None:
        row: Dict[str, Any] = {
            "id": thread.id,
            "participant1_id": thread.participant1_uuid,
            "participant2_id": thread.participant2_uuid,
            "last_message": thread.last_message,
            "last_timestamp": _iso(thread.last_timestamp),
            "last_sender_id": thread.last_sender_uuid,
            "unread_count_participant1": thread.unread_count_for_1,
            "unread_count_participant2": thread.unread_count_for_2,
            "created_at": _iso(thread.created_at),
        }
        self.request(
            "POST",
            "/rest/v1/chats",
            json_body=row,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def delete_thread(self, thread_id: str) -> None:
        self.request("DELETE", "/rest/v1/chats", params={"id": f"eq.{thread_id}"})

    def insert_message(self, message: Any) -> None:
        row = {
            "id": message.id,
            "chat_id": message.thread_id,
            "sender_id": message.sender_uuid,
            "text": message.text,
            "image_url": message.image_url,
            "is_read": bool(message.is_read),
            "created_at": _iso(message.created_at),
        }
        self.request(
            "POST",
            "/rest/v1/messages",
            json_body=row,
            headers={"Prefer": "return=minimal"},
        )

    def delete_message(self, message_id: str) -> None:
        self.request("DELETE", "/rest/v1/messages", params={"id": f"eq.{message_id}"})


class NullRealtimeMirror:
    """No-op mirror used when Supabase is not configured."""

    def upsert_thread(self, thread: Any) -> None:
        return None

    def delete_thread(self, thread_id: str) -> None:
        return None

    def insert_message(self, message: Any) -> None:
        return None

    def delete_message(self, message_id: str) -> None:
        return None
