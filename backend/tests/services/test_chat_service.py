"""ChatService: threads, encrypted messages, unread counters and cleanup."""

from typing import List, Tuple

import pytest
from sqlalchemy.orm import Session

from app.core.constants import IMAGE_PREVIEW_TEXT
from app.core.crypto import decrypt_message
from app.core.exceptions import (
    EmptyMessageException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.integrations.supabase_client import SupabaseError
from app.models import ChatThread, Message
from app.monitoring.prometheus_metrics import REGISTRY
from app.services.chat_service import (
    ChatService,
    clamp_message_limit,
    preview_for,
    unknown_participant_name,
)
from app.services.identity_bridge import generate_fallback_uuid


class RecordingMirror:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []

    def upsert_thread(self, thread) -> None:
        self.calls.append(("upsert_thread", thread.id))

    def delete_thread(self, thread_id: str) -> None:
        self.calls.append(("delete_thread", thread_id))

    def insert_message(self, message) -> None:
        self.calls.append(("insert_message", message.id))

    def delete_message(self, message_id: str) -> None:
        self.calls.append(("delete_message", message_id))


class FailingMirror(RecordingMirror):
    def upsert_thread(self, thread) -> None:
        raise SupabaseError("realtime store down", status_code=503)

    def insert_message(self, message) -> None:
        raise SupabaseError("realtime store down", status_code=503)


@pytest.fixture
def mirror() -> RecordingMirror:
    return RecordingMirror()


@pytest.fixture
def chat(db: Session, mirror: RecordingMirror) -> ChatService:
    return ChatService(db, mirror=mirror)


@pytest.fixture
def thread(chat: ChatService, client_user, trainer) -> ChatThread:
    created, _ = chat.create_or_get_thread(client_user.id, trainer.id)
    return created


class TestHelpers:
    def test_preview(self):
        assert preview_for("oi", None) == "oi"
        assert preview_for(None, "https://cdn/x.png") == IMAGE_PREVIEW_TEXT
        assert preview_for("caption", "https://cdn/x.png") == "caption"
        assert preview_for(None, None) is None

    def test_clamp_message_limit(self):
        assert clamp_message_limit(None) == 50
        assert clamp_message_limit(0) == 1
        assert clamp_message_limit(500) == 200
        assert clamp_message_limit(20) == 20

    def test_unknown_participant_name(self):
        assert unknown_participant_name("abcdef12-0000") == "User abcde"


class TestThreads:
    def test_create_is_idempotent_for_the_pair(self, chat, client_user, trainer, mirror):
        first, created = chat.create_or_get_thread(client_user.id, trainer.id)
        second, created_again = chat.create_or_get_thread(trainer.id, client_user.id)

        assert created is True
        assert created_again is False
        assert second.id == first.id
        assert first.participant1_uuid == generate_fallback_uuid(client_user.id, client_user.email)
        assert mirror.calls == [("upsert_thread", first.id)]

    def test_cannot_chat_with_yourself(self, chat, client_user):
        with pytest.raises(ValidationException) as exc_info:
            chat.create_or_get_thread(client_user.id, client_user.id)
        assert exc_info.value.code == "SELF_CHAT"

    def test_other_user_must_exist(self, chat, client_user):
        with pytest.raises(NotFoundException):
            chat.create_or_get_thread(client_user.id, 9999)

    def test_list_threads_shows_the_other_side(self, chat, thread, client_user, trainer):
        chat.send_message(thread.id, client_user.id, text="Olá!")

        [summary] = chat.list_threads(trainer.id)

        assert summary.thread.id == thread.id
        assert summary.other_participant_name == client_user.name
        assert summary.unread_count == 1
        assert summary.thread.last_message == "Olá!"

    def test_outsider_cannot_delete_thread(self, chat, thread, outsider):
        with pytest.raises(ForbiddenException):
            chat.delete_thread(thread.id, outsider.id)

    def test_delete_thread_removes_messages(self, db: Session, chat, thread, client_user, mirror):
        chat.send_message(thread.id, client_user.id, text="bye")

        chat.delete_thread(thread.id, client_user.id)

        assert db.query(ChatThread).count() == 0
        assert db.query(Message).count() == 0
        assert mirror.calls[-1] == ("delete_thread", thread.id)


class TestMessages:
    def test_text_is_encrypted_at_rest(self, db: Session, chat, thread, client_user):
        message = chat.send_message(thread.id, client_user.id, text="segredo")

        stored = db.get(Message, message.id)
        assert stored.text != "segredo"
        assert decrypt_message(stored.text) == "segredo"

    def test_recipient_counter_grows_and_sender_stays_zero(self, chat, thread, client_user, trainer):
        chat.send_message(thread.id, client_user.id, text="1")
        chat.send_message(thread.id, client_user.id, text="2")

        assert thread.unread_for(thread.participant2_uuid) == 2
        assert thread.unread_for(thread.participant1_uuid) == 0

    def test_image_only_preview(self, chat, thread, client_user):
        chat.send_message(thread.id, client_user.id, image_url="https://cdn.movt.test/p.jpg")

        assert thread.last_message == IMAGE_PREVIEW_TEXT

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_message_rejected(self, chat, thread, client_user, text):
        with pytest.raises(EmptyMessageException):
            chat.send_message(thread.id, client_user.id, text=text)

    def test_outsider_cannot_send(self, chat, thread, outsider):
        with pytest.raises(ForbiddenException):
            chat.send_message(thread.id, outsider.id, text="hi")

    def test_unknown_thread(self, chat, client_user):
        with pytest.raises(NotFoundException):
            chat.send_message("01HNOTATHREAD0000000000000", client_user.id, text="hi")

    def test_get_messages_newest_first_and_decrypted(self, chat, thread, client_user, trainer):
        for text in ("first", "second", "third"):
            chat.send_message(thread.id, client_user.id, text=text)

        views = chat.get_messages(thread.id, trainer.id)
        page = chat.get_messages(thread.id, trainer.id, limit=1, offset=1)

        assert [v.text for v in views] == ["third", "second", "first"]
        assert [v.text for v in page] == ["second"]

    def test_mark_read_zeroes_only_the_reader(self, db: Session, chat, thread, client_user, trainer):
        chat.send_message(thread.id, client_user.id, text="to trainer")
        chat.send_message(thread.id, trainer.id, text="to client")

        chat.mark_read(thread.id, trainer.id)
        db.expire_all()

        assert thread.unread_for(thread.participant2_uuid) == 0
        assert thread.unread_for(thread.participant1_uuid) == 1
        flags = {m.sender_uuid: m.is_read for m in db.query(Message).all()}
        assert flags[thread.participant1_uuid] is True
        assert flags[thread.participant2_uuid] is False

    def test_deleting_last_message_deletes_thread(self, db: Session, chat, thread, client_user, mirror):
        message = chat.send_message(thread.id, client_user.id, text="only one")

        assert chat.delete_message(message.id, client_user.id) is True
        assert db.query(ChatThread).filter_by(id=thread.id).first() is None
        assert mirror.calls[-2:] == [("delete_message", message.id), ("delete_thread", thread.id)]

    def test_deleting_newest_rebuilds_preview(self, chat, thread, client_user, trainer):
        chat.send_message(thread.id, trainer.id, text="earlier")
        newest = chat.send_message(thread.id, client_user.id, text="latest")

        assert chat.delete_message(newest.id, client_user.id) is False
        assert thread.last_message == "earlier"
        assert thread.last_sender_uuid == thread.participant2_uuid

    def test_only_sender_can_delete(self, chat, thread, client_user, trainer):
        message = chat.send_message(thread.id, client_user.id, text="mine")

        with pytest.raises(ForbiddenException):
            chat.delete_message(message.id, trainer.id)


class TestRealtimeMirror:
    def test_mirror_failures_do_not_fail_the_send(self, db: Session, client_user, trainer):
        labels = {"task": "realtime_mirror"}
        before = REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) or 0.0
        chat = ChatService(db, mirror=FailingMirror())
        thread, _ = chat.create_or_get_thread(client_user.id, trainer.id)

        message = chat.send_message(thread.id, client_user.id, text="still delivered")

        assert db.get(Message, message.id) is not None
        # one failure on create, two on send
        assert REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) == before + 3
