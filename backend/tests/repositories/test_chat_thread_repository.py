"""ChatThreadRepository: pair lookup, idempotent creation and counters."""

from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy.orm import Session

from app.models.chat_thread import ChatThread, make_pair_key
from app.repositories.factory import RepositoryFactory

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"
CAROL = "33333333-3333-3333-3333-333333333333"


class TestPairKey:
    def test_order_independent(self):
        assert make_pair_key(ALICE, BOB) == make_pair_key(BOB, ALICE)
        assert make_pair_key(BOB, ALICE).startswith(ALICE)


class TestGetOrCreate:
    def test_creates_once_for_either_order(self, db: Session):
        repo = RepositoryFactory.create_chat_thread_repository(db)

        thread, created = repo.get_or_create(ALICE, BOB)
        db.commit()
        again, created_again = repo.get_or_create(BOB, ALICE)

        assert created is True
        assert created_again is False
        assert again.id == thread.id
        assert thread.participant1_uuid == ALICE
        assert thread.unread_count_for_1 == 0 and thread.unread_count_for_2 == 0

    def test_losing_a_creation_race_returns_the_winner(self, db: Session):
        repo = RepositoryFactory.create_chat_thread_repository(db)
        winner, _ = repo.get_or_create(ALICE, BOB)
        db.commit()

        # The first lookup misses as if the other request had not committed yet
        real_find = repo.find_by_pair
        calls = []

        def stale_then_real(uuid_a, uuid_b):
            calls.append((uuid_a, uuid_b))
            return None if len(calls) == 1 else real_find(uuid_a, uuid_b)

        with patch.object(repo, "find_by_pair", side_effect=stale_then_real):
            thread, created = repo.get_or_create(BOB, ALICE)

        assert created is False
        assert thread.id == winner.id
        assert db.query(ChatThread).count() == 1
        assert len(calls) == 2

    def test_list_for_participant_orders_by_activity(self, db: Session):
        repo = RepositoryFactory.create_chat_thread_repository(db)
        quiet, _ = repo.get_or_create(ALICE, BOB)
        busy, _ = repo.get_or_create(ALICE, CAROL)
        repo.record_new_message(
            busy, sender_uuid=CAROL, preview="hi", sent_at=datetime.now(timezone.utc)
        )
        db.commit()

        threads = repo.list_for_participant(ALICE)

        assert [t.id for t in threads] == [busy.id, quiet.id]
        assert [t.id for t in repo.list_for_participant(BOB)] == [quiet.id]


class TestCounters:
    def test_record_new_message_bumps_recipient_only(self, db: Session):
        repo = RepositoryFactory.create_chat_thread_repository(db)
        thread, _ = repo.get_or_create(ALICE, BOB)
        sent_at = datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)

        repo.record_new_message(thread, sender_uuid=ALICE, preview="oi", sent_at=sent_at)
        repo.record_new_message(thread, sender_uuid=ALICE, preview="tudo bem?", sent_at=sent_at)
        repo.record_new_message(thread, sender_uuid=BOB, preview="sim", sent_at=sent_at)
        db.commit()

        assert thread.unread_count_for_2 == 2
        assert thread.unread_count_for_1 == 1
        assert thread.last_message == "sim"
        assert thread.last_sender_uuid == BOB

    def test_reset_unread_only_touches_reader(self, db: Session):
        repo = RepositoryFactory.create_chat_thread_repository(db)
        thread, _ = repo.get_or_create(ALICE, BOB)
        now = datetime.now(timezone.utc)
        repo.record_new_message(thread, sender_uuid=ALICE, preview="a", sent_at=now)
        repo.record_new_message(thread, sender_uuid=BOB, preview="b", sent_at=now)

        repo.reset_unread(thread, BOB)
        db.commit()

        assert thread.unread_count_for_2 == 0
        assert thread.unread_count_for_1 == 1
