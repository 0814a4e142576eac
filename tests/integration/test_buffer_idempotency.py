"""Tests for raw buffer idempotency and per-batch atomicity"""
import pytest
from sqlalchemy import select

from collection.buffer import BufferResult, RawBufferStore
from core.errors import MalformedPayloadError, StorageError
from core.models import RawTweet


class TestRawBufferStore:

    @pytest.fixture
    def buffer(self, session_factory):
        return RawBufferStore(session_factory)

    def test_duplicate_id_is_ignored(self, buffer, make_user, tweet):
        user_id = make_user()

        first = buffer.append(user_id, tweet("100"))
        second = buffer.append(user_id, tweet("100", text="edited"))

        assert first == BufferResult(committed=1, ignored=0)
        assert second == BufferResult(committed=0, ignored=1)
        assert buffer.count() == 1

    def test_first_write_wins(self, buffer, session_factory, make_user, tweet):
        user_id = make_user()
        buffer.append(user_id, tweet("100", text="original"))
        buffer.append(user_id, tweet("100", text="edited"))

        with session_factory() as session:
            row = session.get(RawTweet, "100")

        assert row.tweet_text == "original"
        assert row.raw_data["text"] == "original"

    def test_batch_counts_new_and_duplicate(self, buffer, make_user, tweet):
        user_id = make_user()
        buffer.append_batch(user_id, [tweet("1"), tweet("2")])

        result = buffer.append_batch(user_id, [tweet("2"), tweet("3"), tweet("4")])

        assert result == BufferResult(committed=2, ignored=1)
        assert buffer.count() == 4

    def test_row_carries_owner_and_timestamps(self, buffer, session_factory, make_user, tweet):
        user_id = make_user()
        buffer.append(user_id, tweet("55", created_at="2025-02-03T04:05:06.000Z"))

        with session_factory() as session:
            row = session.get(RawTweet, "55")

        assert row.author_user_id == user_id
        assert row.tweet_created_at.year == 2025 and row.tweet_created_at.month == 2
        assert row.captured_at is not None

    def test_empty_batch_is_noop(self, buffer, make_user):
        assert buffer.append_batch(make_user(), []) == BufferResult()
        assert buffer.count() == 0

    def test_payload_without_id_rejects_whole_batch(self, buffer, make_user, tweet):
        user_id = make_user()

        with pytest.raises(MalformedPayloadError):
            buffer.append_batch(user_id, [tweet("1"), {"text": "no id"}])

        assert buffer.count() == 0

    def test_storage_failure_rolls_back_batch(self, buffer, make_user, tweet):
        user_id = make_user()
        buffer.append(user_id, tweet("1"))

        # Unserializable payload makes the INSERT itself fail
        bad = tweet("3")
        bad["blob"] = object()

        with pytest.raises(StorageError):
            buffer.append_batch(user_id, [tweet("2"), bad])

        assert buffer.count() == 1

    def test_other_users_batches_unaffected(self, buffer, session_factory, make_user, tweet):
        alice, bob = make_user("alice"), make_user("bob")
        buffer.append_batch(alice, [tweet("a1"), tweet("a2")])

        bad = tweet("b2")
        bad["blob"] = object()
        with pytest.raises(StorageError):
            buffer.append_batch(bob, [tweet("b1"), bad])

        with session_factory() as session:
            owners = session.execute(select(RawTweet.author_user_id)).scalars().all()

        assert owners == [alice, alice]
