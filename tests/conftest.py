"""Common test fixtures for all test modules"""
import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import core.models  # noqa: F401
from core.db import Base, build_engine, build_session_factory
from core.models import Identity, User
from collection.clients.youtube import ChannelStats


@pytest.fixture
def session_factory(tmp_path):
    """Session factory over a throwaway SQLite file with all tables created"""
    engine = build_engine(f"sqlite:///{tmp_path / 'pipeline.db'}")
    Base.metadata.create_all(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def make_user(session_factory):
    """Create a user, optionally with a linked Twitter identity; returns the user id"""
    def _make(name="user", twitter_id=None, access_token="token"):
        with session_factory() as session:
            user = User(display_name=name)
            session.add(user)
            session.flush()
            if twitter_id is not None:
                session.add(Identity(
                    user_id=user.id,
                    provider="twitter",
                    provider_id=twitter_id,
                    access_token=access_token
                ))
            session.commit()
            return user.id
    return _make


def tweet_payload(tweet_id, text=None, likes=0, retweets=0, replies=0, quotes=0,
                  created_at="2025-01-01T10:00:00.000Z"):
    """Timeline item shaped like the Twitter v2 API response"""
    return {
        "id": tweet_id,
        "text": text if text is not None else f"tweet {tweet_id}",
        "created_at": created_at,
        "public_metrics": {
            "like_count": likes,
            "retweet_count": retweets,
            "reply_count": replies,
            "quote_count": quotes,
        },
    }


@pytest.fixture
def tweet():
    return tweet_payload


def snapshot_rows(subscribers, views=None):
    """Newest-first snapshot stand-ins with the attributes the metrics read"""
    views = views or [0] * len(subscribers)
    return [
        SimpleNamespace(
            id=len(subscribers) - i,
            channel_id="UC_test",
            fetched_at=datetime(2025, 3, 1, tzinfo=timezone.utc) - timedelta(days=i),
            title="Test channel",
            description=None,
            country=None,
            thumbnails={},
            subscriber_count=subs,
            view_count=view,
            video_count=10,
        )
        for i, (subs, view) in enumerate(zip(subscribers, views))
    ]


class FakeYouTubeClient:
    """In-memory stand-in for YouTubeClient"""

    def __init__(self, channels=None, failing=()):
        self.channels = dict(channels or {})
        self.failing = set(failing)
        self.fetch_calls = []
        self.search_calls = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None

    def fetch_channel_stats(self, channel_id):
        from core.errors import ProviderError
        self.fetch_calls.append(channel_id)
        if channel_id in self.failing:
            raise ProviderError(f"boom for {channel_id}")
        return self.channels.get(channel_id)

    def search_channel(self, query):
        self.search_calls.append(query)
        for stats in self.channels.values():
            if stats.title == query:
                return stats
        return None


@pytest.fixture
def channel_stats():
    def _make(channel_id="UCabcdefghijklmnopqrstuv", subscribers=1000, views=50000, title="Test channel"):
        return ChannelStats(
            channel_id=channel_id,
            title=title,
            description="desc",
            country="US",
            thumbnails={"default": {"url": "https://img/x.jpg"}},
            view_count=views,
            subscriber_count=subscribers,
            video_count=12
        )
    return _make


@pytest.fixture
def snapshot_history():
    return snapshot_rows


@pytest.fixture
def fake_youtube():
    return FakeYouTubeClient
