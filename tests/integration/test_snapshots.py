"""Tests for channel snapshot capture, history and summaries"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from analysis import snapshots as snapshots_module
from analysis.snapshots import ChannelSnapshotEngine
from core.errors import ProviderError
from core.models import ChannelSnapshot

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"


def snapshot_count(session_factory, channel_id=CHANNEL_ID):
    with session_factory() as session:
        return session.scalar(
            select(func.count()).select_from(ChannelSnapshot).where(ChannelSnapshot.channel_id == channel_id)
        )


class TestChannelSnapshotEngine:

    @pytest.fixture
    def client(self, fake_youtube, channel_stats):
        return fake_youtube({CHANNEL_ID: channel_stats()})

    @pytest.fixture
    def engine(self, session_factory, client):
        return ChannelSnapshotEngine(session_factory, client)

    def test_capture_always_appends(self, engine, session_factory):
        first = engine.capture_snapshot(CHANNEL_ID)
        second = engine.capture_snapshot(CHANNEL_ID)

        assert first.id != second.id
        assert snapshot_count(session_factory) == 2

    def test_capture_persists_stats(self, engine):
        snapshot = engine.capture_snapshot(CHANNEL_ID)

        stored = engine.latest_snapshot(CHANNEL_ID)
        assert stored.id == snapshot.id
        assert stored.subscriber_count == 1000
        assert stored.view_count == 50000
        assert stored.country == "US"
        assert stored.thumbnails == {"default": {"url": "https://img/x.jpg"}}

    def test_capture_unknown_channel_returns_none(self, engine, session_factory):
        assert engine.capture_snapshot("UCnobodyhomexxxxxxxxxxxx") is None
        assert snapshot_count(session_factory, "UCnobodyhomexxxxxxxxxxxx") == 0

    def test_summarize_bootstraps_with_one_fetch(self, engine, client, session_factory):
        summary = engine.summarize(CHANNEL_ID)

        assert summary is not None
        assert client.fetch_calls == [CHANNEL_ID]
        assert snapshot_count(session_factory) == 1
        assert summary.subs7 == 0
        assert summary.grade == "D"
        assert len(summary.history) == 1

    def test_summarize_does_not_fetch_when_history_exists(self, engine, client):
        engine.capture_snapshot(CHANNEL_ID)
        client.fetch_calls.clear()

        engine.summarize(CHANNEL_ID)

        assert client.fetch_calls == []

    def test_summarize_padded_id_bootstraps(self, engine, client, session_factory):
        summary = engine.summarize(f"  {CHANNEL_ID} ")

        assert summary is not None
        assert summary.latest.channel_id == CHANNEL_ID
        assert client.fetch_calls == [CHANNEL_ID]
        assert snapshot_count(session_factory) == 1

    def test_summarize_follows_canonical_channel_id(self, engine, client, channel_stats):
        client.channels["legacy-alias"] = channel_stats()

        summary = engine.summarize("legacy-alias")

        assert summary.latest.channel_id == CHANNEL_ID
        assert len(summary.history) == 1

    def test_summarize_unresolvable_channel(self, engine):
        assert engine.summarize("UCnobodyhomexxxxxxxxxxxx") is None

    def test_summarize_provider_error_propagates(self, session_factory, fake_youtube):
        engine = ChannelSnapshotEngine(session_factory, fake_youtube(failing={CHANNEL_ID}))

        with pytest.raises(ProviderError):
            engine.summarize(CHANNEL_ID)

    def test_summary_deltas_over_captures(self, engine, client, channel_stats):
        for subs, views in [(1000, 10_000), (1500, 60_000), (2500, 110_000)]:
            client.channels[CHANNEL_ID] = channel_stats(subscribers=subs, views=views)
            engine.capture_snapshot(CHANNEL_ID)

        summary = engine.summarize(CHANNEL_ID)

        assert summary.subs7 == 1500
        assert summary.subs30 == 1500
        assert summary.views30 == 100_000
        assert summary.estimated_monthly_earnings.low == 50
        assert summary.estimated_monthly_earnings.high == 400
        assert summary.grade == "C"
        assert [p.subscriber_count for p in summary.history] == [1000, 1500, 2500]

    def test_history_newest_first_with_limit(self, engine, client, channel_stats):
        for subs in range(1, 6):
            client.channels[CHANNEL_ID] = channel_stats(subscribers=subs)
            engine.capture_snapshot(CHANNEL_ID)

        history = engine.history(CHANNEL_ID, limit=3)

        assert [s.subscriber_count for s in history] == [5, 4, 3]

    def test_summary_history_capped_at_sixty(self, engine):
        for _ in range(65):
            engine.capture_snapshot(CHANNEL_ID)

        assert len(engine.summarize(CHANNEL_ID).history) == 60

    def test_clock_going_backwards_keeps_order(self, engine, monkeypatch):
        first = engine.capture_snapshot(CHANNEL_ID)
        earlier = datetime.now(timezone.utc) - timedelta(hours=1)

        class FrozenDatetime(datetime):
            @classmethod
            def now(cls, tz=None):
                return earlier

        monkeypatch.setattr(snapshots_module, "datetime", FrozenDatetime)
        second = engine.capture_snapshot(CHANNEL_ID)

        assert second.fetched_at.replace(tzinfo=timezone.utc) >= first.fetched_at.replace(tzinfo=timezone.utc)
        assert engine.latest_snapshot(CHANNEL_ID).id == second.id

    def test_list_channel_ids(self, engine, client, channel_stats):
        other = "UCzyxwvutsrqponmlkjihgfe"
        client.channels[other] = channel_stats(channel_id=other)
        engine.capture_snapshot(CHANNEL_ID)
        engine.capture_snapshot(other)
        engine.capture_snapshot(CHANNEL_ID)

        assert engine.list_channel_ids() == sorted([CHANNEL_ID, other])

    def test_refresh_all_isolates_failures(self, session_factory, fake_youtube, channel_stats):
        broken = "UCbrokenbrokenbrokenbrok"
        client = fake_youtube({CHANNEL_ID: channel_stats(), broken: channel_stats(channel_id=broken)})
        engine = ChannelSnapshotEngine(session_factory, client)
        engine.capture_snapshot(broken)
        engine.capture_snapshot(CHANNEL_ID)
        client.failing.add(broken)

        captured, failed = engine.refresh_all()

        assert (captured, failed) == (1, 1)
        assert snapshot_count(session_factory) == 2
        assert snapshot_count(session_factory, broken) == 1
