import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from analysis.channel_metrics import SUMMARY_HISTORY_LIMIT, build_summary
from analysis.schemas import ChannelSummary
from collection.clients.youtube import ChannelStats, YouTubeClient
from core.models import ChannelSnapshot

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ChannelSnapshotEngine:
    """Append-only channel snapshots and summaries derived from them"""

    def __init__(self, session_factory: sessionmaker, client: Optional[YouTubeClient] = None):
        self.session_factory = session_factory
        self.client = client

    def capture_snapshot(self, channel_id: str, trace_id: Optional[str] = None) -> Optional[ChannelSnapshot]:
        """Fetch fresh stats and append a snapshot; None if the channel does not resolve.

        Every call appends a new point, even when nothing changed.
        """
        channel_id = channel_id.strip()
        stats = self.client.fetch_channel_stats(channel_id)
        if stats is None:
            logger.warning("Channel not found, no snapshot taken", extra={
                "trace_id": trace_id,
                "channel_id": channel_id
            })
            return None
        return self.save_snapshot(stats, trace_id)

    def save_snapshot(self, stats: ChannelStats, trace_id: Optional[str] = None) -> ChannelSnapshot:
        session = self.session_factory()
        try:
            fetched_at = datetime.now(timezone.utc)
            previous = self._latest(session, stats.channel_id)
            if previous is not None and _as_utc(previous.fetched_at) > fetched_at:
                # Clock stepped backwards; keep history ordered
                fetched_at = _as_utc(previous.fetched_at)

            snapshot = ChannelSnapshot(
                channel_id=stats.channel_id,
                fetched_at=fetched_at,
                title=stats.title,
                description=stats.description,
                country=stats.country,
                thumbnails=stats.thumbnails,
                view_count=stats.view_count,
                subscriber_count=stats.subscriber_count,
                video_count=stats.video_count
            )
            session.add(snapshot)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info("Channel snapshot saved", extra={
            "trace_id": trace_id,
            "channel_id": stats.channel_id
        })
        return snapshot

    def latest_snapshot(self, channel_id: str) -> Optional[ChannelSnapshot]:
        with self.session_factory() as session:
            return self._latest(session, channel_id)

    def history(self, channel_id: str, limit: int = 30) -> List[ChannelSnapshot]:
        """Most recent snapshots, newest first"""
        with self.session_factory() as session:
            return list(session.execute(
                select(ChannelSnapshot)
                .where(ChannelSnapshot.channel_id == channel_id)
                .order_by(ChannelSnapshot.fetched_at.desc(), ChannelSnapshot.id.desc())
                .limit(limit)
            ).scalars())

    def list_channel_ids(self) -> List[str]:
        with self.session_factory() as session:
            return list(session.execute(
                select(ChannelSnapshot.channel_id).distinct().order_by(ChannelSnapshot.channel_id)
            ).scalars())

    def summarize(self, channel_id: str, trace_id: Optional[str] = None) -> Optional[ChannelSummary]:
        """Summary over the latest snapshots; captures one first if none exist"""
        channel_id = channel_id.strip()
        latest = self.latest_snapshot(channel_id)
        if latest is None:
            captured = self.capture_snapshot(channel_id, trace_id)
            if captured is None:
                return None
            # Stored under the provider's canonical id
            channel_id = captured.channel_id
            latest = self.latest_snapshot(channel_id)
            if latest is None:
                return None

        history_desc = self.history(channel_id, SUMMARY_HISTORY_LIMIT)
        return build_summary(latest, history_desc)

    def refresh_all(self, trace_id: Optional[str] = None) -> Tuple[int, int]:
        """Re-capture every known channel; returns (captured, failed)"""
        captured = failed = 0
        for channel_id in self.list_channel_ids():
            try:
                if self.capture_snapshot(channel_id, trace_id) is not None:
                    captured += 1
            except Exception as e:
                failed += 1
                logger.error(f"Channel refresh failed: {e}", extra={
                    "trace_id": trace_id,
                    "channel_id": channel_id,
                    "error_type": type(e).__name__
                })

        logger.info("Channel refresh completed", extra={
            "trace_id": trace_id,
            "job": "channel_refresh",
            "committed": captured,
            "failed": failed
        })
        return captured, failed

    def _latest(self, session: Session, channel_id: str) -> Optional[ChannelSnapshot]:
        return session.execute(
            select(ChannelSnapshot)
            .where(ChannelSnapshot.channel_id == channel_id)
            .order_by(ChannelSnapshot.fetched_at.desc(), ChannelSnapshot.id.desc())
            .limit(1)
        ).scalar_one_or_none()
