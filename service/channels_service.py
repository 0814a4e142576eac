"""Channel snapshot, summary and search orchestration"""
import logging
from typing import Optional

from analysis.schemas import ChannelSummary, SnapshotView
from analysis.snapshots import ChannelSnapshotEngine
from collection.clients.youtube import ChannelStats, YouTubeClient
from service.dto import SnapshotHistoryDTO

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 60


def get_channel_summary(channel_id: str, *, trace_id: str,
                        engine: ChannelSnapshotEngine) -> Optional[ChannelSummary]:
    """
    Summarize a channel, capturing a first snapshot if none exists.

    Raises:
        ProviderError: YouTube lookup failed during the bootstrap capture
    """
    summary = engine.summarize(channel_id, trace_id)
    logger.info("Channel summary requested", extra={
        "trace_id": trace_id,
        "channel_id": channel_id,
        "selected": len(summary.history) if summary else 0
    })
    return summary


def capture_channel_snapshot(channel_id: str, *, trace_id: str,
                             engine: ChannelSnapshotEngine) -> Optional[SnapshotView]:
    snapshot = engine.capture_snapshot(channel_id, trace_id)
    if snapshot is None:
        return None
    return SnapshotView.model_validate(snapshot)


def get_channel_history(channel_id: str, limit: int, *, trace_id: str,
                        engine: ChannelSnapshotEngine) -> SnapshotHistoryDTO:
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))
    snapshots = engine.history(channel_id, limit)
    logger.info("Channel history requested", extra={
        "trace_id": trace_id,
        "channel_id": channel_id,
        "selected": len(snapshots)
    })
    return SnapshotHistoryDTO(
        channel_id=channel_id,
        snapshots=[SnapshotView.model_validate(s) for s in snapshots]
    )


def search_channel(query: str, *, trace_id: str, client: YouTubeClient) -> Optional[ChannelStats]:
    stats = client.search_channel(query)
    logger.info("Channel search", extra={
        "trace_id": trace_id,
        "channel_id": stats.channel_id if stats else None
    })
    return stats
