import logging
from typing import Callable

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import sessionmaker

from app.api.errors import not_found, pipeline_error_response
from app.deps.common import get_sessionmaker, get_trace_id, get_youtube_client_factory
from analysis.schemas import ChannelSummary, SnapshotView
from analysis.snapshots import ChannelSnapshotEngine
from collection.clients.youtube import ChannelStats, YouTubeClient
from core.errors import PipelineError
from service import channels_service
from service.dto import SnapshotHistoryDTO

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/youtube", tags=["youtube"])


@router.get("/search", response_model=ChannelStats)
def search_channel(
    q: str = Query(..., min_length=1),
    trace_id: str = Depends(get_trace_id),
    client_factory: Callable[[], YouTubeClient] = Depends(get_youtube_client_factory)
) -> ChannelStats:
    """Resolve a channel id, @handle, name or URL"""
    try:
        with client_factory() as client:
            stats = channels_service.search_channel(q, trace_id=trace_id, client=client)
    except PipelineError as e:
        logger.warning("Channel search failed", extra={"trace_id": trace_id, "error": e.message})
        raise pipeline_error_response(e, trace_id)

    if stats is None:
        raise not_found("Channel", trace_id)
    return stats


@router.get("/channels/{channel_id}/summary", response_model=ChannelSummary)
def channel_summary(
    channel_id: str,
    trace_id: str = Depends(get_trace_id),
    session_factory: sessionmaker = Depends(get_sessionmaker),
    client_factory: Callable[[], YouTubeClient] = Depends(get_youtube_client_factory)
) -> ChannelSummary:
    try:
        with client_factory() as client:
            engine = ChannelSnapshotEngine(session_factory, client)
            summary = channels_service.get_channel_summary(channel_id, trace_id=trace_id, engine=engine)
    except PipelineError as e:
        logger.warning("Channel summary failed", extra={
            "trace_id": trace_id,
            "channel_id": channel_id,
            "error": e.message
        })
        raise pipeline_error_response(e, trace_id)

    if summary is None:
        raise not_found("Channel", trace_id)
    return summary


@router.post("/channels/{channel_id}/snapshots", response_model=SnapshotView, status_code=201)
def capture_snapshot(
    channel_id: str,
    trace_id: str = Depends(get_trace_id),
    session_factory: sessionmaker = Depends(get_sessionmaker),
    client_factory: Callable[[], YouTubeClient] = Depends(get_youtube_client_factory)
) -> SnapshotView:
    try:
        with client_factory() as client:
            engine = ChannelSnapshotEngine(session_factory, client)
            snapshot = channels_service.capture_channel_snapshot(channel_id, trace_id=trace_id, engine=engine)
    except PipelineError as e:
        logger.warning("Snapshot capture failed", extra={
            "trace_id": trace_id,
            "channel_id": channel_id,
            "error": e.message
        })
        raise pipeline_error_response(e, trace_id)

    if snapshot is None:
        raise not_found("Channel", trace_id)
    return snapshot


@router.get("/channels/{channel_id}/history", response_model=SnapshotHistoryDTO)
def channel_history(
    channel_id: str,
    limit: int = Query(30, ge=1, le=channels_service.MAX_HISTORY_LIMIT),
    trace_id: str = Depends(get_trace_id),
    session_factory: sessionmaker = Depends(get_sessionmaker)
) -> SnapshotHistoryDTO:
    """Stored snapshots, newest first; never calls YouTube"""
    engine = ChannelSnapshotEngine(session_factory, client=None)
    return channels_service.get_channel_history(channel_id, limit, trace_id=trace_id, engine=engine)
