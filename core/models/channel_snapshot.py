from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, Index
from sqlalchemy.sql import func
from core.db import Base
from core.models.column_types import BigIntPK, JsonDocument

class ChannelSnapshot(Base):
    """YouTube channel stats snapshot table for time-series analysis"""
    __tablename__ = "youtube_channel_snapshots"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    channel_id = Column(String, nullable=False, comment="YouTube channel ID")
    fetched_at = Column(TIMESTAMP(timezone=True), nullable=False,
                        default=func.now(), comment="Snapshot capture time (UTC)")
    title = Column(Text, comment="Channel title")
    description = Column(Text, comment="Channel description")
    country = Column(String(8), comment="Country code, if the channel sets one")
    thumbnails = Column(JsonDocument, comment="Thumbnail map keyed by size")
    view_count = Column(BIGINT, nullable=False, default=0, comment="View count at capture time")
    subscriber_count = Column(BIGINT, nullable=False, default=0,
                              comment="Subscriber count at capture time")
    video_count = Column(BIGINT, nullable=False, default=0, comment="Video count at capture time")

    # Index for efficient time-series queries
    __table_args__ = (
        Index("idx_channel_snapshots_channel_fetched", "channel_id", "fetched_at"),
    )
