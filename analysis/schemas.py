"""Read models for channel summaries and post analytics"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SnapshotView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel_id: str
    fetched_at: datetime
    title: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = None
    thumbnails: Optional[Dict[str, Any]] = None
    view_count: int = 0
    subscriber_count: int = 0
    video_count: int = 0


class HistoryPoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    fetched_at: datetime
    subscriber_count: int
    view_count: int
    video_count: int


class EarningsEstimate(BaseModel):
    low: int
    high: int


class ChannelSummary(BaseModel):
    latest: SnapshotView
    subs7: int
    subs30: int
    views30: int
    estimated_monthly_earnings: EarningsEstimate
    grade: str
    history: List[HistoryPoint] = Field(description="Oldest first")


class TopPost(BaseModel):
    post_text: Optional[str] = None
    like_count: int


class UserPostAnalytics(BaseModel):
    user_id: int
    post_count: int = 0
    total_likes: int = 0
    total_retweets: int = 0
    total_replies: int = 0
    total_quotes: int = 0
    top_post: Optional[TopPost] = None
