from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, ForeignKey, Index
from sqlalchemy.sql import func
from core.db import Base
from core.models.column_types import JsonDocument

class RawTweet(Base):
    """Unprocessed Twitter payload as received from the timeline API"""
    __tablename__ = "raw_tweets"

    tweet_id = Column(String, primary_key=True, comment="Provider-assigned tweet id")
    author_user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False,
                            comment="Owning user, carried from the identity")
    tweet_text = Column(Text, comment="Tweet text at capture time")
    tweet_created_at = Column(TIMESTAMP(timezone=True), comment="Tweet creation time (UTC)")
    captured_at = Column(TIMESTAMP(timezone=True), nullable=False, default=func.now(),
                         comment="Buffer write time (UTC)")
    raw_data = Column(JsonDocument, nullable=False, comment="Provider-native payload")

    __table_args__ = (
        Index("idx_raw_tweets_author", "author_user_id"),
    )
