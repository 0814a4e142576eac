from sqlalchemy import Column, String, Text, BIGINT, Integer, TIMESTAMP, ForeignKey, Index
from sqlalchemy.sql import func
from core.db import Base
from core.models.column_types import BigIntPK

class ProcessedPost(Base):
    """Normalized social post; one row per (provider, post id)"""
    __tablename__ = "processed_posts"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BIGINT, ForeignKey("users.id"), nullable=False, comment="Owning user")
    source_provider = Column(String(32), nullable=False, comment="Provider name")
    source_post_id = Column(String, nullable=False, comment="Provider-native post id")
    post_text = Column(Text, comment="Post text")
    post_created_at = Column(TIMESTAMP(timezone=True), comment="Post creation time (UTC)")
    like_count = Column(Integer, nullable=False, default=0)
    retweet_count = Column(Integer, nullable=False, default=0)
    reply_count = Column(Integer, nullable=False, default=0)
    quote_count = Column(Integer, nullable=False, default=0)
    processed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("idx_processed_posts_natural_key", "source_provider", "source_post_id", unique=True),
        Index("idx_processed_posts_user", "user_id"),
    )
