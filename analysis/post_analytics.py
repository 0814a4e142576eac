import logging

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from analysis.schemas import TopPost, UserPostAnalytics
from core.models import ProcessedPost

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = ["like_count", "retweet_count", "reply_count", "quote_count"]


def load_user_posts(session: Session, user_id: int) -> pd.DataFrame:
    """Fetch a user's processed posts as a DataFrame"""
    rows = session.execute(
        select(ProcessedPost.source_post_id, ProcessedPost.post_text, *[
            getattr(ProcessedPost, column) for column in COUNTER_COLUMNS
        ]).where(ProcessedPost.user_id == user_id)
    ).fetchall()

    if not rows:
        return pd.DataFrame(columns=["source_post_id", "post_text", *COUNTER_COLUMNS])

    return pd.DataFrame(rows, columns=["source_post_id", "post_text", *COUNTER_COLUMNS])


def summarize_posts(user_id: int, df: pd.DataFrame) -> UserPostAnalytics:
    """Engagement totals and the most-liked post"""
    if df.empty:
        return UserPostAnalytics(user_id=user_id)

    counters = df[COUNTER_COLUMNS].fillna(0).astype("int64")
    totals = counters.sum()
    top = df.loc[counters["like_count"].idxmax()]

    return UserPostAnalytics(
        user_id=user_id,
        post_count=len(df),
        total_likes=int(totals["like_count"]),
        total_retweets=int(totals["retweet_count"]),
        total_replies=int(totals["reply_count"]),
        total_quotes=int(totals["quote_count"]),
        top_post=TopPost(post_text=top["post_text"], like_count=int(top["like_count"]))
    )


def get_user_analytics(session: Session, user_id: int) -> UserPostAnalytics:
    df = load_user_posts(session, user_id)
    logger.info("Loaded posts for analytics", extra={"user_id": user_id, "selected": len(df)})
    return summarize_posts(user_id, df)
