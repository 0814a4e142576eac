"""Per-user post analytics"""
import logging
import time

from sqlalchemy.orm import Session

from analysis.post_analytics import get_user_analytics
from analysis.schemas import UserPostAnalytics

logger = logging.getLogger(__name__)


def get_post_analytics(user_id: int, *, trace_id: str, session: Session) -> UserPostAnalytics:
    start_time = time.time()
    analytics = get_user_analytics(session, user_id)

    logger.info("Post analytics computed", extra={
        "trace_id": trace_id,
        "user_id": user_id,
        "selected": analytics.post_count,
        "latency_ms": int((time.time() - start_time) * 1000)
    })
    return analytics
