import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import error_response
from app.deps.common import get_db_session, get_trace_id
from analysis.schemas import UserPostAnalytics
from service.analytics_service import get_post_analytics

logger = logging.getLogger(__name__)
router = APIRouter(tags=["analytics"])


@router.get("/analytics/{user_id}", response_model=UserPostAnalytics)
def user_analytics(
    user_id: int,
    session: Session = Depends(get_db_session),
    trace_id: str = Depends(get_trace_id)
) -> UserPostAnalytics:
    """Engagement totals and top post for one user"""
    try:
        return get_post_analytics(user_id, trace_id=trace_id, session=session)
    except Exception as e:
        logger.error("Unexpected error", extra={
            "trace_id": trace_id,
            "error_type": type(e).__name__,
            "error": str(e)
        })
        raise error_response(500, "INTERNAL_ERROR", "An error occurred while fetching analytics.", trace_id)
