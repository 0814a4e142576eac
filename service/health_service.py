"""Health service for basic health checks"""
import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.orm import Session

from service.dto import HealthResponseDTO

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def get_health(session: Session) -> HealthResponseDTO:
    """
    Get health status including a database ping.

    Returns:
        HealthResponseDTO: Health check result
    """
    try:
        session.execute(text("SELECT 1"))
        database_ok = True
    except Exception as e:
        logger.error("Database ping failed", extra={"error": str(e)})
        database_ok = False

    return HealthResponseDTO(
        ok=database_ok,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
        database=database_ok
    )
