"""Common dependencies for FastAPI dependency injection"""
import uuid
from datetime import datetime, timezone
from typing import Callable, Generator

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from core.db import get_session_factory
from collection.clients.youtube import YouTubeClient


def get_sessionmaker() -> sessionmaker:
    """
    Session factory dependency; overridden in tests.

    Returns:
        sessionmaker: Factory bound to the configured database
    """
    return get_session_factory()


def get_db_session(factory: sessionmaker = Depends(get_sessionmaker)) -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session
    """
    session = factory()
    try:
        yield session
    finally:
        session.close()


def get_trace_id() -> str:
    """
    Generate unique trace ID for request tracking.

    Returns:
        str: Unique trace ID
    """
    return f"api_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


def get_youtube_client_factory() -> Callable[[], YouTubeClient]:
    """
    YouTube client factory. Construction is deferred to the route so a
    missing API key surfaces as a handled configuration error.

    Returns:
        Callable: Zero-argument client constructor
    """
    return YouTubeClient
