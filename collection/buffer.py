"""Append-only raw payload buffer with idempotent writes"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.db import dialect_insert
from core.errors import MalformedPayloadError, StorageError
from core.models import RawTweet
from processing.transform import parse_provider_timestamp

logger = logging.getLogger(__name__)


class BufferResult(BaseModel):
    committed: int = 0
    ignored: int = 0

    def __add__(self, other: "BufferResult") -> "BufferResult":
        return BufferResult(
            committed=self.committed + other.committed,
            ignored=self.ignored + other.ignored
        )


class RawBufferStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def append(self, user_id: int, payload: Dict[str, Any]) -> BufferResult:
        return self.append_batch(user_id, [payload])

    def append_batch(self, user_id: int, payloads: List[Dict[str, Any]],
                     trace_id: Optional[str] = None) -> BufferResult:
        """Insert one user's payloads in a single transaction.

        Already-buffered tweet ids are ignored. Any other failure rolls back
        the whole batch and raises StorageError.
        """
        if not payloads:
            return BufferResult()

        captured_at = datetime.now(timezone.utc)
        rows = [self._to_row(user_id, payload, captured_at) for payload in payloads]

        session = self.session_factory()
        try:
            stmt = dialect_insert(session, RawTweet).values(rows)
            stmt = stmt.on_conflict_do_nothing(index_elements=["tweet_id"])
            committed = max(session.execute(stmt).rowcount, 0)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to buffer raw tweets: {e}", extra={
                "trace_id": trace_id,
                "user_id": user_id
            })
            raise StorageError(f"Buffer write failed for user {user_id}: {e}") from e
        finally:
            session.close()

        buffered = BufferResult(committed=committed, ignored=len(rows) - committed)
        logger.info("Buffered raw tweets", extra={
            "trace_id": trace_id,
            "user_id": user_id,
            "committed": buffered.committed,
            "ignored": buffered.ignored
        })
        return buffered

    def count(self) -> int:
        with self.session_factory() as session:
            return session.scalar(select(func.count()).select_from(RawTweet))

    def _to_row(self, user_id: int, payload: Dict[str, Any], captured_at: datetime) -> Dict[str, Any]:
        if not isinstance(payload, dict) or payload.get("id") in (None, ""):
            raise MalformedPayloadError("Raw tweet payload has no id")

        return {
            "tweet_id": str(payload["id"]),
            "author_user_id": user_id,
            "tweet_text": payload.get("text"),
            "tweet_created_at": parse_provider_timestamp(payload.get("created_at")),
            "captured_at": captured_at,
            "raw_data": payload
        }
