#!/usr/bin/env python3
import sys
import logging
import argparse
import threading
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, sessionmaker

# Add project root to path
sys.path.insert(0, ".")

from core.db import dialect_insert, get_session_factory
from core.errors import EtlError
from core.models import ProcessedPost, RawTweet
from core.logging import setup_json_logging
from processing.transform import PROVIDER_TWITTER, transform_raw_tweet

logger = logging.getLogger(__name__)

# Rows per INSERT statement; all chunks share one transaction
INSERT_CHUNK_SIZE = 500

# One ETL run at a time per process
_run_lock = threading.Lock()


class PostsETL:
    """Raw tweets -> processed_posts.

    Selection is an anti-join against already-loaded facts, so a run is safe
    to repeat. All selected rows load in one transaction; any failure rolls
    the whole run back.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def run(self, dry_run: bool = False, trace_id: Optional[str] = None) -> int:
        """Transform and load unprocessed raw tweets; returns newly loaded fact count"""
        trace_id = trace_id or f"etl_posts_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

        with _run_lock:
            session = self.session_factory()
            try:
                raw_tweets = self._select_unprocessed(session)
                if not raw_tweets:
                    logger.info("No new tweets to process", extra={"trace_id": trace_id, "job": "etl_posts"})
                    return 0

                logger.info(f"Found {len(raw_tweets)} new tweets to transform and load", extra={
                    "trace_id": trace_id,
                    "job": "etl_posts",
                    "selected": len(raw_tweets)
                })

                processed_at = datetime.now(timezone.utc)
                rows = [
                    {**transform_raw_tweet(raw).model_dump(), "processed_at": processed_at}
                    for raw in raw_tweets
                ]

                if dry_run:
                    logger.info("Dry run mode - no database changes", extra={
                        "trace_id": trace_id,
                        "selected": len(rows)
                    })
                    session.rollback()
                    return len(rows)

                loaded = self._load(session, rows)
                session.commit()

            except Exception as e:
                session.rollback()
                logger.error(f"ETL run failed, rolled back: {e}", extra={
                    "trace_id": trace_id,
                    "job": "etl_posts",
                    "error_type": type(e).__name__
                })
                raise EtlError(f"ETL run failed: {e}") from e
            finally:
                session.close()

        logger.info("ETL completed", extra={
            "trace_id": trace_id,
            "job": "etl_posts",
            "selected": len(rows),
            "loaded": loaded
        })
        return loaded

    def _select_unprocessed(self, session: Session) -> List[RawTweet]:
        already_loaded = exists().where(
            ProcessedPost.source_provider == PROVIDER_TWITTER,
            ProcessedPost.source_post_id == RawTweet.tweet_id
        )
        return list(session.execute(
            select(RawTweet)
            .where(~already_loaded)
            .order_by(RawTweet.captured_at, RawTweet.tweet_id)
        ).scalars())

    def _load(self, session: Session, rows: List[dict]) -> int:
        loaded = 0
        for start in range(0, len(rows), INSERT_CHUNK_SIZE):
            stmt = dialect_insert(session, ProcessedPost).values(rows[start:start + INSERT_CHUNK_SIZE])
            stmt = stmt.on_conflict_do_nothing(index_elements=["source_provider", "source_post_id"])
            loaded += max(session.execute(stmt).rowcount, 0)
        return loaded


def main():
    parser = argparse.ArgumentParser(description="Transform buffered raw tweets into processed posts")
    parser.add_argument("--dry-run", action="store_true", help="Don't write to database")

    args = parser.parse_args()

    setup_json_logging()

    loaded = PostsETL(get_session_factory()).run(dry_run=args.dry_run)
    print(f"{'Would load' if args.dry_run else 'Loaded'} {loaded} posts")


if __name__ == "__main__":
    main()
