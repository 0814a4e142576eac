#!/usr/bin/env python3
import sys
import logging
import argparse
from concurrent.futures import ThreadPoolExecutor, as_completed, wait, TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import List, Optional, Set

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

# Add project root to path
sys.path.insert(0, ".")

from core.db import get_session_factory
from core.models import Identity
from core.logging import setup_json_logging
from collection.buffer import BufferResult, RawBufferStore
from collection.clients.twitter import TwitterClient, TwitterIdentity
from processing.transform import PROVIDER_TWITTER

logger = logging.getLogger(__name__)


class CollectorSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    collect_max_workers: int = 4
    collect_timeout_seconds: float = 300.0
    collect_drain_seconds: float = 30.0


class CollectionReport(BaseModel):
    users: int = 0
    failed_user_ids: List[int] = Field(default_factory=list)
    buffered: BufferResult = Field(default_factory=BufferResult)


class ActivityCollector:
    """Fetch recent activity for every linked Twitter identity and buffer it.

    Fetches run on a bounded thread pool; each user's buffer write is its own
    transaction, issued from the calling thread as fetches complete.
    """

    def __init__(self, session_factory: sessionmaker, client: TwitterClient,
                 max_workers: int = 4, timeout_seconds: float = 300.0):
        self.session_factory = session_factory
        self.client = client
        self.buffer = RawBufferStore(session_factory)
        self.max_workers = max_workers
        self.timeout_seconds = timeout_seconds
        # Fetches still running after the deadline; see drain()
        self.stragglers: Set = set()

    def list_identities(self) -> List[TwitterIdentity]:
        with self.session_factory() as session:
            rows = session.execute(
                select(Identity)
                .where(Identity.provider == PROVIDER_TWITTER)
                .order_by(Identity.user_id)
            ).scalars().all()

            return [
                TwitterIdentity(
                    user_id=row.user_id,
                    provider_id=row.provider_id,
                    access_token=row.access_token
                )
                for row in rows
            ]

    def collect(self, trace_id: Optional[str] = None) -> CollectionReport:
        trace_id = trace_id or f"collect_activity_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        identities = self.list_identities()
        report = CollectionReport(users=len(identities))

        logger.info(f"Found {len(identities)} user(s) with a linked Twitter account", extra={
            "trace_id": trace_id,
            "job": "collector_activity",
            "users": len(identities)
        })

        if not identities:
            return report

        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="collect")
        futures = {pool.submit(self.client.fetch_recent_activity, identity): identity
                   for identity in identities}
        pending = set(futures)
        try:
            for future in as_completed(futures, timeout=self.timeout_seconds):
                pending.discard(future)
                identity = futures[future]
                try:
                    tweets = future.result()
                    report.buffered += self.buffer.append_batch(identity.user_id, tweets, trace_id)
                except Exception as e:
                    report.failed_user_ids.append(identity.user_id)
                    logger.error(f"Collection failed for user: {e}", extra={
                        "trace_id": trace_id,
                        "user_id": identity.user_id,
                        "error_type": type(e).__name__
                    })
        except FuturesTimeoutError:
            for future in pending:
                report.failed_user_ids.append(futures[future].user_id)
            self.stragglers.update(pending)
            logger.error(f"{len(pending)} fetch(es) exceeded the collection deadline", extra={
                "trace_id": trace_id,
                "failed": len(pending)
            })
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        logger.info("Collection completed", extra={
            "trace_id": trace_id,
            "job": "collector_activity",
            "users": report.users,
            "failed": len(report.failed_user_ids),
            "committed": report.buffered.committed,
            "ignored": report.buffered.ignored
        })
        return report

    def drain(self, timeout_seconds: float) -> bool:
        """Wait for fetches abandoned at the deadline; True once none are running.

        Call before closing the shared client so late fetches finish against
        an open connection pool. Their results are discarded.
        """
        if not self.stragglers:
            return True
        done, not_done = wait(self.stragglers, timeout=timeout_seconds)
        self.stragglers = set(not_done)
        if not_done:
            logger.warning(f"{len(not_done)} fetch(es) still running after drain", extra={
                "failed": len(not_done)
            })
        return not not_done


def main():
    parser = argparse.ArgumentParser(description="Fetch and buffer recent Twitter activity for all linked users")
    parser.add_argument("--workers", type=int, help="Max concurrent fetches")

    args = parser.parse_args()

    setup_json_logging()
    settings = CollectorSettings()

    with TwitterClient() as client:
        collector = ActivityCollector(
            get_session_factory(),
            client,
            max_workers=args.workers or settings.collect_max_workers,
            timeout_seconds=settings.collect_timeout_seconds
        )
        collector.collect()
        collector.drain(settings.collect_drain_seconds)


if __name__ == "__main__":
    main()
