# APScheduler orchestrator
from __future__ import annotations
import logging
import sys
from datetime import datetime, timezone

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, ".")

from analysis.snapshots import ChannelSnapshotEngine
from collection.clients.twitter import TwitterClient
from collection.clients.youtube import YouTubeClient, YouTubeSettings
from core.errors import ConfigurationError
from core.db import get_session_factory
from core.logging import setup_json_logging
from jobs.pipeline import PipelineCycle

log = logging.getLogger("runner")

PIPELINE_JOB_ID = "activity_pipeline"
CHANNEL_REFRESH_JOB_ID = "channel_refresh"


class SchedulerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    pipeline_interval_minutes: int = 15
    channel_refresh_enabled: bool = True
    channel_refresh_minutes: int = 60
    collect_max_workers: int = 4
    collect_timeout_seconds: float = 300.0
    collect_drain_seconds: float = 30.0


def safe(fn):
    def _wrap():
        try:
            fn()
        except Exception:
            log.exception("Job failed: %s", getattr(fn, "__name__", "unknown"))
    _wrap.__name__ = getattr(fn, "__name__", "job")
    return _wrap


def make_pipeline_job(session_factory: sessionmaker, settings: SchedulerSettings):
    def run_pipeline():
        with TwitterClient() as client:
            cycle = PipelineCycle(
                session_factory,
                client,
                max_workers=settings.collect_max_workers,
                timeout_seconds=settings.collect_timeout_seconds
            )
            cycle.run()
            cycle.collector.drain(settings.collect_drain_seconds)
    return run_pipeline


def make_channel_refresh_job(session_factory: sessionmaker):
    def refresh_channels():
        trace_id = f"channel_refresh_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        with YouTubeClient() as client:
            ChannelSnapshotEngine(session_factory, client).refresh_all(trace_id)
    return refresh_channels


def check_configuration(settings: SchedulerSettings) -> None:
    """Fail at startup rather than on every scheduled fire"""
    if settings.channel_refresh_enabled and not YouTubeSettings().youtube_api_key:
        raise ConfigurationError(
            "Missing YOUTUBE_API_KEY (set CHANNEL_REFRESH_ENABLED=false to run without channel refresh)"
        )


def register_jobs(sched: BaseScheduler, session_factory: sessionmaker, settings: SchedulerSettings) -> BaseScheduler:
    """Register pipeline jobs.

    Overlap policy is skip-tick: max_instances=1 drops a fire while the
    previous run is still going, coalesce=True folds missed fires into one.
    """
    sched.add_job(
        safe(make_pipeline_job(session_factory, settings)),
        IntervalTrigger(minutes=settings.pipeline_interval_minutes),
        id=PIPELINE_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
        next_run_time=datetime.now(timezone.utc)
    )
    if settings.channel_refresh_enabled:
        sched.add_job(
            safe(make_channel_refresh_job(session_factory)),
            IntervalTrigger(minutes=settings.channel_refresh_minutes),
            id=CHANNEL_REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
    return sched


if __name__ == "__main__":
    setup_json_logging()
    settings = SchedulerSettings()
    check_configuration(settings)
    sched = register_jobs(BlockingScheduler(timezone="UTC"), get_session_factory(), settings)
    log.info("Scheduler starting (UTC), pipeline every %s min", settings.pipeline_interval_minutes)
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler stopped.")
