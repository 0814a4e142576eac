"""Raw Twitter payload -> normalized post fact"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import MalformedPayloadError

PROVIDER_TWITTER = "twitter"


def parse_provider_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 timestamp ('...Z' allowed) to aware UTC datetime; None if unparseable"""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class PublicMetrics(BaseModel):
    model_config = ConfigDict(extra="ignore")

    like_count: Optional[int] = 0
    retweet_count: Optional[int] = 0
    reply_count: Optional[int] = 0
    quote_count: Optional[int] = 0


class TweetPayload(BaseModel):
    """The subset of a timeline item the transform reads"""
    model_config = ConfigDict(extra="ignore")

    id: str
    text: str
    created_at: Optional[datetime] = None
    public_metrics: PublicMetrics = Field(default_factory=PublicMetrics)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("public_metrics", mode="before")
    @classmethod
    def _default_metrics(cls, value):
        return {} if value is None else value


class PostFact(BaseModel):
    user_id: int
    source_provider: str
    source_post_id: str
    post_text: str
    post_created_at: Optional[datetime] = None
    like_count: int = 0
    retweet_count: int = 0
    reply_count: int = 0
    quote_count: int = 0


def parse_tweet_payload(payload: Any) -> TweetPayload:
    if not isinstance(payload, dict):
        raise MalformedPayloadError(f"Tweet payload must be an object, got {type(payload).__name__}")
    try:
        return TweetPayload.model_validate(payload)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Malformed tweet payload {payload.get('id', 'unknown')}: {e.error_count()} invalid field(s)"
        ) from e


def transform_raw_tweet(raw) -> PostFact:
    """Map a buffered raw tweet row to a PostFact.

    The owning user comes from the buffer row, never from the payload.
    Missing engagement counters default to zero.
    """
    tweet = parse_tweet_payload(raw.raw_data)
    if tweet.id != raw.tweet_id:
        raise MalformedPayloadError(
            f"Payload id {tweet.id} does not match buffered tweet id {raw.tweet_id}"
        )

    metrics = tweet.public_metrics
    return PostFact(
        user_id=raw.author_user_id,
        source_provider=PROVIDER_TWITTER,
        source_post_id=raw.tweet_id,
        post_text=tweet.text,
        post_created_at=tweet.created_at or parse_provider_timestamp(raw.tweet_created_at),
        like_count=metrics.like_count or 0,
        retweet_count=metrics.retweet_count or 0,
        reply_count=metrics.reply_count or 0,
        quote_count=metrics.quote_count or 0
    )
