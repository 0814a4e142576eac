import httpx
import logging
from typing import List, Dict, Any, Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from collection.clients.http import build_retrying

logger = logging.getLogger(__name__)


class TwitterSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    twitter_api_base_url: str = "https://api.twitter.com/2"
    twitter_timeout_seconds: float = 10.0
    twitter_max_results: int = 10
    twitter_max_attempts: int = 2
    twitter_deadline_seconds: float = 20.0


class TwitterIdentity(BaseModel):
    """Credential snapshot handed to the fetch workers"""
    user_id: int
    provider_id: str
    access_token: Optional[str] = None


class TwitterClient:
    def __init__(self, settings: Optional[TwitterSettings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or TwitterSettings()
        self.base_url = self.settings.twitter_api_base_url
        self.client = httpx.Client(
            timeout=self.settings.twitter_timeout_seconds,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            transport=transport
        )
        self._retrying = build_retrying(
            self.settings.twitter_max_attempts,
            self.settings.twitter_deadline_seconds,
            logger
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def fetch_recent_activity(self, identity: TwitterIdentity) -> List[Dict[str, Any]]:
        """Latest tweets from the identity's timeline; empty on any provider failure"""
        if not identity.access_token:
            logger.warning("Identity has no access token, skipping", extra={"user_id": identity.user_id})
            return []

        try:
            data = self._retrying(self._fetch_timeline, identity)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Could not fetch tweets: {e}", extra={
                "user_id": identity.user_id,
                "error_type": type(e).__name__
            })
            return []

        if not isinstance(data, dict):
            logger.error("Unexpected timeline response shape", extra={
                "user_id": identity.user_id,
                "error_type": type(data).__name__
            })
            return []

        tweets = data.get("data") or []
        logger.info(f"Fetched {len(tweets)} tweets", extra={
            "user_id": identity.user_id,
            "fetched": len(tweets)
        })
        return tweets

    def _fetch_timeline(self, identity: TwitterIdentity) -> Dict[str, Any]:
        response = self.client.get(
            f"{self.base_url}/users/{identity.provider_id}/tweets",
            params={
                "max_results": self.settings.twitter_max_results,
                "tweet.fields": "created_at,public_metrics"
            },
            headers={"Authorization": f"Bearer {identity.access_token}"}
        )
        response.raise_for_status()
        return response.json()
