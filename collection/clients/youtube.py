import re
import httpx
import logging
from typing import Dict, Any, Optional, Callable, List
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from collection.clients.http import build_retrying
from core.errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)

CHANNEL_ID_PATTERN = re.compile(r"^UC[0-9A-Za-z_-]{20,}$")
CHANNEL_URL_PATTERN = re.compile(r"youtube\.com/(?:channel/|@)([A-Za-z0-9_-]+)", re.IGNORECASE)

# A URL-derived handle gets exactly one extra pass through the chain
MAX_RESOLUTION_PASSES = 2


class YouTubeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    youtube_api_key: str = ""
    youtube_base_url: str = "https://www.googleapis.com/youtube/v3"
    youtube_timeout_seconds: float = 10.0
    youtube_max_attempts: int = 3
    youtube_deadline_seconds: float = 30.0


class ChannelStats(BaseModel):
    channel_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    country: Optional[str] = None
    thumbnails: Dict[str, Any] = Field(default_factory=dict)
    view_count: int = 0
    subscriber_count: int = 0
    video_count: int = 0


class YouTubeClient:
    def __init__(self, settings: Optional[YouTubeSettings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or YouTubeSettings()
        if not self.settings.youtube_api_key:
            raise ConfigurationError("Missing YOUTUBE_API_KEY")

        self.base_url = self.settings.youtube_base_url
        self.client = httpx.Client(
            timeout=self.settings.youtube_timeout_seconds,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
            transport=transport
        )
        self._retrying = build_retrying(
            self.settings.youtube_max_attempts,
            self.settings.youtube_deadline_seconds,
            logger
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def close(self) -> None:
        self.client.close()

    def fetch_channel_stats(self, channel_id: str) -> Optional[ChannelStats]:
        """Fetch stats for a known channel ID; None when YouTube has no such channel"""
        channel_id = channel_id.strip()
        try:
            data = self._make_request("channels", {
                "part": "snippet,statistics",
                "id": channel_id
            })
        except httpx.HTTPError as e:
            logger.error(f"channels.list failed for {channel_id}: {e}", extra={"channel_id": channel_id})
            raise ProviderError(f"YouTube channels.list failed for {channel_id}: {e}") from e

        items = data.get("items") or []
        if not items:
            logger.warning("channels.list returned 0 items", extra={"channel_id": channel_id})
            return None

        return self._parse_channel(items[0])

    def search_channel(self, query: str) -> Optional[ChannelStats]:
        """Resolve free text (id, @handle, name or channel URL) to a channel"""
        pending = query.strip()

        for _ in range(MAX_RESOLUTION_PASSES):
            if CHANNEL_ID_PATTERN.match(pending):
                return self.fetch_channel_stats(pending)

            handle = re.sub(r"^@", "", pending)
            for strategy in self._name_strategies():
                stats = strategy(handle)
                if stats is not None:
                    return stats

            url_match = CHANNEL_URL_PATTERN.search(pending)
            if not url_match:
                return None

            token = url_match.group(1)
            if token.startswith("UC") and len(token) > 20:
                return self.fetch_channel_stats(token)
            pending = f"@{token}"

        return None

    def _name_strategies(self) -> List[Callable[[str], Optional[ChannelStats]]]:
        return [self._resolve_by_search, self._resolve_by_username]

    def _resolve_by_search(self, handle: str) -> Optional[ChannelStats]:
        """search.list for the best matching channel, then look it up"""
        try:
            data = self._make_request("search", {
                "part": "snippet",
                "q": handle,
                "type": "channel",
                "maxResults": 1
            })
            items = data.get("items") or []
            if not items:
                return None
            channel_id = (items[0].get("id") or {}).get("channelId")
            if not channel_id:
                return None
            return self.fetch_channel_stats(channel_id)
        except (httpx.HTTPError, ProviderError) as e:
            logger.error(f"search.list error for '{handle}': {e}")
            return None

    def _resolve_by_username(self, handle: str) -> Optional[ChannelStats]:
        """Legacy forUsername lookup for older channels"""
        try:
            data = self._make_request("channels", {
                "part": "snippet,statistics",
                "forUsername": handle
            })
        except httpx.HTTPError as e:
            logger.error(f"channels.list(forUsername) error for '{handle}': {e}")
            return None

        items = data.get("items") or []
        if not items:
            return None
        return self._parse_channel(items[0])

    def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET with retry on 429/5xx/transport errors, bounded by attempts and deadline"""
        return self._retrying(self._request_once, endpoint, params)

    def _request_once(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {
            **params,
            "key": self.settings.youtube_api_key
        }

        try:
            response = self.client.get(f"{self.base_url}/{endpoint}", params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP error {e.response.status_code} from YouTube {endpoint}")
            raise
        except httpx.RequestError as e:
            logger.warning(f"Request error from YouTube {endpoint}: {e}")
            raise

    def _parse_channel(self, item: Dict[str, Any]) -> ChannelStats:
        """Map a channels.list item to ChannelStats"""
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}

        return ChannelStats(
            channel_id=item["id"],
            title=snippet.get("title"),
            description=snippet.get("description"),
            country=snippet.get("country") or None,
            thumbnails=snippet.get("thumbnails") or {},
            view_count=int(statistics.get("viewCount", 0) or 0),
            subscriber_count=int(statistics.get("subscriberCount", 0) or 0),
            video_count=int(statistics.get("videoCount", 0) or 0)
        )
