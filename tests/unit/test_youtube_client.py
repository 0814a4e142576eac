"""Unit tests for YouTube channel lookup and free-text resolution"""
import httpx
import pytest

from collection.clients.youtube import YouTubeClient, YouTubeSettings
from core.errors import ConfigurationError, ProviderError

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"


def channel_item(channel_id=CHANNEL_ID, subscribers="1500", views="250000", videos="42"):
    return {
        "id": channel_id,
        "snippet": {
            "title": "Creator",
            "description": "About the creator",
            "country": "KR",
            "thumbnails": {"default": {"url": "https://yt3/x.jpg"}},
        },
        "statistics": {
            "viewCount": views,
            "subscriberCount": subscribers,
            "videoCount": videos,
        },
    }


class RecordingYouTube:
    """MockTransport handler that records calls and answers from a route function"""

    def __init__(self, route):
        self.route = route
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        params = dict(request.url.params)
        self.calls.append((endpoint, params))
        return self.route(endpoint, params)

    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]


def make_client(route, **overrides):
    handler = RecordingYouTube(route)
    settings = YouTubeSettings(
        youtube_api_key="test-key",
        youtube_max_attempts=overrides.pop("max_attempts", 1),
        **overrides
    )
    return YouTubeClient(settings=settings, transport=httpx.MockTransport(handler)), handler


def empty(endpoint, params):
    return httpx.Response(200, json={"items": []})


class TestFetchChannelStats:

    def test_maps_channel_item(self):
        client, handler = make_client(lambda e, p: httpx.Response(200, json={"items": [channel_item()]}))

        stats = client.fetch_channel_stats(f"  {CHANNEL_ID} ")

        assert stats.channel_id == CHANNEL_ID
        assert stats.title == "Creator"
        assert stats.country == "KR"
        assert stats.subscriber_count == 1500
        assert stats.view_count == 250000
        assert stats.video_count == 42
        assert stats.thumbnails["default"]["url"] == "https://yt3/x.jpg"
        assert handler.calls[0][1]["id"] == CHANNEL_ID
        assert handler.calls[0][1]["part"] == "snippet,statistics"
        assert handler.calls[0][1]["key"] == "test-key"

    def test_missing_statistics_default_to_zero(self):
        item = {"id": CHANNEL_ID, "snippet": {"title": "Bare"}}
        client, _ = make_client(lambda e, p: httpx.Response(200, json={"items": [item]}))

        stats = client.fetch_channel_stats(CHANNEL_ID)

        assert (stats.view_count, stats.subscriber_count, stats.video_count) == (0, 0, 0)
        assert stats.country is None
        assert stats.thumbnails == {}

    def test_unknown_channel_returns_none(self):
        client, _ = make_client(empty)

        assert client.fetch_channel_stats(CHANNEL_ID) is None

    def test_http_error_is_propagated_as_provider_error(self):
        client, handler = make_client(lambda e, p: httpx.Response(403, json={"error": "quota"}))

        with pytest.raises(ProviderError):
            client.fetch_channel_stats(CHANNEL_ID)
        assert len(handler.calls) == 1

    def test_server_error_retried_then_succeeds(self):
        responses = [httpx.Response(503), httpx.Response(200, json={"items": [channel_item()]})]
        client, handler = make_client(lambda e, p: responses.pop(0), max_attempts=2)

        stats = client.fetch_channel_stats(CHANNEL_ID)

        assert stats.channel_id == CHANNEL_ID
        assert len(handler.calls) == 2

    def test_missing_api_key_fails_fast(self):
        with pytest.raises(ConfigurationError) as exc_info:
            YouTubeClient(settings=YouTubeSettings(youtube_api_key=""))

        assert "YOUTUBE_API_KEY" in exc_info.value.message


class TestSearchChannel:

    def test_channel_id_is_looked_up_directly(self):
        client, handler = make_client(lambda e, p: httpx.Response(200, json={"items": [channel_item()]}))

        stats = client.search_channel(CHANNEL_ID)

        assert stats.channel_id == CHANNEL_ID
        assert handler.endpoints() == ["channels"]

    def test_handle_is_stripped_and_searched(self):
        def route(endpoint, params):
            if endpoint == "search":
                return httpx.Response(200, json={"items": [{"id": {"channelId": CHANNEL_ID}}]})
            return httpx.Response(200, json={"items": [channel_item()]})

        client, handler = make_client(route)

        stats = client.search_channel("@creator")

        assert stats.channel_id == CHANNEL_ID
        assert handler.calls[0] == ("search", {
            "part": "snippet", "q": "creator", "type": "channel", "maxResults": "1", "key": "test-key"
        })
        assert handler.calls[1][1]["id"] == CHANNEL_ID

    def test_falls_back_to_legacy_username(self):
        def route(endpoint, params):
            if "forUsername" in params:
                return httpx.Response(200, json={"items": [channel_item()]})
            return httpx.Response(200, json={"items": []})

        client, handler = make_client(route)

        stats = client.search_channel("oldname")

        assert stats.channel_id == CHANNEL_ID
        assert handler.endpoints() == ["search", "channels"]
        assert handler.calls[1][1]["forUsername"] == "oldname"

    def test_search_error_falls_through_to_username(self):
        def route(endpoint, params):
            if endpoint == "search":
                return httpx.Response(500)
            return httpx.Response(200, json={"items": [channel_item()]})

        client, _ = make_client(route)

        assert client.search_channel("oldname").channel_id == CHANNEL_ID

    def test_url_with_handle_gets_one_more_pass(self):
        def route(endpoint, params):
            if endpoint == "search" and params["q"] == "creator":
                return httpx.Response(200, json={"items": [{"id": {"channelId": CHANNEL_ID}}]})
            if endpoint == "channels" and params.get("id") == CHANNEL_ID:
                return httpx.Response(200, json={"items": [channel_item()]})
            return httpx.Response(200, json={"items": []})

        client, handler = make_client(route)

        stats = client.search_channel("https://www.youtube.com/@creator")

        assert stats.channel_id == CHANNEL_ID
        search_queries = [p["q"] for e, p in handler.calls if e == "search"]
        assert search_queries == ["https://www.youtube.com/@creator", "creator"]

    def test_url_with_channel_id_is_looked_up_directly(self):
        def route(endpoint, params):
            if params.get("id") == CHANNEL_ID:
                return httpx.Response(200, json={"items": [channel_item()]})
            return httpx.Response(200, json={"items": []})

        client, handler = make_client(route)

        stats = client.search_channel(f"https://youtube.com/channel/{CHANNEL_ID}")

        assert stats.channel_id == CHANNEL_ID
        assert handler.calls[-1][1]["id"] == CHANNEL_ID

    def test_unresolvable_url_stops_after_second_pass(self):
        client, handler = make_client(empty)

        assert client.search_channel("https://youtube.com/@nobody") is None
        assert handler.endpoints().count("search") == 2
        assert handler.endpoints().count("channels") == 2

    def test_unresolvable_name_returns_none(self):
        client, handler = make_client(empty)

        assert client.search_channel("no such channel") is None
        assert len(handler.calls) == 2
