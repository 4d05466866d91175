"""
Pytest configuration and fixtures
"""

import pytest
import httpx
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from ingestion.base import MetadataSource
from ingestion.extractors.youtube_client import YouTubeMetadataClient
from ingestion.observer import SyncObserver
from ingestion.retry import RetryConfig, RetryExecutor
from schemas.snapshot import RawItem

TEST_BASE_URL = "https://youtube.test/youtube/v3"
TEST_API_KEY = "test-api-key"
RUN_DATE = date(2024, 1, 15)


class RecordingObserver(SyncObserver):
    """Keeps every emitted event for assertions"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def emit(self, severity, message, labels=None):
        self.events.append({"severity": severity, "message": message, "labels": labels or {}})

    def with_label(self, key, value=None):
        return [
            e for e in self.events
            if key in e["labels"] and (value is None or e["labels"][key] == value)
        ]


class YouTubeAPIStub:
    """
    In-process stand-in for the three YouTube Data API resources.

    - channels: channel_id -> (title, uploads playlist id)
    - playlists: playlist_id -> list of pages, each a list of video ids
    - endless_playlists: playlists that always return one id and a next token
    - videos: video_id -> videos.list resource
    - failures: endpoint -> queue of status codes returned before succeeding
    - always_fail: endpoint -> status code returned on every call
    """

    def __init__(self):
        self.channels: Dict[str, tuple] = {}
        self.playlists: Dict[str, List[List[str]]] = {}
        self.endless_playlists = set()
        self.videos: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, List[int]] = {}
        self.always_fail: Dict[str, int] = {}
        self.fail_for_channels: Dict[str, int] = {}
        self.requests: List[httpx.Request] = []

    def calls(self, endpoint: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(f"/{endpoint}")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params

        if endpoint in self.always_fail:
            return self._error(self.always_fail[endpoint])

        queued = self.failures.get(endpoint)
        if queued:
            return self._error(queued.pop(0))

        if endpoint == "channels":
            channel_id = params["id"]
            if channel_id in self.fail_for_channels:
                return self._error(self.fail_for_channels[channel_id])
            if channel_id not in self.channels:
                return httpx.Response(200, json={"items": []})
            title, uploads = self.channels[channel_id]
            return httpx.Response(200, json={"items": [{
                "id": channel_id,
                "snippet": {"title": title},
                "contentDetails": {"relatedPlaylists": {"uploads": uploads}},
            }]})

        if endpoint == "playlistItems":
            playlist_id = params["playlistId"]
            page = int(params.get("pageToken", "0"))

            if playlist_id in self.endless_playlists:
                return httpx.Response(200, json={
                    "items": [{"contentDetails": {"videoId": f"{playlist_id}-{page}"}}],
                    "nextPageToken": str(page + 1),
                })

            pages = self.playlists.get(playlist_id)
            if pages is None:
                return self._error(404)
            body = {"items": [{"contentDetails": {"videoId": v}} for v in pages[page]]}
            if page + 1 < len(pages):
                body["nextPageToken"] = str(page + 1)
            return httpx.Response(200, json=body)

        if endpoint == "videos":
            ids = params["id"].split(",")
            return httpx.Response(200, json={"items": [self.videos[v] for v in ids if v in self.videos]})

        return self._error(404)

    @staticmethod
    def _error(status: int) -> httpx.Response:
        return httpx.Response(status, json={"error": {"code": status, "message": "stubbed failure"}})


def build_video(
    video_id: str,
    title: Optional[str] = None,
    duration: Optional[str] = "PT4M13S",
    views: Optional[str] = "1000",
    likes: Optional[str] = "50",
    comments: Optional[str] = "5",
    tags: Optional[List[str]] = None,
    published_at: str = "2024-01-10T08:30:00Z",
    topics: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """A videos.list resource as the API returns it"""
    statistics = {}
    if views is not None:
        statistics["viewCount"] = views
    if likes is not None:
        statistics["likeCount"] = likes
    if comments is not None:
        statistics["commentCount"] = comments

    content_details = {"definition": "hd", "caption": "false"}
    if duration is not None:
        content_details["duration"] = duration

    resource = {
        "id": video_id,
        "snippet": {
            "title": title or f"Video {video_id}",
            "publishedAt": published_at,
            "tags": tags if tags is not None else ["news", "daily"],
        },
        "statistics": statistics,
        "contentDetails": content_details,
    }
    if topics is not None:
        resource["topicDetails"] = {"topicCategories": topics}
    return resource


class FakeMetadataSource(MetadataSource):
    """
    MetadataSource over plain dicts.

    ``errors`` maps a channel id to the exception raised when it is resolved.
    """

    def __init__(self, videos: Dict[str, List[RawItem]], errors: Optional[Dict[str, Exception]] = None):
        self.videos = videos
        self.errors = errors or {}
        self.calls: List[tuple] = []

    async def resolve_uploads_collection(self, channel_id):
        self.calls.append(("resolve", channel_id))
        if channel_id in self.errors:
            raise self.errors[channel_id]
        return f"Channel {channel_id}", f"UU{channel_id}"

    async def list_item_ids(self, collection_id, max_results):
        self.calls.append(("list", collection_id))
        return [item.id for item in self.videos.get(collection_id[2:], [])][:max_results]

    async def fetch_item_details(self, item_ids):
        self.calls.append(("details", tuple(item_ids)))
        by_id = {item.id: item for items in self.videos.values() for item in items}
        return [by_id[i] for i in item_ids if i in by_id]


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def fast_retry_config():
    """Three attempts, no waiting"""
    return RetryConfig(max_attempts=3, initial_delay=0, max_delay=0, multiplier=2.0)


@pytest.fixture
def api_stub():
    return YouTubeAPIStub()


@pytest.fixture
def make_client(api_stub, observer, fast_retry_config):
    """Factory for a YouTubeMetadataClient talking to ``api_stub``"""

    def factory(config: Optional[RetryConfig] = None, cancel_event=None, max_pages: int = 200):
        executor = RetryExecutor(config or fast_retry_config, observer, cancel_event)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(api_stub.handler))
        return YouTubeMetadataClient(
            api_key=TEST_API_KEY,
            retry_executor=executor,
            observer=observer,
            http_client=http_client,
            base_url=TEST_BASE_URL,
            max_pages=max_pages,
        )

    return factory


@pytest.fixture
def make_video():
    return build_video


@pytest.fixture
def make_raw_item():
    def factory(video_id: str, **kwargs) -> RawItem:
        return RawItem.from_api_item(build_video(video_id, **kwargs))
    return factory


@pytest.fixture
def fixed_clock():
    """Clock frozen at 2024-01-15 03:00 UTC"""
    return lambda: datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_source():
    return FakeMetadataSource
