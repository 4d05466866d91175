"""
YouTube Data API v3 client for channel snapshot sync.

This module wraps the three calls the sync needs:
- channels.list: resolve a channel to its display name and uploads playlist
- playlistItems.list: page through the uploads playlist for video ids
- videos.list: fetch video details in batches of at most 50 ids

Each HTTP call runs through the shared RetryExecutor. Non-2xx responses
are mapped to exceptions carrying the status code so the executor can
classify them; transport failures become NetworkError.
"""

import httpx
from pydantic import ValidationError
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from core.exceptions import (
    APIExtractionError,
    AuthenticationError,
    BadRequestError,
    ChannelNotFoundError,
    DataFormatError,
    NetworkError,
    PartialFetchError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
    SyncCancelledError,
)
from ingestion.base import MetadataSource
from ingestion.observer import SyncObserver
from ingestion.retry import RetryExecutor
from schemas.snapshot import RawItem

DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"

# API ceilings
VIDEOS_BATCH_LIMIT = 50
PLAYLIST_PAGE_LIMIT = 50
DEFAULT_MAX_PAGES = 200

VIDEO_PARTS = "snippet,statistics,contentDetails,topicDetails"


def chunk_ids(ids: Sequence[str], size: int = VIDEOS_BATCH_LIMIT) -> Iterator[List[str]]:
    """Split ids into consecutive batches of at most ``size``"""
    if size <= 0:
        raise ValueError("batch size must be positive")
    for i in range(0, len(ids), size):
        yield list(ids[i:i + size])


def error_from_response(response: httpx.Response, endpoint: str) -> APIExtractionError:
    """Map a non-2xx response to the matching exception type"""
    status = response.status_code
    context = {
        "endpoint": endpoint,
        "response_body": response.text[:500]  # Truncate
    }

    if status == 429:
        retry_after = response.headers.get("Retry-After")
        return RateLimitError(
            f"Rate limit exceeded for {endpoint}",
            context=context,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
        )

    if status >= 500:
        return ServerError(f"Server error {status} from {endpoint}", context=context, status_code=status)

    if status in (401, 403):
        return AuthenticationError(f"Request to {endpoint} was refused ({status})", context=context, status_code=status)

    if status == 404:
        return ResourceNotFoundError(f"Resource not found: {endpoint}", context=context, status_code=status)

    if 400 <= status < 500:
        return BadRequestError(f"Bad request to {endpoint} ({status})", context=context, status_code=status)

    return APIExtractionError(f"Unexpected status {status} from {endpoint}", context=context, status_code=status)


class YouTubeMetadataClient(MetadataSource):
    """
    Fetch channel uploads and video details from the YouTube Data API.

    The client owns an ``httpx.AsyncClient`` unless one is passed in; use it
    as an async context manager (or call ``aclose``) to release it.

    Attributes:
        max_pages: Upper bound on playlist pages read for one channel, so a
            misbehaving continuation token cannot loop forever
    """

    def __init__(
        self,
        api_key: str,
        retry_executor: RetryExecutor,
        observer: SyncObserver,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_pages: int = DEFAULT_MAX_PAGES
    ):
        if max_pages <= 0:
            raise ValueError("max_pages must be positive")

        self._api_key = api_key
        self.retry = retry_executor
        self.observer = observer
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_pages = max_pages
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "YouTubeMetadataClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Single GET against ``{base_url}/{endpoint}`` without retry.

        Raises:
            APIExtractionError subclass: For non-2xx responses
            NetworkError: For timeouts and connection failures
            APIExtractionError: When the body is not a JSON object
        """
        url = f"{self.base_url}/{endpoint}"
        query = {**params, "key": self._api_key}

        try:
            response = await self._client.get(url, params=query, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timeout for {endpoint}",
                context={"endpoint": endpoint, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                f"Network error for {endpoint}",
                context={"endpoint": endpoint},
                original_exception=e
            )

        if response.status_code >= 400:
            raise error_from_response(response, endpoint)

        try:
            data = response.json()
        except ValueError as e:
            raise APIExtractionError(
                "Failed to parse JSON response",
                context={"endpoint": endpoint, "response_body": response.text[:500]},
                original_exception=e
            )

        if not isinstance(data, dict):
            raise APIExtractionError(
                "Unexpected JSON payload",
                context={"endpoint": endpoint, "payload_type": type(data).__name__}
            )

        return data

    async def resolve_uploads_collection(self, channel_id: str) -> Tuple[str, str]:
        """
        Resolve a channel to its display name and uploads playlist id.

        Args:
            channel_id: YouTube channel id (UC...)

        Returns:
            (display_name, uploads_playlist_id)

        Raises:
            ChannelNotFoundError: If the id does not resolve; never retried
            RetryExhaustedError: If the lookup kept failing transiently
        """
        data = await self.retry.execute(
            lambda: self._get("channels", {"part": "snippet,contentDetails", "id": channel_id}),
            operation_name="channels.list",
            labels={"channel_id": channel_id}
        )

        items = data.get("items") or []
        if not items:
            raise ChannelNotFoundError(
                f"Channel not found: {channel_id}",
                context={"channel_id": channel_id, "endpoint": "channels"}
            )

        channel = items[0]
        display_name = (channel.get("snippet") or {}).get("title", "")
        uploads = (
            (channel.get("contentDetails") or {})
            .get("relatedPlaylists", {})
            .get("uploads")
        )
        if not uploads:
            raise ChannelNotFoundError(
                f"Channel {channel_id} has no uploads playlist",
                context={"channel_id": channel_id, "endpoint": "channels"}
            )

        return display_name, uploads

    async def list_item_ids(self, collection_id: str, max_results: int) -> List[str]:
        """
        Collect video ids from an uploads playlist, newest first.

        Stops at whichever comes first: no continuation token, ``max_results``
        ids collected, or ``max_pages`` pages read.

        Args:
            collection_id: Uploads playlist id
            max_results: Maximum ids to return

        Returns:
            At most ``max_results`` video ids
        """
        if max_results <= 0:
            return []

        video_ids: List[str] = []
        page_token: Optional[str] = None
        pages = 0

        while True:
            params = {
                "part": "contentDetails",
                "playlistId": collection_id,
                "maxResults": min(PLAYLIST_PAGE_LIMIT, max_results - len(video_ids)),
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self.retry.execute(
                lambda params=params: self._get("playlistItems", params),
                operation_name="playlistItems.list",
                labels={"playlist_id": collection_id, "page": pages + 1}
            )
            pages += 1

            for item in data.get("items") or []:
                video_id = (item.get("contentDetails") or {}).get("videoId")
                if video_id:
                    video_ids.append(video_id)

            page_token = data.get("nextPageToken")
            if not page_token or len(video_ids) >= max_results:
                break

            if pages >= self.max_pages:
                self.observer.emit("warning", f"Page ceiling reached for playlist {collection_id}", {
                    "playlist_id": collection_id,
                    "pages": pages,
                    "ids_collected": len(video_ids),
                })
                break

        return video_ids[:max_results]

    async def fetch_item_details(self, item_ids: Sequence[str]) -> List[RawItem]:
        """
        Fetch video details in batches of at most 50 ids.

        Args:
            item_ids: Video ids to fetch

        Returns:
            RawItem per video the API returned (deleted/private videos are absent)

        Raises:
            The first batch's error unchanged when nothing was fetched yet
            PartialFetchError: When a later batch fails; carries earlier items
        """
        items: List[RawItem] = []

        for index, batch in enumerate(chunk_ids(item_ids)):
            try:
                data = await self.retry.execute(
                    lambda batch=batch: self._get("videos", {"part": VIDEO_PARTS, "id": ",".join(batch)}),
                    operation_name="videos.list",
                    labels={"batch": index, "batch_size": len(batch)}
                )
            except SyncCancelledError:
                raise
            except Exception as e:
                if index == 0:
                    raise
                raise PartialFetchError(
                    f"videos.list batch {index} failed after {len(items)} items were fetched",
                    fetched_items=items,
                    batch_index=index,
                    original_exception=e
                )

            for raw in data.get("items") or []:
                try:
                    items.append(RawItem.from_api_item(raw))
                except ValidationError as e:
                    raise DataFormatError(
                        "Malformed video resource",
                        context={"video_id": raw.get("id"), "batch": index},
                        original_exception=e
                    )

        return items
