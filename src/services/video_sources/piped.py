"""Proxy-backed video source querying community-run Piped API instances."""

import logging
from typing import Any, Optional

import httpx

from models.video import VideoRecord
from services.errors import AllInstancesFailedError
from services.instance_directory import InstanceDirectory
from services.video_sources.base import VideoSource

logger = logging.getLogger(__name__)

VIDEO_ITEM_TYPES = {"stream", "video"}


class PipedVideoSource(VideoSource):
    """Video source backed by a federated set of read-only proxy instances.

    Each request walks the instance list round-robin from the directory's
    preferred start, giving every instance one attempt before failing.
    """

    def __init__(
        self,
        instance_directory: InstanceDirectory,
        timeout: float = 12.0,
        region: str = "US",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the Piped source.

        Args:
            instance_directory: Provider of candidate instance URLs
            timeout: Per-request timeout in seconds
            region: Region code for trending feeds
            http_client: Shared AsyncClient (one is created lazily otherwise)
        """
        self.instance_directory = instance_directory
        self.timeout = timeout
        self.region = region
        self._client = http_client
        self._owns_client = http_client is None

    def get_source_name(self) -> str:
        return "piped"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        await self.instance_directory.close()

    async def search_videos(self, query: str, max_results: int = 50) -> list[VideoRecord]:
        if not query.strip():
            return []

        items = await self._request_with_failover("/search", {"q": query, "filter": "videos"}, label=f"search '{query}'")
        videos = self._parse_items(items, videos_only=True)[:max_results]
        logger.info(f"[Piped] Found {len(videos)} videos for: '{query}'")
        return videos

    async def get_trending(self, category: str = "default", max_results: int = 50) -> list[VideoRecord]:
        # Trending feeds are per region; the category is not a Piped parameter
        items = await self._request_with_failover("/trending", {"region": self.region}, label=f"trending ({category})")
        videos = self._parse_items(items, videos_only=False)[:max_results]
        logger.info(f"[Piped] Trending returned {len(videos)} videos")
        return videos

    async def _request_with_failover(self, path: str, params: dict, label: str) -> list[Any]:
        """GET ``path`` on successive instances until one answers.

        Raises:
            AllInstancesFailedError: every instance failed for this request
        """
        instances = await self.instance_directory.get_instances()
        start = self.instance_directory.preferred_index(instances)
        client = self._get_client()
        last_error: Optional[Exception] = None

        # Request-local cursor: concurrent calls never disturb each other's failover order
        for attempt in range(len(instances)):
            base = instances[(start + attempt) % len(instances)]
            try:
                logger.debug(f"[Piped] {label} on {base}")
                response = await client.get(f"{base}{path}", params=params, timeout=self.timeout)
                response.raise_for_status()
                items = self._extract_items(response.json())
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.warning(f"[Piped] {label} failed on {base}: {e}")
                continue

            self.instance_directory.mark_success(base)
            return items

        raise AllInstancesFailedError(self.get_source_name(), len(instances), last_error)

    @staticmethod
    def _extract_items(payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get("items") or []
            if isinstance(items, list):
                return items
        raise ValueError(f"Unexpected response shape: {type(payload).__name__}")

    def _parse_items(self, items: list[Any], videos_only: bool) -> list[VideoRecord]:
        videos = []
        for item in items:
            if not isinstance(item, dict):
                continue
            if videos_only and str(item.get("type") or "stream").lower() not in VIDEO_ITEM_TYPES:
                continue
            video = self._parse_item(item)
            if video:
                videos.append(video)
        return videos

    def _parse_item(self, item: dict) -> Optional[VideoRecord]:
        """Map one Piped item onto a VideoRecord, or None when it has no id."""
        video_id = item.get("id") or item.get("videoId") or _video_id_from_url(item.get("url") or "")
        if not video_id:
            return None

        thumbnails = item.get("thumbnails") or []
        thumbnail = item.get("thumbnail") or item.get("thumbnailUrl")
        if not thumbnail and thumbnails and isinstance(thumbnails[0], dict):
            thumbnail = thumbnails[0].get("url")

        return VideoRecord(
            video_id=str(video_id),
            title=item.get("title") or "",
            author=item.get("uploaderName") or item.get("uploader") or item.get("author") or "",
            author_id=_channel_id_from_url(item.get("uploaderUrl") or "") or item.get("authorId") or "",
            description=item.get("shortDescription") or item.get("description") or "",
            view_count=item.get("views") or item.get("viewCount") or 0,
            length_seconds=item.get("duration") or item.get("lengthSeconds") or 0,
            published_text=item.get("uploadedDate") or item.get("publishedText") or "",
            thumbnail=thumbnail or None,
            source=self.get_source_name(),
        )


def _video_id_from_url(url: str) -> str:
    """Extract the id from "/watch?v=ID" style URLs."""
    if "v=" not in url:
        return ""
    return url.split("v=", 1)[1].split("&", 1)[0]


def _channel_id_from_url(url: str) -> str:
    if "/channel/" not in url:
        return ""
    return url.rsplit("/channel/", 1)[1].strip("/")
