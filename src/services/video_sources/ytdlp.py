"""Scraper-backed video source that shells out to the yt-dlp command-line tool."""

import asyncio
import json
import logging
from typing import Any, Optional

from models.video import VideoRecord
from services.errors import SourceError, SourceParseError
from services.search_cache import SearchCache
from services.video_sources.base import VideoSource

logger = logging.getLogger(__name__)


class YtDlpVideoSource(VideoSource):
    """Video source using the local ``yt-dlp`` binary's JSON output.

    The tool is run with ``-J`` so stdout holds one JSON document whose
    ``entries`` list carries the raw metadata for each search hit.
    """

    def __init__(
        self,
        binary_path: str = "yt-dlp",
        timeout: float = 300.0,
        cache: Optional[SearchCache] = None,
        flat_playlist: bool = True,
    ):
        """Initialize the yt-dlp source.

        Args:
            binary_path: Executable name or path of the yt-dlp binary
            timeout: Seconds before the subprocess is killed (default: 5 minutes)
            cache: Optional SearchCache consulted before invoking the tool
            flat_playlist: Skip per-video extraction (much faster, fewer fields)
        """
        self.binary_path = binary_path
        self.timeout = timeout
        self.cache = cache
        self.flat_playlist = flat_playlist

    def get_source_name(self) -> str:
        return "ytdlp"

    def build_args(self, target: str) -> list[str]:
        """Command-line arguments for one search target (e.g. "ytsearch50:query")."""
        args = ["-J", "--quiet", "--no-warnings"]
        if self.flat_playlist:
            args.append("--flat-playlist")
        args.append(target)
        return args

    async def search_videos(self, query: str, max_results: int = 50) -> list[VideoRecord]:
        if not query.strip():
            return []

        if self.cache is not None:
            cached = self.cache.get(query, max_results)
            if cached is not None:
                logger.info(f"[yt-dlp] Cache hit for: '{query}'")
                return cached

        payload = await self._exec_json(self.build_args(f"ytsearch{max_results}:{query}"))
        videos = self._parse_output(payload)[:max_results]
        logger.info(f"[yt-dlp] Found {len(videos)} videos for query: '{query}'")

        if self.cache is not None:
            self.cache.set(query, max_results, videos)
        return videos

    async def get_trending(self, category: str = "default", max_results: int = 50) -> list[VideoRecord]:
        # No trending feed through search; approximate with a trending query
        query = f"{category} trending" if category and category != "default" else "trending"
        return await self.search_videos(query, max_results)

    async def _exec_json(self, args: list[str]) -> Any:
        """Run the binary and decode its stdout as JSON.

        Raises:
            SourceError: binary missing, timed out or exited non-zero
            SourceParseError: stdout is not valid JSON
        """
        logger.debug(f"[yt-dlp] exec: {self.binary_path} {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.binary_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SourceError(f"Cannot start {self.binary_path}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise SourceError(f"{self.binary_path} timed out after {self.timeout}s") from e

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()[:500]
            raise SourceError(f"{self.binary_path} exited with code {process.returncode}: {message}")

        try:
            return json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise SourceParseError(f"Unparseable {self.binary_path} output: {e}") from e

    def _parse_output(self, payload: Any) -> list[VideoRecord]:
        """Map the tool's JSON document onto VideoRecords.

        Raises:
            SourceParseError: the document has no entry list
        """
        if not isinstance(payload, dict):
            raise SourceParseError(f"Expected a JSON object, got {type(payload).__name__}")

        entries = payload.get("entries")
        if entries is None:
            entries = payload.get("items")
        if not isinstance(entries, list):
            raise SourceParseError("yt-dlp output has no 'entries' list")

        videos = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            video = self._parse_video_entry(entry)
            if video:
                videos.append(video)
        return videos

    def _parse_video_entry(self, entry: dict) -> Optional[VideoRecord]:
        """Parse a yt-dlp entry into a VideoRecord, or None without an id."""
        video_id = entry.get("id") or entry.get("video_id")
        if not video_id:
            return None

        thumbnail = entry.get("thumbnail")
        thumbnails = entry.get("thumbnails") or []
        if not thumbnail and thumbnails and isinstance(thumbnails[0], dict):
            thumbnail = thumbnails[0].get("url")

        return VideoRecord(
            video_id=str(video_id),
            title=entry.get("title") or "",
            author=entry.get("uploader") or entry.get("channel") or "",
            author_id=entry.get("channel_id") or entry.get("uploader_id") or "",
            description=entry.get("description") or "",
            view_count=entry.get("view_count") or 0,
            length_seconds=entry.get("duration") or 0,
            published_text=str(entry.get("upload_date") or ""),
            thumbnail=thumbnail or None,
            source=self.get_source_name(),
        )
