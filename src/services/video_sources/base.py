"""Base abstraction for video retrieval sources."""

from abc import ABC, abstractmethod

from models.video import VideoRecord


class VideoSource(ABC):
    """Abstract base class for retrieval sources (proxy network, local scraper, ...).

    Implementations raise ``SourceError`` (or a subclass) when they cannot
    produce results; an empty list means the source worked but found nothing.
    """

    @abstractmethod
    async def search_videos(self, query: str, max_results: int = 50) -> list[VideoRecord]:
        """Search for videos matching the query.

        Args:
            query: Search query string
            max_results: Maximum number of records to return

        Returns:
            List of normalized VideoRecord objects
        """

    @abstractmethod
    async def get_trending(self, category: str = "default", max_results: int = 50) -> list[VideoRecord]:
        """Get trending videos, optionally narrowed by category.

        Args:
            category: Category hint ("default" for all)
            max_results: Maximum number of records to return

        Returns:
            List of normalized VideoRecord objects
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Get the name of this video source.

        Returns:
            Source name (e.g., "piped", "ytdlp")
        """

    def is_configured(self) -> bool:
        """Check if this source has what it needs to run.

        Default implementation returns True (no config required).

        Returns:
            True if source is properly configured and ready to use
        """
        return True

    async def close(self) -> None:
        """Release network clients or other resources (no-op by default)."""
