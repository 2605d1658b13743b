"""Video-related data models."""

from dataclasses import dataclass, field
from typing import Optional

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


def _non_negative_int(value) -> int:
    """Coerce a loosely-typed count/duration into a non-negative int (0 = unknown)."""
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


@dataclass
class VideoRecord:
    """Normalized video record produced by any retrieval source.

    Proxy responses and scraper output use different field names and formats;
    both are mapped onto this shape so every downstream stage sees one type.
    Records are unique by ``video_id`` within a single acquisition call only.
    """

    video_id: str
    title: str = ""
    author: str = ""  # channel name
    author_id: str = ""
    description: str = ""
    view_count: int = 0  # 0 = unknown
    length_seconds: int = 0  # 0 = unknown
    published_text: str = ""  # opaque, format differs per source
    thumbnail: Optional[str] = None
    source: str = ""  # name of the producing source (piped, ytdlp, ...)
    search_keyword: str = ""  # query that surfaced the video

    def __post_init__(self) -> None:
        self.title = self.title or ""
        self.author = self.author or ""
        self.description = self.description or ""
        self.view_count = _non_negative_int(self.view_count)
        self.length_seconds = _non_negative_int(self.length_seconds)

    @property
    def url(self) -> str:
        """Watch URL for this video."""
        return WATCH_URL_TEMPLATE.format(video_id=self.video_id)

    @property
    def searchable_text(self) -> str:
        """Lower-cased title and description joined for term matching."""
        return f"{self.title} {self.description}".lower()

    def to_dict(self) -> dict:
        """Serialize to the camelCase wire shape."""
        return {
            "id": self.video_id,
            "title": self.title,
            "author": self.author,
            "authorId": self.author_id,
            "description": self.description,
            "viewCount": self.view_count,
            "lengthSeconds": self.length_seconds,
            "publishedText": self.published_text,
            "thumbnail": self.thumbnail or "",
            "source": self.source,
        }


@dataclass(frozen=True)
class PreFilterResult:
    """Heuristic triage score attached to a video before classification."""

    infringement_score: int
    legitimate_score: int
    infringement_probability: float
    priority: int
    should_analyze: bool

    def to_dict(self) -> dict:
        return {
            "infringementScore": self.infringement_score,
            "legitimateScore": self.legitimate_score,
            "infringementProbability": round(self.infringement_probability, 4),
            "priority": self.priority,
            "shouldAnalyze": self.should_analyze,
        }


@dataclass(frozen=True)
class PrefilteredVideo:
    """A video paired with its pre-filter result."""

    video: VideoRecord
    prefilter: PreFilterResult


@dataclass
class PrefilterPartition:
    """Pre-filtered videos split into priority tiers.

    Each list is sorted by descending priority; ties keep input order.
    """

    high_priority: list[PrefilteredVideo] = field(default_factory=list)
    medium_priority: list[PrefilteredVideo] = field(default_factory=list)
    low_priority: list[PrefilteredVideo] = field(default_factory=list)
    all: list[PrefilteredVideo] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "high": len(self.high_priority),
            "medium": len(self.medium_priority),
            "low": len(self.low_priority),
            "all": len(self.all),
        }
