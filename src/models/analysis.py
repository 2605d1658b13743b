"""Classification, reporting, keyword and progress data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class CopyrightType(str, Enum):
    """Kind of protected work a video appears to infringe."""

    MOVIE = "movie"
    TVSHOW = "tvshow"
    MUSIC = "music"
    GAME = "game"
    SOFTWARE = "software"
    OTHER = "other"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "CopyrightType":
        """Parse a model-supplied value, mapping unknown labels to OTHER."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass
class ClassificationResult:
    """Guardrail-corrected verdict for one video."""

    video_id: str
    video_title: str
    channel_name: str
    is_likely_infringing: bool = False
    confidence_score: int = 0  # 0-100
    reasons: list[str] = field(default_factory=list)  # at most 3
    copyright_type: CopyrightType = CopyrightType.NONE
    fair_use_factors: list[str] = field(default_factory=list)
    analysis_timestamp: str = field(default_factory=utc_timestamp)
    error: Optional[str] = None

    @classmethod
    def failed(cls, video_id: str, video_title: str, channel_name: str, error: str) -> "ClassificationResult":
        """Zero-confidence, non-infringing result for a classification failure."""
        return cls(
            video_id=video_id,
            video_title=video_title,
            channel_name=channel_name,
            is_likely_infringing=False,
            confidence_score=0,
            reasons=["Analysis failed"],
            copyright_type=CopyrightType.NONE,
            fair_use_factors=[],
            error=error,
        )

    def to_dict(self) -> dict:
        data = {
            "videoId": self.video_id,
            "videoTitle": self.video_title,
            "channelName": self.channel_name,
            "isLikelyInfringing": self.is_likely_infringing,
            "confidenceScore": self.confidence_score,
            "reasons": list(self.reasons),
            "copyrightType": self.copyright_type.value,
            "fairUseFactors": list(self.fair_use_factors),
            "analysisTimestamp": self.analysis_timestamp,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class SummaryReport:
    """Aggregate statistics over a set of classification results."""

    total_analyzed: int
    likely_infringing: int
    high_confidence: int
    percentage_infringing: str  # one decimal place, "0.0" when nothing analyzed
    type_breakdown: dict[str, int] = field(default_factory=dict)
    top_infringing: list[ClassificationResult] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict:
        return {
            "summary": {
                "totalAnalyzed": self.total_analyzed,
                "likelyInfringing": self.likely_infringing,
                "highConfidence": self.high_confidence,
                "percentageInfringing": self.percentage_infringing,
            },
            "typeBreakdown": dict(self.type_breakdown),
            "topInfringing": [result.to_dict() for result in self.top_infringing],
            "timestamp": self.timestamp,
        }


@dataclass
class StrikableVideo:
    """High-confidence takedown candidate joined with its source metadata."""

    url: str
    title: str
    channel: str
    confidence_score: int
    keyword: str
    reasons: list[str]
    description: str = ""
    view_count: int = 0
    length_seconds: int = 0
    published_text: str = ""

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "channel": self.channel,
            "confidenceScore": self.confidence_score,
            "keyword": self.keyword,
            "reasons": list(self.reasons),
            "description": self.description,
            "viewCount": self.view_count,
            "lengthSeconds": self.length_seconds,
            "publishedText": self.published_text,
        }


@dataclass
class KeywordEntry:
    """One researched keyword with its estimated search volume."""

    keyword: str
    monthly_searches: int = 0
    competition: Optional[float] = None
    related_score: Optional[float] = None

    def to_dict(self) -> dict:
        data = {"keyword": self.keyword, "monthlySearches": self.monthly_searches}
        if self.competition is not None:
            data["competition"] = self.competition
        if self.related_score is not None:
            data["relatedScore"] = self.related_score
        return data


@dataclass
class KeywordSet:
    """Main query plus ranked derived keywords for a subject."""

    main_keyword: str
    top_keywords: list[KeywordEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mainKeyword": self.main_keyword,
            "topKeywords": [entry.to_dict() for entry in self.top_keywords],
        }


class ProgressStep(str, Enum):
    """Pipeline stage reported on the progress stream."""

    KEYWORD_RESEARCH = "keyword_research"
    SEARCHING = "searching"
    SEARCH_COMPLETE = "search_complete"
    FILTER_COMPLETE = "filter_complete"
    ANALYZING = "analyzing"


@dataclass
class ProgressEvent:
    """One progress update pushed to live subscribers."""

    step: ProgressStep
    message: str
    progress: int
    total_videos: Optional[int] = None
    current: Optional[int] = None
    total: Optional[int] = None
    current_video: Optional[str] = None
    keywords: Optional[list[str]] = None

    def __post_init__(self) -> None:
        self.progress = max(0, min(100, int(self.progress)))

    def to_dict(self) -> dict:
        data = {
            "step": self.step.value,
            "message": self.message,
            "progress": self.progress,
        }
        optional = {
            "totalVideos": self.total_videos,
            "current": self.current,
            "total": self.total,
            "currentVideo": self.current_video,
            "keywords": self.keywords,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass
class SearchAnalysis:
    """Response of the keyword/category search flow."""

    message: str
    videos: int  # videos acquired before whitelist and pre-filter
    analyses: list[ClassificationResult] = field(default_factory=list)
    report: Optional[SummaryReport] = None

    def to_dict(self) -> dict:
        report = self.report or SummaryReport(
            total_analyzed=0, likely_infringing=0, high_confidence=0, percentage_infringing="0.0"
        )
        return {
            "message": self.message,
            "videos": self.videos,
            "analyses": [analysis.to_dict() for analysis in self.analyses],
            "report": report.to_dict(),
        }


@dataclass
class SubjectAnalysis:
    """Response of the subject-driven (keyword research) flow."""

    message: str
    subject_name: str
    keywords: KeywordSet
    total_videos_analyzed: int  # unique, non-whitelisted videos across all queries
    strikable_videos: list[StrikableVideo] = field(default_factory=list)

    @property
    def strikable_videos_count(self) -> int:
        return len(self.strikable_videos)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "subjectName": self.subject_name,
            "keywords": self.keywords.to_dict(),
            "totalVideosAnalyzed": self.total_videos_analyzed,
            "strikableVideosCount": self.strikable_videos_count,
            "strikableVideos": [video.to_dict() for video in self.strikable_videos],
        }
