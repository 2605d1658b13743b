# Data models for the infringement finder
from .video import VideoRecord, PreFilterResult, PrefilteredVideo, PrefilterPartition
from .analysis import (
    CopyrightType,
    ClassificationResult,
    SummaryReport,
    StrikableVideo,
    KeywordEntry,
    KeywordSet,
    ProgressStep,
    ProgressEvent,
    SearchAnalysis,
    SubjectAnalysis,
)

__all__ = [
    "VideoRecord",
    "PreFilterResult",
    "PrefilteredVideo",
    "PrefilterPartition",
    # Classification and reporting
    "CopyrightType",
    "ClassificationResult",
    "SummaryReport",
    "StrikableVideo",
    # Keyword research
    "KeywordEntry",
    "KeywordSet",
    # Progress stream
    "ProgressStep",
    "ProgressEvent",
    # Flow responses
    "SearchAnalysis",
    "SubjectAnalysis",
]
