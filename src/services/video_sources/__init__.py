"""Video sources package for multi-source video acquisition."""

from services.video_sources.base import VideoSource
from services.video_sources.piped import PipedVideoSource
from services.video_sources.ytdlp import YtDlpVideoSource

__all__ = ["VideoSource", "PipedVideoSource", "YtDlpVideoSource"]
