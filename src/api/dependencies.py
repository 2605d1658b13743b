"""Service singletons and dependency injection for the Infringement Finder API."""

from services.analysis_service import AnalysisService, create_analysis_service
from services.progress_broadcaster import ProgressBroadcaster
from utils.config import load_config

# Service singletons
_config: dict | None = None
_broadcaster: ProgressBroadcaster | None = None
_analysis_service: AnalysisService | None = None


def get_config() -> dict:
    """Get or load the application config."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_broadcaster() -> ProgressBroadcaster:
    """Get or create the shared progress broadcaster."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = ProgressBroadcaster()
    return _broadcaster


def get_analysis_service() -> AnalysisService:
    """Get or create the analysis pipeline."""
    global _analysis_service
    if _analysis_service is None:
        _analysis_service = create_analysis_service(get_config(), broadcaster=get_broadcaster())
    return _analysis_service


async def close_services() -> None:
    """Release network clients held by the singletons."""
    global _analysis_service
    if _analysis_service is not None:
        await _analysis_service.close()
        _analysis_service = None
