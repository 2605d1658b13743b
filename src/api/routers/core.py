"""Core routes for the Infringement Finder API (root, health check, categories)."""

from datetime import datetime, timezone

from api.dependencies import get_config
from api.schemas import CategoriesResponse, HealthResponse, RootResponse
from fastapi import APIRouter

router = APIRouter(tags=["Core"])

TRENDING_CATEGORIES = [
    {"value": "default", "label": "All Categories"},
    {"value": "music", "label": "Music"},
    {"value": "gaming", "label": "Gaming"},
    {"value": "movies", "label": "Movies"},
]


@router.get(
    "/",
    response_model=RootResponse,
    summary="API root",
    description="Returns API name and version.",
)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Infringement Finder API", "version": "1.0.0"}


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns server health status and the configured backends.",
)
async def health() -> dict:
    """Health check endpoint."""
    config = get_config()
    search_chain = "piped (forced) -> ytdlp" if config.get("force_piped") else "piped -> ytdlp"
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "search": search_chain,
            "ai": config.get("gemini_model", ""),
            "keywords": "vidiq" if config.get("vidiq_api_token") else "fallback",
        },
    }


@router.get(
    "/api/categories",
    response_model=CategoriesResponse,
    summary="Trending categories",
    description="Categories accepted by the trending analysis.",
)
async def categories() -> dict:
    """List trending categories."""
    return {"categories": TRENDING_CATEGORIES}
