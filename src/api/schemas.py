"""Pydantic request/response models for the Infringement Finder API."""

from pydantic import AliasChoices, BaseModel, Field

# =============================================================================
# Response Models
# =============================================================================


class RootResponse(BaseModel):
    """Root endpoint response."""

    message: str
    version: str

    model_config = {"json_schema_extra": {"examples": [{"message": "Infringement Finder API", "version": "1.0.0"}]}}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    services: dict[str, str]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "ok",
                    "timestamp": "2025-01-01T12:00:00+00:00",
                    "services": {
                        "search": "piped -> ytdlp",
                        "ai": "gemini-2.5-flash",
                        "keywords": "vidiq",
                    },
                }
            ]
        }
    }


class CategoryOption(BaseModel):
    """One selectable trending category."""

    value: str
    label: str


class CategoriesResponse(BaseModel):
    """Trending categories response."""

    categories: list[CategoryOption]


# =============================================================================
# Request Models
# =============================================================================


class AnalyzeRequest(BaseModel):
    """Search-and-analyze request. Either keywords or category is required."""

    keywords: str | None = None
    category: str | None = None
    max_results: int = Field(default=50, ge=1, le=200, alias="maxResults")
    channel_whitelist: list[str] = Field(default_factory=list, alias="channelWhitelist")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "keywords": "valorant aimbot free download",
                    "maxResults": 50,
                    "channelWhitelist": ["Official Game Channel"],
                }
            ]
        },
    }


class AnalyzeSubjectRequest(BaseModel):
    """Subject-driven analysis request."""

    subject_name: str = Field(validation_alias=AliasChoices("subjectName", "gameName", "subject_name"))
    channel_whitelist: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("channelWhitelist", "channel_whitelist"),
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "subjectName": "Valorant",
                    "channelWhitelist": ["VALORANT"],
                }
            ]
        },
    }
