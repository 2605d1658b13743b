"""Configuration loading and validation for the infringement finder."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def load_config() -> dict:
    """Load configuration from environment variables."""
    config = {
        # External classifier
        "gemini_api_key": os.getenv("GEMINI_API_KEY"),
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        "classifier_temperature": float(os.getenv("CLASSIFIER_TEMPERATURE", "0.1")),
        "classifier_max_tokens": int(os.getenv("CLASSIFIER_MAX_TOKENS", "150")),
        "classifier_timeout_seconds": float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "30")),
        # Batch scoring
        "batch_size": int(os.getenv("BATCH_SIZE", "25")),
        "batch_pause_ms": int(os.getenv("BATCH_PAUSE_MS", "200")),
        # Short-form exclusion (SKIP_SHORTS=0 keeps them)
        "skip_shorts": os.getenv("SKIP_SHORTS", "1") != "0",
        "shorts_max_seconds": int(os.getenv("SHORTS_MAX_SECONDS", "75") or "75"),
        # Proxy-backed source
        "force_piped": os.getenv("FORCE_PIPED") == "1",
        "piped_dynamic": os.getenv("PIPED_DYNAMIC") == "1",
        "piped_timeout_seconds": float(os.getenv("PIPED_TIMEOUT_SECONDS", "12")),
        "piped_region": os.getenv("PIPED_REGION", "US"),
        "instance_refresh_seconds": int(os.getenv("INSTANCE_REFRESH_SECONDS", "600")),
        # Scraper-backed source
        "ytdlp_binary": os.getenv("YTDLP_BINARY", "yt-dlp"),
        "ytdlp_timeout_seconds": float(os.getenv("YTDLP_TIMEOUT_SECONDS", "300")),
        # Search result cache
        "search_cache_enabled": _env_flag("SEARCH_CACHE_ENABLED", "true"),
        "search_cache_ttl_seconds": int(os.getenv("SEARCH_CACHE_TTL_SECONDS", "3600")),
        "search_cache_max_entries": int(os.getenv("SEARCH_CACHE_MAX_ENTRIES", "100")),
        # Keyword research provider
        "vidiq_api_token": os.getenv("VIDIQ_API_TOKEN", ""),
        "vidiq_base_url": os.getenv("VIDIQ_BASE_URL", "https://api.vidiq.com"),
        "keyword_timeout_seconds": float(os.getenv("KEYWORD_TIMEOUT_SECONDS", "10")),
        # Triage thresholds
        "medium_priority_limit": int(os.getenv("MEDIUM_PRIORITY_LIMIT", "20")),
        "strikable_threshold": int(os.getenv("STRIKABLE_THRESHOLD", "70")),
        # Server
        "server_host": os.getenv("HOST", "0.0.0.0"),
        "server_port": int(os.getenv("PORT", "3000")),
        "cors_origins": [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
            if origin.strip()
        ],
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": _env_flag("LOG_JSON", "false"),
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    # Classification cannot run without the model key
    if not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required")

    if config.get("batch_size", 0) < 1:
        errors.append("BATCH_SIZE must be at least 1")

    if config.get("batch_pause_ms", 0) < 0:
        errors.append("BATCH_PAUSE_MS cannot be negative")

    if config.get("shorts_max_seconds", 0) < 0:
        errors.append("SHORTS_MAX_SECONDS cannot be negative")

    threshold = config.get("strikable_threshold", 70)
    if not 0 <= threshold <= 100:
        errors.append("STRIKABLE_THRESHOLD must be between 0 and 100")

    for key in ("piped_timeout_seconds", "ytdlp_timeout_seconds", "classifier_timeout_seconds"):
        if config.get(key, 1) <= 0:
            errors.append(f"{key.upper()} must be positive")

    # The keyword provider falls back to synthetic keywords, so a missing token is not an error

    return errors


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """Set up logging configuration with Rich for terminal output (CLI use)."""
    # Clear any existing handlers
    logging.root.handlers.clear()

    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,  # Disable markup to avoid conflicts
    )
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=handlers,
        format="%(message)s",
    )

    # Suppress noisy third-party loggers
    for logger_name in ("httpx", "httpcore", "google_genai", "google_genai.models"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)
