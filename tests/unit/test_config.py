"""Unit tests for configuration loading and logging context."""

import pytest
import structlog

from utils.config import load_config, validate_config
from utils.logging import run_context


class TestLoadConfig:
    """Tests for load_config."""

    @pytest.mark.unit
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BATCH_SIZE", "10")
        monkeypatch.setenv("SKIP_SHORTS", "0")
        monkeypatch.setenv("FORCE_PIPED", "1")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, ,http://b.test")
        monkeypatch.setenv("SEARCH_CACHE_ENABLED", "no")

        config = load_config()

        assert config["batch_size"] == 10
        assert config["skip_shorts"] is False
        assert config["force_piped"] is True
        assert config["cors_origins"] == ["http://a.test", "http://b.test"]
        assert config["search_cache_enabled"] is False

    @pytest.mark.unit
    def test_defaults(self, monkeypatch):
        for name in ("PIPED_REGION", "SHORTS_MAX_SECONDS", "STRIKABLE_THRESHOLD", "BATCH_PAUSE_MS"):
            monkeypatch.delenv(name, raising=False)

        config = load_config()

        assert config["piped_region"] == "US"
        assert config["shorts_max_seconds"] == 75
        assert config["strikable_threshold"] == 70
        assert config["batch_pause_ms"] == 200


class TestValidateConfig:
    """Tests for validate_config."""

    @pytest.mark.unit
    def test_valid_config(self, sample_config):
        assert validate_config(sample_config) == []

    @pytest.mark.unit
    def test_missing_model_key(self, sample_config):
        sample_config["gemini_api_key"] = ""

        assert "GEMINI_API_KEY is required" in validate_config(sample_config)

    @pytest.mark.unit
    def test_missing_keyword_token_is_not_an_error(self, sample_config):
        sample_config["vidiq_api_token"] = ""

        assert validate_config(sample_config) == []

    @pytest.mark.unit
    def test_out_of_range_values(self, sample_config):
        sample_config["batch_size"] = 0
        sample_config["strikable_threshold"] = 150
        sample_config["piped_timeout_seconds"] = 0

        errors = validate_config(sample_config)

        assert len(errors) == 3


@pytest.mark.unit
def test_run_context_binds_and_resets():
    with run_context("subject", "Valorant") as run_id:
        bound = structlog.contextvars.get_contextvars()
        assert bound == {"run_id": run_id, "flow": "subject", "target": "Valorant"}
        assert len(run_id) == 8

    assert "run_id" not in structlog.contextvars.get_contextvars()
