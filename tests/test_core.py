"""Tests for settings, logging format and metrics helpers."""

import json
import logging
from unittest.mock import patch

import pytest

from brandpulse.core.config import CatalogPolicy, Settings, validate_settings_for_production
from brandpulse.core.exceptions import NotFoundError, ProviderError
from brandpulse.core.logging import ContextFormatter, JSONFormatter
from brandpulse.core.metrics import _normalize_path
from brandpulse.core.sentry import before_send


class TestSettings:
    def test_thresholds(self):
        config = Settings(catalog_min_mentions=5, catalog_min_avg_score=6.5, duplicate_similarity_threshold=0.8)
        policy = config.thresholds()
        assert policy == CatalogPolicy(
            min_mentions=5,
            min_avg_score=6.5,
            duplicate_similarity=0.8,
        )

    def test_provider_models_and_keys(self):
        config = Settings(gemini_models=" gemini-2.5-flash , ,gemini-2.0-flash", gemini_api_key="g-key")
        assert config.provider_models("gemini") == ["gemini-2.5-flash", "gemini-2.0-flash"]
        assert config.provider_api_key("gemini") == "g-key"
        assert config.provider_api_key("unknown") == ""

    def test_postgres_urls(self):
        config = Settings(postgres_user="u", postgres_password="p", postgres_host="db", postgres_db="bp")
        assert config.postgres_url == "postgresql+asyncpg://u:p@db:5432/bp"
        assert config.postgres_url_sync.startswith("postgresql+psycopg2://")


class TestValidateSettings:
    def test_development_passes(self):
        with patch("brandpulse.core.config.settings", Settings(app_env="development")):
            validate_settings_for_production()

    def test_production_requires_locked_down_config(self):
        config = Settings(
            app_env="production",
            app_debug=True,
            allowed_origins="*",
            openai_api_key="",
            perplexity_api_key="",
            gemini_api_key="",
        )
        with patch("brandpulse.core.config.settings", config):
            with pytest.raises(SystemExit) as exc_info:
                validate_settings_for_production()
        message = str(exc_info.value)
        assert "ALLOWED_ORIGINS" in message
        assert "APP_DEBUG" in message
        assert "OPENAI_API_KEY" in message

    def test_invalid_thresholds(self):
        with patch("brandpulse.core.config.settings", Settings(catalog_min_mentions=0)):
            with pytest.raises(SystemExit):
                validate_settings_for_production()

    def test_attempt_timeout_must_fit_call_budget(self):
        config = Settings(provider_call_timeout=10, provider_request_timeout=10)
        with patch("brandpulse.core.config.settings", config):
            with pytest.raises(SystemExit) as exc_info:
                validate_settings_for_production()
        assert "PROVIDER_REQUEST_TIMEOUT" in str(exc_info.value)


class TestJSONFormatter:
    def test_includes_pipeline_fields(self):
        record = logging.LogRecord("brandpulse.test", logging.INFO, __file__, 1, "ran %s", ("ok",), None)
        record.provider = "openai"
        record.org_id = "org-1"
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "ran ok"
        assert data["provider"] == "openai"
        assert data["org_id"] == "org-1"
        assert "prompt_id" not in data


class TestContextFormatter:
    def test_appends_context_block(self):
        record = logging.LogRecord("brandpulse.test", logging.INFO, __file__, 1, "done", None, None)
        record.provider = "gemini"
        line = ContextFormatter("%(levelname)s %(message)s").format(record)
        assert line == "INFO done [provider=gemini]"

    def test_plain_without_context(self):
        record = logging.LogRecord("brandpulse.test", logging.INFO, __file__, 1, "done", None, None)
        assert ContextFormatter("%(message)s").format(record) == "done"


class TestSentryBeforeSend:
    def test_drops_client_errors(self):
        error = NotFoundError("Prompt not found")
        assert before_send({"message": "x"}, {"exc_info": (type(error), error, None)}) is None

    def test_redacts_provider_keys(self):
        config = Settings(openai_api_key="sk-secret-123", perplexity_api_key="", gemini_api_key="")
        error = ProviderError("openai: auth", "auth", False, 401)
        event = {"extra": {"headers": ["Bearer sk-secret-123"]}, "message": "key sk-secret-123 rejected"}
        with patch("brandpulse.core.sentry.settings", config):
            cleaned = before_send(event, {"exc_info": (type(error), error, None)})
        assert cleaned["message"] == "key [redacted] rejected"
        assert cleaned["extra"]["headers"] == ["Bearer [redacted]"]


class TestNormalizePath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/api/v1/organizations/123/catalog", "/api/v1/organizations/{id}/catalog"),
            ("/api/v1/prompts/abc/consensus", "/api/v1/prompts/{id}/consensus"),
            ("/api/v1/organizations/123", "/api/v1/organizations/{id}"),
            ("/api/v1/executions", "/api/v1/executions"),
        ],
    )
    def test_ids_collapsed(self, path, expected):
        assert _normalize_path(path) == expected
