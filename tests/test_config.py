"""Tests for configuration"""

import pytest

from memento_insights.config import Settings


class TestSettingsDefaults:
    """Default values for the insight pipeline"""

    def test_defaults(self):
        s = Settings(_env_file=None, openai_api_key="k")

        assert s.completion_provider == "openai"
        assert s.completion_temperature == 0.7
        assert s.completion_max_tokens == 800
        assert s.completion_timeout == 30.0
        assert s.completion_max_retries == 1
        assert s.max_entries == 20
        assert s.min_entries == 1
        assert s.max_content_length == 500
        assert s.insight_type == "theme_summary"
        assert s.cache_ttl_hours == 168
        assert s.cache_stale_hours == 24
        assert s.rate_limit_retry_after == 60

    def test_default_completion_model(self):
        s = Settings(_env_file=None, openai_api_key="k")
        assert s.get_completion_model() == "gpt-4o-mini"

    def test_completion_model_override(self):
        s = Settings(_env_file=None, openai_api_key="k", completion_model="gpt-4o")
        assert s.get_completion_model() == "gpt-4o"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CACHE_TTL_HOURS", "48")
        monkeypatch.setenv("INSIGHT_CACHE_PROVIDER", "sqlite")

        s = Settings(_env_file=None)

        assert s.cache_ttl_hours == 48
        assert s.insight_cache_provider == "sqlite"

    def test_cors_origins_parsed(self):
        s = Settings(_env_file=None, cors_origins="https://a.example, https://b.example,")
        assert s.get_cors_origins() == ["https://a.example", "https://b.example"]

    def test_retry_bound(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, completion_max_retries=10)


class TestValidation:
    """Startup validation"""

    def test_missing_openai_key_fails(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        s = Settings(_env_file=None, openai_api_key=None)

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            s.validate_completion_config()

    def test_openai_key_present_passes(self):
        Settings(_env_file=None, openai_api_key="k").validate_completion_config()

    def test_supabase_identity_requires_url_and_anon_key(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        s = Settings(_env_file=None, identity_provider="supabase")

        with pytest.raises(ValueError) as exc_info:
            s.validate_supabase_config()

        message = str(exc_info.value)
        assert "SUPABASE_URL" in message
        assert "SUPABASE_ANON_KEY" in message

    def test_supabase_not_required_for_local_providers(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        s = Settings(_env_file=None, identity_provider="dev", insight_cache_provider="sqlite")

        s.validate_supabase_config()

    def test_supabase_cache_accepts_service_role_key(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        s = Settings(
            _env_file=None,
            identity_provider="dev",
            insight_cache_provider="supabase",
            supabase_url="https://x.supabase.co",
            supabase_anon_key=None,
            supabase_service_role_key="service",
        )

        s.validate_supabase_config()
