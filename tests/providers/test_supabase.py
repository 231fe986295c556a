"""Tests for the Supabase identity and cache providers

Requests are routed through httpx.MockTransport so the real HttpClient,
retry loop and circuit breaker are exercised without a network.
"""

import json

import httpx
import pytest

from memento_insights.config import Settings
from memento_insights.errors import CacheProviderError, IdentityProviderError
from memento_insights.providers.cache.supabase import SupabaseInsightCacheProvider
from memento_insights.providers.identity.supabase import SupabaseIdentityProvider
from memento_insights.providers.resilience import HttpClient, HttpClientConfig

BASE_URL = "https://project.supabase.co"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url=BASE_URL,
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-key",
        insight_cache_provider="supabase",
        identity_provider="supabase",
    )


def make_client(handler, max_retries: int = 1, headers: dict | None = None) -> HttpClient:
    return HttpClient(HttpClientConfig(
        base_url=BASE_URL,
        headers=headers or {},
        max_retries=max_retries,
        retry_base_delay=0.001,
        retry_max_delay=0.001,
        transport=httpx.MockTransport(handler),
    ))


class TestSupabaseIdentityProvider:

    def test_resolves_user(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"id": "user-123", "email": "a@example.com"})

        provider = SupabaseIdentityProvider(settings, http_client=make_client(handler))

        identity = provider.resolve("jwt-token")

        assert identity.id == "user-123"
        assert identity.email == "a@example.com"
        assert seen == {"path": "/auth/v1/user", "auth": "Bearer jwt-token"}

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_token_returns_none(self, settings, status):
        provider = SupabaseIdentityProvider(
            settings,
            http_client=make_client(lambda request: httpx.Response(status, json={"msg": "bad jwt"})),
        )

        assert provider.resolve("expired") is None

    def test_payload_without_id_returns_none(self, settings):
        provider = SupabaseIdentityProvider(
            settings,
            http_client=make_client(lambda request: httpx.Response(200, json={"email": "x"})),
        )

        assert provider.resolve("token") is None

    def test_server_error_raises(self, settings):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        provider = SupabaseIdentityProvider(settings, http_client=make_client(handler))

        with pytest.raises(IdentityProviderError):
            provider.resolve("token")
        assert len(calls) == 2

    def test_unreachable_raises(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        provider = SupabaseIdentityProvider(settings, http_client=make_client(handler))

        with pytest.raises(IdentityProviderError):
            provider.resolve("token")

    def test_requires_supabase_url(self):
        settings = Settings(_env_file=None, supabase_url=None, identity_provider="supabase")

        with pytest.raises(ValueError, match="SUPABASE_URL"):
            SupabaseIdentityProvider(settings)


class TestSupabaseInsightCacheProvider:

    @pytest.fixture
    def rpc_calls(self):
        return []

    def provider_with(self, settings, rpc_calls, responses: dict):
        def handler(request: httpx.Request) -> httpx.Response:
            function = request.url.path.rsplit("/", 1)[-1]
            rpc_calls.append((function, json.loads(request.content or b"{}")))
            status, body = responses[function]
            return httpx.Response(status, json=body)

        return SupabaseInsightCacheProvider(settings, http_client=make_client(handler))

    def test_get_latest_maps_row(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {
            "get_cached_insight": (200, [{
                "id": "7d1f7c1e-0000-4000-8000-000000000001",
                "content": {"summary": "s", "description": "d", "annotations": [], "themes": []},
                "generated_at": "2025-10-27T12:00:00.000Z",
                "entries_analyzed_count": 7,
                "expires_at": "2025-11-03T12:00:00.000Z",
            }]),
        })

        record = provider.get_latest("user-1", "theme_summary")

        assert record.entries_analyzed_count == 7
        assert record.content["summary"] == "s"
        assert record.expires_at.day == 3
        assert rpc_calls[0] == ("get_cached_insight", {
            "p_user_id": "user-1",
            "p_insight_type": "theme_summary",
            "p_date_start": None,
            "p_date_end": None,
        })

    @pytest.mark.parametrize("generated_at,microsecond", [
        ("2025-10-19T17:29:00.12345+00:00", 123450),
        ("2025-10-19T17:29:00.1+00:00", 100000),
        ("2025-10-19T17:29:00+00:00", 0),
    ])
    def test_get_latest_accepts_trimmed_fractions(self, settings, rpc_calls, generated_at, microsecond):
        """Postgres drops trailing zeros from timestamptz fractions"""
        provider = self.provider_with(settings, rpc_calls, {
            "get_cached_insight": (200, [{
                "id": "7d1f7c1e-0000-4000-8000-000000000003",
                "content": {"summary": "s", "description": "d", "annotations": [], "themes": []},
                "generated_at": generated_at,
                "entries_analyzed_count": 2,
                "expires_at": "2025-10-26T17:29:00.1234+00:00",
            }]),
        })

        record = provider.get_latest("user-1", "theme_summary")

        assert record.generated_at.microsecond == microsecond
        assert record.generated_at.tzinfo is not None
        assert record.expires_at.microsecond == 123400

    def test_get_latest_empty(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {"get_cached_insight": (200, [])})

        assert provider.get_latest("user-1", "theme_summary") is None

    def test_upsert_sends_ttl(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {
            "save_insight_cache": (200, "7d1f7c1e-0000-4000-8000-000000000002"),
        })
        content = {"summary": "s", "description": "d", "annotations": [], "themes": []}

        record = provider.upsert("user-1", "theme_summary", content, 3, ttl_hours=168)

        function, params = rpc_calls[0]
        assert function == "save_insight_cache"
        assert params["p_ttl_hours"] == 168
        assert params["p_entries_count"] == 3
        assert params["p_content"] == content
        assert record.id == "7d1f7c1e-0000-4000-8000-000000000002"

    def test_invalidate_returns_count(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {"invalidate_insights": (200, 2)})

        assert provider.invalidate("user-1") == 2
        assert rpc_calls[0][1] == {"p_user_id": "user-1", "p_insight_type": None}

    def test_cleanup_expired(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {
            "cleanup_expired_insights": (200, [{"deleted_count": 4, "oldest_deleted": None}]),
        })

        assert provider.cleanup_expired() == 4

    def test_client_error_raises_cache_error(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {
            "get_cached_insight": (404, {"message": "function not found"}),
        })

        with pytest.raises(CacheProviderError):
            provider.get_latest("user-1", "theme_summary")

    def test_malformed_row_raises_cache_error(self, settings, rpc_calls):
        provider = self.provider_with(settings, rpc_calls, {
            "get_cached_insight": (200, [{"id": "x"}]),
        })

        with pytest.raises(CacheProviderError):
            provider.get_latest("user-1", "theme_summary")
