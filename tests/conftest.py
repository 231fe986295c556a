"""Pytest fixtures and configuration for memento-insights tests"""

import json
import os

import pytest

# Set up test environment variables before importing modules
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from memento_insights.config import Settings  # noqa: E402
from memento_insights.errors import CacheProviderError  # noqa: E402
from memento_insights.providers.base import (  # noqa: E402
    CompletionProvider,
    CompletionResult,
    IdentityProvider,
    UserIdentity,
)
from memento_insights.providers.cache.memory import InMemoryInsightCacheProvider  # noqa: E402

USER_ID = "3f0c9a5e-8d2b-4c1a-9e7f-2b6d4a8c1e90"
VALID_TOKEN = "valid-token"


def make_insight_payload(theme_count: int = 4, annotations: bool = True) -> dict:
    """A well-formed model response body"""
    payload = {
        "summary": "You balanced a demanding week with small moments of rest.",
        "description": (
            "Lately you have been carrying a lot at work, and it shows in how often "
            "you return to the same worries late in the evening."
        ),
        "themes": [
            {
                "name": f"Theme number {i + 1}",
                "icon": "🌱",
                "explanation": "This keeps coming back when things get busy.",
                "frequency": f"{i + 1} times this week",
                "source_entries": [{"date": "2025-10-20", "title": "Monday thoughts"}],
            }
            for i in range(theme_count)
        ],
    }
    if annotations:
        payload["annotations"] = [
            {"date": "2025-10-20", "summary": "A hard start to the week. You named the pressure."},
            {"date": "2025-10-22", "summary": "A calmer evening walk. You noticed the difference."},
            {"date": "2025-10-24", "summary": "You finished the presentation. Relief came through."},
        ]
    return payload


def make_entries(count: int = 1) -> list[dict]:
    return [
        {
            "date": f"2025-10-{20 + (i % 9):02d}T09:30:00Z",
            "title": f"Entry {i + 1}",
            "content": f"Today I wrote about something that mattered number {i + 1}.",
            "word_count": 9,
            "mood": "calm",
        }
        for i in range(count)
    ]


class FakeCompletionProvider(CompletionProvider):
    """Returns canned text, or raises a preset error"""

    def __init__(self, text: str | None = None, error: Exception | None = None):
        self.text = json.dumps(make_insight_payload()) if text is None else text
        self.error = error
        self.requests = []

    def complete(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return CompletionResult(
            text=self.text, model="gpt-4o-mini", prompt_tokens=900, completion_tokens=450
        )

    def get_default_model(self) -> str:
        return "gpt-4o-mini"


class FakeIdentityProvider(IdentityProvider):
    """Accepts only VALID_TOKEN"""

    def resolve(self, token):
        if token == VALID_TOKEN:
            return UserIdentity(id=USER_ID, email="writer@example.com")
        return None


class FailingCacheProvider(InMemoryInsightCacheProvider):
    """Memory cache whose reads and/or writes raise"""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = True):
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get_latest(self, user_id, insight_type):
        if self.fail_reads:
            raise CacheProviderError("store unreachable")
        return super().get_latest(user_id, insight_type)

    def upsert(self, *args, **kwargs):
        if self.fail_writes:
            raise CacheProviderError("store unreachable")
        return super().upsert(*args, **kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the developer's environment"""
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        insight_cache_provider="memory",
        identity_provider="dev",
        insight_cache_db_path=str(tmp_path / "insights.db"),
        completion_retry_base_delay=0.01,
    )


@pytest.fixture
def completion_provider():
    return FakeCompletionProvider()


@pytest.fixture
def cache_provider():
    return InMemoryInsightCacheProvider()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def insight_payload():
    return make_insight_payload()


@pytest.fixture
def entries():
    return make_entries(3)
