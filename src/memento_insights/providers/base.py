"""Base provider interfaces - Abstract base classes for all providers"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from memento_insights.models import CachedInsightRecord


@dataclass(frozen=True)
class CompletionRequest:
    """A single chat completion call"""
    system_prompt: str
    user_prompt: str
    temperature: float = 0.7
    max_tokens: int = 800
    json_mode: bool = True


@dataclass(frozen=True)
class CompletionResult:
    """Raw completion returned by a provider"""
    text: str
    model: str = ""
    prompt_tokens: int | None = None
    completion_tokens: int | None = None

    @property
    def total_tokens(self) -> int:
        return (self.prompt_tokens or 0) + (self.completion_tokens or 0)


@dataclass(frozen=True)
class UserIdentity:
    """Verified caller identity"""
    id: str
    email: str | None = None

    @property
    def short_id(self) -> str:
        """Truncated id for log lines"""
        return f"{self.id[:8]}..."


class CompletionProvider(ABC):
    """Abstract base class for language-model completion providers"""

    @abstractmethod
    def complete(self, request: CompletionRequest) -> CompletionResult:
        """
        Run a single completion

        Args:
            request: Prompts and sampling parameters

        Returns:
            CompletionResult with the raw text (may be empty)

        Raises:
            CompletionRateLimitError: If the provider rate-limited the call
            CompletionProviderError: For any other provider-side failure
        """
        pass

    def get_default_model(self) -> str:
        """
        Get the default model ID for this provider.

        Returns:
            Model ID string
        """
        return ""

    def get_name(self) -> str:
        """Get provider name"""
        return self.__class__.__name__


class InsightCacheProvider(ABC):
    """Abstract base class for the persistent insight cache store

    Records are keyed by (user_id, insight_type). Writes append a new record
    that supersedes the previous one; reads return the most recent valid,
    unexpired record.
    """

    @abstractmethod
    def get_latest(self, user_id: str, insight_type: str) -> CachedInsightRecord | None:
        """
        Get the most recent valid record for a key

        Args:
            user_id: Owner of the insight
            insight_type: Insight category (e.g., 'theme_summary')

        Returns:
            Latest record or None

        Raises:
            CacheProviderError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def upsert(
        self,
        user_id: str,
        insight_type: str,
        content: dict[str, Any],
        entries_count: int,
        ttl_hours: int,
        generated_at: datetime | None = None,
        metadata: dict[str, Any] | None = None
    ) -> CachedInsightRecord:
        """
        Store a freshly generated insight

        Args:
            user_id: Owner of the insight
            insight_type: Insight category
            content: Serialized insight content
            entries_count: Number of entries analyzed
            ttl_hours: Hours until the record expires
            generated_at: Generation time (defaults to now)
            metadata: Optional model_version, generation_time_ms,
                prompt_tokens, completion_tokens

        Returns:
            The stored record

        Raises:
            CacheProviderError: If the store cannot be written
        """
        pass

    @abstractmethod
    def invalidate(self, user_id: str, insight_type: str | None = None) -> int:
        """
        Mark a user's records invalid so reads ignore them

        Args:
            user_id: Owner of the insights
            insight_type: Restrict to one category (None = all)

        Returns:
            Number of records invalidated
        """
        pass

    @abstractmethod
    def cleanup_expired(self) -> int:
        """
        Delete expired records

        Returns:
            Number of records deleted
        """
        pass

    def get_name(self) -> str:
        """Get provider name"""
        return self.__class__.__name__


class IdentityProvider(ABC):
    """Abstract base class for resolving bearer credentials to users"""

    @abstractmethod
    def resolve(self, token: str) -> UserIdentity | None:
        """
        Resolve a bearer token to a user

        Args:
            token: Bearer credential (without the 'Bearer ' prefix)

        Returns:
            UserIdentity, or None if the token is not valid

        Raises:
            IdentityProviderError: If the identity service cannot be reached
        """
        pass

    def get_name(self) -> str:
        """Get provider name"""
        return self.__class__.__name__
