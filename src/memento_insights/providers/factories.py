"""Provider factories - Factory pattern with entry point discovery

All factories use the plugin_loader to discover providers via entry points.
This provides a unified mechanism for both built-in and external providers.
"""

import logging
from typing import ClassVar

from memento_insights.config import Settings

from . import plugin_loader
from .base import CompletionProvider, IdentityProvider, InsightCacheProvider

logger = logging.getLogger(__name__)


class _ProviderFactory:
    """Shared create/list/register logic keyed by provider type"""

    provider_type: ClassVar[str]
    setting_name: ClassVar[str]
    label: ClassVar[str]

    @classmethod
    def create(cls, settings: Settings):
        """Create the provider selected in settings

        Args:
            settings: Application settings

        Returns:
            Provider instance

        Raises:
            ValueError: If provider not found or dependencies missing
        """
        provider_name = getattr(settings, cls.setting_name)
        provider_class = plugin_loader.get_provider_class(cls.provider_type, provider_name)

        if not provider_class:
            available = ', '.join(cls.get_available_providers())
            raise ValueError(
                f"Unknown {cls.label} provider: {provider_name}. "
                f"Available: {available or 'none (check dependencies)'}"
            )

        logger.info(f"Creating {cls.label} provider: {provider_name}")
        return provider_class(settings)

    @classmethod
    def get_available_providers(cls) -> list[str]:
        """Get list of available providers"""
        return plugin_loader.get_available_providers(cls.provider_type)

    @classmethod
    def register(cls, name: str, provider_class: type) -> None:
        """Manually register a provider (for testing)"""
        plugin_loader.register_provider(cls.provider_type, name, provider_class)


class CompletionProviderFactory(_ProviderFactory):
    """Factory for creating completion providers

    Providers are discovered via entry points in the 'memento_insights.completion' group.

    Available providers:
        - openai: OpenAI chat completions
    """

    provider_type = 'completion'
    setting_name = 'completion_provider'
    label = 'completion'

    @classmethod
    def create(cls, settings: Settings) -> CompletionProvider:
        return super().create(settings)


class InsightCacheProviderFactory(_ProviderFactory):
    """Factory for creating insight cache providers

    Providers are discovered via entry points in the 'memento_insights.insight_cache' group.

    Available providers:
        - memory: Process-local store (development, tests)
        - sqlite: Local SQLite file
        - supabase: Supabase Postgres via RPC
    """

    provider_type = 'insight_cache'
    setting_name = 'insight_cache_provider'
    label = 'insight cache'

    @classmethod
    def create(cls, settings: Settings) -> InsightCacheProvider:
        return super().create(settings)


class IdentityProviderFactory(_ProviderFactory):
    """Factory for creating identity providers

    Providers are discovered via entry points in the 'memento_insights.identity' group.

    Available providers:
        - supabase: Supabase Auth (GET /auth/v1/user)
        - dev: Token is the user id (local development only)
    """

    provider_type = 'identity'
    setting_name = 'identity_provider'
    label = 'identity'

    @classmethod
    def create(cls, settings: Settings) -> IdentityProvider:
        return super().create(settings)
