"""Provider package - Extensible provider architecture for memento-insights

Providers are discovered via Python entry points, allowing both built-in
and external providers to be registered in pyproject.toml.

Usage:
    from memento_insights.providers import CompletionProviderFactory
    provider = CompletionProviderFactory.create(settings)

External plugins can add providers by defining entry points:
    [project.entry-points."memento_insights.insight_cache"]
    redis = "my_package.cache:RedisInsightCacheProvider"
"""

from . import plugin_loader
from .base import (
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    IdentityProvider,
    InsightCacheProvider,
    UserIdentity,
)
from .factories import (
    CompletionProviderFactory,
    IdentityProviderFactory,
    InsightCacheProviderFactory,
)

__all__ = [
    # Base classes
    'CompletionProvider',
    'InsightCacheProvider',
    'IdentityProvider',
    # Value types
    'CompletionRequest',
    'CompletionResult',
    'UserIdentity',
    # Factories
    'CompletionProviderFactory',
    'InsightCacheProviderFactory',
    'IdentityProviderFactory',
    # Plugin loader (for advanced usage)
    'plugin_loader',
]
