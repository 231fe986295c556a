"""Plugin loader for memento-insights providers - Entry point based discovery

Discovers and loads providers from entry points for all provider types.
Built-in providers and external plugins are discovered via the same
mechanism.

Entry Point Groups:
    - memento_insights.completion: Completion (LLM) providers
    - memento_insights.insight_cache: Insight cache store providers
    - memento_insights.identity: Identity providers

Usage:
    # Get all providers of a type
    providers = get_providers('completion')  # {'openai': OpenAICompletionProvider}

    # Get a specific provider class
    provider_class = get_provider_class('insight_cache', 'sqlite')
"""

import importlib.metadata
import logging
from typing import Union

from .base import CompletionProvider, IdentityProvider, InsightCacheProvider

logger = logging.getLogger(__name__)

ProviderType = Union[
    type[CompletionProvider],
    type[InsightCacheProvider],
    type[IdentityProvider],
]

# Entry point groups for each provider type
PROVIDER_GROUPS = {
    'completion': 'memento_insights.completion',
    'insight_cache': 'memento_insights.insight_cache',
    'identity': 'memento_insights.identity',
}

# Cache for loaded providers: {provider_type: {name: class}}
_provider_cache: dict[str, dict[str, ProviderType]] = {}


def discover_providers(group: str) -> dict[str, ProviderType]:
    """Discover providers for a specific entry point group

    Args:
        group: Entry point group name (e.g., 'memento_insights.completion')

    Returns:
        Dictionary mapping provider names to provider classes

    Note:
        Providers with missing dependencies are skipped with a debug log.
    """
    providers = {}

    try:
        eps = importlib.metadata.entry_points().select(group=group)

        for ep in eps:
            try:
                providers[ep.name] = ep.load()
                logger.debug(f"Discovered provider: {group}.{ep.name}")
            except ImportError as e:
                logger.debug(f"Skipping {group}.{ep.name}: missing dependency - {e}")
            except Exception as e:
                logger.warning(f"Failed to load provider {group}.{ep.name}: {e}")

    except Exception as e:
        logger.warning(f"Failed to discover providers for {group}: {e}")

    return providers


def get_providers(provider_type: str) -> dict[str, ProviderType]:
    """Get all discovered providers for a type

    Manually registered providers are merged over discovered ones.

    Args:
        provider_type: Provider type ('completion', 'insight_cache', 'identity')

    Returns:
        Dictionary mapping provider names to provider classes
    """
    if provider_type not in _provider_cache:
        group = PROVIDER_GROUPS.get(provider_type)
        if group:
            _provider_cache[provider_type] = discover_providers(group)
        else:
            logger.warning(f"Unknown provider type: {provider_type}")
            _provider_cache[provider_type] = {}

    return _provider_cache[provider_type]


def get_provider_class(provider_type: str, name: str) -> ProviderType | None:
    """Get a specific provider class, or None if not found"""
    return get_providers(provider_type).get(name)


def get_available_providers(provider_type: str) -> list[str]:
    """Get list of available provider names for a type"""
    return sorted(get_providers(provider_type).keys())


def reset() -> None:
    """Reset plugin loader cache

    For testing purposes only. Clears all cached providers
    so they will be rediscovered on next access.
    """
    _provider_cache.clear()
    logger.debug("Plugin loader cache reset")


def register_provider(provider_type: str, name: str, provider_class: ProviderType) -> None:
    """Manually register a provider

    For testing and runtime registration. Providers registered this way
    take precedence over entry point discovered providers.

    Example:
        >>> register_provider('completion', 'fake', FakeCompletionProvider)
    """
    providers = get_providers(provider_type)
    providers[name] = provider_class
    logger.debug(f"Manually registered provider: {provider_type}.{name}")
