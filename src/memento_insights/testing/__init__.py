"""Contract test base classes for memento-insights providers.

These abstract test classes define the behavioral contract that all provider
implementations must satisfy. Plugin packages should subclass these and
implement the provider fixture.

Usage in plugin package:
    from memento_insights.testing import InsightCacheContractTest

    class TestRedisCacheContract(InsightCacheContractTest):
        @pytest.fixture
        def provider(self, test_settings):
            return RedisInsightCacheProvider(test_settings)

Requires pytest (install the 'test' extra).
"""

from .cache import InsightCacheContractTest
from .completion import CompletionContractTest

__all__ = [
    'InsightCacheContractTest',
    'CompletionContractTest',
]
