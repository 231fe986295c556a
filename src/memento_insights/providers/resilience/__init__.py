"""Resilience patterns for backend providers

Retry decorator, circuit breaker and named httpx clients shared by the
OpenAI completion provider and the Supabase identity and cache providers.
"""

from .circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from .decorators import backoff_delay, with_retry
from .http_client import HttpClient, HttpClientConfig, HttpClientFactory

__all__ = [
    'CircuitBreaker',
    'CircuitOpenError',
    'CircuitState',
    'backoff_delay',
    'with_retry',
    'HttpClient',
    'HttpClientConfig',
    'HttpClientFactory',
]
