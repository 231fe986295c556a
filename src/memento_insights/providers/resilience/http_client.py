"""Named httpx clients for the Supabase backends.

Each backend (``supabase-auth``, ``supabase-rest``) gets one pooled
``httpx.Client`` with its own retry budget and circuit breaker. Transport
errors and 5xx responses are retried with backoff; 4xx responses go back to
the provider, which decides what they mean (a rejected token, a missing
RPC function).
"""

import logging
import threading
import time
from dataclasses import dataclass, field

import httpx

from .circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from .decorators import backoff_delay

logger = logging.getLogger(__name__)


@dataclass
class HttpClientConfig:
    """Connection, retry and breaker settings for one backend"""

    base_url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 10.0

    max_retries: int = 2
    retry_base_delay: float = 0.5
    retry_max_delay: float = 5.0

    breaker_threshold: int = 5
    breaker_cooldown: float = 30.0

    # Tests route requests through httpx.MockTransport
    transport: httpx.BaseTransport | None = None

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")

        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_base_delay <= 0:
            raise ValueError(f"retry_base_delay must be > 0, got {self.retry_base_delay}")
        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError(
                f"retry_max_delay ({self.retry_max_delay}) must be >= "
                f"retry_base_delay ({self.retry_base_delay})"
            )


class HttpClient:
    """One backend's httpx client, guarded by retry and a circuit breaker"""

    def __init__(self, config: HttpClientConfig, name: str = "backend"):
        self.config = config
        self.name = name
        self.breaker = CircuitBreaker(config.breaker_threshold, config.breaker_cooldown)
        self._client = httpx.Client(
            base_url=config.base_url,
            headers=config.headers,
            timeout=config.timeout,
            transport=config.transport,
        )

    def get(self, endpoint: str, headers: dict[str, str] | None = None) -> httpx.Response:
        return self.request("GET", endpoint, headers=headers)

    def post(
        self,
        endpoint: str,
        json: dict,
        headers: dict[str, str] | None = None
    ) -> httpx.Response:
        return self.request("POST", endpoint, json=json, headers=headers)

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Send one logical request, retrying transport errors and 5xx.

        The breaker sees the request once: a success after retries counts
        as a success, exhausted retries count as one failure.

        Raises:
            CircuitOpenError: If the breaker is rejecting requests
            httpx.HTTPError: If every attempt failed
        """
        label = f"{self.name} {method} {endpoint}"
        if not self.breaker.allow():
            logger.warning(f"{label} rejected, circuit {self.breaker.state.value}")
            raise CircuitOpenError(f"{self.name} is unavailable (circuit open)")

        attempts = self.config.max_retries + 1
        for attempt in range(attempts):
            try:
                response = self._client.request(method, endpoint, **kwargs)
                if response.is_server_error:
                    response.raise_for_status()
            except httpx.HTTPError as e:
                if attempt + 1 == attempts:
                    self.breaker.record_failure()
                    logger.error(f"{label} failed after {attempts} attempt(s): {e}")
                    raise

                delay = backoff_delay(attempt, self.config.retry_base_delay, self.config.retry_max_delay)
                logger.info(f"{label} attempt {attempt + 1}/{attempts} failed: {e}. Retrying in {delay:.2f}s")
                time.sleep(delay)
            else:
                self.breaker.record_success()
                return response

    def close(self):
        self._client.close()


class HttpClientFactory:
    """Process-wide registry of named backend clients.

    Clients are shared across requests so the connection pool and breaker
    state survive between calls.
    """

    _clients: dict[str, HttpClient] = {}
    _lock = threading.Lock()

    @classmethod
    def get_client(cls, name: str, config: HttpClientConfig) -> HttpClient:
        """Return the client registered under name, creating it from config on first use"""
        with cls._lock:
            client = cls._clients.get(name)
            if client is None:
                logger.info(f"Creating HttpClient: {name} (base_url={config.base_url})")
                client = HttpClient(config, name=name)
                cls._clients[name] = client
            return client

    @classmethod
    def breaker_states(cls) -> dict[str, CircuitState]:
        """Circuit state per backend, for the health endpoint"""
        with cls._lock:
            return {name: client.breaker.state for name, client in cls._clients.items()}

    @classmethod
    def reset(cls):
        """Close every client and forget them (shutdown and tests)."""
        with cls._lock:
            clients = list(cls._clients.values())
            cls._clients.clear()
        for client in clients:
            client.close()
