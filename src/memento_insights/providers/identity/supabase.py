"""Supabase Auth identity provider"""

import logging

import httpx

from memento_insights.config import Settings
from memento_insights.errors import IdentityProviderError
from memento_insights.providers.base import IdentityProvider, UserIdentity
from memento_insights.providers.resilience import (
    CircuitOpenError,
    HttpClient,
    HttpClientConfig,
    HttpClientFactory,
)

logger = logging.getLogger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """Resolves bearer tokens with GET /auth/v1/user"""

    def __init__(self, settings: Settings, http_client: HttpClient | None = None):
        settings.validate_supabase_config()
        self.client = http_client or HttpClientFactory.get_client(
            "supabase-auth",
            HttpClientConfig(
                base_url=settings.supabase_url,
                headers={"apikey": settings.supabase_anon_key},
                timeout=settings.supabase_timeout,
                max_retries=settings.supabase_max_retries,
            )
        )

    def resolve(self, token: str) -> UserIdentity | None:
        try:
            response = self.client.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {token}"},
            )
        except (httpx.HTTPError, CircuitOpenError) as e:
            raise IdentityProviderError(f"Supabase auth unreachable: {e}") from e

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise IdentityProviderError(
                f"Supabase auth returned {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise IdentityProviderError("Supabase auth returned non-JSON body") from e

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None

        return UserIdentity(id=user_id, email=payload.get("email"))
